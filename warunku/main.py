import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from warunku.core.config import settings
from warunku.core.errors import ConflictError, InvalidInputError, LedgerError, NotFoundError
from warunku.core.logging_config import configure_logging
from warunku.db.mongo import connect_to_mongo, close_mongo_connection
from warunku.routes import customers, debts, products

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidInputError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    try:
        yield
    finally:
        await close_mongo_connection()


async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, status_code, exc.code, exc.message)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s -> 400 validation: %s", request.method, request.url.path, exc.errors())
    # Raw input is left out; NaN/Infinity cannot be rendered as JSON
    errors = [{k: v for k, v in error.items() if k != "input"} for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors), "code": "invalid-input"}
    )


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        description=settings.DESCRIPTION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/")
    async def root():
        return {"message": "Warunku API is running"}

    app.include_router(products.router, prefix=settings.API_PREFIX)
    app.include_router(customers.router, prefix=settings.API_PREFIX)
    app.include_router(debts.router, prefix=settings.API_PREFIX)
    return app


app = create_app()
