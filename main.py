import uvicorn

from warunku.core.config import settings
from warunku.main import app

if __name__ == "__main__":
    uvicorn.run(
        "warunku.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
