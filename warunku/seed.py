"""
Sample data for local development.

Run with ``python -m warunku.seed``. Clears products, customers and debt
records, then inserts a small catalog, a few customers, and debts created
through the ledger service so totals and statuses are consistent.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from warunku.core.config import settings
from warunku.core.logging_config import configure_logging
from warunku.db.mongo import create_indexes
from warunku.repositories.customer_repo import CustomerRepository
from warunku.repositories.product_repo import ProductRepository
from warunku.schemas.customer import CustomerCreate
from warunku.schemas.debt import DebtItemCreate, DebtRecordCreate, PaymentCreate
from warunku.schemas.product import ProductCreate, UnitSchema
from warunku.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

PRODUCTS = [
    ProductCreate(
        name="Sugar",
        description="Refined white sugar",
        category="Groceries",
        units=[UnitSchema(label="kg", selling_price=12500)]
    ),
    ProductCreate(
        name="Eggs",
        description="Free range chicken eggs",
        category="Groceries",
        units=[
            UnitSchema(label="kg", selling_price=26000),
            UnitSchema(label="tray (30 pcs)", selling_price=65000)
        ]
    ),
    ProductCreate(
        name="Cooking Oil",
        description="Vegetable oil",
        category="Groceries",
        units=[
            UnitSchema(label="liter", selling_price=17000),
            UnitSchema(label="2 liter pouch", selling_price=32000)
        ]
    ),
    ProductCreate(
        name="Instant Noodles",
        description="Instant fried noodles",
        category="Instant Food",
        units=[
            UnitSchema(label="pcs", selling_price=3500),
            UnitSchema(label="box (40 pcs)", selling_price=130000)
        ]
    ),
]

CUSTOMERS = [
    CustomerCreate(name="Budi Santoso", phone_number="081234567890", address="Jl. Merdeka No. 10"),
    CustomerCreate(name="Siti Aminah", phone_number="081298765432", address="Jl. Sudirman No. 5"),
    CustomerCreate(name="Agus Wijaya"),
]


async def seed_database(db: AsyncIOMotorDatabase) -> dict:
    """Replace all ledger data in ``db`` with the sample set. Returns counts."""
    for name in ("products", "customers", "debt_records"):
        await db[name].delete_many({})
        logger.info("%s cleared.", name)

    product_repo = ProductRepository(db)
    customer_repo = CustomerRepository(db)
    ledger = LedgerService(db)

    products = {p.name: await product_repo.create_product(p) for p in PRODUCTS}
    customers = [await customer_repo.create_customer(c) for c in CUSTOMERS]

    now = datetime.now(timezone.utc)
    sugar, noodles, eggs = products["Sugar"], products["Instant Noodles"], products["Eggs"]

    # Unpaid, with a due date
    await ledger.create_debt_record(DebtRecordCreate(
        customer_id=str(customers[0].id),
        items=[
            DebtItemCreate(product_id=str(sugar.id), unit_label="kg", quantity=2),
            DebtItemCreate(product_id=str(noodles.id), unit_label="pcs", quantity=5),
        ],
        debt_date=(now - timedelta(days=10)).isoformat(),
        due_date=(now + timedelta(days=20)).isoformat(),
        notes="Monthly groceries"
    ))

    # Partially paid
    partial = await ledger.create_debt_record(DebtRecordCreate(
        customer_id=str(customers[1].id),
        items=[DebtItemCreate(product_id=str(eggs.id), unit_label="Tray (30 pcs)", quantity=1)],
        debt_date=(now - timedelta(days=3)).isoformat()
    ))
    await ledger.record_payment(str(partial.id), PaymentCreate(amount=25000, method="Cash"))

    # Settled at creation
    await ledger.create_debt_record(DebtRecordCreate(
        customer_id=str(customers[2].id),
        items=[DebtItemCreate(product_id=str(noodles.id), unit_label="pcs", quantity=4, price_override=3000)],
        initial_payment=12000
    ))

    counts = {
        "products": await db["products"].count_documents({}),
        "customers": await db["customers"].count_documents({}),
        "debt_records": await db["debt_records"].count_documents({}),
    }
    logger.info("Seeded %s", counts)
    return counts


async def main():
    client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    try:
        db = client[settings.DATABASE_NAME]
        await create_indexes(db)
        await seed_database(db)
    finally:
        client.close()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
