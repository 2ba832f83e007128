import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from warunku.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    # Create indexes
    await create_indexes(mongodb.db)
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    mongodb.client = None
    mongodb.db = None
    logger.info("Disconnected from MongoDB")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Product lookups
    await db["products"].create_index("name")
    await db["products"].create_index("category")

    # Customer lookups
    await db["customers"].create_index("name")
    await db["customers"].create_index("phone_number")

    # Debt record filters and the default listing order
    await db["debt_records"].create_index([("customer_id", ASCENDING), ("status", ASCENDING)])
    await db["debt_records"].create_index([("debt_date", DESCENDING), ("created_at", DESCENDING)])
    await db["debt_records"].create_index("status")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    if mongodb.db is None:
        raise RuntimeError("MongoDB is not connected; call connect_to_mongo() first")
    return mongodb.db
