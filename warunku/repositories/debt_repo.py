"""
DebtRepository - persistence for debt records.

Every write touches exactly one document. Writes that depend on the current
state (payments) are guarded by the ``version`` field read beforehand, so a
concurrent writer makes the update match nothing instead of being clobbered.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from warunku.models.debt import DebtRecord, DebtStatus, PaymentEntry
from warunku.utils.dates import to_naive_utc


class DebtRepository:
    """Repository for debt records."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["debt_records"]

    async def insert_debt_record(self, record: DebtRecord) -> DebtRecord:
        await self.collection.insert_one(record.to_document())
        return record

    async def get_debt_record(self, record_id: str) -> Optional[DebtRecord]:
        """Get a debt record by id; malformed ids are treated as missing."""
        if not ObjectId.is_valid(record_id):
            return None
        doc = await self.collection.find_one({"_id": ObjectId(record_id)})
        if doc:
            return DebtRecord(**doc)
        return None

    async def append_payment(
        self,
        record: DebtRecord,
        entry: PaymentEntry,
        expected_version: int,
        extra_updates: Optional[dict] = None
    ) -> Optional[DebtRecord]:
        """
        Push ``entry`` and persist the record's recomputed derived fields.

        ``record`` must already contain ``entry`` and have its derived fields
        refreshed. Returns the stored record, or None when the document changed
        since ``expected_version`` was read.
        """
        updates = {
            "amount_paid": record.amount_paid,
            "status": record.status.value,
            "updated_at": record.updated_at,
        }
        if extra_updates:
            updates.update(extra_updates)

        result = await self.collection.find_one_and_update(
            {"_id": record.id, "version": expected_version},
            {
                "$push": {"payment_history": entry.model_dump(mode="python")},
                "$set": updates,
                "$inc": {"version": 1}
            },
            return_document=ReturnDocument.AFTER
        )
        if result:
            return DebtRecord(**result)
        return None

    async def update_meta(self, record_id: str, updates: dict) -> Optional[DebtRecord]:
        """Set notes and/or due date. Derived fields are left alone."""
        if not ObjectId.is_valid(record_id):
            return None
        result = await self.collection.find_one_and_update(
            {"_id": ObjectId(record_id)},
            {"$set": updates, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return DebtRecord(**result)
        return None

    @staticmethod
    def build_query(
        customer_id: Optional[ObjectId] = None,
        status: Optional[DebtStatus] = None,
        start: Optional[datetime] = None,
        end_exclusive: Optional[datetime] = None
    ) -> dict:
        """Mongo filter for the listing hooks (all arguments pre-validated)."""
        query: dict = {}
        if customer_id is not None:
            query["customer_id"] = customer_id
        if status is not None:
            query["status"] = status.value

        date_range: dict = {}
        if start is not None:
            date_range["$gte"] = to_naive_utc(start)
        if end_exclusive is not None:
            date_range["$lt"] = to_naive_utc(end_exclusive)
        if date_range:
            query["debt_date"] = date_range
        return query

    async def list_debt_records(
        self,
        query: dict,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[DebtRecord], int]:
        """Newest debt first, ties broken by creation time."""
        cursor = (
            self.collection.find(query)
            .sort([("debt_date", DESCENDING), ("created_at", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        docs = await cursor.to_list(None)
        total = await self.collection.count_documents(query)
        return [DebtRecord(**doc) for doc in docs], total

    async def has_outstanding_debts(self, customer_id: ObjectId) -> bool:
        doc = await self.collection.find_one(
            {"customer_id": customer_id, "status": {"$ne": DebtStatus.PAID.value}},
            {"_id": 1}
        )
        return doc is not None
