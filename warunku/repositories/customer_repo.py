import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from warunku.core.errors import ConflictError
from warunku.models.customer import Customer
from warunku.schemas.customer import CustomerCreate, CustomerUpdate


class CustomerRepository:
    """Customer directory database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["customers"]

    async def _ensure_phone_free(self, phone_number: Optional[str], exclude_id: Optional[ObjectId] = None) -> None:
        if not phone_number:
            return
        query: dict = {"phone_number": phone_number}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        if await self.collection.find_one(query):
            raise ConflictError(
                "Customer with this phone number already exists.",
                code="duplicate-phone"
            )

    async def create_customer(self, customer_data: CustomerCreate) -> Customer:
        """Create a new customer."""
        await self._ensure_phone_free(customer_data.phone_number)
        customer = Customer(
            name=customer_data.name.strip(),
            phone_number=customer_data.phone_number,
            address=customer_data.address
        )
        await self.collection.insert_one(customer.to_document())
        return customer

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get a customer by id."""
        if not ObjectId.is_valid(customer_id):
            return None
        doc = await self.collection.find_one({"_id": ObjectId(customer_id)})
        if doc:
            return Customer(**doc)
        return None

    async def exists(self, customer_id: str) -> bool:
        if not ObjectId.is_valid(customer_id):
            return False
        doc = await self.collection.find_one({"_id": ObjectId(customer_id)}, {"_id": 1})
        return doc is not None

    async def get_customers_by_ids(self, customer_ids: Iterable[ObjectId]) -> Dict[str, Customer]:
        ids = list({ObjectId(cid) for cid in customer_ids})
        if not ids:
            return {}
        docs = await self.collection.find({"_id": {"$in": ids}}).to_list(None)
        return {str(doc["_id"]): Customer(**doc) for doc in docs}

    async def list_customers(
        self,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Customer], int]:
        """List customers sorted by name; search matches name or phone number."""
        query: dict = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"phone_number": pattern}]

        cursor = self.collection.find(query).sort("name", 1).skip(skip).limit(limit)
        docs = await cursor.to_list(None)
        total = await self.collection.count_documents(query)
        return [Customer(**doc) for doc in docs], total

    async def update_customer(self, customer_id: str, update_data: CustomerUpdate) -> Optional[Customer]:
        """Update a customer."""
        if not ObjectId.is_valid(customer_id):
            return None

        updates = update_data.model_dump(exclude_unset=True)
        # Name cannot be cleared
        if updates.get("name") is None:
            updates.pop("name", None)
        if not updates:
            return await self.get_customer(customer_id)

        oid = ObjectId(customer_id)
        if updates.get("phone_number"):
            await self._ensure_phone_free(updates["phone_number"], exclude_id=oid)

        updates["updated_at"] = datetime.now(timezone.utc)
        result = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Customer(**result)
        return None

    async def delete_customer(self, customer_id: str) -> bool:
        """Delete a customer. Callers must run the outstanding-debt guard first."""
        if not ObjectId.is_valid(customer_id):
            return False
        result = await self.collection.delete_one({"_id": ObjectId(customer_id)})
        return result.deleted_count > 0
