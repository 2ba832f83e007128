import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo import ReturnDocument

from warunku.core.errors import InvalidInputError, NotFoundError
from warunku.models.product import Product, Unit
from warunku.schemas.product import ProductCreate, ProductUpdate, UnitSchema


class ResolvedUnit(BaseModel):
    """Price lookup result handed to the debt ledger."""
    product_id: str
    product_name: str
    label: str   # Canonical label as stored on the product
    price: float  # Current selling price


def _check_unique_labels(units: Iterable[UnitSchema]) -> None:
    seen = set()
    for unit in units:
        key = unit.label.strip().lower()
        if key in seen:
            raise InvalidInputError(f"Duplicate unit label '{unit.label}'", code="duplicate-unit")
        seen.add(key)


class ProductRepository:
    """Product catalog database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["products"]

    async def create_product(self, product_data: ProductCreate) -> Product:
        """Create a new product."""
        _check_unique_labels(product_data.units)
        product = Product(
            name=product_data.name.strip(),
            category=product_data.category.strip(),
            description=product_data.description,
            image_path=product_data.image_path,
            units=[Unit(label=u.label.strip(), selling_price=u.selling_price) for u in product_data.units]
        )
        await self.collection.insert_one(product.to_document())
        return product

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by id."""
        if not ObjectId.is_valid(product_id):
            return None
        doc = await self.collection.find_one({"_id": ObjectId(product_id)})
        if doc:
            return Product(**doc)
        return None

    async def get_products_by_ids(self, product_ids: Iterable[ObjectId]) -> Dict[str, Product]:
        """Batch lookup keyed by string id; missing products are simply absent."""
        ids = list({ObjectId(pid) for pid in product_ids})
        if not ids:
            return {}
        docs = await self.collection.find({"_id": {"$in": ids}}).to_list(None)
        return {str(doc["_id"]): Product(**doc) for doc in docs}

    async def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Product], int]:
        """List products sorted by name, with total count for pagination."""
        query: dict = {}
        if search:
            query["name"] = {"$regex": re.escape(search), "$options": "i"}
        if category:
            query["category"] = category

        cursor = self.collection.find(query).sort("name", 1).skip(skip).limit(limit)
        docs = await cursor.to_list(None)
        total = await self.collection.count_documents(query)
        return [Product(**doc) for doc in docs], total

    async def update_product(self, product_id: str, update_data: ProductUpdate) -> Optional[Product]:
        """Update a product. Existing debt items keep their snapshots."""
        if not ObjectId.is_valid(product_id):
            return None

        updates = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if not updates:
            return await self.get_product(product_id)

        if update_data.units is not None:
            _check_unique_labels(update_data.units)
            updates["units"] = [
                {"label": u.label.strip(), "selling_price": u.selling_price}
                for u in update_data.units
            ]
        updates["updated_at"] = datetime.now(timezone.utc)

        result = await self.collection.find_one_and_update(
            {"_id": ObjectId(product_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Product(**result)
        return None

    async def delete_product(self, product_id: str) -> bool:
        """Delete a product."""
        if not ObjectId.is_valid(product_id):
            return False
        result = await self.collection.delete_one({"_id": ObjectId(product_id)})
        return result.deleted_count > 0

    async def resolve_unit(self, product_id: str, unit_label: str) -> ResolvedUnit:
        """
        Resolve a product's unit variant by label (case-insensitive).

        Raises NotFoundError if the product does not exist and
        InvalidInputError if it has no unit with that label.
        """
        product = await self.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product with ID {product_id} not found.", code="product-not-found")

        unit = product.find_unit(unit_label)
        if unit is None:
            raise InvalidInputError(
                f"Unit '{unit_label}' not found for product '{product.name}'.",
                code="unit-not-found"
            )

        return ResolvedUnit(
            product_id=str(product.id),
            product_name=product.name,
            label=unit.label,
            price=unit.selling_price
        )
