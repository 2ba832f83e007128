from typing import List, Optional

from pydantic import BaseModel

from warunku.models.base import MongoModel


# Embedded documents don't need MongoModel (no separate _id)
class Unit(BaseModel):
    label: str  # e.g. "pcs", "1/4 kg", "tray (30 pcs)"
    selling_price: float


class Product(MongoModel):
    name: str
    category: str
    description: Optional[str] = None
    image_path: Optional[str] = None
    units: List[Unit] = []

    def find_unit(self, label: str) -> Optional[Unit]:
        """Unit variant whose label matches ``label`` case-insensitively."""
        wanted = label.strip().lower()
        for unit in self.units:
            if unit.label.lower() == wanted:
                return unit
        return None
