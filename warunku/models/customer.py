from typing import Optional

from warunku.models.base import MongoModel


class Customer(MongoModel):
    name: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
