"""
Debt record model - credit sales owed by a customer.

Design principles:
- Customer and priced items are fixed at creation
- Product name and unit label are snapshotted into each item
- Payment history is append-only
- total_amount, amount_paid and status are derived from items and
  payment_history and cached on every write
- Status: UNPAID → PARTIALLY_PAID → PAID
"""

from typing import List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field

from warunku.models.base import MongoModel, PyObjectId, utcnow


class DebtStatus(str, Enum):
    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


class DebtItem(BaseModel):
    product_id: PyObjectId
    product_name: str  # Snapshot at debt time
    unit_label: str    # Canonical label of the matched unit
    quantity: float
    price_at_debt_time: float
    line_total: float


class PaymentEntry(BaseModel):
    payment_id: PyObjectId = Field(default_factory=PyObjectId)
    amount: float
    payment_date: datetime = Field(default_factory=utcnow)
    method: Optional[str] = None  # e.g. "Cash", "Transfer"
    notes: Optional[str] = None
    recorded_at: datetime = Field(default_factory=utcnow)


class DebtRecord(MongoModel):
    """
    Customer debt with partial-payment tracking.

    Invariants:
    - items is non-empty
    - total_amount == sum(item.line_total)
    - amount_paid == sum(entry.amount for entry in payment_history)
    - status == derive_status(total_amount, amount_paid)
    """
    customer_id: PyObjectId
    items: List[DebtItem]
    payment_history: List[PaymentEntry] = []

    # Derived
    total_amount: float = 0
    amount_paid: float = 0
    status: DebtStatus = DebtStatus.UNPAID

    debt_date: datetime = Field(default_factory=utcnow)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None

    version: int = 1

    def open_amount(self) -> float:
        """How much remains unpaid (never negative)."""
        return max(self.total_amount - self.amount_paid, 0)

    def to_document(self) -> dict:
        doc = super().to_document()
        doc["status"] = self.status.value
        return doc
