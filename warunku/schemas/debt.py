from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict


class DebtItemCreate(BaseModel):
    """Requested item; the ledger resolves product, unit and price."""
    product_id: str
    unit_label: str = Field(..., min_length=1)
    quantity: float = Field(..., allow_inf_nan=False)
    price_override: Optional[float] = Field(None, allow_inf_nan=False)


class DebtRecordCreate(BaseModel):
    """
    Debt record creation request.

    Totals, amount paid and status are never accepted from the caller;
    unknown fields such as ``total_amount`` are ignored.
    """
    customer_id: str
    items: List[DebtItemCreate]
    debt_date: Optional[str] = None
    due_date: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    initial_payment: Optional[float] = Field(None, allow_inf_nan=False)


class PaymentCreate(BaseModel):
    """Payment to append to a debt record's history."""
    amount: float = Field(..., allow_inf_nan=False)
    payment_date: Optional[str] = None
    method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=500)
    # Optional edits to the parent record made in the same write
    due_date: Optional[str] = None
    record_notes: Optional[str] = Field(None, max_length=500)


class DebtRecordUpdate(BaseModel):
    """Only notes and due date are editable after creation."""
    notes: Optional[str] = Field(None, max_length=500)
    due_date: Optional[str] = None


class ProductSummary(BaseModel):
    id: str
    name: str
    category: str


class CustomerSummary(BaseModel):
    id: str
    name: str
    phone_number: Optional[str] = None
    address: Optional[str] = None


class DebtItemResponse(BaseModel):
    product_id: str
    product_name: str
    unit_label: str
    quantity: float
    price_at_debt_time: float
    line_total: float
    product: Optional[ProductSummary] = None


class PaymentEntryResponse(BaseModel):
    payment_id: str
    amount: float
    payment_date: datetime
    method: Optional[str] = None
    notes: Optional[str] = None
    recorded_at: datetime


class DebtRecordResponse(BaseModel):
    """Debt record response schema."""
    id: str = Field(validation_alias="_id", serialization_alias="id")
    customer_id: str
    customer: Optional[CustomerSummary] = None
    items: List[DebtItemResponse]
    total_amount: float
    amount_paid: float
    open_amount: float
    status: str
    payment_history: List[PaymentEntryResponse]
    debt_date: datetime
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)


class DebtRecordListResponse(BaseModel):
    debt_records: List[DebtRecordResponse]
    current_page: int
    total_pages: int
    total_records: int
    customer_name: Optional[str] = None
