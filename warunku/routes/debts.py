from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from warunku.core.config import settings
from warunku.db.mongo import get_db
from warunku.models.debt import DebtRecord
from warunku.schemas.debt import (
    CustomerSummary,
    DebtItemResponse,
    DebtRecordCreate,
    DebtRecordListResponse,
    DebtRecordResponse,
    DebtRecordUpdate,
    PaymentCreate,
    PaymentEntryResponse,
    ProductSummary,
)
from warunku.services.ledger_service import DebtRecordDetails, DebtRecordPage, LedgerService

router = APIRouter(prefix="/debts", tags=["debts"])


def _to_debt_response(record: DebtRecord, details: Optional[DebtRecordDetails] = None) -> DebtRecordResponse:
    """Convert DebtRecord model (plus optional resolved references) to DebtRecordResponse."""
    customer = details.customer if details else None
    products = details.products if details else {}

    return DebtRecordResponse(
        id=str(record.id),
        customer_id=str(record.customer_id),
        customer=CustomerSummary(
            id=str(customer.id),
            name=customer.name,
            phone_number=customer.phone_number,
            address=customer.address
        ) if customer else None,
        items=[
            DebtItemResponse(
                product_id=str(item.product_id),
                product_name=item.product_name,
                unit_label=item.unit_label,
                quantity=item.quantity,
                price_at_debt_time=item.price_at_debt_time,
                line_total=item.line_total,
                product=ProductSummary(
                    id=str(item.product_id),
                    name=products[str(item.product_id)].name,
                    category=products[str(item.product_id)].category
                ) if str(item.product_id) in products else None
            )
            for item in record.items
        ],
        total_amount=record.total_amount,
        amount_paid=record.amount_paid,
        open_amount=record.open_amount(),
        status=record.status.value,
        payment_history=[
            PaymentEntryResponse(
                payment_id=str(entry.payment_id),
                amount=entry.amount,
                payment_date=entry.payment_date,
                method=entry.method,
                notes=entry.notes,
                recorded_at=entry.recorded_at
            )
            for entry in record.payment_history
        ],
        debt_date=record.debt_date,
        due_date=record.due_date,
        notes=record.notes,
        created_at=record.created_at,
        updated_at=record.updated_at
    )


def to_debt_list_response(result: DebtRecordPage) -> DebtRecordListResponse:
    return DebtRecordListResponse(
        debt_records=[_to_debt_response(d.record, d) for d in result.records],
        current_page=result.page,
        total_pages=result.total_pages,
        total_records=result.total,
        customer_name=result.customer_name
    )


@router.post("", response_model=DebtRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_debt_record(
    debt_data: DebtRecordCreate,
    db = Depends(get_db)
):
    """Create a debt record. Totals and status are computed server-side."""
    service = LedgerService(db)
    record = await service.create_debt_record(debt_data)
    return _to_debt_response(record)


@router.get("", response_model=DebtRecordListResponse)
async def list_debt_records(
    customer_id: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None, description="Inclusive of the whole day"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db = Depends(get_db)
):
    """List debt records, newest first."""
    service = LedgerService(db)
    result = await service.list_debt_records(
        customer_id=customer_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit
    )
    return to_debt_list_response(result)


@router.get("/{record_id}", response_model=DebtRecordResponse)
async def get_debt_record(
    record_id: str,
    db = Depends(get_db)
):
    """Get a debt record with customer and product display data."""
    service = LedgerService(db)
    details = await service.get_debt_record(record_id)
    return _to_debt_response(details.record, details)


@router.post("/{record_id}/payments", response_model=DebtRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    record_id: str,
    payment: PaymentCreate,
    db = Depends(get_db)
):
    """Append a payment to the record's history."""
    service = LedgerService(db)
    record = await service.record_payment(record_id, payment)
    return _to_debt_response(record)


@router.patch("/{record_id}", response_model=DebtRecordResponse)
async def update_debt_record(
    record_id: str,
    update_data: DebtRecordUpdate,
    db = Depends(get_db)
):
    """Edit notes or due date."""
    service = LedgerService(db)
    record = await service.update_debt_record_meta(record_id, update_data)
    return _to_debt_response(record)
