import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from warunku.core.config import settings
from warunku.db.mongo import get_db
from warunku.models.customer import Customer
from warunku.repositories.customer_repo import CustomerRepository
from warunku.routes.debts import to_debt_list_response
from warunku.schemas.customer import CustomerCreate, CustomerListResponse, CustomerResponse, CustomerUpdate
from warunku.schemas.debt import DebtRecordListResponse
from warunku.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/customers", tags=["customers"])


def _to_customer_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=str(customer.id),
        name=customer.name,
        phone_number=customer.phone_number,
        address=customer.address,
        created_at=customer.created_at,
        updated_at=customer.updated_at
    )


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db = Depends(get_db)
):
    """Create a customer. Phone numbers must be unique."""
    repo = CustomerRepository(db)
    customer = await repo.create_customer(customer_data)
    return _to_customer_response(customer)


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = Query(None, description="Matches name or phone number"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db = Depends(get_db)
):
    """List customers sorted by name."""
    repo = CustomerRepository(db)
    customers, total = await repo.list_customers(search, skip=(page - 1) * limit, limit=limit)
    return CustomerListResponse(
        customers=[_to_customer_response(c) for c in customers],
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_customers=total
    )


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: str,
    db = Depends(get_db)
):
    repo = CustomerRepository(db)
    customer = await repo.get_customer(customer_id)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return _to_customer_response(customer)


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    customer_data: CustomerUpdate,
    db = Depends(get_db)
):
    repo = CustomerRepository(db)
    customer = await repo.update_customer(customer_id, customer_data)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return _to_customer_response(customer)


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    db = Depends(get_db)
):
    """Delete a customer who has no unpaid debts."""
    await LedgerService(db).guard_customer_deletion(customer_id)

    repo = CustomerRepository(db)
    deleted = await repo.delete_customer(customer_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")

    logger.info("Deleted customer %s", customer_id)
    return {"message": "Customer removed successfully"}


@router.get("/{customer_id}/debts", response_model=DebtRecordListResponse)
async def list_customer_debts(
    customer_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db = Depends(get_db)
):
    """Debt records of one customer, newest first."""
    service = LedgerService(db)
    result = await service.list_debts_by_customer(
        customer_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit
    )
    return to_debt_list_response(result)
