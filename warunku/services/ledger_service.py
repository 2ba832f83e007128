"""
LedgerService - the debt ledger engine.

Owns debt record creation (item pricing snapshot and totals), payment
recording, note/due-date edits, listing hooks, and the guard that keeps
customers with unpaid debts from being deleted.

Derived fields (total_amount, amount_paid, status) are recomputed from the
record's items and payment history before every write and persisted with it.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ConfigDict

from warunku.core.config import settings
from warunku.core.errors import ConflictError, InvalidInputError, NotFoundError
from warunku.models.customer import Customer
from warunku.models.debt import DebtItem, DebtRecord, DebtStatus, PaymentEntry
from warunku.models.product import Product
from warunku.repositories.customer_repo import CustomerRepository
from warunku.repositories.debt_repo import DebtRepository
from warunku.repositories.product_repo import ProductRepository
from warunku.schemas.debt import DebtRecordCreate, DebtRecordUpdate, PaymentCreate
from warunku.utils.dates import DateInput, next_day_start, parse_date
from warunku.utils.debt_calculations import (
    calculate_line_total,
    refresh_derived,
    resolve_unit_price,
    validate_payment_amount,
    validate_quantity,
)

logger = logging.getLogger(__name__)


class DebtRecordDetails(BaseModel):
    """A debt record plus the display data resolved from its references."""
    record: DebtRecord
    customer: Optional[Customer] = None
    products: Dict[str, Product] = {}

    model_config = ConfigDict(arbitrary_types_allowed=True)


class DebtRecordPage(BaseModel):
    records: List[DebtRecordDetails]
    page: int
    limit: int
    total: int
    customer_name: Optional[str] = None

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class LedgerService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.products = ProductRepository(db)
        self.customers = CustomerRepository(db)
        self.debts = DebtRepository(db)

    # ===== CREATION =====

    async def create_debt_record(self, data: DebtRecordCreate) -> DebtRecord:
        """
        Price the requested items and store a new debt record.

        Nothing is written unless every item resolves and validates.
        """
        if not await self.customers.exists(data.customer_id):
            raise NotFoundError("Customer not found.", code="customer-not-found")

        if not data.items:
            raise InvalidInputError("At least one debt item is required.", code="empty-items")

        debt_date = parse_date(data.debt_date, "debt date") or datetime.now(timezone.utc)
        due_date = parse_date(data.due_date, "due date")
        if due_date is not None and due_date < debt_date:
            raise InvalidInputError("Due date cannot be before the debt date.", code="invalid-date")

        items: List[DebtItem] = []
        for raw in data.items:
            resolved = await self.products.resolve_unit(raw.product_id, raw.unit_label)
            context = f"unit '{resolved.label}' of product '{resolved.product_name}'"

            validate_quantity(raw.quantity, context)
            price = resolve_unit_price(raw.price_override, resolved.price, context)

            items.append(DebtItem(
                product_id=ObjectId(resolved.product_id),
                product_name=resolved.product_name,
                unit_label=resolved.label,
                quantity=raw.quantity,
                price_at_debt_time=price,
                line_total=calculate_line_total(raw.quantity, price)
            ))

        payments: List[PaymentEntry] = []
        if data.initial_payment is not None:
            if not math.isfinite(data.initial_payment) or data.initial_payment < 0:
                raise InvalidInputError(
                    "Initial payment must be a non-negative number.",
                    code="invalid-amount"
                )
            if data.initial_payment > 0:
                payments.append(PaymentEntry(amount=data.initial_payment, payment_date=debt_date))

        record = DebtRecord(
            customer_id=ObjectId(data.customer_id),
            items=items,
            payment_history=payments,
            debt_date=debt_date,
            due_date=due_date,
            notes=data.notes
        )
        refresh_derived(record)

        await self.debts.insert_debt_record(record)
        logger.info(
            "Created debt record %s for customer %s: total=%s paid=%s status=%s",
            record.id, record.customer_id, record.total_amount, record.amount_paid, record.status.value
        )
        return record

    # ===== PAYMENTS =====

    async def record_payment(self, record_id: str, data: PaymentCreate) -> DebtRecord:
        """
        Append a payment and persist the recomputed amount paid and status.

        Overpayment is accepted; status simply stays PAID.
        """
        validate_payment_amount(data.amount)
        payment_date = parse_date(data.payment_date, "payment date") or datetime.now(timezone.utc)
        due_date = parse_date(data.due_date, "due date")

        extra_updates = {}
        if data.record_notes is not None:
            extra_updates["notes"] = data.record_notes
        if due_date is not None:
            extra_updates["due_date"] = due_date

        for attempt in range(1, settings.WRITE_RETRY_ATTEMPTS + 1):
            record = await self._get_or_raise(record_id)
            expected_version = record.version

            entry = PaymentEntry(
                amount=data.amount,
                payment_date=payment_date,
                method=data.method,
                notes=data.notes
            )
            record.payment_history.append(entry)
            refresh_derived(record)
            record.touch()

            stored = await self.debts.append_payment(record, entry, expected_version, extra_updates)
            if stored is not None:
                logger.info(
                    "Recorded payment of %s on debt record %s: paid=%s status=%s",
                    data.amount, record_id, stored.amount_paid, stored.status.value
                )
                return stored

            logger.warning(
                "Debt record %s changed during payment (attempt %d/%d), retrying",
                record_id, attempt, settings.WRITE_RETRY_ATTEMPTS
            )

        raise ConflictError(
            "Debt record was modified concurrently; please retry.",
            code="concurrent-modification"
        )

    # ===== META EDITS =====

    async def update_debt_record_meta(self, record_id: str, data: DebtRecordUpdate) -> DebtRecord:
        """Edit notes and/or due date. Items, customer and derived fields never change here."""
        fields = data.model_dump(exclude_unset=True)
        updates = {}
        if "notes" in fields:
            updates["notes"] = fields["notes"]
        if "due_date" in fields:
            updates["due_date"] = parse_date(fields["due_date"], "due date")

        if not updates:
            return await self._get_or_raise(record_id)

        updates["updated_at"] = datetime.now(timezone.utc)
        record = await self.debts.update_meta(record_id, updates)
        if record is None:
            raise NotFoundError("Debt record not found", code="debt-record-not-found")
        return record

    # ===== READS =====

    async def get_debt_record(self, record_id: str) -> DebtRecordDetails:
        record = await self._get_or_raise(record_id)
        details = await self._with_display_data([record])
        return details[0]

    async def list_debt_records(
        self,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
        start_date: DateInput = None,
        end_date: DateInput = None,
        page: int = 1,
        limit: Optional[int] = None
    ) -> DebtRecordPage:
        """Filtered, paginated listing; newest debt date first."""
        customer_oid = None
        if customer_id:
            if not ObjectId.is_valid(customer_id):
                raise InvalidInputError("Invalid customer ID format for filter.", code="invalid-id")
            customer_oid = ObjectId(customer_id)

        status_filter = None
        if status:
            try:
                status_filter = DebtStatus(status.strip().upper())
            except ValueError:
                raise InvalidInputError(f"Invalid status value: {status}", code="invalid-status")

        start = parse_date(start_date, "start date")
        end = parse_date(end_date, "end date")

        page = max(page or 1, 1)
        limit = min(max(limit or settings.DEFAULT_PAGE_SIZE, 1), settings.MAX_PAGE_SIZE)

        query = self.debts.build_query(
            customer_id=customer_oid,
            status=status_filter,
            start=start,
            end_exclusive=next_day_start(end) if end is not None else None
        )
        records, total = await self.debts.list_debt_records(query, skip=(page - 1) * limit, limit=limit)
        return DebtRecordPage(
            records=await self._with_display_data(records),
            page=page,
            limit=limit,
            total=total
        )

    async def list_debts_by_customer(self, customer_id: str, **filters) -> DebtRecordPage:
        customer = await self.customers.get_customer(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found.", code="customer-not-found")

        result = await self.list_debt_records(customer_id=customer_id, **filters)
        result.customer_name = customer.name
        return result

    # ===== CUSTOMER GUARD =====

    async def guard_customer_deletion(self, customer_id: str) -> None:
        """Refuse to let a customer with any non-PAID debt be removed."""
        if not await self.customers.exists(customer_id):
            raise NotFoundError("Customer not found", code="customer-not-found")

        if await self.debts.has_outstanding_debts(ObjectId(customer_id)):
            raise ConflictError(
                "Cannot delete customer. There are outstanding debts associated with this customer.",
                code="outstanding-debts"
            )

    # ===== PRIVATE HELPERS =====

    async def _get_or_raise(self, record_id: str) -> DebtRecord:
        record = await self.debts.get_debt_record(record_id)
        if record is None:
            raise NotFoundError("Debt record not found", code="debt-record-not-found")
        return record

    async def _with_display_data(self, records: List[DebtRecord]) -> List[DebtRecordDetails]:
        """Attach current customer and product data; snapshots stay authoritative."""
        customers = await self.customers.get_customers_by_ids(r.customer_id for r in records)
        products = await self.products.get_products_by_ids(
            item.product_id for r in records for item in r.items
        )
        return [
            DebtRecordDetails(
                record=record,
                customer=customers.get(str(record.customer_id)),
                products={
                    str(item.product_id): products[str(item.product_id)]
                    for item in record.items
                    if str(item.product_id) in products
                }
            )
            for record in records
        ]
