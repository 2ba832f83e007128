"""Debt ledger arithmetic: line pricing, totals and status derivation."""
import math
from typing import Iterable, Optional

from warunku.core.errors import InvalidInputError
from warunku.models.debt import DebtItem, DebtRecord, DebtStatus, PaymentEntry


def derive_status(total_amount: float, amount_paid: float) -> DebtStatus:
    """
    Settlement status of a debt.

    Rules, in order:
    - a zero-value debt is PAID
    - amount_paid >= total_amount is PAID (overpayment caps here)
    - any positive payment is PARTIALLY_PAID
    - otherwise UNPAID
    """
    if total_amount == 0:
        return DebtStatus.PAID
    if amount_paid >= total_amount:
        return DebtStatus.PAID
    if amount_paid > 0:
        return DebtStatus.PARTIALLY_PAID
    return DebtStatus.UNPAID


def validate_quantity(quantity: float, context: str = "item") -> None:
    if quantity is None or not math.isfinite(quantity) or quantity <= 0:
        raise InvalidInputError(
            f"Quantity for {context} must be greater than 0, got {quantity}",
            code="invalid-quantity"
        )


def resolve_unit_price(
    price_override: Optional[float],
    selling_price: Optional[float],
    context: str = "item"
) -> float:
    """
    Price per unit for a new debt item.

    An explicit override is used verbatim (negotiated or historical pricing);
    otherwise the unit's current selling price applies. Either way it must be
    finite and non-negative.
    """
    price = price_override if price_override is not None else selling_price
    if price is None or not math.isfinite(price) or price < 0:
        raise InvalidInputError(f"Invalid price for {context}: {price}", code="invalid-price")
    return price


def validate_payment_amount(amount: float) -> None:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise InvalidInputError(
            f"Payment amount must be a positive number, got {amount}",
            code="invalid-amount"
        )


def calculate_line_total(quantity: float, unit_price: float) -> float:
    return quantity * unit_price


def calculate_total_amount(items: Iterable[DebtItem]) -> float:
    return sum(item.line_total for item in items)


def calculate_amount_paid(payments: Iterable[PaymentEntry]) -> float:
    return sum(entry.amount for entry in payments)


def refresh_derived(record: DebtRecord) -> DebtRecord:
    """Recompute total_amount, amount_paid and status from raw facts, in place."""
    record.total_amount = calculate_total_amount(record.items)
    record.amount_paid = calculate_amount_paid(record.payment_history)
    record.status = derive_status(record.total_amount, record.amount_paid)
    return record
