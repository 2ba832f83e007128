"""Tests for the pure ledger arithmetic and date helpers."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from warunku.core.errors import InvalidInputError
from warunku.models.debt import DebtItem, DebtRecord, DebtStatus, PaymentEntry
from warunku.utils.dates import next_day_start, parse_date, to_naive_utc
from warunku.utils.debt_calculations import (
    derive_status,
    refresh_derived,
    resolve_unit_price,
    validate_payment_amount,
    validate_quantity,
)


@pytest.mark.parametrize(
    "total, paid, expected",
    [
        (0, 0, DebtStatus.PAID),
        (0, 500, DebtStatus.PAID),
        (42500, 0, DebtStatus.UNPAID),
        (42500, 0.01, DebtStatus.PARTIALLY_PAID),
        (42500, 42499.99, DebtStatus.PARTIALLY_PAID),
        (42500, 42500, DebtStatus.PAID),
        (42500, 50000, DebtStatus.PAID),
    ],
)
def test_derive_status(total, paid, expected):
    assert derive_status(total, paid) == expected


def test_validate_quantity_rejects_zero_and_negative():
    validate_quantity(0.25)
    for bad in (0, -1):
        with pytest.raises(InvalidInputError) as exc:
            validate_quantity(bad)
        assert exc.value.code == "invalid-quantity"


def test_resolve_unit_price_prefers_override():
    assert resolve_unit_price(11000, 12500) == 11000
    assert resolve_unit_price(0, 12500) == 0
    assert resolve_unit_price(None, 12500) == 12500


def test_resolve_unit_price_rejects_negative():
    with pytest.raises(InvalidInputError) as exc:
        resolve_unit_price(-1, 12500)
    assert exc.value.code == "invalid-price"

    with pytest.raises(InvalidInputError):
        resolve_unit_price(None, -5)


def test_validate_payment_amount():
    validate_payment_amount(0.01)
    with pytest.raises(InvalidInputError) as exc:
        validate_payment_amount(0)
    assert exc.value.code == "invalid-amount"


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_numbers_rejected(bad):
    with pytest.raises(InvalidInputError) as exc:
        validate_quantity(bad)
    assert exc.value.code == "invalid-quantity"

    with pytest.raises(InvalidInputError) as exc:
        resolve_unit_price(bad, 12500)
    assert exc.value.code == "invalid-price"

    with pytest.raises(InvalidInputError) as exc:
        resolve_unit_price(None, bad)
    assert exc.value.code == "invalid-price"

    with pytest.raises(InvalidInputError) as exc:
        validate_payment_amount(bad)
    assert exc.value.code == "invalid-amount"


def test_refresh_derived_recomputes_from_raw_facts():
    record = DebtRecord(
        customer_id=ObjectId(),
        items=[
            DebtItem(product_id=ObjectId(), product_name="Sugar", unit_label="kg",
                     quantity=2, price_at_debt_time=12500, line_total=25000),
            DebtItem(product_id=ObjectId(), product_name="Noodles", unit_label="pcs",
                     quantity=5, price_at_debt_time=3500, line_total=17500),
        ],
        payment_history=[PaymentEntry(amount=10000)],
        # Stale values must be overwritten
        total_amount=1,
        amount_paid=99999,
        status=DebtStatus.PAID,
    )

    refresh_derived(record)

    assert record.total_amount == 42500
    assert record.amount_paid == 10000
    assert record.status == DebtStatus.PARTIALLY_PAID
    assert record.open_amount() == 32500


def test_parse_date_formats():
    assert parse_date(None) is None
    assert parse_date("") is None
    assert parse_date("2024-05-10") == datetime(2024, 5, 10, tzinfo=timezone.utc)
    assert parse_date("2024-05-10T08:30:00Z") == datetime(2024, 5, 10, 8, 30, tzinfo=timezone.utc)


def test_parse_date_rejects_garbage():
    with pytest.raises(InvalidInputError) as exc:
        parse_date("not-a-date", "payment date")
    assert exc.value.code == "invalid-date"
    assert "payment date" in exc.value.message


def test_end_date_covers_whole_day():
    end = parse_date("2024-05-10T15:45:00Z")
    assert next_day_start(end) == datetime(2024, 5, 11, tzinfo=timezone.utc)
    assert to_naive_utc(next_day_start(end)) == datetime(2024, 5, 11)


def test_touch_and_object_id_coercion():
    record = DebtRecord(_id=str(ObjectId()), customer_id=str(ObjectId()), items=[])
    assert isinstance(record.id, ObjectId)
    assert isinstance(record.customer_id, ObjectId)

    before = record.updated_at
    record.touch()
    assert record.updated_at >= before
    assert record.updated_at.tzinfo is not None

    with pytest.raises(ValueError):
        DebtRecord(customer_id="not-an-id", items=[])
