"""Tests for the catalog, directory and debt repositories."""
import pytest
from bson import ObjectId

from warunku.core.errors import ConflictError, InvalidInputError, NotFoundError
from warunku.models.debt import DebtItem, DebtRecord, DebtStatus, PaymentEntry
from warunku.repositories.customer_repo import CustomerRepository
from warunku.repositories.debt_repo import DebtRepository
from warunku.repositories.product_repo import ProductRepository
from warunku.schemas.customer import CustomerCreate, CustomerUpdate
from warunku.schemas.product import ProductCreate, ProductUpdate, UnitSchema
from warunku.utils.debt_calculations import refresh_derived


@pytest.mark.asyncio
class TestProductRepository:
    """ProductRepository CRUD and unit resolution."""

    async def test_resolve_unit_case_insensitive(self, test_db, noodles):
        repo = ProductRepository(test_db)

        resolved = await repo.resolve_unit(str(noodles.id), "box (40 PCS)")

        assert resolved.label == "Box (40 pcs)"
        assert resolved.price == 130000
        assert resolved.product_name == "Instant Noodles"

    async def test_resolve_unit_errors(self, test_db, sugar):
        repo = ProductRepository(test_db)

        with pytest.raises(InvalidInputError) as exc:
            await repo.resolve_unit(str(sugar.id), "sack")
        assert exc.value.code == "unit-not-found"

        with pytest.raises(NotFoundError):
            await repo.resolve_unit(str(ObjectId()), "kg")

        with pytest.raises(NotFoundError):
            await repo.resolve_unit("bogus", "kg")

    async def test_duplicate_unit_labels_rejected(self, test_db):
        repo = ProductRepository(test_db)

        with pytest.raises(InvalidInputError) as exc:
            await repo.create_product(ProductCreate(
                name="Rice",
                category="Groceries",
                units=[UnitSchema(label="kg", selling_price=14000), UnitSchema(label="KG", selling_price=15000)]
            ))
        assert exc.value.code == "duplicate-unit"

    async def test_list_search_and_category(self, test_db, sugar, noodles):
        repo = ProductRepository(test_db)

        found, total = await repo.list_products(search="noodle")
        assert total == 1
        assert found[0].name == "Instant Noodles"

        groceries, total = await repo.list_products(category="Groceries")
        assert total == 1
        assert groceries[0].name == "Sugar"

        everything, total = await repo.list_products(limit=1)
        assert total == 2
        assert [p.name for p in everything] == ["Instant Noodles"]

    async def test_update_and_delete(self, test_db, sugar):
        repo = ProductRepository(test_db)

        updated = await repo.update_product(str(sugar.id), ProductUpdate(description="Fine grain"))
        assert updated.description == "Fine grain"
        assert updated.units[0].label == "kg"

        assert await repo.delete_product(str(sugar.id)) is True
        assert await repo.get_product(str(sugar.id)) is None
        assert await repo.delete_product(str(sugar.id)) is False


@pytest.mark.asyncio
class TestCustomerRepository:
    """CustomerRepository CRUD."""

    async def test_exists(self, test_db, customer):
        repo = CustomerRepository(test_db)

        assert await repo.exists(str(customer.id)) is True
        assert await repo.exists(str(ObjectId())) is False
        assert await repo.exists("nope") is False

    async def test_duplicate_phone_rejected(self, test_db, customer):
        repo = CustomerRepository(test_db)

        with pytest.raises(ConflictError) as exc:
            await repo.create_customer(CustomerCreate(name="Another Budi", phone_number=customer.phone_number))
        assert exc.value.code == "duplicate-phone"

    async def test_update_phone_checks_other_customers(self, test_db, customer):
        repo = CustomerRepository(test_db)
        other = await repo.create_customer(CustomerCreate(name="Agus Wijaya", phone_number="081311112222"))

        with pytest.raises(ConflictError):
            await repo.update_customer(str(other.id), CustomerUpdate(phone_number=customer.phone_number))

        # Keeping one's own number is fine
        same = await repo.update_customer(str(customer.id), CustomerUpdate(phone_number=customer.phone_number))
        assert same.phone_number == customer.phone_number

    async def test_search_by_name_or_phone(self, test_db, customer):
        repo = CustomerRepository(test_db)
        await repo.create_customer(CustomerCreate(name="Agus Wijaya"))

        by_name, total = await repo.list_customers(search="budi")
        assert total == 1 and by_name[0].name == "Budi Santoso"

        by_phone, total = await repo.list_customers(search="0812345")
        assert total == 1

        everyone, total = await repo.list_customers()
        assert [c.name for c in everyone] == ["Agus Wijaya", "Budi Santoso"]


@pytest.mark.asyncio
class TestDebtRepository:

    async def test_build_query(self):
        from datetime import datetime, timezone

        customer_id = ObjectId()
        query = DebtRepository.build_query(
            customer_id=customer_id,
            status=DebtStatus.PARTIALLY_PAID,
            start=datetime(2024, 5, 1, tzinfo=timezone.utc),
            end_exclusive=datetime(2024, 5, 11, tzinfo=timezone.utc)
        )

        assert query == {
            "customer_id": customer_id,
            "status": "PARTIALLY_PAID",
            "debt_date": {"$gte": datetime(2024, 5, 1), "$lt": datetime(2024, 5, 11)},
        }
        assert DebtRepository.build_query() == {}

    async def test_get_missing_or_malformed(self, test_db):
        repo = DebtRepository(test_db)

        assert await repo.get_debt_record(str(ObjectId())) is None
        assert await repo.get_debt_record("zzz") is None
        assert await repo.update_meta("zzz", {"notes": "x"}) is None

    async def test_append_payment_rejects_stale_version(self, test_db, customer):
        repo = DebtRepository(test_db)
        record = await repo.insert_debt_record(DebtRecord(
            customer_id=customer.id,
            items=[DebtItem(product_id=ObjectId(), product_name="Sugar", unit_label="kg",
                            quantity=1, price_at_debt_time=12500, line_total=12500)],
            total_amount=12500
        ))
        old_version = record.version

        await test_db["debt_records"].update_one({"_id": record.id}, {"$inc": {"version": 1}})

        entry = PaymentEntry(amount=5000)
        record.payment_history.append(entry)
        refresh_derived(record)

        assert await repo.append_payment(record, entry, old_version) is None

        stored = await repo.get_debt_record(str(record.id))
        assert stored.payment_history == []
        assert stored.amount_paid == 0
        assert stored.version == old_version + 1

        # The current version goes through
        updated = await repo.append_payment(record, entry, stored.version)
        assert [p.amount for p in updated.payment_history] == [5000]
        assert updated.status == DebtStatus.PARTIALLY_PAID
        assert updated.version == old_version + 2
