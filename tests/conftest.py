import uuid

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from motor.motor_asyncio import AsyncIOMotorDatabase
from mongomock_motor import AsyncMongoMockClient

from warunku.db.mongo import get_db
from warunku.main import app
from warunku.repositories.customer_repo import CustomerRepository
from warunku.repositories.product_repo import ProductRepository
from warunku.schemas.customer import CustomerCreate
from warunku.schemas.product import ProductCreate, UnitSchema


@pytest.fixture
def test_db() -> AsyncIOMotorDatabase:
    """In-memory Motor-compatible database, fresh for every test."""
    client = AsyncMongoMockClient()
    return client[f"warunku_test_{uuid.uuid4().hex}"]


@pytest.fixture
def test_client(test_db):
    """FastAPI test client bound to the in-memory database."""
    app.dependency_overrides[get_db] = lambda: test_db
    # No context manager: the lifespan would connect to a real MongoDB
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def sugar(test_db):
    """Product with a single 'kg' unit at 12500."""
    repo = ProductRepository(test_db)
    return await repo.create_product(ProductCreate(
        name="Sugar",
        category="Groceries",
        units=[UnitSchema(label="kg", selling_price=12500)]
    ))


@pytest_asyncio.fixture
async def noodles(test_db):
    """Product with 'pcs' at 3500 and a box variant."""
    repo = ProductRepository(test_db)
    return await repo.create_product(ProductCreate(
        name="Instant Noodles",
        category="Instant Food",
        units=[
            UnitSchema(label="pcs", selling_price=3500),
            UnitSchema(label="Box (40 pcs)", selling_price=130000)
        ]
    ))


@pytest_asyncio.fixture
async def customer(test_db):
    repo = CustomerRepository(test_db)
    return await repo.create_customer(CustomerCreate(
        name="Budi Santoso",
        phone_number="081234567890",
        address="Jl. Merdeka No. 10"
    ))


@pytest.fixture
def api_catalog(test_client):
    """Customer and products created through the API; returns their ids."""
    customer = test_client.post("/api/customers", json={"name": "Siti Aminah", "phone_number": "081298765432"})
    sugar = test_client.post("/api/products", json={
        "name": "Sugar",
        "category": "Groceries",
        "units": [{"label": "kg", "selling_price": 12500}]
    })
    noodles = test_client.post("/api/products", json={
        "name": "Instant Noodles",
        "category": "Instant Food",
        "units": [{"label": "pcs", "selling_price": 3500}]
    })
    assert customer.status_code == 201, customer.text
    assert sugar.status_code == 201, sugar.text
    assert noodles.status_code == 201, noodles.text
    return {
        "customer_id": customer.json()["id"],
        "sugar_id": sugar.json()["id"],
        "noodles_id": noodles.json()["id"],
    }
