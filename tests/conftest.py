import mongomock
import pytest
from fastapi.testclient import TestClient

from database import create_document, ensure_indexes, get_db
from main import app
from schemas import Category, Product, User


@pytest.fixture
def database():
    db = mongomock.MongoClient().marketplace_test
    ensure_indexes(db)
    return db


@pytest.fixture
def client(database):
    app.dependency_overrides[get_db] = lambda: database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seller_id(database):
    return create_document(
        database,
        "user",
        User(name="Asha Traders", email="seller@example.com", password="x", role="seller"),
    )


@pytest.fixture
def customer_id(database):
    return create_document(
        database,
        "user",
        User(name="Ravi Kumar", email="ravi@example.com", password="x", role="customer"),
    )


@pytest.fixture
def category(database):
    create_document(database, "category", Category(name="Tools", description="Hand tools"))
    return "Tools"


def product_payload(seller_id, **overrides):
    data = {
        "product_id": "HAMMER-01",
        "name": "Claw Hammer",
        "description": "Steel claw hammer",
        "category": "Tools",
        "price": 100,
        "discounted_price": 80,
        "tax_percentage": 18,
        "seller": seller_id,
        "seller_name": "Asha Traders",
        "seller_email": "seller@example.com",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_product(database, seller_id, category):
    def _make(**overrides):
        return create_document(database, "product", Product(**product_payload(seller_id, **overrides)))
    return _make


@pytest.fixture
def hammer_id(make_product):
    return make_product()


@pytest.fixture
def phone_id(make_product):
    return make_product(
        product_id="PHONE-01",
        name="Field Phone",
        description="Rugged phone",
        price=None,
        discounted_price=None,
        tax_percentage=5,
        has_variations=True,
        attributes=[
            {"name": "Storage", "options": [{"name": "64GB"}, {"name": "128GB"}]},
            {"name": "Color", "options": [{"name": "Black"}]},
        ],
        variants=[
            {"combination": {"Storage": "64GB", "Color": "Black"}, "price": 500, "discounted_price": 450},
            {"combination": {"Storage": "128GB", "Color": "Black"}, "price": 600, "stock": "out_of_stock"},
        ],
    )


@pytest.fixture
def customer_details():
    return {
        "name": "Ravi Kumar",
        "email": "ravi@example.com",
        "phone": "9000000001",
        "address": {"street": "12 Market Road", "city": "Pune", "state": "MH", "pincode": "411001"},
    }


@pytest.fixture
def place_order(client, customer_id, customer_details):
    def _place(items):
        response = client.post(
            "/api/orders",
            json={"customer": customer_id, "customer_details": customer_details, "items": items},
        )
        assert response.status_code == 201, response.text
        return response.json()["order"]
    return _place
