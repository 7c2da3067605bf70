import pytest
from bson import ObjectId

from config import ONBOARDING_CODE
from users import check_password, hash_password


@pytest.fixture
def register(client):
    def _register(**overrides):
        payload = {
            "name": "Nisha",
            "email": "Nisha@Example.com",
            "password": "s3cret",
            "unique_code": ONBOARDING_CODE,
            "role": "seller",
        }
        payload.update(overrides)
        return client.post("/api/users", json=payload)
    return _register


def test_password_hashing():
    stored = hash_password("s3cret")
    assert stored != "s3cret"
    assert check_password("s3cret", stored)
    assert not check_password("wrong", stored)
    assert not check_password("s3cret", "")


def test_register_hides_password(register, database):
    response = register()
    assert response.status_code == 201, response.text
    user = response.json()
    assert user["email"] == "nisha@example.com"
    assert "password" not in user
    assert database["user"].find_one({"email": "nisha@example.com"})["password"] != "s3cret"


def test_register_requires_onboarding_code(register):
    assert register(unique_code="000000").status_code == 403


def test_register_rejects_duplicate_email(register):
    register()
    assert register(email="nisha@example.com").status_code == 400


def test_login_with_password(client, register):
    register()
    body = client.post("/api/users/login", json={"email": "nisha@example.com", "password": "s3cret"}).json()
    assert body["token"] == "dummy-token"
    assert body["user"]["role"] == "seller"
    assert client.post("/api/users/login", json={"email": "nisha@example.com", "password": "nope"}).status_code == 404


def test_email_only_login_is_for_customers(client, register):
    register()
    assert client.post("/api/users/login", json={"email": "nisha@example.com"}).status_code == 404
    register(email="buyer@example.com", role="customer", name="Buyer")
    assert client.post("/api/users/login", json={"email": "buyer@example.com"}).status_code == 200


def test_login_name_must_match(client, register):
    register()
    ok = client.post("/api/users/login", json={"email": "nisha@example.com", "password": "s3cret", "name": " nisha "})
    assert ok.status_code == 200
    bad = client.post("/api/users/login", json={"email": "nisha@example.com", "password": "s3cret", "name": "Other"})
    assert bad.status_code == 400


def test_profile_update(client, register):
    user = register().json()
    response = client.put(
        f"/api/users/{user['id']}",
        json={"phone": "9000000004", "address": {"street": "2 Hill Rd", "city": "Pune", "state": "MH", "pincode": "411002"}},
    )
    updated = response.json()["user"]
    assert updated["profile_complete"] is True
    assert updated["address"]["country"] == "India"
    assert "password" not in updated
    assert client.get(f"/api/users/{user['id']}").json()["user"]["phone"] == "9000000004"


def test_unknown_user(client):
    assert client.get(f"/api/users/{ObjectId()}").status_code == 404
