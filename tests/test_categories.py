from bson import ObjectId

from categories import seed_categories
from config import DEFAULT_CATEGORIES


def test_seed_is_idempotent(database):
    added = seed_categories(database)
    assert added == [c["name"] for c in DEFAULT_CATEGORIES]
    assert seed_categories(database) == []
    assert database["category"].count_documents({}) == len(DEFAULT_CATEGORIES)


def test_seed_endpoint_skips_existing(client, category):
    body = client.post("/api/categories/seed").json()
    assert "Tools" not in body["added"]
    assert len(body["added"]) == len(DEFAULT_CATEGORIES) - 1
    assert client.post("/api/categories/seed").json()["added"] == []


def test_create_and_case_insensitive_uniqueness(client):
    response = client.post("/api/categories", json={"name": "  Paints ", "description": "Wall paints"})
    assert response.status_code == 201
    assert response.json()["category"]["name"] == "Paints"
    assert client.post("/api/categories", json={"name": "paints"}).status_code == 400


def test_create_requires_name(client):
    assert client.post("/api/categories", json={"name": "   "}).status_code == 400


def test_list_active_and_all(client, category):
    created = client.post("/api/categories", json={"name": "Adhesives"}).json()["category"]
    client.delete(f"/api/categories/{created['id']}")
    assert [c["name"] for c in client.get("/api/categories").json()["categories"]] == ["Tools"]
    assert [c["name"] for c in client.get("/api/categories/all").json()["categories"]] == ["Adhesives", "Tools"]


def test_update_category(client, category):
    created = client.post("/api/categories", json={"name": "Adhesives"}).json()["category"]
    assert client.put(f"/api/categories/{created['id']}", json={"name": "TOOLS"}).status_code == 400

    response = client.put(f"/api/categories/{created['id']}", json={"name": "Glues", "is_active": False})
    updated = response.json()["category"]
    assert updated["name"] == "Glues"
    assert updated["is_active"] is False


def test_unknown_category(client):
    assert client.get(f"/api/categories/{ObjectId()}").status_code == 404
    assert client.delete(f"/api/categories/{ObjectId()}").status_code == 404
