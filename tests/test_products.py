from bson import ObjectId

from conftest import product_payload


def test_create_flat_product_defaults_discount(client, seller_id, category):
    payload = product_payload(seller_id, discounted_price=None, photos=["https://img/a.jpg", "https://img/b.jpg"])
    response = client.post("/api/products", json=payload)
    assert response.status_code == 201, response.text
    product = response.json()["product"]
    assert product["discounted_price"] == 100
    assert product["photo"] == "https://img/a.jpg"
    assert product["stock_status"] == "in_stock"
    assert product["is_active"] is True


def test_create_requires_price_without_variations(client, seller_id, category):
    response = client.post("/api/products", json=product_payload(seller_id, price=None))
    assert response.status_code == 422


def test_create_variation_product_requires_variants(client, seller_id, category):
    payload = product_payload(
        seller_id,
        price=None,
        has_variations=True,
        attributes=[{"name": "Size", "options": [{"name": "L"}]}],
        variants=[],
    )
    assert client.post("/api/products", json=payload).status_code == 422


def test_create_rejects_inactive_category(client, database, seller_id, category):
    database["category"].update_one({"name": "Tools"}, {"$set": {"is_active": False}})
    response = client.post("/api/products", json=product_payload(seller_id))
    assert response.status_code == 400


def test_create_rejects_duplicate_product_id(client, seller_id, hammer_id):
    response = client.post("/api/products", json=product_payload(seller_id, product_id=" HAMMER-01 "))
    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_list_filters_and_paginates(client, make_product, seller_id):
    make_product()
    make_product(product_id="SAW-01", name="Hand Saw", description="Wood saw")
    make_product(product_id="GONE-01", name="Old Saw", description="Retired", is_active=False)

    body = client.get("/api/products", params={"search": "saw"}).json()
    assert [p["product_id"] for p in body["products"]] == ["SAW-01"]

    body = client.get("/api/products", params={"limit": 1, "page": 2, "seller": seller_id}).json()
    assert len(body["products"]) == 1
    assert body["pagination"] == {"current": 2, "pages": 2, "total": 2}


def test_by_product_ids_keeps_requested_order(client, make_product):
    make_product()
    make_product(product_id="SAW-01", name="Hand Saw")
    body = client.post("/api/products/by-product-ids", json={"product_ids": ["SAW-01", "missing", "HAMMER-01"]}).json()
    assert [p["product_id"] for p in body["products"]] == ["SAW-01", "HAMMER-01"]


def test_by_product_id_is_case_sensitive(client, hammer_id):
    assert client.get("/api/products/by-product-id/HAMMER-01").json()["id"] == hammer_id
    assert client.get("/api/products/by-product-id/hammer-01").status_code == 404


def test_display_order(client, make_product, seller_id):
    first = make_product()
    second = make_product(product_id="SAW-01", name="Hand Saw")
    response = client.put(
        "/api/products/order/update",
        json={"items": [{"id": first, "display_order": 2}, {"id": second, "display_order": 1}]},
    )
    assert response.status_code == 200
    listed = client.get(f"/api/products/seller/{seller_id}").json()
    assert [p["id"] for p in listed] == [second, first]


def test_update_product(client, hammer_id):
    response = client.put(f"/api/products/{hammer_id}", json={"price": 120, "discounted_price": 110})
    assert response.status_code == 200, response.text
    product = response.json()["product"]
    assert product["price"] == 120
    assert product["discounted_price"] == 110
    assert product["name"] == "Claw Hammer"


def test_update_to_variations_without_variants_fails(client, hammer_id):
    response = client.put(f"/api/products/{hammer_id}", json={"has_variations": True})
    assert response.status_code == 422


def test_delete_is_soft(client, database, hammer_id):
    assert client.delete(f"/api/products/{hammer_id}").status_code == 200
    stored = database["product"].find_one({"_id": ObjectId(hammer_id)})
    assert stored["is_active"] is False
    assert client.get("/api/products").json()["products"] == []


def test_get_product_errors(client):
    assert client.get("/api/products/bad-id").status_code == 400
    assert client.get(f"/api/products/{ObjectId()}").status_code == 404
