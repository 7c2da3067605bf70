import pytest

BLACK_64 = {"combination": {"Storage": "64GB", "Color": "Black"}}


@pytest.fixture
def add(client, customer_id):
    def _add(product_id, quantity=1, variant=None):
        payload = {"user_id": customer_id, "product_id": product_id, "quantity": quantity}
        if variant is not None:
            payload["variant"] = variant
        return client.post("/api/cart/add", json=payload)
    return _add


def test_empty_cart_for_new_user(client, customer_id):
    assert client.get(f"/api/cart/{customer_id}").json() == {"cart": {"items": [], "total_amount": 0}}


def test_adding_same_line_increases_quantity(add, hammer_id):
    add(hammer_id, 1)
    response = add(hammer_id, 2)
    assert response.status_code == 200
    cart = response.json()["cart"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert cart["items"][0]["product"]["name"] == "Claw Hammer"
    assert cart["total_amount"] == 283.2


def test_variant_lines_match_regardless_of_key_order(add, phone_id):
    add(phone_id, 1, BLACK_64)
    cart = add(phone_id, 1, {"combination": {"Color": "Black", "Storage": "64GB"}}).json()["cart"]
    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 2


def test_variant_required_for_variation_product(add, phone_id):
    response = add(phone_id, 1)
    assert response.status_code == 400


def test_unknown_variant_is_rejected(add, phone_id):
    response = add(phone_id, 1, {"combination": {"Storage": "256GB", "Color": "Black"}})
    assert response.status_code == 400
    assert response.json()["detail"] == "Selected variant not found"


def test_partial_variant_selection_is_rejected(client, add, customer_id, phone_id):
    response = add(phone_id, 1, {"combination": {"Color": "Black"}})
    assert response.status_code == 400
    assert response.json()["detail"] == "Selected variant not found"
    assert client.get(f"/api/cart/{customer_id}").json()["cart"]["items"] == []


def test_reordered_combination_round_trips(client, add, customer_id, phone_id):
    reordered = {"combination": {"Color": "Black", "Storage": "64GB"}}
    assert add(phone_id, 1, reordered).status_code == 200

    response = client.put(
        "/api/cart/update", json={"user_id": customer_id, "product_id": phone_id, "quantity": 3, "variant": reordered}
    )
    assert response.status_code == 200, response.text
    assert response.json()["cart"]["items"][0]["quantity"] == 3

    response = client.request(
        "DELETE", "/api/cart/remove", json={"user_id": customer_id, "product_id": phone_id, "variant": reordered}
    )
    assert response.status_code == 200
    assert response.json()["cart"]["items"] == []


def test_out_of_stock_product_is_rejected(add, make_product):
    product_id = make_product(product_id="SAW-01", stock_status="out_of_stock")
    assert add(product_id, 1).status_code == 400


def test_update_quantity_and_remove_with_zero(client, add, customer_id, hammer_id):
    add(hammer_id, 1)
    cart = client.put(
        "/api/cart/update", json={"user_id": customer_id, "product_id": hammer_id, "quantity": 4}
    ).json()["cart"]
    assert cart["items"][0]["quantity"] == 4

    cart = client.put(
        "/api/cart/update", json={"user_id": customer_id, "product_id": hammer_id, "quantity": 0}
    ).json()["cart"]
    assert cart["items"] == []


def test_update_missing_line_is_404(client, add, customer_id, hammer_id, phone_id):
    add(hammer_id, 1)
    response = client.put(
        "/api/cart/update", json={"user_id": customer_id, "product_id": phone_id, "quantity": 1, "variant": BLACK_64}
    )
    assert response.status_code == 404


def test_remove_specific_variant(client, add, make_product, customer_id):
    phone_id = make_product(
        product_id="PHONE-02",
        price=None,
        discounted_price=None,
        has_variations=True,
        attributes=[{"name": "Storage", "options": [{"name": "64GB"}, {"name": "128GB"}]}],
        variants=[
            {"combination": {"Storage": "64GB", "Color": "Black"}, "price": 500},
            {"combination": {"Storage": "128GB", "Color": "Black"}, "price": 600},
        ],
    )
    add(phone_id, 1, BLACK_64)
    add(phone_id, 1, {"combination": {"Storage": "128GB", "Color": "Black"}})

    response = client.request(
        "DELETE", "/api/cart/remove", json={"user_id": customer_id, "product_id": phone_id, "variant": BLACK_64}
    )
    items = response.json()["cart"]["items"]
    assert len(items) == 1
    assert items[0]["variant"]["combination"]["Storage"] == "128GB"


def test_remove_without_variant_drops_all_lines(client, add, customer_id, hammer_id):
    add(hammer_id, 2)
    response = client.request("DELETE", "/api/cart/remove", json={"user_id": customer_id, "product_id": hammer_id})
    assert response.json()["cart"]["items"] == []


def test_clear_cart(client, add, customer_id, hammer_id):
    add(hammer_id, 2)
    response = client.request("DELETE", "/api/cart/clear", json={"user_id": customer_id})
    assert response.status_code == 200
    assert response.json()["cart"]["items"] == []
    assert response.json()["cart"]["total_amount"] == 0


def test_clear_missing_cart_is_404(client, customer_id):
    assert client.request("DELETE", "/api/cart/clear", json={"user_id": customer_id}).status_code == 404
