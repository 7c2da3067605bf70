def test_get_creates_empty_list(client, database, seller_id):
    body = client.get(f"/api/highlighted-products/seller/{seller_id}").json()
    assert body["highlighted"]["product_ids"] == []
    assert database["highlighted_product"].count_documents({"seller": seller_id}) == 1


def test_add_and_remove(client, seller_id):
    url = f"/api/highlighted-products/seller/{seller_id}"
    client.post(f"{url}/add", json={"product_id": " HAMMER-01 "})
    body = client.post(f"{url}/add", json={"product_id": "SAW-01"}).json()
    assert body["highlighted"]["product_ids"] == ["HAMMER-01", "SAW-01"]

    assert client.post(f"{url}/add", json={"product_id": "HAMMER-01"}).status_code == 400

    body = client.post(f"{url}/remove", json={"product_id": "HAMMER-01"}).json()
    assert body["highlighted"]["product_ids"] == ["SAW-01"]


def test_ids_are_case_sensitive(client, seller_id):
    url = f"/api/highlighted-products/seller/{seller_id}"
    client.post(f"{url}/add", json={"product_id": "HAMMER-01"})
    assert client.post(f"{url}/add", json={"product_id": "hammer-01"}).status_code == 200


def test_blank_id_is_rejected(client, seller_id):
    assert client.post(f"/api/highlighted-products/seller/{seller_id}/add", json={"product_id": "  "}).status_code == 400


def test_remove_without_list_is_404(client, seller_id):
    response = client.post(f"/api/highlighted-products/seller/{seller_id}/remove", json={"product_id": "X"})
    assert response.status_code == 404


def test_replace_list(client, seller_id):
    url = f"/api/highlighted-products/seller/{seller_id}"
    client.post(f"{url}/add", json={"product_id": "OLD"})
    body = client.put(url, json={"product_ids": ["A", " B ", ""]}).json()
    assert body["highlighted"]["product_ids"] == ["A", "B"]
