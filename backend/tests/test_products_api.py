def test_list_and_search(client, cashier_headers, catalog):
    res = client.get("/products", headers=cashier_headers)
    assert res.json()["total"] == 3

    res = client.get("/products", params={"q": "chor"}, headers=cashier_headers)
    assert [p["sku"] for p in res.json()["items"]] == ["CHO-01"]


def test_barcode_lookup(client, cashier_headers, catalog):
    res = client.get("/products/barcode/000101", headers=cashier_headers)
    assert res.json()["name"] == "Carne molida"
    assert client.get("/products/barcode/123", headers=cashier_headers).status_code == 404


def test_create_requires_manager(client, cashier_headers, manager_headers):
    body = {"sku": "pan-01", "name": "Pan", "price": 2, "stock_units": 30}
    assert client.post("/products", json=body, headers=cashier_headers).status_code == 403
    res = client.post("/products", json=body, headers=manager_headers)
    assert res.status_code == 201
    assert res.json()["sku"] == "PAN-01"
    assert client.post("/products", json=body, headers=manager_headers).status_code == 409


def test_weight_inventory_needs_weight_sale_type(client, manager_headers):
    body = {"sku": "X-1", "name": "X", "price": 10, "sale_type": "UNIT", "inventory_type": "WEIGHT"}
    assert client.post("/products", json=body, headers=manager_headers).status_code == 422


def test_catalog_discount(client, manager_headers, cashier_headers, catalog):
    url = f"/products/{catalog.molida.id}/discount"
    res = client.patch(url, json={"discount_active": True, "discount_price": 45}, headers=manager_headers)
    assert res.status_code == 400

    res = client.patch(url, json={"discount_active": True, "discount_price": 36}, headers=manager_headers)
    assert res.json()["discount_active"] is True

    cart = client.post("/cart/items", json={"product_id": catalog.molida.id}, headers=cashier_headers).json()
    line = cart["lines"][0]
    assert line["effective_unit_price"] == 36
    assert line["discount_auto_detected"] is True
    assert line["total"] == 36


def test_favorite_toggle(client, cashier_headers, catalog):
    res = client.post(f"/products/{catalog.chorizo.id}/favorite", headers=cashier_headers)
    assert res.json()["is_favorite"] is True
    res = client.get("/products", params={"favorites": True}, headers=cashier_headers)
    assert res.json()["total"] == 1


def test_batches_endpoint(client, cashier_headers, manager_headers, catalog):
    res = client.get("/product-batches", params={"productId": catalog.picana.id}, headers=cashier_headers)
    assert all(b["is_reserved"] is None for b in res.json())

    res = client.get("/product-batches", params={"productId": catalog.picana.id, "includeReservationStatus": True},
                     headers=cashier_headers)
    assert [b["is_reserved"] for b in res.json()] == [False, False]

    body = {"product_id": catalog.picana.id, "batch_number": "pic-0003", "actual_weight": 1.3, "unit_price": 59}
    res = client.post("/product-batches", json=body, headers=manager_headers)
    assert res.status_code == 201
    assert res.json()["batch_number"] == "PIC-0003"

    body["product_id"] = catalog.molida.id
    body["batch_number"] = "MOL-1"
    assert client.post("/product-batches", json=body, headers=manager_headers).status_code == 400

    assert client.delete(f"/product-batches/{catalog.b1.id}", headers=manager_headers).status_code == 204
