from models.enums import SaleType, InventoryType
from models.product import Product, ProductBatch
from models.sale import Sale


def _fill_cart(client, headers, catalog, qty=3):
    cart = client.post("/cart/items", json={"product_id": catalog.chorizo.id}, headers=headers).json()
    client.put(f"/cart/items/{cart['lines'][0]['id']}/qty", json={"qty": qty}, headers=headers)


def _checkout(client, headers, **payload):
    body = {"terminal_id": "T1", "payment_method": "CASH"}
    body.update(payload)
    return client.post("/sales", json=body, headers=headers)


def _stock(db, product_id):
    db.expire_all()
    return db.query(Product).filter(Product.id == product_id).one().stock_units


def test_sale_needs_open_cash_session(client, cashier_headers, catalog):
    _fill_cart(client, cashier_headers, catalog)
    res = _checkout(client, cashier_headers, cash_amount=100)
    assert res.status_code == 400


def test_empty_cart_cannot_be_charged(client, cashier_headers, cash_session):
    res = _checkout(client, cashier_headers, cash_amount=100)
    assert res.status_code == 400


def test_cash_sale(client, cashier_headers, catalog, cash_session, db_session):
    _fill_cart(client, cashier_headers, catalog)
    res = _checkout(client, cashier_headers, cash_amount=100)
    assert res.status_code == 201, res.text
    sale = res.json()
    assert sale["total"] == 75
    assert sale["change_amount"] == 25
    assert sale["cash_session_id"] == cash_session["id"]
    assert len(sale["items"]) == 1
    assert sale["items"][0]["qty"] == 3

    assert _stock(db_session, catalog.chorizo.id) == 7
    assert client.get("/cart", headers=cashier_headers).json()["lines"] == []


def test_cash_below_total_is_rejected(client, cashier_headers, catalog, cash_session, db_session):
    _fill_cart(client, cashier_headers, catalog)
    res = _checkout(client, cashier_headers, cash_amount=50)
    assert res.status_code == 400
    assert len(client.get("/cart", headers=cashier_headers).json()["lines"]) == 1
    assert db_session.query(Sale).count() == 0


def test_mixed_payment_must_match_total(client, cashier_headers, catalog, cash_session):
    _fill_cart(client, cashier_headers, catalog)
    res = _checkout(client, cashier_headers, payment_method="MIXED", cash_amount=30, card_amount=30)
    assert res.status_code == 400

    res = _checkout(client, cashier_headers, payment_method="MIXED", cash_amount=30, card_amount=45)
    assert res.status_code == 201
    assert res.json()["cash_amount"] == 30
    assert res.json()["card_amount"] == 45


def test_batch_sale_marks_batch_sold(client, cashier_headers, catalog, cash_session, db_session):
    client.post("/cart/batch", json={"batch_id": catalog.b1.id}, headers=cashier_headers)
    res = _checkout(client, cashier_headers, payment_method="CARD")
    assert res.status_code == 201
    assert res.json()["total"] == 45
    assert res.json()["items"][0]["batch_id"] == catalog.b1.id

    db_session.expire_all()
    batch = db_session.query(ProductBatch).filter(ProductBatch.id == catalog.b1.id).one()
    assert batch.is_sold
    assert batch.sale_id == res.json()["id"]


def test_batch_taken_by_another_terminal(client, cashier_headers, catalog, cash_session, db_session):
    client.post("/cart/batch", json={"batch_id": catalog.b1.id}, headers=cashier_headers)

    # Another terminal sells the same package first
    catalog.b1.is_sold = True
    db_session.commit()

    res = _checkout(client, cashier_headers, payment_method="CARD")
    assert res.status_code == 409
    assert db_session.query(Sale).count() == 0
    assert len(client.get("/cart", headers=cashier_headers).json()["lines"]) == 1


def test_list_and_get_sales(client, cashier_headers, catalog, cash_session):
    _fill_cart(client, cashier_headers, catalog)
    sale_id = _checkout(client, cashier_headers, cash_amount=75).json()["id"]

    res = client.get("/sales", params={"cash_session_id": cash_session["id"]}, headers=cashier_headers)
    assert res.json()["total"] == 1
    assert client.get(f"/sales/{sale_id}", headers=cashier_headers).json()["change_amount"] == 0
    assert client.get("/sales/999", headers=cashier_headers).status_code == 404


def test_cancel_sale_restores_stock_and_batches(client, cashier_headers, manager_headers, catalog,
                                               cash_session, db_session):
    _fill_cart(client, cashier_headers, catalog, qty=2)
    client.post("/cart/batch", json={"batch_id": catalog.b2.id}, headers=cashier_headers)
    sale_id = _checkout(client, cashier_headers, payment_method="TRANSFER").json()["id"]
    assert _stock(db_session, catalog.chorizo.id) == 8

    res = client.patch(f"/sales/{sale_id}/cancel", json={"reason": "Cliente devolvió"}, headers=cashier_headers)
    assert res.status_code == 403

    res = client.patch(f"/sales/{sale_id}/cancel", json={"reason": "Cliente devolvió"}, headers=manager_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "CANCELLED"
    assert _stock(db_session, catalog.chorizo.id) == 10
    batch = db_session.query(ProductBatch).filter(ProductBatch.id == catalog.b2.id).one()
    assert not batch.is_sold

    res = client.patch(f"/sales/{sale_id}/cancel", json={"reason": "otra vez"}, headers=manager_headers)
    assert res.status_code == 400


def test_cancel_only_puts_back_units_taken_at_checkout(client, cashier_headers, manager_headers, catalog,
                                                      cash_session, db_session):
    # Counted on the shelf but sold by weight: no stock control at the counter
    costilla = Product(sku="COS-01", name="Costilla", sale_type=SaleType.WEIGHT,
                       inventory_type=InventoryType.UNIT, unit="kg", price=38, stock_units=5)
    db_session.add(costilla)
    db_session.commit()

    _fill_cart(client, cashier_headers, catalog, qty=2)
    client.post("/cart/items", json={"product_id": costilla.id}, headers=cashier_headers)
    sale_id = _checkout(client, cashier_headers, payment_method="CARD").json()["id"]
    assert _stock(db_session, costilla.id) == 5
    assert _stock(db_session, catalog.chorizo.id) == 8

    res = client.patch(f"/sales/{sale_id}/cancel", json={"reason": "Error de cobro"}, headers=manager_headers)
    assert res.status_code == 200
    assert _stock(db_session, costilla.id) == 5
    assert _stock(db_session, catalog.chorizo.id) == 10
