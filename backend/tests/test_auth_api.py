from conftest import TEST_PIN


def test_login_with_pin(client, cashier):
    res = client.post("/login", json={"username": "CAJA1", "pin": TEST_PIN})
    assert res.status_code == 200
    token = res.json()["access_token"]

    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["username"] == "caja1"
    assert me.json()["role"] == "CASHIER"


def test_wrong_pin(client, cashier):
    assert client.post("/login", json={"username": "caja1", "pin": "9999"}).status_code == 401


def test_inactive_user_cannot_login(client, cashier, db_session):
    cashier.is_active = False
    db_session.commit()
    assert client.post("/login", json={"username": "caja1", "pin": TEST_PIN}).status_code == 401


def test_bad_token(client):
    assert client.get("/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_logs_are_admin_only(client, cashier, cashier_headers, admin_headers):
    client.post("/login", json={"username": "caja1", "pin": "9999"})
    client.post("/login", json={"username": "caja1", "pin": TEST_PIN})

    assert client.get("/logs", headers=cashier_headers).status_code == 403

    res = client.get("/logs", params={"action": "LOGIN"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["total"] == 2
    assert {e["status"] for e in res.json()["items"]} == {"SUCCESS", "FAIL"}

    res = client.get("/logs", params={"status": "FAIL"}, headers=admin_headers)
    assert res.json()["total"] == 1
