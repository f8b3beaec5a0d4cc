from bson import ObjectId

from conftest import auth_header, register
from database import CARTS, PRODUCTS


def _other_user_token(client):
    return register(client, "other@example.com").json()["data"]["token"]


def test_empty_cart_is_not_persisted(client, db, user_token):
    res = client.get("/api/cart", headers=auth_header(user_token))
    assert res.status_code == 200
    assert res.json() == {"success": True, "data": {"items": [], "totalItems": 0, "subtotal": 0}}
    assert db[CARTS].count_documents({}) == 0


def test_cart_requires_login(client):
    assert client.get("/api/cart").status_code == 401
    assert client.post("/api/cart", json={"productId": str(ObjectId())}).status_code == 401


def test_add_creates_cart_and_merges_quantities(client, db, user_token, make_product):
    pid = make_product(price=2.5, stock=10)
    headers = auth_header(user_token)
    res = client.post("/api/cart", json={"productId": pid, "quantity": 2}, headers=headers)
    assert res.status_code == 201, res.text
    res = client.post("/api/cart", json={"productId": pid}, headers=headers)
    data = res.json()["data"]
    assert len(data["items"]) == 1
    assert data["items"][0]["productId"] == pid
    assert data["items"][0]["quantity"] == 3
    assert data["items"][0]["product"]["id"] == pid
    assert data["totalItems"] == 3
    assert data["subtotal"] == 7.5
    assert db[CARTS].count_documents({}) == 1


def test_add_unknown_product(client, user_token):
    res = client.post("/api/cart", json={"productId": str(ObjectId())}, headers=auth_header(user_token))
    assert res.status_code == 404
    assert res.json()["message"] == "Product not found"


def test_add_rejects_bad_quantity_and_overstock(client, user_token, make_product):
    pid = make_product(stock=2)
    headers = auth_header(user_token)
    assert client.post("/api/cart", json={"productId": pid, "quantity": 0}, headers=headers).status_code == 400
    res = client.post("/api/cart", json={"productId": pid, "quantity": 3}, headers=headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Insufficient stock"


def test_update_quantity(client, user_token, make_product):
    pid = make_product(stock=10)
    headers = auth_header(user_token)
    client.post("/api/cart", json={"productId": pid}, headers=headers)
    res = client.put(f"/api/cart/{pid}", json={"quantity": 4}, headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["items"][0]["quantity"] == 4
    assert client.put(f"/api/cart/{pid}", json={"quantity": 11}, headers=headers).status_code == 400


def test_update_item_not_in_cart(client, user_token, make_product):
    pid = make_product()
    res = client.put(f"/api/cart/{pid}", json={"quantity": 1}, headers=auth_header(user_token))
    assert res.status_code == 404
    assert res.json()["message"] == "Item not in cart"


def test_remove_item_and_clear(client, user_token, make_product):
    a = make_product()
    b = make_product()
    headers = auth_header(user_token)
    client.post("/api/cart", json={"productId": a}, headers=headers)
    client.post("/api/cart", json={"productId": b}, headers=headers)

    res = client.delete(f"/api/cart/{a}", headers=headers)
    assert [it["productId"] for it in res.json()["data"]["items"]] == [b]
    assert client.delete(f"/api/cart/{a}", headers=headers).status_code == 404

    res = client.delete("/api/cart", headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["items"] == []


def test_deleted_product_shows_as_null(client, db, user_token, make_product):
    pid = make_product(price=3)
    headers = auth_header(user_token)
    client.post("/api/cart", json={"productId": pid}, headers=headers)
    db[PRODUCTS].delete_one({"_id": ObjectId(pid)})
    data = client.get("/api/cart", headers=headers).json()["data"]
    assert data["items"][0]["product"] is None
    assert data["subtotal"] == 0


def test_carts_are_per_user(client, user_token, make_product):
    pid = make_product()
    client.post("/api/cart", json={"productId": pid}, headers=auth_header(user_token))
    other = _other_user_token(client)
    assert client.get("/api/cart", headers=auth_header(other)).json()["data"]["items"] == []
