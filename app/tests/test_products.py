import pytest

from store_api import models


def test_create_product(client, make_user, login):
    seller = make_user()
    product_data = {
        "name": "Laptop",
        "description": "High performance laptop",
        "price": 999.99,
        "stock": 10
    }
    response = client.post("/products", json=product_data, headers=login())
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Laptop"
    assert data["price"] == 999.99
    assert data["user_id"] == seller.id


def test_create_product_requires_auth(client):
    response = client.post("/products", json={"name": "X", "description": "Y", "price": 1})
    assert response.status_code == 401


def test_create_product_missing_fields(client, make_user, login):
    make_user()
    response = client.post("/products", json={"name": "No price"}, headers=login())
    assert response.status_code == 400


def test_list_products(client, make_user, make_product):
    first = make_user(email="a@store.com")
    second = make_user(email="b@store.com")
    make_product(first, name="Phone")
    make_product(second, name="T-shirt", price=19.99)

    response = client.get("/products")
    assert response.status_code == 200
    assert len(response.json()) == 2

    response = client.get(f"/products?seller_id={second.id}")
    assert [p["name"] for p in response.json()] == ["T-shirt"]


def test_get_product(client, make_user, make_product):
    product = make_product(make_user())
    response = client.get(f"/products/{product.id}")
    assert response.status_code == 200
    assert response.json()["stock"] == 10
    response = client.get("/products/9999")
    assert response.status_code == 404
    assert response.json()["kind"] == "product_not_found"


def test_update_product(client, make_user, make_product, login):
    product = make_product(make_user())
    response = client.patch(f"/products/{product.id}", json={"price": 1200.0}, headers=login())
    assert response.status_code == 200
    assert response.json()["price"] == 1200.0
    assert response.json()["name"] == "Smartphone"


def test_update_stock(client, make_user, make_product, login):
    product = make_product(make_user())
    response = client.patch(f"/products/{product.id}/stock", json={"stock": 25}, headers=login())
    assert response.status_code == 200
    assert response.json()["product"]["stock"] == 25


def test_update_stock_negative(client, make_user, make_product, login, db_session):
    product = make_product(make_user())
    response = client.patch(f"/products/{product.id}/stock", json={"stock": -1}, headers=login())
    assert response.status_code == 400
    assert response.json()["kind"] == "invalid_stock"

    db_session.expire_all()
    assert db_session.get(models.Product, product.id).stock == 10


def test_update_stock_missing_product(client, make_user, login):
    make_user()
    response = client.patch("/products/9999/stock", json={"stock": 5}, headers=login())
    assert response.status_code == 404
    assert response.json()["kind"] == "product_not_found"


def test_manage_foreign_product_forbidden(client, make_user, make_product, login):
    owner = make_user(email="owner@store.com")
    make_user(email="intruder@store.com")
    product = make_product(owner)
    headers = login("intruder@store.com")

    assert client.patch(f"/products/{product.id}/stock", json={"stock": 0}, headers=headers).status_code == 403
    assert client.delete(f"/products/{product.id}", headers=headers).status_code == 403


def test_delete_product(client, make_user, make_product, login):
    product = make_product(make_user())
    headers = login()
    response = client.delete(f"/products/{product.id}", headers=headers)
    assert response.status_code == 200
    assert client.get(f"/products/{product.id}").status_code == 404
    response = client.delete(f"/products/{product.id}", headers=headers)
    assert response.status_code == 404
    assert response.json()["kind"] == "product_not_found"


def test_delete_product_in_cart_conflicts(client, make_user, make_product, put_in_cart, login):
    seller = make_user(email="seller@store.com")
    buyer = make_user(email="buyer@store.com")
    product = make_product(seller)
    put_in_cart(buyer, product, 1)

    response = client.delete(f"/products/{product.id}", headers=login("seller@store.com"))
    assert response.status_code == 409
    assert client.get(f"/products/{product.id}").status_code == 200


@pytest.mark.parametrize("query", ["skip=-1", "limit=-1", "limit=0", "limit=1001"])
def test_list_products_rejects_bad_paging(client, query):
    response = client.get(f"/products?{query}")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"


def test_list_products_paging(client, make_user, make_product):
    seller = make_user()
    for name in ("A", "B", "C"):
        make_product(seller, name=name)
    response = client.get("/products?skip=1&limit=1")
    assert [p["name"] for p in response.json()] == ["B"]
