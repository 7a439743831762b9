import os

# Настройки должны быть заданы до импорта приложения
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient

from store_api.main import app
from store_api.database import Base, engine, SessionLocal
from store_api.blacklist import InMemoryTokenBlacklist, get_token_blacklist
from store_api.repositories import users as user_repository
from store_api import models

PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def token_blacklist():
    blacklist = InMemoryTokenBlacklist()
    app.dependency_overrides[get_token_blacklist] = lambda: blacklist
    yield blacklist
    app.dependency_overrides.pop(get_token_blacklist, None)


@pytest.fixture
def client(token_blacklist):
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    def _make_user(name="Test User", email="user@store.com", password=PASSWORD):
        return user_repository.create_user(db_session, name=name, email=email, password=password)
    return _make_user


@pytest.fixture
def make_product(db_session):
    def _make_product(seller, name="Smartphone", price=1000.0, stock=10, description="Top model"):
        product = models.Product(user_id=seller.id, name=name, price=price, stock=stock, description=description)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make_product


@pytest.fixture
def put_in_cart(db_session):
    def _put_in_cart(user, product, quantity):
        db_session.add(models.CartItem(cart_id=user.id, product_id=product.id, quantity=quantity))
        db_session.commit()
    return _put_in_cart


@pytest.fixture
def login(client):
    def _login(email="user@store.com", password=PASSWORD):
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _login
