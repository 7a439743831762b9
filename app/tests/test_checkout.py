import pytest

from store_api import models
from store_api.database import SessionLocal
from store_api.errors import EmptyCart, InsufficientStock
from store_api.repositories import purchases as purchase_repository
from store_api.repositories import sales as sale_repository


@pytest.fixture
def scenario(make_user, make_product):
    seller_a = make_user(name="Seller A", email="seller-a@store.com")
    seller_b = make_user(name="Seller B", email="seller-b@store.com")
    buyer = make_user(name="Buyer", email="buyer@store.com")
    product_a = make_product(seller_a, name="Smartphone", price=1000.0, stock=10)
    product_b = make_product(seller_b, name="Headphones", price=200.0, stock=20)
    return buyer, seller_a, seller_b, product_a, product_b


def _stock(db_session, product):
    db_session.expire_all()
    return db_session.get(models.Product, product.id).stock


def test_checkout_splits_sales_by_seller(db_session, scenario, put_in_cart):
    buyer, seller_a, seller_b, product_a, product_b = scenario
    put_in_cart(buyer, product_a, 2)
    put_in_cart(buyer, product_b, 3)

    purchase = purchase_repository.finalize_purchase(db_session, buyer.id)

    assert purchase.total_amount == 2600.0
    assert sorted((i.product_name, i.quantity, i.subtotal) for i in purchase.items) == [
        ("Headphones", 3, 600.0),
        ("Smartphone", 2, 2000.0),
    ]

    sales_a = sale_repository.get_sales_by_seller(db_session, seller_a.id)
    sales_b = sale_repository.get_sales_by_seller(db_session, seller_b.id)
    assert [s.total_amount for s in sales_a] == [2000.0]
    assert [s.total_amount for s in sales_b] == [600.0]
    assert sales_a[0].items[0].product_price == 1000.0
    assert sum(s.total_amount for s in sales_a + sales_b) == purchase.total_amount

    assert _stock(db_session, product_a) == 8
    assert _stock(db_session, product_b) == 17
    assert db_session.query(models.CartItem).filter(models.CartItem.cart_id == buyer.id).count() == 0


def test_checkout_groups_items_of_same_seller(db_session, make_user, make_product, put_in_cart):
    seller = make_user(name="Seller", email="seller@store.com")
    buyer = make_user(name="Buyer", email="buyer@store.com")
    put_in_cart(buyer, make_product(seller, name="Mouse", price=50.0, stock=5), 2)
    put_in_cart(buyer, make_product(seller, name="Keyboard", price=80.0, stock=5), 1)

    purchase = purchase_repository.finalize_purchase(db_session, buyer.id)

    sales = sale_repository.get_sales_by_seller(db_session, seller.id)
    assert len(sales) == 1
    assert sales[0].total_amount == 180.0 == purchase.total_amount
    assert len(sales[0].items) == 2


def test_checkout_insufficient_stock_changes_nothing(db_session, scenario, put_in_cart):
    buyer, seller_a, _, product_a, product_b = scenario
    put_in_cart(buyer, product_a, 2)
    put_in_cart(buyer, product_b, 21)

    with pytest.raises(InsufficientStock) as exc_info:
        purchase_repository.finalize_purchase(db_session, buyer.id)

    error = exc_info.value
    assert error.details["product_id"] == product_b.id
    assert error.details["available"] == 20
    assert error.details["requested"] == 21

    # первая позиция тоже не списана
    assert _stock(db_session, product_a) == 10
    assert _stock(db_session, product_b) == 20
    assert db_session.query(models.Purchase).count() == 0
    assert db_session.query(models.Sale).count() == 0
    assert db_session.query(models.PurchaseItem).count() == 0
    assert db_session.query(models.CartItem).filter(models.CartItem.cart_id == buyer.id).count() == 2


def test_checkout_empty_cart(db_session, scenario):
    buyer = scenario[0]
    with pytest.raises(EmptyCart):
        purchase_repository.finalize_purchase(db_session, buyer.id)
    assert db_session.query(models.Purchase).count() == 0
    assert db_session.query(models.Sale).count() == 0


def test_checkout_without_cart(db_session):
    with pytest.raises(EmptyCart):
        purchase_repository.finalize_purchase(db_session, 9999)


def test_checkout_exact_stock_allowed(db_session, scenario, put_in_cart):
    buyer, _, _, product_a, _ = scenario
    put_in_cart(buyer, product_a, 10)

    purchase_repository.finalize_purchase(db_session, buyer.id)

    assert _stock(db_session, product_a) == 0


def test_checkout_rolls_back_on_persistence_error(db_session, scenario, put_in_cart, monkeypatch):
    buyer, _, _, product_a, _ = scenario
    put_in_cart(buyer, product_a, 1)

    def broken_add_all(instances):
        raise RuntimeError("disk full")

    monkeypatch.setattr(db_session, "add_all", broken_add_all)
    with pytest.raises(RuntimeError):
        purchase_repository.finalize_purchase(db_session, buyer.id)
    monkeypatch.undo()

    assert _stock(db_session, product_a) == 10
    assert db_session.query(models.Purchase).count() == 0


def test_purchase_history(db_session, scenario, put_in_cart):
    buyer, _, _, product_a, product_b = scenario
    put_in_cart(buyer, product_a, 1)
    purchase_repository.finalize_purchase(db_session, buyer.id)
    put_in_cart(buyer, product_b, 1)
    purchase_repository.finalize_purchase(db_session, buyer.id)

    history = purchase_repository.get_purchases_by_user(db_session, buyer.id)
    assert [p.total_amount for p in history] == [1000.0, 200.0]


def test_repeated_checkout_waiting_on_cart_lock_finds_empty_cart(db_session, scenario, put_in_cart, monkeypatch):
    buyer, _, _, product_a, _ = scenario
    put_in_cart(buyer, product_a, 2)

    lock_cart = purchase_repository._lock_cart
    first_request_done = []

    def lock_after_concurrent_checkout(db, user_id):
        # пока второй запрос ждет блокировку, первый успевает закоммитить
        if not first_request_done:
            first_request_done.append(True)
            other_session = SessionLocal()
            try:
                purchase_repository.finalize_purchase(other_session, user_id)
            finally:
                other_session.close()
        return lock_cart(db, user_id)

    monkeypatch.setattr(purchase_repository, "_lock_cart", lock_after_concurrent_checkout)

    with pytest.raises(EmptyCart):
        purchase_repository.finalize_purchase(db_session, buyer.id)

    assert _stock(db_session, product_a) == 8
    assert db_session.query(models.Purchase).count() == 1
    assert db_session.query(models.Sale).count() == 1
