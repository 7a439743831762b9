"""
Оформление заказа (checkout) и история покупок.

``finalize_purchase`` превращает корзину покупателя в одну запись Purchase и по
одной записи Sale на каждого продавца, списывает остатки и очищает корзину.
Всё выполняется в одной транзакции: при любой ошибке делается rollback, и ни
одно изменение не сохраняется.
"""
from datetime import datetime, timezone
from sqlalchemy.orm import Session, joinedload, selectinload
from typing import Dict, List
import logging

from .. import models
from ..errors import EmptyCart, InsufficientStock, StoreError

logger = logging.getLogger(__name__)


def _lock_cart(db: Session, user_id: int):
    # Блокировка корзины сериализует повторные checkout одной корзины:
    # второй запрос ждет commit первого и видит уже пустую корзину.
    return (
        db.query(models.Cart)
        .filter(models.Cart.user_id == user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _load_cart_items(db: Session, user_id: int) -> List[models.CartItem]:
    # Позиции читаются только после блокировки корзины
    return (
        db.query(models.CartItem)
        .options(joinedload(models.CartItem.product).joinedload(models.Product.seller))
        .filter(models.CartItem.cart_id == user_id)
        .order_by(models.CartItem.product_id)
        .populate_existing()
        .all()
    )


def _lock_products(db: Session, product_ids: List[int]) -> Dict[int, models.Product]:
    # Строки товаров блокируются в порядке id, чтобы параллельные checkout
    # не могли прочитать один и тот же остаток и не попадали в deadlock.
    # На SQLite FOR UPDATE не поддерживается и опускается диалектом.
    products = (
        db.query(models.Product)
        .filter(models.Product.id.in_(product_ids))
        .order_by(models.Product.id)
        .with_for_update()
        .populate_existing()
        .all()
    )
    return {product.id: product for product in products}


def finalize_purchase(db: Session, user_id: int) -> models.Purchase:
    """
    Finalize the checkout of the user's cart.

    Raises EmptyCart when the cart is missing or has no items and
    InsufficientStock when any item asks for more than the product has.
    Any failure rolls back the whole transaction before the error propagates.
    """
    sales_by_seller: Dict[int, dict] = {}
    purchase_items: List[dict] = []
    total_amount = 0.0

    try:
        cart = _lock_cart(db, user_id)
        items = _load_cart_items(db, user_id) if cart is not None else []
        if not items:
            raise EmptyCart(user_id)

        now = datetime.now(timezone.utc)
        purchase = models.Purchase(user_id=user_id, total_amount=0, purchase_date=now)
        db.add(purchase)
        db.flush()

        products = _lock_products(db, [item.product_id for item in items])

        for item in items:
            product = products[item.product_id]
            quantity = item.quantity

            if quantity > product.stock:
                raise InsufficientStock(product.id, product.name, available=product.stock, requested=quantity)

            product.stock = product.stock - quantity

            price = float(product.price)
            subtotal = round(price * quantity, 2)
            total_amount = round(total_amount + subtotal, 2)

            line = {
                "product_name": product.name,
                "product_price": price,
                "quantity": quantity,
                "subtotal": subtotal,
            }
            seller_sale = sales_by_seller.setdefault(product.user_id, {"total_amount": 0.0, "items": []})
            seller_sale["total_amount"] = round(seller_sale["total_amount"] + subtotal, 2)
            seller_sale["items"].append(line)
            purchase_items.append(line)

        for seller_id, sale_data in sales_by_seller.items():
            sale = models.Sale(seller_id=seller_id, total_amount=sale_data["total_amount"], sale_date=now)
            db.add(sale)
            db.flush()
            db.add_all([models.SaleItem(sale_id=sale.id, **line) for line in sale_data["items"]])

        db.add_all([models.PurchaseItem(purchase_id=purchase.id, **line) for line in purchase_items])

        purchase.total_amount = total_amount

        db.query(models.CartItem).filter(models.CartItem.cart_id == user_id).delete(synchronize_session=False)

        db.commit()
    except StoreError as e:
        db.rollback()
        logger.warning(f"Checkout for user {user_id} rejected: {e.message}")
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Checkout for user {user_id} failed, transaction rolled back")
        raise

    logger.info(
        f"Checkout for user {user_id} completed: purchase {purchase.id}, "
        f"total {total_amount}, {len(sales_by_seller)} seller(s)"
    )
    return get_purchase(db, purchase.id)


def get_purchase(db: Session, purchase_id: int):
    return (
        db.query(models.Purchase)
        .options(selectinload(models.Purchase.items))
        .filter(models.Purchase.id == purchase_id)
        .first()
    )


def get_purchases_by_user(db: Session, user_id: int) -> List[models.Purchase]:
    return (
        db.query(models.Purchase)
        .options(selectinload(models.Purchase.items))
        .filter(models.Purchase.user_id == user_id)
        .order_by(models.Purchase.purchase_date, models.Purchase.id)
        .all()
    )
