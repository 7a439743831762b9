"""
Операции с корзиной.

Все проверки (количество, наличие товара, остаток на складе) выполняются здесь,
роуты только переводят результат в HTTP-ответ.
"""
from sqlalchemy.orm import Session, joinedload, selectinload
from typing import Optional
import logging

from .. import models
from ..errors import CartNotFound, InvalidQuantity, ItemNotFound, ProductNotFound, StockExceeded

logger = logging.getLogger(__name__)


def get_cart(db: Session, user_id: int) -> Optional[models.Cart]:
    """Корзина пользователя с позициями и данными товаров или None."""
    return (
        db.query(models.Cart)
        .options(selectinload(models.Cart.items).joinedload(models.CartItem.product))
        .filter(models.Cart.user_id == user_id)
        .first()
    )


def get_item(db: Session, user_id: int, product_id: int) -> Optional[models.CartItem]:
    return (
        db.query(models.CartItem)
        .options(joinedload(models.CartItem.product))
        .filter(models.CartItem.cart_id == user_id, models.CartItem.product_id == product_id)
        .first()
    )


def add_item(db: Session, user_id: int, product_id: int, quantity: int) -> models.CartItem:
    """
    Добавляет товар в корзину или увеличивает количество существующей позиции.

    Суммарное количество в корзине не может превысить текущий остаток товара.
    """
    if quantity <= 0:
        raise InvalidQuantity(quantity)

    product = db.query(models.Product).filter(models.Product.id == product_id).first()
    if product is None:
        raise ProductNotFound(product_id)

    cart = db.query(models.Cart).filter(models.Cart.user_id == user_id).first()
    if cart is None:
        raise CartNotFound(user_id)

    cart_item = get_item(db, user_id, product_id)
    existing_quantity = cart_item.quantity if cart_item else 0
    total_requested = existing_quantity + quantity

    if total_requested > product.stock:
        raise StockExceeded(product_id, available=product.stock, requested=quantity, in_cart=existing_quantity)

    if cart_item:
        cart_item.quantity = total_requested
    else:
        cart_item = models.CartItem(cart_id=user_id, product_id=product_id, quantity=quantity)
        db.add(cart_item)

    db.commit()
    logger.info(f"Cart {user_id}: product {product_id} quantity is now {total_requested}")
    return get_item(db, user_id, product_id)


def decrease_item(db: Session, user_id: int, product_id: int, amount: int) -> Optional[models.CartItem]:
    """
    Уменьшает количество позиции на ``amount``.

    Возвращает обновлённую позицию или None, если позиция удалена
    (количество дошло до нуля или ниже).
    """
    if amount <= 0:
        raise InvalidQuantity(amount)

    cart_item = get_item(db, user_id, product_id)
    if cart_item is None:
        raise ItemNotFound(user_id, product_id)

    new_quantity = cart_item.quantity - amount
    if new_quantity <= 0:
        db.delete(cart_item)
        db.commit()
        logger.info(f"Cart {user_id}: product {product_id} removed")
        return None

    cart_item.quantity = new_quantity
    db.commit()
    return get_item(db, user_id, product_id)


def remove_item(db: Session, user_id: int, product_id: int) -> bool:
    deleted_rows = (
        db.query(models.CartItem)
        .filter(models.CartItem.cart_id == user_id, models.CartItem.product_id == product_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted_rows > 0
