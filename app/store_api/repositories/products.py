from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from .. import models
from ..errors import InvalidStock, ResourceInUse

logger = logging.getLogger(__name__)


def create_product(db: Session, seller_id: int, data: dict) -> models.Product:
    db_product = models.Product(user_id=seller_id, **data)
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    logger.info(f"Product {db_product.id} created by seller {seller_id}")
    return db_product


def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    return db.query(models.Product).filter(models.Product.id == product_id).first()


def list_products(
    db: Session, seller_id: Optional[int] = None, skip: int = 0, limit: int = 100
) -> List[models.Product]:
    query = db.query(models.Product)
    if seller_id is not None:
        query = query.filter(models.Product.user_id == seller_id)
    return query.order_by(models.Product.id).offset(skip).limit(limit).all()


def update_product(db: Session, db_product: models.Product, changes: dict) -> models.Product:
    if changes.get("stock") is not None and changes["stock"] < 0:
        raise InvalidStock(changes["stock"])
    for key, value in changes.items():
        setattr(db_product, key, value)
    db.commit()
    db.refresh(db_product)
    return db_product


def update_stock(db: Session, product_id: int, stock: int) -> Optional[models.Product]:
    """Sets the stock of a product. Returns None when the product does not exist."""
    if stock < 0:
        raise InvalidStock(stock)
    db_product = get_product(db, product_id)
    if db_product is None:
        return None
    db_product.stock = stock
    db.commit()
    db.refresh(db_product)
    logger.info(f"Stock of product {product_id} set to {stock}")
    return db_product


def delete_product(db: Session, product_id: int) -> bool:
    db_product = get_product(db, product_id)
    if db_product is None:
        return False
    db.delete(db_product)
    try:
        db.commit()
    except IntegrityError as e:
        # товар лежит в чьей-то корзине
        db.rollback()
        logger.warning(f"Product {product_id} is still referenced: {str(e.orig)}")
        raise ResourceInUse("product", product_id)
    return True
