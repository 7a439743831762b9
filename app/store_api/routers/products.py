from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..database import get_db
from ..errors import ProductNotFound
from .. import schemas, auth, models
from ..repositories import products as product_repository

router = APIRouter(prefix="/products")
logger = logging.getLogger(__name__)


def _get_owned_product(db: Session, product_id: int, current_user: models.User) -> models.Product:
    db_product = product_repository.get_product(db, product_id)
    if db_product is None:
        raise ProductNotFound(product_id)
    if db_product.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only manage your own products")
    return db_product


@router.post("", response_model=schemas.ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    # Продавцом товара становится текущий пользователь
    return product_repository.create_product(db, current_user.id, product.model_dump())


@router.get("", response_model=List[schemas.ProductOut])
async def list_products(
    seller_id: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    return product_repository.list_products(db, seller_id=seller_id, skip=skip, limit=limit)


@router.get("/{product_id}", response_model=schemas.ProductOut)
async def get_product(product_id: int, db: Session = Depends(get_db)):
    db_product = product_repository.get_product(db, product_id)
    if db_product is None:
        raise ProductNotFound(product_id)
    return db_product


@router.patch("/{product_id}", response_model=schemas.ProductOut)
async def update_product(
    product_id: int,
    product_data: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    db_product = _get_owned_product(db, product_id, current_user)
    changes = {key: value for key, value in product_data.model_dump(exclude_unset=True).items() if value is not None}
    return product_repository.update_product(db, db_product, changes)


@router.patch("/{product_id}/stock", response_model=schemas.StockUpdateOut)
async def update_stock(
    product_id: int,
    stock_data: schemas.StockUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    _get_owned_product(db, product_id, current_user)
    db_product = product_repository.update_stock(db, product_id, stock_data.stock)
    if db_product is None:
        raise ProductNotFound(product_id)
    return {
        "message": f"Stock of product {product_id} updated to {stock_data.stock}",
        "product": db_product,
    }


@router.delete("/{product_id}", response_model=schemas.MessageOut)
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    _get_owned_product(db, product_id, current_user)
    if not product_repository.delete_product(db, product_id):
        raise ProductNotFound(product_id)
    logger.info(f"Product {product_id} deleted by user {current_user.id}")
    return {"message": f"Product {product_id} deleted"}
