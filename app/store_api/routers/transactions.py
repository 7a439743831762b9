from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from .. import schemas, auth, models
from ..repositories import purchases as purchase_repository
from ..repositories import sales as sale_repository

router = APIRouter()


@router.post("/checkout/{user_id}", response_model=schemas.CheckoutOut, status_code=status.HTTP_201_CREATED)
async def checkout(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    """
    Оформляет заказ по корзине пользователя.

    Пустая корзина дает 400, нехватка товара на складе 409; в обоих случаях
    транзакция откатывается целиком.
    """
    auth.ensure_same_user(current_user, user_id, "You can only check out your own cart")
    purchase = purchase_repository.finalize_purchase(db, user_id)
    return {"message": "Purchase completed successfully", "purchase": purchase}


@router.get("/users/{user_id}/purchases", response_model=List[schemas.PurchaseOut])
async def purchase_history(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You can only view your own purchase history")
    purchases = purchase_repository.get_purchases_by_user(db, user_id)
    if not purchases:
        raise HTTPException(status_code=404, detail="No purchases found for this user")
    return purchases


@router.get("/users/{user_id}/sales", response_model=List[schemas.SaleOut])
async def sales_history(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You can only view your own sales")
    sales = sale_repository.get_sales_by_seller(db, user_id)
    if not sales:
        raise HTTPException(status_code=404, detail="No sales found for this user")
    return sales
