from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from .. import schemas, auth, models
from ..repositories import carts as cart_repository

router = APIRouter()


@router.get("/users/{user_id}/cart", response_model=schemas.CartOut)
async def get_cart(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You cannot access another user's cart")
    cart = cart_repository.get_cart(db, user_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Cart not found for this user")
    return cart


@router.post("/cart/add", response_model=schemas.CartItemOut, status_code=status.HTTP_201_CREATED)
async def add_item(
    item: schemas.CartItemAdd,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, item.user_id, "You cannot add items to another user's cart")
    return cart_repository.add_item(db, item.user_id, item.product_id, item.quantity)


@router.delete("/cart/{user_id}/item/{product_id}", response_model=schemas.MessageOut)
async def remove_item(
    user_id: int,
    product_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You cannot remove items from another user's cart")
    if not cart_repository.remove_item(db, user_id, product_id):
        raise HTTPException(status_code=404, detail="Item not found in cart")
    return {"message": f"Product {product_id} removed from cart"}


@router.patch("/cart/{user_id}/item/{product_id}/decrease", response_model=schemas.CartDecreaseOut)
async def decrease_item(
    user_id: int,
    product_id: int,
    body: schemas.CartItemDecrease,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You cannot change another user's cart")
    cart_item = cart_repository.decrease_item(db, user_id, product_id, body.quantity)
    if cart_item is None:
        return {"message": f"Product {product_id} removed from cart", "deleted": True, "item": None}
    return {"message": f"Quantity of product {product_id} updated", "deleted": False, "item": cart_item}
