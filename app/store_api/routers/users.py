from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..errors import UserNotFound
from .. import schemas, auth, models
from ..repositories import users as user_repository

router = APIRouter(prefix="/users")


@router.post("", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    return user_repository.create_user(db, name=user.name, email=user.email, password=user.password)


@router.get("", response_model=List[schemas.UserOut])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    return user_repository.list_users(db, skip=skip, limit=limit)


@router.get("/{user_id}", response_model=schemas.UserOut)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    db_user = user_repository.get_user(db, user_id)
    if db_user is None:
        raise UserNotFound(user_id)
    return db_user


@router.patch("/{user_id}", response_model=schemas.UserOut)
async def update_user(
    user_id: int,
    user_data: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You can only update your own account")
    db_user = user_repository.get_user(db, user_id)
    if db_user is None:
        raise UserNotFound(user_id)
    return user_repository.update_user(db, db_user, user_data.model_dump(exclude_unset=True))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user)
):
    auth.ensure_same_user(current_user, user_id, "You can only delete your own account")
    if not user_repository.delete_user(db, user_id):
        raise UserNotFound(user_id)
    return None
