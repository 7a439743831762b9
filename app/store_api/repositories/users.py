from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from .. import models
from ..auth import get_password_hash
from ..errors import EmailAlreadyRegistered, ResourceInUse

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email).first()


def list_users(db: Session, skip: int = 0, limit: int = 100) -> List[models.User]:
    return db.query(models.User).order_by(models.User.id).offset(skip).limit(limit).all()


def create_user(db: Session, name: str, email: str, password: str) -> models.User:
    """Создает пользователя вместе с его корзиной в одной транзакции."""
    if get_user_by_email(db, email) is not None:
        raise EmailAlreadyRegistered(email)

    db_user = models.User(name=name, email=email, password=get_password_hash(password))
    db_user.cart = models.Cart()
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        # гонка двух регистраций с одним email
        db.rollback()
        raise EmailAlreadyRegistered(email)
    db.refresh(db_user)
    logger.info(f"User {db_user.id} registered with cart")
    return db_user


def update_user(db: Session, db_user: models.User, changes: dict) -> models.User:
    changes = {key: value for key, value in changes.items() if value is not None}
    changes.pop("id", None)

    new_email = changes.get("email")
    if new_email and new_email != db_user.email and get_user_by_email(db, new_email) is not None:
        raise EmailAlreadyRegistered(new_email)
    if "password" in changes:
        changes["password"] = get_password_hash(changes["password"])

    for key, value in changes.items():
        setattr(db_user, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EmailAlreadyRegistered(new_email or db_user.email)
    db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: int) -> bool:
    db_user = get_user(db, user_id)
    if db_user is None:
        return False
    db.delete(db_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"User {user_id} is still referenced: {str(e.orig)}")
        raise ResourceInUse("user", user_id)
    logger.info(f"User {user_id} deleted")
    return True
