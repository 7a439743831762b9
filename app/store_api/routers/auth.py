from fastapi import APIRouter, Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from .. import schemas, auth, models
from ..blacklist import TokenBlacklist, get_token_blacklist
from ..config import settings
from ..repositories import users as user_repository

router = APIRouter(prefix="/auth")
logger = logging.getLogger(__name__)


@router.post("/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
@auth.limiter.limit(settings.RATE_LIMIT_LOGIN)
async def register(request: Request, user: schemas.UserCreate, db: Session = Depends(get_db)):
    """Регистрирует пользователя и создает для него пустую корзину."""
    return user_repository.create_user(db, name=user.name, email=user.email, password=user.password)


@router.post("/login", response_model=schemas.Token)
@auth.limiter.limit(settings.RATE_LIMIT_LOGIN)
async def login(request: Request, credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    user = auth.authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        logger.info(f"Failed login attempt for {credentials.email}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid email or password")

    token = auth.create_user_token(user)
    return {"message": "Login successful", "token": token, "token_type": "bearer"}


@router.post("/logout", response_model=schemas.MessageOut)
async def logout(
    token: str = Depends(auth.oauth2_scheme),
    current_user: models.User = Depends(auth.get_current_user),
    blacklist: TokenBlacklist = Depends(get_token_blacklist),
):
    try:
        expires_at = auth.decode_access_token(token).get("exp")
    except JWTError:
        expires_at = None
    blacklist.add(token, expires_at)
    logger.info(f"User {current_user.id} logged out")
    return {"message": "Logout successful"}
