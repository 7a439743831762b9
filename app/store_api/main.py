from fastapi import FastAPI, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import logging
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings

# Настраиваем логгер
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

from .routers import auth as auth_routes, users, products, carts, transactions
from .database import engine, Base, get_db
from .errors import StoreError
from . import auth, models

# Create FastAPI app
app = FastAPI(
    title="Store API",
    description="Users, products, carts, checkout and purchase/sale history",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Настройка rate limiting
limiter = auth.setup_limiter(app)

# Create database tables
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
except Exception as e:
    logger.error(f"Failed to create database tables: {str(e)}")
    logger.warning("API will continue to run, but database operations may fail")


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


# Include routers
app.include_router(auth_routes.router, prefix=settings.API_PREFIX, tags=["auth"])
app.include_router(users.router, prefix=settings.API_PREFIX, tags=["users"])
app.include_router(products.router, prefix=settings.API_PREFIX, tags=["products"])
app.include_router(carts.router, prefix=settings.API_PREFIX, tags=["cart"])
app.include_router(transactions.router, prefix=settings.API_PREFIX, tags=["transactions"])


@app.get("/")
def read_root():
    return {
        "status": "ok",
        "message": "Store API is running",
        "version": "1.0.0"
    }


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    db_status = "connected"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "database": db_status,
    }


@app.get(f"{settings.API_PREFIX}/protected")
async def protected(current_user: models.User = Depends(auth.get_current_user)):
    return {"message": "You have access to this protected route", "user_id": current_user.id}


if __name__ == "__main__":
    uvicorn.run(
        "store_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
