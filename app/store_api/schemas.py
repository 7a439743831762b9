from pydantic import BaseModel, ConfigDict, Field, EmailStr
from typing import Optional, List
from datetime import datetime


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Users
class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1)

class UserOut(ORMModel):
    id: int
    name: str
    email: EmailStr

class SellerInfo(ORMModel):
    name: str
    email: EmailStr


# Auth
class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class Token(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"

class MessageOut(BaseModel):
    message: str


# Products
class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: float = Field(gt=0)
    stock: int = Field(default=1, ge=0)

class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, gt=0)
    stock: Optional[int] = None

class StockUpdate(BaseModel):
    stock: int

class ProductOut(ORMModel):
    id: int
    user_id: int
    name: str
    description: str
    price: float
    stock: int

class StockUpdateOut(BaseModel):
    message: str
    product: ProductOut


# Cart
class CartItemAdd(BaseModel):
    # Клиенты шлют userId/productId, snake_case тоже принимается
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    product_id: int = Field(alias="productId")
    quantity: int = Field(gt=0)

class CartItemDecrease(BaseModel):
    quantity: int = Field(gt=0)

class CartProduct(ORMModel):
    name: str
    price: float

class CartItemOut(ORMModel):
    product_id: int
    quantity: int
    product: CartProduct

class CartOut(ORMModel):
    user_id: int
    items: List[CartItemOut] = []

class CartDecreaseOut(BaseModel):
    message: str
    deleted: bool
    item: Optional[CartItemOut] = None


# Purchases and sales
class LedgerItemOut(ORMModel):
    id: int
    product_name: str
    product_price: float
    quantity: int
    subtotal: float

class PurchaseOut(ORMModel):
    id: int
    user_id: int
    total_amount: float
    purchase_date: datetime
    items: List[LedgerItemOut] = []

class CheckoutOut(BaseModel):
    message: str
    purchase: PurchaseOut

class SaleOut(ORMModel):
    id: int
    seller_id: int
    total_amount: float
    sale_date: datetime
    items: List[LedgerItemOut] = []
    seller: SellerInfo
