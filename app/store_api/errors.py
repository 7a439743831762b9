"""
Доменные ошибки магазина.

Каждая ошибка несёт тип (``ErrorKind``) и структурированные данные, по которым
обработчик в ``main`` выбирает HTTP-статус, вместо разбора текста сообщения.
"""
import enum


class ErrorKind(str, enum.Enum):
    EMPTY_CART = "empty_cart"
    INSUFFICIENT_STOCK = "insufficient_stock"
    STOCK_EXCEEDED = "stock_exceeded"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_STOCK = "invalid_stock"
    PRODUCT_NOT_FOUND = "product_not_found"
    USER_NOT_FOUND = "user_not_found"
    CART_NOT_FOUND = "cart_not_found"
    ITEM_NOT_FOUND = "item_not_found"
    EMAIL_TAKEN = "email_taken"
    RESOURCE_IN_USE = "resource_in_use"


STATUS_BY_KIND = {
    ErrorKind.EMPTY_CART: 400,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.STOCK_EXCEEDED: 400,
    ErrorKind.INVALID_QUANTITY: 400,
    ErrorKind.INVALID_STOCK: 400,
    ErrorKind.PRODUCT_NOT_FOUND: 404,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.CART_NOT_FOUND: 404,
    ErrorKind.ITEM_NOT_FOUND: 404,
    ErrorKind.EMAIL_TAKEN: 409,
    ErrorKind.RESOURCE_IN_USE: 409,
}


class StoreError(Exception):
    kind: ErrorKind

    def __init__(self, kind: ErrorKind, message: str, **details):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND.get(self.kind, 500)

    def to_dict(self) -> dict:
        return {"message": self.message, "kind": self.kind.value, "details": self.details}


class EmptyCart(StoreError):
    def __init__(self, user_id: int):
        super().__init__(ErrorKind.EMPTY_CART, "Cart is empty or does not exist", user_id=user_id)


class InsufficientStock(StoreError):
    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            ErrorKind.INSUFFICIENT_STOCK,
            f"Insufficient stock for product {product_name}: available {available}, requested {requested}",
            product_id=product_id,
            product_name=product_name,
            available=available,
            requested=requested,
        )


class StockExceeded(StoreError):
    def __init__(self, product_id: int, available: int, requested: int, in_cart: int):
        super().__init__(
            ErrorKind.STOCK_EXCEEDED,
            f"Cannot add {requested} units: {available} in stock, {in_cart} already in cart",
            product_id=product_id,
            available=available,
            requested=requested,
            in_cart=in_cart,
        )


class InvalidQuantity(StoreError):
    def __init__(self, quantity: int):
        super().__init__(ErrorKind.INVALID_QUANTITY, "Quantity must be greater than zero", quantity=quantity)


class InvalidStock(StoreError):
    def __init__(self, stock: int):
        super().__init__(ErrorKind.INVALID_STOCK, "Stock cannot be negative", stock=stock)


class ProductNotFound(StoreError):
    def __init__(self, product_id: int):
        super().__init__(ErrorKind.PRODUCT_NOT_FOUND, f"Product {product_id} not found", product_id=product_id)


class UserNotFound(StoreError):
    def __init__(self, user_id: int):
        super().__init__(ErrorKind.USER_NOT_FOUND, f"User {user_id} not found", user_id=user_id)


class CartNotFound(StoreError):
    def __init__(self, user_id: int):
        super().__init__(ErrorKind.CART_NOT_FOUND, f"Cart not found for user {user_id}", user_id=user_id)


class ItemNotFound(StoreError):
    def __init__(self, user_id: int, product_id: int):
        super().__init__(
            ErrorKind.ITEM_NOT_FOUND,
            f"Product {product_id} is not in the cart",
            user_id=user_id,
            product_id=product_id,
        )


class EmailAlreadyRegistered(StoreError):
    def __init__(self, email: str):
        super().__init__(ErrorKind.EMAIL_TAKEN, f"Email already registered: {email}", email=email)


class ResourceInUse(StoreError):
    def __init__(self, resource: str, resource_id: int):
        super().__init__(
            ErrorKind.RESOURCE_IN_USE,
            f"Cannot delete {resource} {resource_id}: it is still referenced by other records",
            resource=resource,
            resource_id=resource_id,
        )
