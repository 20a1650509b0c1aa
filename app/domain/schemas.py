# app/domain/schemas.py
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Dict, List, Optional
from decimal import Decimal
from datetime import datetime


class CartStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    # modeled, no operation produces it
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    IN_PROGRESS = "En Cours"
    DELIVERED = "Livrée"


class ItemIn(BaseModel):
    """Body for adding or updating a cart line."""

    product_id: int = Field(..., gt=0, description="Product ID (must be > 0)")
    quantity: int = Field(..., gt=0, description="Quantity (must be > 0)")


class CheckoutIn(BaseModel):
    """Body for checkout. The address is checked by the service, not here."""

    address: Optional[str] = Field(None, max_length=500, description="Shipping address")


class ProductOut(BaseModel):
    id: int
    title: str
    image: str
    price: Decimal
    stock: int

    model_config = ConfigDict(from_attributes=True)


class CartItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    product: Optional[ProductOut] = None


class CartOut(BaseModel):
    cart_id: int
    user_id: int
    status: CartStatus
    items: List[CartItemOut]
    total_amount: Decimal


class OrderItemOut(BaseModel):
    product_title: str
    product_image: str
    product_price: Decimal
    quantity: int
    unit_price: Optional[Decimal] = None


class OrderOut(BaseModel):
    id: int
    user_id: int
    cart_id: Optional[int] = None
    order_items: List[OrderItemOut]
    total: Decimal
    address: str
    status: OrderStatus
    created_at: datetime
    updated_at: datetime


class OrderStatsOut(BaseModel):
    total_orders: int
    total_spent: Decimal
    total_items: int
    status_breakdown: Dict[str, int]


BCRYPT_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    #bcrypt limit is in bytes, max_length counts characters
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


class UserRegister(BaseModel):
    """Registration body."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class UserRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
