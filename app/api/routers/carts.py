#app/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_lock_service
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.schemas import (
    CartOut,
    CheckoutIn,
    ItemIn,
    OrderOut,
)
from app.services.cart_service import CartService
from app.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, lock_service=lock_service)


@router.get("", response_model=CartOut)
def get_cart(
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.get_active_cart(user.id, populate_product=True)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.add_item(
        user_id=user.id,
        product_id=payload.product_id,
        quantity=payload.quantity,
    )


@router.put("/items", response_model=CartOut)
def update_item(
    payload: ItemIn,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.update_item(
        user_id=user.id,
        product_id=payload.product_id,
        quantity=payload.quantity,
    )


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.remove_item(user.id, product_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.clear(user.id)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn | None = None,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    """
    Turns the active cart into an order, the next GET /cart starts a fresh cart.
    """
    return svc.checkout(user.id, payload.address if payload else None)
