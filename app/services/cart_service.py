from decimal import Decimal
from typing import Dict, Any, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.errors import (
    AddressRequired,
    CartConflict,
    DuplicateItem,
    InsufficientStock,
    InvalidQuantity,
    ItemNotFound,
    ProductNotFound,
)
from app.domain.schemas import CartStatus
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.services.lock_service import LockService
from app.services.order_service import OrderService, order_to_dict
from app.services.product_service import product_to_dict
from app.utils.retry import active_cart_retry
from app.utils.logging import get_logger

logger = get_logger(__name__)


def calculate_total(items: Iterable[CartItemModel]) -> Decimal:
    return sum((i.unit_price * i.quantity for i in items), Decimal("0.00"))


class CartService:
    """
    Use cases of the cart domain.
    query (get_active_cart) only reads, apart from lazily creating the cart,
    commands (add, update, remove, clear, checkout) run under the per-user
    lock and write through an optimistic version check
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        order_service: OrderService | None = None,
    ):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.lock_service = lock_service
        self.order_service = order_service or OrderService(db)

    #query
    def get_active_cart(self, user_id: int, populate_product: bool = False) -> Dict[str, Any]:
        cart = self._get_or_create_active_cart(user_id)
        return self._to_dict(cart, populate_product)

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        with self.lock_service.cart_lock(user_id):
            cart = self._get_or_create_active_cart(user_id)

            #same product twice is rejected, quantities are never merged
            if self._find_line(cart, product_id):
                logger.warning(f"Product {product_id} already in cart {cart.id}")
                raise DuplicateItem(product_id)

            product = self._get_product_with_stock(product_id, quantity)

            #price snapshot, later catalog changes do not touch the line
            cart.items.append(
                CartItemModel(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=product.price,
                )
            )
            self._save(cart, total_amount=cart.total_amount + product.price * quantity)

            logger.info(f"Product {product_id} x{quantity} added to cart {cart.id}")
            return self._to_dict(cart, populate_product=True)

    def update_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        with self.lock_service.cart_lock(user_id):
            cart = self._get_or_create_active_cart(user_id)

            line = self._find_line(cart, product_id)
            if not line:
                raise ItemNotFound(product_id)

            self._get_product_with_stock(product_id, quantity)

            line.quantity = quantity
            others = [i for i in cart.items if i.product_id != product_id]
            self._save(cart, total_amount=calculate_total(others) + line.unit_price * quantity)

            logger.info(f"Product {product_id} in cart {cart.id} set to x{quantity}")
            return self._to_dict(cart, populate_product=True)

    def remove_item(self, user_id: int, product_id: int) -> Dict[str, Any]:
        with self.lock_service.cart_lock(user_id):
            cart = self._get_or_create_active_cart(user_id)

            line = self._find_line(cart, product_id)
            if not line:
                raise ItemNotFound(product_id)

            cart.items.remove(line)
            self._save(cart, total_amount=calculate_total(cart.items))

            logger.info(f"Product {product_id} removed from cart {cart.id}")
            return self._to_dict(cart, populate_product=True)

    def clear(self, user_id: int) -> Dict[str, Any]:
        with self.lock_service.cart_lock(user_id):
            cart = self._get_or_create_active_cart(user_id)

            cart.items.clear()
            self._save(cart, total_amount=Decimal("0.00"))

            logger.info(f"Cart {cart.id} cleared")
            return self._to_dict(cart, populate_product=True)

    def checkout(self, user_id: int, address: str | None) -> Dict[str, Any]:
        """
        Converts the active cart into an order.

        The order insert and the cart status flip share one transaction:
        any failure leaves the cart active and no order behind.
        Stock is not decremented.
        """
        if not address or not address.strip():
            raise AddressRequired()

        with self.lock_service.cart_lock(user_id):
            cart = self._get_or_create_active_cart(user_id)

            order = self.order_service.create_order_from_cart(cart, address.strip())
            self._save(cart, status=CartStatus.COMPLETED.value)

            logger.info(f"Cart {cart.id} checked out into order {order.id}")

        self.order_service.notify_created(order)
        return order_to_dict(order)

    #helpers
    @active_cart_retry()
    def _get_or_create_active_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_active_cart_by_user(user_id)
        if existing:
            return existing

        try:
            created = self.repo.create_cart(
                CartModel(
                    user_id=user_id,
                    status=CartStatus.ACTIVE.value,
                    total_amount=Decimal("0.00"),
                    version=1,
                )
            )
        except IntegrityError:
            #the unique index on active carts caught a parallel create, read it on retry
            self.repo.rollback()
            logger.warning(f"Active cart for user {user_id} created concurrently, retrying lookup")
            raise

        logger.info(f"Created new cart {created.id} for user {user_id}")
        return created

    def _save(self, cart: CartModel, **changes) -> None:
        #optimistic locking: UPDATE carts SET version = v+1 WHERE id = :id AND version = v
        old_version = cart.version
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=old_version,
            new_data={**changes, "version": old_version + 1},
        )

        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Version conflict on cart {cart.id} (expected v{old_version})")
            raise CartConflict()

        self.repo.commit()

    def _get_product_with_stock(self, product_id: int, quantity: int):
        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id)

        #advisory ceiling only, stock is not reserved
        if quantity > product.stock:
            logger.warning(
                f"Requested {quantity} of product {product_id}, only {product.stock} in stock"
            )
            raise InsufficientStock(product_id, quantity, product.stock)

        return product

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity < 1:
            raise InvalidQuantity()

    @staticmethod
    def _find_line(cart: CartModel, product_id: int) -> CartItemModel | None:
        return next((i for i in cart.items if i.product_id == product_id), None)

    @staticmethod
    def _to_dict(cart: CartModel, populate_product: bool = False) -> Dict[str, Any]:
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": [
                {
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "product": product_to_dict(i.product) if populate_product and i.product else None,
                }
                for i in cart.items
            ],
            "total_amount": cart.total_amount,
        }
