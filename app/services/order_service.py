# app/services/order_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.domain.errors import OrderAccessDenied, OrderCreationFailed, OrderNotFound, ProductNotFound
from app.domain.schemas import OrderStatus
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.services.notification_service import NotificationService
from app.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "cart_id": order.cart_id,
        "order_items": [
            {
                "product_title": i.product_title,
                "product_image": i.product_image,
                "product_price": i.product_price,
                "quantity": i.quantity,
                "unit_price": i.unit_price if i.unit_price is not None else i.product_price,
            }
            for i in order.order_items
        ],
        "total": order.total,
        "address": order.address,
        "status": order.status,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class OrderService:
    """
    Order domain service.
    Kept apart from CartService, which owns the cart lock and the
    active -> completed transition during checkout.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.notification_service = NotificationService()

    def create_order_from_cart(self, cart: CartModel, address: str) -> OrderModel:
        """
        Use Case: build an order from the cart (not committed).

        1. Re-reads every product of the cart, a missing one aborts everything
        2. Copies title/image from the catalog, price/quantity from the cart line
        3. Flushes the order, the caller commits it together with the cart status
        """
        order_items = []
        for item in cart.items:
            product = self.products.get_product(item.product_id)
            if not product:
                logger.warning(
                    f"Checkout of cart {cart.id} aborted, product {item.product_id} no longer exists"
                )
                raise ProductNotFound(item.product_id)

            order_items.append(
                OrderItemModel(
                    product_title=product.title,
                    product_image=product.image,
                    product_price=item.unit_price,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                )
            )

        order = OrderModel(
            cart_id=cart.id,
            user_id=cart.user_id,
            order_items=order_items,
            total=cart.total_amount,
            address=address,
            status=OrderStatus.IN_PROGRESS.value,
        )

        try:
            self.repo.add_order(order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Order creation for cart {cart.id} failed: {e}", exc_info=True)
            raise OrderCreationFailed() from e

        logger.info(f"Order {order.id} built from cart {cart.id}")
        return order

    def notify_created(self, order: OrderModel) -> None:
        self.notification_service.send_order_notification(order.user_id, order.id)

    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        """
        Use Case: user's order history (Query), newest first.
        """
        return [order_to_dict(o) for o in self.repo.list_orders_by_user(user_id)]

    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        """
        Use Case: single order (Query).
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFound()

        if order.user_id != user_id:
            raise OrderAccessDenied()

        return order_to_dict(order)

    def order_stats(self, user_id: int) -> Dict[str, Any]:
        orders = self.repo.list_orders_by_user(user_id)

        breakdown = {status.value: 0 for status in OrderStatus}
        for o in orders:
            breakdown[o.status] = breakdown.get(o.status, 0) + 1

        return {
            "total_orders": len(orders),
            "total_spent": sum((o.total for o in orders), Decimal("0.00")),
            "total_items": sum(len(o.order_items) for o in orders),
            "status_breakdown": breakdown,
        }
