"""Checkout: cart to order conversion and the active -> completed transition."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.data.models import CartModel, OrderModel
from app.domain.errors import AddressRequired, CartConflict, OrderCreationFailed, ProductNotFound
from app.domain.schemas import CartStatus, OrderStatus
from app.repos.order_repo import OrderRepo
from app.services.notification_service import send_order_notification_task


class TestCheckout:
    def test_scenario_d(self, cart_service, user, laptop):
        cart_service.add_item(user.id, laptop.id, 2)

        order = cart_service.checkout(user.id, "12 Main St")

        assert order["total"] == Decimal("20000")
        assert order["status"] == OrderStatus.IN_PROGRESS.value == "En Cours"
        assert order["address"] == "12 Main St"
        assert order["user_id"] == user.id
        assert len(order["order_items"]) == 1
        item = order["order_items"][0]
        assert item["product_title"] == "Laptop hp"
        assert item["product_image"] == laptop.image
        assert item["quantity"] == 2
        assert item["product_price"] == Decimal("10000")
        assert item["unit_price"] == Decimal("10000")

        fresh = cart_service.get_active_cart(user.id)
        assert fresh["total_amount"] == Decimal("0")
        assert fresh["items"] == []

    def test_checkout_opens_a_new_cart(self, db, cart_service, user, laptop):
        old_id = cart_service.add_item(user.id, laptop.id, 1)["cart_id"]

        order = cart_service.checkout(user.id, "12 Main St")
        new_cart = cart_service.get_active_cart(user.id)

        assert new_cart["cart_id"] != old_id
        assert new_cart["status"] == CartStatus.ACTIVE.value
        assert db.get(CartModel, old_id).status == CartStatus.COMPLETED.value
        assert order["cart_id"] == old_id

    def test_at_most_one_active_cart_after_checkouts(self, cart_service, user, laptop):
        for _ in range(3):
            cart_service.add_item(user.id, laptop.id, 1)
            cart_service.checkout(user.id, "12 Main St")
        cart_service.get_active_cart(user.id)

        carts = cart_service.repo.list_carts_by_user(user.id)
        statuses = [c.status for c in carts]
        assert statuses.count(CartStatus.ACTIVE.value) == 1
        assert statuses.count(CartStatus.COMPLETED.value) == 3

    @pytest.mark.parametrize("address", [None, "", "   "])
    def test_address_is_required(self, db, cart_service, user, laptop, address):
        cart_service.add_item(user.id, laptop.id, 1)

        with pytest.raises(AddressRequired):
            cart_service.checkout(user.id, address)

        assert db.query(OrderModel).count() == 0
        assert cart_service.get_active_cart(user.id)["items"]

    def test_address_is_trimmed(self, cart_service, user, laptop):
        cart_service.add_item(user.id, laptop.id, 1)

        order = cart_service.checkout(user.id, "  12 Main St \n")

        assert order["address"] == "12 Main St"

    def test_vanished_product_aborts_whole_checkout(self, db, cart_service, user, laptop, dell):
        cart_service.add_item(user.id, laptop.id, 1)
        cart = cart_service.add_item(user.id, dell.id, 1)
        db.delete(dell)
        db.commit()

        with pytest.raises(ProductNotFound):
            cart_service.checkout(user.id, "12 Main St")

        assert db.query(OrderModel).count() == 0
        still_active = cart_service.get_active_cart(user.id)
        assert still_active["cart_id"] == cart["cart_id"]
        assert len(still_active["items"]) == 2

    def test_order_persistence_failure(self, db, cart_service, user, laptop, monkeypatch):
        cart = cart_service.add_item(user.id, laptop.id, 1)

        def broken_add(self, order):
            raise OperationalError("INSERT INTO orders", {}, Exception("disk full"))

        monkeypatch.setattr(OrderRepo, "add_order", broken_add)

        with pytest.raises(OrderCreationFailed):
            cart_service.checkout(user.id, "12 Main St")

        assert db.query(OrderModel).count() == 0
        assert cart_service.get_active_cart(user.id)["cart_id"] == cart["cart_id"]

    def test_conflict_on_cart_flip_rolls_back_order(self, db, cart_service, user, laptop, monkeypatch):
        cart_service.add_item(user.id, laptop.id, 1)
        monkeypatch.setattr(cart_service.repo, "update_cart_version", lambda **kwargs: 0)

        with pytest.raises(CartConflict):
            cart_service.checkout(user.id, "12 Main St")

        assert db.query(OrderModel).count() == 0

    def test_order_keeps_cart_snapshot_after_price_change(self, db, cart_service, user, laptop):
        cart_service.add_item(user.id, laptop.id, 2)
        laptop.price = Decimal("99999")
        laptop.title = "Laptop hp (2024)"
        db.commit()

        order = cart_service.checkout(user.id, "12 Main St")

        # title/image come from the catalog, price from the cart line
        assert order["order_items"][0]["product_title"] == "Laptop hp (2024)"
        assert order["order_items"][0]["product_price"] == Decimal("10000")
        assert order["total"] == Decimal("20000")

    def test_order_is_immune_to_later_catalog_edits(self, db, cart_service, user, laptop):
        cart_service.add_item(user.id, laptop.id, 1)
        order_id = cart_service.checkout(user.id, "12 Main St")["id"]

        laptop.title = "Renamed"
        laptop.price = Decimal("1")
        db.commit()

        order = cart_service.order_service.get_order(order_id, user.id)
        assert order["order_items"][0]["product_title"] == "Laptop hp"
        assert order["total"] == Decimal("10000")

    def test_checkout_does_not_touch_stock(self, db, cart_service, user, dell):
        cart_service.add_item(user.id, dell.id, 4)
        cart_service.checkout(user.id, "12 Main St")

        db.refresh(dell)
        assert dell.stock == 4

    def test_empty_cart_checks_out_to_empty_order(self, cart_service, user):
        order = cart_service.checkout(user.id, "12 Main St")

        assert order["order_items"] == []
        assert order["total"] == Decimal("0")

    def test_notification_is_queued(self, cart_service, user, laptop):
        cart_service.add_item(user.id, laptop.id, 1)

        with patch.object(send_order_notification_task, "delay") as delay:
            order = cart_service.checkout(user.id, "12 Main St")

        delay.assert_called_once_with(user.id, order["id"])

    def test_notification_failure_does_not_undo_checkout(self, db, cart_service, user, laptop):
        cart_service.add_item(user.id, laptop.id, 1)

        with patch.object(send_order_notification_task, "delay", side_effect=RuntimeError("result backend down")):
            order = cart_service.checkout(user.id, "12 Main St")

        assert db.get(OrderModel, order["id"]) is not None
        assert cart_service.get_active_cart(user.id)["items"] == []

    def test_notification_task_runs_eagerly(self):
        result = send_order_notification_task.delay(1, 42)

        assert result.get() == {"user_id": 1, "order_id": 42, "status": "sent"}
