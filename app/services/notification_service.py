# app/services/notification_service.py
from app.celery_worker import celery_app
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Sends order notifications.
    Uses Celery so checkout never waits for delivery.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int) -> bool:
        """
        Queues the "order is being processed" notification.
        The order is already committed, so any failure to queue (broker or
        result backend down) only costs the message, never the checkout.
        """
        try:
            send_order_notification_task.delay(user_id, order_id)
        except Exception:
            logger.exception(f"Could not queue notification for order {order_id}")
            return False
        return True


@celery_app.task(name="app.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    """
    Celery task - a real deployment would send email/SMS/push here.
    For now it only logs.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} is being processed")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
