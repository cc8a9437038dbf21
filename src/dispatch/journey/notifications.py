"""Customer notifications for claim, journey start, code resends and delivery.

Runs as an event handler after the transition has committed. Adapter
errors and failed sends are logged and never propagate back into the
dispatch flow.
"""

import structlog
from protean.utils.mixins import handle

from dispatch.domain import dispatch
from dispatch.handoff.handoff_code import HandoffCodeService
from dispatch.notifier import get_notifier
from dispatch.order.events import HandoffCodeResent, JourneyStarted, OrderClaimed, OrderDelivered
from dispatch.order.order import Order

logger = structlog.get_logger(__name__)


def _send(recipient: str | None, message: str, order_id: str, kind: str) -> None:
    if not recipient:
        logger.info("No customer contact, notification skipped", order_id=order_id, kind=kind)
        return

    try:
        result = get_notifier().notify(recipient, message)
    except Exception as exc:
        logger.warning("Notification failed", order_id=order_id, kind=kind, error=str(exc))
        return

    if result.get("status") != "sent":
        logger.warning("Notification not delivered", order_id=order_id, kind=kind, error=result.get("error"))
        return

    logger.info("Notification sent", order_id=order_id, kind=kind, message_id=result.get("message_id"))


@dispatch.event_handler(part_of=Order)
class DeliveryNotificationHandler:
    @handle(OrderClaimed)
    def on_order_claimed(self, event: OrderClaimed) -> None:
        order_id = str(event.order_id)
        message = (
            f"Your order {order_id} is on the way! Driver: {event.pilot_name}, "
            f"Vehicle: {event.vehicle_number}, Phone: {event.pilot_phone}"
        )
        code = HandoffCodeService().live_code(order_id)
        if code:
            message += f". Share code {code} with the driver at delivery."
        _send(event.customer_phone, message, order_id, "claimed")

    @handle(JourneyStarted)
    def on_journey_started(self, event: JourneyStarted) -> None:
        order_id = str(event.order_id)
        message = f"{event.pilot_name or 'Your driver'} has started the journey with order {order_id}."
        if event.eta_label:
            message += f" Expected delivery within {event.eta_label}."
        _send(event.customer_phone, message, order_id, "journey_started")

    @handle(HandoffCodeResent)
    def on_handoff_code_resent(self, event: HandoffCodeResent) -> None:
        order_id = str(event.order_id)
        code = HandoffCodeService().live_code(order_id)
        if not code:
            logger.warning("No live handoff code to resend", order_id=order_id)
            return
        message = f"Your delivery code for order {order_id} is {code}. Share it with the driver at delivery."
        _send(event.customer_phone, message, order_id, "code_resent")

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        order_id = str(event.order_id)
        message = f"Your order {order_id} has been delivered. Thank you for your order!"
        _send(event.customer_phone, message, order_id, "delivered")
