"""Inbound cross-domain event handler — Orders react to Payment events.

A captured payment confirms a placed order; a completed refund cancels an
order that has not reached a terminal state. Cross-domain events are
imported from shared.events.payments and registered as external events.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.payments import PaymentSucceeded, RefundCompleted

from dispatch.domain import dispatch
from dispatch.errors import NotFound
from dispatch.order.cancellation import CancelOrder
from dispatch.order.order import Order, OrderStatus
from dispatch.order.placement import ConfirmOrder

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
dispatch.register_external_event(PaymentSucceeded, "Payments.PaymentSucceeded.v1")
dispatch.register_external_event(RefundCompleted, "Payments.RefundCompleted.v1")


def _find_order(order_id: str) -> Order | None:
    try:
        return current_domain.repository_for(Order).load(order_id)
    except NotFound:
        logger.warning("Payment event for unknown order, skipping", order_id=order_id)
        return None


@dispatch.event_handler(part_of=Order, stream_category="payments::payment")
class PaymentOrderEventHandler:
    """Reacts to Payment domain events to move orders along."""

    @handle(PaymentSucceeded)
    def on_payment_succeeded(self, event: PaymentSucceeded) -> None:
        order_id = str(event.order_id)
        order = _find_order(order_id)
        if order is None:
            return

        if order.status != OrderStatus.PLACED.value:
            logger.info("Order already past confirmation", order_id=order_id, status=order.status)
            return

        logger.info("Payment succeeded, confirming order", order_id=order_id, payment_id=str(event.payment_id))
        current_domain.process(ConfirmOrder(order_id=order_id, actor="payments"), asynchronous=False)

    @handle(RefundCompleted)
    def on_refund_completed(self, event: RefundCompleted) -> None:
        order_id = str(event.order_id)
        order = _find_order(order_id)
        if order is None:
            return

        if order.is_terminal:
            logger.info("Refund for a closed order, nothing to cancel", order_id=order_id, status=order.status)
            return

        logger.info("Refund completed, cancelling order", order_id=order_id, refund_id=str(event.refund_id))
        current_domain.process(
            CancelOrder(order_id=order_id, reason="Payment refunded", actor="payments"),
            asynchronous=False,
        )
