"""Order cancellation — command and handler.

Cancels any non-terminal order. An assigned pilot is released and the
handoff code is revoked so it can never complete the delivery.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import InvalidTransition
from dispatch.handoff.handoff_code import HandoffCodeService
from dispatch.order.order import Order, OrderStatus
from dispatch.pilot.pilot import Pilot

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor = String(max_length=100)


@dispatch.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)
        order_id = str(order.id)

        if order.is_terminal:
            raise InvalidTransition(order.status, OrderStatus.CANCELLED.value)

        # Refuse if a concurrent claim or completion moved the order meanwhile
        if not repo.mark_cancelled_if_status(order_id, order.status):
            current = repo.load(order_id)
            raise InvalidTransition(current.status, OrderStatus.CANCELLED.value)

        pilot_id = order.cancel(command.reason, actor=command.actor)
        repo.add(order)

        HandoffCodeService().revoke(order_id)

        if pilot_id:
            pilot_repo = current_domain.repository_for(Pilot)
            pilot = pilot_repo.load(pilot_id)
            if pilot_repo.release_if_holding(pilot_id, order_id):
                pilot.release(delivered=False)
                pilot_repo.add(pilot)
            else:
                logger.warning("Pilot no longer held the cancelled order", order_id=order_id, pilot_id=pilot_id)

        logger.info("Order cancelled", order_id=order_id, pilot_id=pilot_id, reason=command.reason)
        return order.status
