"""Resending the handoff code for an order that is out for delivery.

The assigned pilot or the customer can ask for the code again. A live
code is sent unchanged; an expired one is replaced by a fresh code whose
window starts now. The message itself goes out after commit.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.handoff.handoff_code import HandoffCode, HandoffCodeService
from dispatch.order.order import Order

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class ResendHandoffCode:
    order_id = Identifier(required=True)
    pilot_id = Identifier()


@dispatch.command_handler(part_of=Order)
class ResendHandoffCodeHandler:
    @handle(ResendHandoffCode)
    def resend_handoff_code(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.load(command.order_id)
        order_id = str(order.id)

        order.request_code_resend(requested_by=command.pilot_id)

        HandoffCodeService().issue(order)
        order_repo.add(order)

        handoff = current_domain.repository_for(HandoffCode).get(order_id)
        logger.info("Handoff code resend requested", order_id=order_id, expires_at=handoff.expires_at.isoformat())
        return {"order_id": order_id, "status": "code_sent", "expires_at": handoff.expires_at}
