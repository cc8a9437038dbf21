"""Supplier-side status updates along the order lifecycle.

Dispatch, delivery and cancellation carry their own side effects and are
refused here; they go through ClaimOrder, CompleteDelivery and
CancelOrder.
"""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import InvalidTransition
from dispatch.order.order import Order, OrderStatus

_RESERVED_TARGETS = {
    OrderStatus.DISPATCHED.value: "Orders are dispatched by a pilot claim",
    OrderStatus.DELIVERED.value: "Orders are delivered through the handoff code",
    OrderStatus.CANCELLED.value: "Orders are cancelled through cancellation",
}


@dispatch.command(part_of="Order")
class AdvanceOrderStatus:
    order_id = Identifier(required=True)
    target_status = String(required=True, max_length=20, choices=OrderStatus)
    note = Text()
    actor = String(max_length=100)


@dispatch.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(AdvanceOrderStatus)
    def advance_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)

        if command.target_status in _RESERVED_TARGETS:
            raise InvalidTransition(
                order.status,
                command.target_status,
                _RESERVED_TARGETS[command.target_status],
            )

        order.advance(command.target_status, note=command.note, actor=command.actor)
        repo.add(order)
        return order.status
