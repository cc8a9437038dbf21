"""Order scan — a pilot scans the parcel label before claiming it.

Scanning returns what the pilot needs to decide on the pickup and makes
sure the order has a handoff code. The code itself is never returned
to the pilot.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import AlreadyAssigned, NotFound
from dispatch.handoff.handoff_code import HandoffCodeService
from dispatch.order.order import Order


@dispatch.command(part_of="Order")
class ScanOrder:
    order_id = Identifier(required=True)
    pilot_id = Identifier()


def order_summary(order: Order) -> dict:
    pricing = order.pricing
    return {
        "order_id": str(order.id),
        "status": order.status,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "pickup_address": order.pickup_address,
        "drop_address": order.drop_address,
        "pickup_location": order.pickup_location.to_dict() if order.pickup_location else None,
        "drop_location": order.drop_location.to_dict() if order.drop_location else None,
        "total_weight_kg": order.total_weight_kg,
        "distance_km": pricing.distance_km if pricing else None,
        "zone": pricing.zone if pricing else None,
        "estimated_delivery": pricing.eta_label if pricing else None,
        "transport_cost": pricing.transport_cost if pricing else 0.0,
        "total_amount": pricing.total if pricing else 0.0,
    }


@dispatch.command_handler(part_of=Order)
class ScanOrderHandler:
    @handle(ScanOrder)
    def scan_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.load(command.order_id)

        if order.assigned_pilot_id:
            raise AlreadyAssigned(
                str(order.id),
                assigned_to_requester=bool(command.pilot_id) and str(order.assigned_pilot_id) == str(command.pilot_id),
            )
        if not order.is_ready_for_pickup:
            raise NotFound("Order", str(order.id), "Order not found or not ready for pickup")

        HandoffCodeService().issue(order)
        return order_summary(order)
