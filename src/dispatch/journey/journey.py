"""Delivery journey — from pickup to the verified handoff at the door.

Completing a delivery is all-or-nothing: the handoff code is verified
first, then a conditional write moves the order from dispatched to
delivered. A cancellation that slipped in between makes that write fail
and nothing else happens.
"""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import InvalidTransition
from dispatch.handoff.handoff_code import HandoffCodeService
from dispatch.order.order import Order, OrderStatus
from dispatch.pilot.pilot import Pilot
from dispatch.pricing import validate_coordinates

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class StartJourney:
    order_id = Identifier(required=True)
    pilot_id = Identifier(required=True)
    latitude = Float(required=True)
    longitude = Float(required=True)


@dispatch.command(part_of="Order")
class CompleteDelivery:
    order_id = Identifier(required=True)
    code = String(required=True, max_length=10)
    notes = Text()
    rating = Integer(min_value=1, max_value=5)


@dispatch.command_handler(part_of=Order)
class DeliveryJourneyHandler:
    @handle(StartJourney)
    def start_journey(self, command):
        latitude, longitude = validate_coordinates(command.latitude, command.longitude)

        order_repo = current_domain.repository_for(Order)
        pilot_repo = current_domain.repository_for(Pilot)
        order = order_repo.load(command.order_id)
        pilot = pilot_repo.load(command.pilot_id)

        order.start_journey(str(pilot.id), latitude, longitude)
        pilot.report_location(latitude, longitude)

        order_repo.add(order)
        pilot_repo.add(pilot)

        logger.info("Journey started", order_id=str(order.id), pilot_id=str(pilot.id))
        return {"order_id": str(order.id), "status": order.status, "journey_started_at": order.delivery.journey_started_at}

    @handle(CompleteDelivery)
    def complete_delivery(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.load(command.order_id)
        order_id = str(order.id)

        # A retried submission after success must not re-run side effects
        if order.status == OrderStatus.DELIVERED.value:
            logger.info("Delivery already completed", order_id=order_id)
            return {"order_id": order_id, "status": "already_completed"}

        codes = HandoffCodeService()
        codes.verify(order, command.code)

        if not order_repo.mark_delivered_if_dispatched(order_id):
            status, _ = order_repo.claim_state(order_id)
            logger.warning("Order changed before delivery could commit", order_id=order_id, status=status)
            raise InvalidTransition(status, OrderStatus.DELIVERED.value)

        pilot_id = order.complete_delivery(notes=command.notes, rating=command.rating)
        order_repo.add(order)
        codes.revoke(order_id)

        pilot_repo = current_domain.repository_for(Pilot)
        pilot = pilot_repo.load(pilot_id)
        if pilot_repo.release_if_holding(pilot_id, order_id):
            pilot.release(delivered=True, rating=command.rating)
            pilot_repo.add(pilot)
        else:
            logger.warning("Pilot no longer held the delivered order", order_id=order_id, pilot_id=pilot_id)

        logger.info("Order delivered", order_id=order_id, pilot_id=pilot_id, rating=command.rating)
        return {
            "order_id": order_id,
            "status": order.status,
            "delivered_at": order.delivery.delivered_at,
        }
