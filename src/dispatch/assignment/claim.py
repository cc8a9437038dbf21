"""Order claim — binds one ready order to one available pilot.

The claim is decided by two conditional writes in the store, never by the
checks on the loaded aggregates:

1. Order: ``assigned_pilot_id`` null → pilot, status ready → dispatched.
2. Pilot: available with no current order → busy with this order.

If the pilot-side write fails after the order-side write succeeded, the
order-side write is reverted before the error is raised. Both aggregates
are then updated and persisted inside the same unit of work.

A store that detects the conflict only when the unit of work commits
reports it as an optimistic-concurrency error; ``process_claim`` turns
that back into the claim error it stands for.
"""

import structlog
from protean import handle
from protean.exceptions import ExpectedVersionError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import AgentUnavailable, AlreadyAssigned, OrderNotReady
from dispatch.handoff.handoff_code import HandoffCodeService
from dispatch.order.order import READY_STATUSES, DriverSnapshot, Order
from dispatch.pilot.pilot import Pilot

logger = structlog.get_logger(__name__)

_READY = {s.value for s in READY_STATUSES}


def assert_claimable(order_id: str, status: str, assigned_pilot_id: str | None, pilot_id: str) -> None:
    """Raise the typed error explaining why an order cannot be claimed."""
    if assigned_pilot_id:
        raise AlreadyAssigned(order_id, assigned_to_requester=str(assigned_pilot_id) == str(pilot_id))
    if status not in _READY:
        raise OrderNotReady(order_id, status)


@dispatch.command(part_of="Order")
class ClaimOrder:
    order_id = Identifier(required=True)
    pilot_id = Identifier(required=True)


@dispatch.command_handler(part_of=Order)
class ClaimOrderHandler:
    @handle(ClaimOrder)
    def claim_order(self, command):
        order_repo = current_domain.repository_for(Order)
        pilot_repo = current_domain.repository_for(Pilot)

        order = order_repo.load(command.order_id)
        pilot = pilot_repo.load(command.pilot_id)
        order_id = str(order.id)
        pilot_id = str(pilot.id)

        # Fast rejection on the loaded copies
        assert_claimable(order_id, order.status, order.assigned_pilot_id, pilot_id)
        if not pilot.can_take_orders:
            raise AgentUnavailable(pilot_id)

        previous_status = order.status

        if not order_repo.claim_if_unassigned(order_id, pilot_id):
            status, assignee = order_repo.claim_state(order_id)
            logger.warning("Claim lost to a concurrent request", order_id=order_id, pilot_id=pilot_id, winner=assignee)
            assert_claimable(order_id, status, assignee, pilot_id)

            # The winner was compensated in between; one more attempt
            if not order_repo.claim_if_unassigned(order_id, pilot_id):
                raise AlreadyAssigned(order_id)
            previous_status = status

        if not pilot_repo.reserve_if_available(pilot_id, order_id):
            reverted = order_repo.revert_claim(order_id, pilot_id, previous_status)
            logger.warning(
                "Pilot became unavailable during claim, order released",
                order_id=order_id,
                pilot_id=pilot_id,
                reverted=reverted,
            )
            raise AgentUnavailable(pilot_id)

        driver = DriverSnapshot(
            pilot_id=pilot_id,
            name=pilot.name,
            phone=pilot.phone,
            vehicle_number=pilot.vehicle.registration_number,
            vehicle_type=pilot.vehicle.vehicle_type,
        )
        order.assign_to(driver)
        pilot.take_order(order_id)

        order_repo.add(order)
        pilot_repo.add(pilot)

        # The customer reads this code back to the pilot at the door
        HandoffCodeService().issue(order, restart_window=True)

        logger.info("Order claimed", order_id=order_id, pilot_id=pilot_id)
        return {
            "order_id": order_id,
            "status": order.status,
            "pilot_id": pilot_id,
            "driver": driver.to_dict(),
        }


def process_claim(order_id: str, pilot_id: str) -> dict:
    """Run ``ClaimOrder`` and report a commit-time conflict as a claim error."""
    try:
        return current_domain.process(ClaimOrder(order_id=order_id, pilot_id=pilot_id), asynchronous=False)
    except ExpectedVersionError:
        status, assignee = current_domain.repository_for(Order).claim_state(order_id)
        logger.warning("Claim commit lost to a concurrent request", order_id=order_id, pilot_id=pilot_id, winner=assignee)
        assert_claimable(order_id, status, assignee, pilot_id)

        pilot = current_domain.repository_for(Pilot).load(pilot_id)
        if not pilot.can_take_orders:
            raise AgentUnavailable(pilot_id) from None
        raise AlreadyAssigned(order_id) from None
