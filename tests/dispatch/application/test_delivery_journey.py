"""Application tests for StartJourney and CompleteDelivery."""

import pytest
from dispatch.errors import AgentUnavailable, InvalidCode, InvalidCoordinates, InvalidTransition
from dispatch.journey.journey import CompleteDelivery, StartJourney
from dispatch.order.cancellation import CancelOrder
from dispatch.order.order import Order
from dispatch.pilot.pilot import Pilot
from protean import current_domain


def _start(order_id, pilot_id, latitude=18.95, longitude=72.83):
    return current_domain.process(
        StartJourney(order_id=order_id, pilot_id=pilot_id, latitude=latitude, longitude=longitude),
        asynchronous=False,
    )


def _complete(order_id, code, **kwargs):
    return current_domain.process(CompleteDelivery(order_id=order_id, code=code, **kwargs), asynchronous=False)


def _wrong(code):
    return "000000" if code != "000000" else "111111"


class TestStartJourney:
    def test_assigned_pilot_starts(self, claimed_order):
        order_id, pilot_id = claimed_order
        result = _start(order_id, pilot_id)

        assert result["status"] == "dispatched"
        order = current_domain.repository_for(Order).get(order_id)
        assert order.delivery.journey_started_at is not None
        pilot = current_domain.repository_for(Pilot).get(pilot_id)
        assert pilot.current_location.latitude == 18.95

    def test_other_pilot_is_refused(self, claimed_order, register_pilot):
        order_id, _ = claimed_order
        other = register_pilot(name="Sunil", phone="+919800000102", vehicle_number="MH01AB9999")
        with pytest.raises(AgentUnavailable):
            _start(order_id, other)

    def test_cannot_start_twice(self, claimed_order):
        order_id, pilot_id = claimed_order
        _start(order_id, pilot_id)
        with pytest.raises(InvalidTransition):
            _start(order_id, pilot_id)

    def test_invalid_location(self, claimed_order):
        order_id, pilot_id = claimed_order
        with pytest.raises(InvalidCoordinates):
            _start(order_id, pilot_id, latitude=123.0)

    def test_customer_told_journey_started(self, claimed_order, notifier):
        order_id, pilot_id = claimed_order
        notifier.reset()
        _start(order_id, pilot_id)

        body = notifier.messages_to("+919800000001")[-1]["body"]
        assert "has started the journey" in body
        assert "8-24 hours" in body


class TestCompleteDelivery:
    def test_correct_code_delivers(self, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        result = _complete(order_id, handoff_code(order_id), notes="Handed to customer", rating=5)

        assert result["status"] == "delivered"
        assert result["delivered_at"] is not None

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "delivered"
        assert order.assigned_pilot_id is None
        assert order.driver.pilot_id == pilot_id
        assert order.delivery.customer_rating == 5
        assert order.delivery.delivery_notes == "Handed to customer"

    def test_pilot_released_and_counted(self, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        _complete(order_id, handoff_code(order_id), rating=4)

        pilot = current_domain.repository_for(Pilot).get(pilot_id)
        assert pilot.is_available is True
        assert pilot.current_order_id is None
        assert pilot.total_deliveries == 1
        assert pilot.rating_count == 1
        assert pilot.rating_average == 4.0

    def test_unrated_delivery_counts_without_rating(self, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        _complete(order_id, handoff_code(order_id))

        pilot = current_domain.repository_for(Pilot).get(pilot_id)
        assert pilot.total_deliveries == 1
        assert pilot.rating_count == 0

    def test_ratings_average_across_deliveries(self, place_order, register_pilot, handoff_code):
        from dispatch.assignment.claim import ClaimOrder

        pilot_id = register_pilot()
        for rating in (4, 5, 3):
            order_id = place_order()
            current_domain.process(ClaimOrder(order_id=order_id, pilot_id=pilot_id), asynchronous=False)
            _complete(order_id, handoff_code(order_id), rating=rating)

        pilot = current_domain.repository_for(Pilot).get(pilot_id)
        assert pilot.total_deliveries == 3
        assert pilot.rating_average == 4.0

    def test_code_is_single_use(self, claimed_order, handoff_code):
        from dispatch.handoff.handoff_code import HandoffCodeService

        order_id, _ = claimed_order
        _complete(order_id, handoff_code(order_id))
        assert HandoffCodeService().live_code(order_id) is None

    def test_retry_after_success_is_idempotent(self, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        code = handoff_code(order_id)
        _complete(order_id, code, rating=5)

        result = _complete(order_id, code, rating=5)

        assert result == {"order_id": order_id, "status": "already_completed"}
        pilot = current_domain.repository_for(Pilot).get(pilot_id)
        assert pilot.total_deliveries == 1
        assert pilot.rating_count == 1

    def test_wrong_code_changes_nothing(self, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        code = handoff_code(order_id)

        with pytest.raises(InvalidCode):
            _complete(order_id, _wrong(code))

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == "dispatched"
        assert order.assigned_pilot_id == pilot_id
        assert current_domain.repository_for(Pilot).get(pilot_id).is_available is False
        assert handoff_code(order_id) == code

    def test_wrong_code_then_right_code(self, claimed_order, handoff_code):
        order_id, _ = claimed_order
        code = handoff_code(order_id)
        with pytest.raises(InvalidCode):
            _complete(order_id, _wrong(code))
        assert _complete(order_id, code)["status"] == "delivered"

    def test_cancelled_order_cannot_be_completed(self, claimed_order, handoff_code):
        order_id, _ = claimed_order
        code = handoff_code(order_id)
        current_domain.process(CancelOrder(order_id=order_id, reason="Customer unreachable"), asynchronous=False)

        with pytest.raises(InvalidCode):
            _complete(order_id, code)
        assert current_domain.repository_for(Order).get(order_id).status == "cancelled"

    def test_cancellation_racing_completion(self, claimed_order, handoff_code):
        order_id, _ = claimed_order
        code = handoff_code(order_id)
        # Cancellation commits between the code check and the status write
        current_domain.repository_for(Order).mark_cancelled_if_status(order_id, "dispatched")

        with pytest.raises((InvalidTransition, InvalidCode)):
            _complete(order_id, code)
        status, _ = current_domain.repository_for(Order).claim_state(order_id)
        assert status == "cancelled"

    def test_customer_thanked_on_delivery(self, claimed_order, handoff_code, notifier):
        order_id, _ = claimed_order
        _complete(order_id, handoff_code(order_id))

        body = notifier.messages_to("+919800000001")[-1]["body"]
        assert body == f"Your order {order_id} has been delivered. Thank you for your order!"

    def test_rating_out_of_range_rejected(self, claimed_order, handoff_code):
        from protean.exceptions import ValidationError

        order_id, _ = claimed_order
        with pytest.raises(ValidationError):
            CompleteDelivery(order_id=order_id, code=handoff_code(order_id), rating=0)
