"""Shared BDD fixtures and step definitions for the Dispatch domain."""

import pytest
from dispatch.assignment.claim import ClaimOrder
from dispatch.order.cancellation import CancelOrder
from dispatch.order.order import Order
from dispatch.pilot.pilot import Pilot
from protean import current_domain
from pytest_bdd import given, parsers, then

_PHONES = iter(range(100, 10_000))


@pytest.fixture()
def pilots():
    """Pilot ids by the names used in the scenarios."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the When step result or error, and the handoff code seen at claim."""
    return {"result": None, "error": None, "code": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a confirmed order", target_fixture="order_id")
def confirmed_order(place_order):
    return place_order(status="confirmed")


@given("a placed order", target_fixture="order_id")
def placed_order(place_order):
    return place_order(status="placed")


@given(parsers.cfparse('an available pilot "{name}"'))
def available_pilot(register_pilot, pilots, name):
    suffix = next(_PHONES)
    pilots[name] = register_pilot(
        name=name,
        phone=f"+9198000{suffix:05d}",
        vehicle_number=f"MH01AB{suffix:04d}",
    )


@given(parsers.cfparse('"{name}" has claimed the order'))
def pilot_has_claimed(order_id, pilots, outcome, handoff_code, name):
    current_domain.process(ClaimOrder(order_id=order_id, pilot_id=pilots[name]), asynchronous=False)
    outcome["code"] = handoff_code(order_id)


@given("the order was cancelled")
def order_was_cancelled(order_id):
    current_domain.process(CancelOrder(order_id=order_id, reason="Customer unreachable"), asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is "{status}"'))
def order_has_status(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).status == status


@then(parsers.cfparse('"{name}" is carrying the order'))
def pilot_is_carrying(order_id, pilots, name):
    pilot = current_domain.repository_for(Pilot).get(pilots[name])
    assert pilot.current_order_id == order_id
    assert pilot.is_available is False


@then(parsers.cfparse('"{name}" is available'))
def pilot_is_available(pilots, name):
    pilot = current_domain.repository_for(Pilot).get(pilots[name])
    assert pilot.is_available is True
    assert pilot.current_order_id is None


@then(parsers.cfparse('{action} is rejected with "{code}"'))
def rejected_with(outcome, action, code):
    assert outcome["error"] is not None, f"{action} was not rejected"
    assert outcome["error"].code == code
