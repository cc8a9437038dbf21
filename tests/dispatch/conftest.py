import pytest
from dispatch.assignment.claim import ClaimOrder
from dispatch.handoff.handoff_code import HandoffCode
from dispatch.notifier import get_notifier, reset_notifier
from dispatch.order.lifecycle import AdvanceOrderStatus
from dispatch.order.placement import ConfirmOrder, PlaceOrder
from dispatch.pilot.registration import ApprovePilot, RegisterPilot
from protean import current_domain
from protean.integrations.pytest import DomainFixture

# Gateway of India to Bandra, roughly 15 km apart
MUMBAI_PICKUP = (18.9220, 72.8347)
MUMBAI_DROP = (19.0596, 72.8295)


@pytest.fixture(scope="session")
def dispatch_bed():
    from dispatch.domain import dispatch

    bed = DomainFixture(dispatch)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(dispatch_bed):
    with dispatch_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def notifier():
    """Fresh FakeNotifier for every test."""
    reset_notifier()
    fake = get_notifier()
    fake.reset()
    yield fake
    reset_notifier()


@pytest.fixture()
def register_pilot():
    """Register a pilot, approved unless asked otherwise; returns the pilot id."""

    def _register(name="Ravi Kumar", phone="+919800000101", vehicle_number="MH01AB1234", approve=True, **overrides):
        data = {
            "name": name,
            "phone": phone,
            "license_number": "MH0120190001234",
            "vehicle_number": vehicle_number,
            "vehicle_type": "mini_truck",
            "capacity_tonnes": 2.5,
        }
        data.update(overrides)
        pilot_id = current_domain.process(RegisterPilot(**data), asynchronous=False)
        if approve:
            current_domain.process(ApprovePilot(pilot_id=pilot_id), asynchronous=False)
        return pilot_id

    return _register


@pytest.fixture()
def place_order():
    """Place an order and walk it to the requested status; returns the order id."""

    def _place(status="confirmed", pickup=MUMBAI_PICKUP, drop=MUMBAI_DROP, **overrides):
        data = {
            "customer_id": "cust-001",
            "supplier_id": "sup-001",
            "customer_name": "Asha Patel",
            "customer_phone": "+919800000001",
            "pickup_latitude": pickup[0],
            "pickup_longitude": pickup[1],
            "pickup_address": "Apollo Bunder, Colaba",
            "drop_latitude": drop[0],
            "drop_longitude": drop[1],
            "drop_address": "Hill Road, Bandra West",
            "subtotal": 2500.0,
            "total_weight_kg": 40.0,
        }
        data.update(overrides)
        order_id = current_domain.process(PlaceOrder(**data), asynchronous=False)

        if status == "placed":
            return order_id
        current_domain.process(ConfirmOrder(order_id=order_id), asynchronous=False)
        for step in ("preparing", "processing"):
            if status == "confirmed":
                break
            current_domain.process(
                AdvanceOrderStatus(order_id=order_id, target_status=step, actor="supplier"),
                asynchronous=False,
            )
            if status == step:
                break
        return order_id

    return _place


@pytest.fixture()
def claimed_order(place_order, register_pilot):
    """A confirmed order claimed by an approved pilot; returns (order_id, pilot_id)."""
    order_id = place_order()
    pilot_id = register_pilot()
    current_domain.process(ClaimOrder(order_id=order_id, pilot_id=pilot_id), asynchronous=False)
    return order_id, pilot_id


@pytest.fixture()
def handoff_code():
    """Look up the live handoff code for an order."""

    def _code(order_id):
        return current_domain.repository_for(HandoffCode).get(order_id).code

    return _code
