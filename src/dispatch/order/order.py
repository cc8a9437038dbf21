"""Order aggregate — lifecycle, assignment and delivery of a single order.

State Machine:
    PLACED → CONFIRMED → PREPARING → PROCESSING → DISPATCHED → DELIVERED
    {CONFIRMED, PREPARING, PROCESSING} → DISPATCHED   (claimed by a pilot)
    {any non-terminal} → CANCELLED

The transition table below is the single authority on which status
changes are legal. An order holds at most one pilot, and only while it is
DISPATCHED; the pilot who delivered it stays on record in the driver
snapshot.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)
from protean.utils.query import Q

from dispatch.domain import dispatch
from dispatch.errors import AgentUnavailable, InvalidTransition, NotFound
from dispatch.order.events import (
    HandoffCodeResent,
    JourneyStarted,
    OrderCancelled,
    OrderClaimed,
    OrderDelivered,
    OrderPlaced,
    OrderStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PLACED = "placed"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    PROCESSING = "processing"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    OrderStatus.PLACED: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.DISPATCHED, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.PROCESSING, OrderStatus.DISPATCHED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.DISPATCHED, OrderStatus.CANCELLED},
    OrderStatus.DISPATCHED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # terminal
    OrderStatus.CANCELLED: set(),  # terminal
}

# Statuses in which a pilot may scan and claim the order
READY_STATUSES = (
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.PROCESSING,
)

TERMINAL_STATUSES = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


def can_transition(current: str, target: str) -> bool:
    return OrderStatus(target) in _VALID_TRANSITIONS[OrderStatus(current)]


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@dispatch.value_object(part_of="Order")
class GeoPoint:
    latitude = Float(required=True, min_value=-90.0, max_value=90.0)
    longitude = Float(required=True, min_value=-180.0, max_value=180.0)


@dispatch.value_object(part_of="Order")
class DriverSnapshot:
    """Pilot details copied at claim time.

    Later edits to the pilot profile never change an order's history.
    """

    pilot_id = Identifier(required=True)
    name = String(required=True, max_length=100)
    phone = String(max_length=20)
    vehicle_number = String(max_length=20)
    vehicle_type = String(max_length=20)


@dispatch.value_object(part_of="Order")
class DeliveryDetails:
    assigned_at = DateTime()
    journey_started_at = DateTime()
    delivered_at = DateTime()
    delivery_notes = Text()
    customer_rating = Integer(min_value=1, max_value=5)


@dispatch.value_object(part_of="Order")
class OrderPricing:
    subtotal = Float(required=True, min_value=0.0)
    distance_km = Float(min_value=0.0)
    zone = String(max_length=20)
    eta_label = String(max_length=20)
    transport_cost = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    estimate_min_hours = Integer()
    estimate_max_hours = Integer()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="Order")
class TimelineEntry:
    """One append-only row of the order's status history."""

    status = String(required=True, max_length=20)
    note = Text()
    actor = String(max_length=100)
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@dispatch.aggregate
class Order:
    customer_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    customer_name = String(max_length=100)
    customer_phone = String(max_length=20)
    pickup_location = ValueObject(GeoPoint, required=True)
    pickup_address = String(max_length=500)
    drop_location = ValueObject(GeoPoint, required=True)
    drop_address = String(max_length=500)
    total_weight_kg = Float(default=0.0, min_value=0.0)
    status = String(
        max_length=20,
        choices=OrderStatus,
        default=OrderStatus.PLACED.value,
    )
    timeline = HasMany(TimelineEntry)
    assigned_pilot_id = Identifier()
    driver = ValueObject(DriverSnapshot)
    delivery = ValueObject(DeliveryDetails)
    pricing = ValueObject(OrderPricing)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def assignment_only_while_dispatched(self):
        if self.assigned_pilot_id and self.status != OrderStatus.DISPATCHED.value:
            raise ValidationError({"assigned_pilot_id": ["Only a dispatched order can be assigned to a pilot"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id: str,
        supplier_id: str,
        pickup_location: GeoPoint,
        drop_location: GeoPoint,
        pricing: OrderPricing,
        customer_name: str | None = None,
        customer_phone: str | None = None,
        pickup_address: str | None = None,
        drop_address: str | None = None,
        total_weight_kg: float = 0.0,
    ):
        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            supplier_id=supplier_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            pickup_location=pickup_location,
            pickup_address=pickup_address,
            drop_location=drop_location,
            drop_address=drop_address,
            total_weight_kg=total_weight_kg,
            status=OrderStatus.PLACED.value,
            pricing=pricing,
            created_at=now,
            updated_at=now,
        )
        order.add_timeline(
            TimelineEntry(
                status=OrderStatus.PLACED.value,
                note="Order placed",
                actor="customer",
                recorded_at=now,
            )
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=customer_id,
                supplier_id=supplier_id,
                subtotal=pricing.subtotal,
                transport_cost=pricing.transport_cost,
                total=pricing.total,
                distance_km=pricing.distance_km or 0.0,
                zone=pricing.zone or "",
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    @property
    def is_ready_for_pickup(self) -> bool:
        return OrderStatus(self.status) in READY_STATUSES

    @property
    def status_history(self) -> list:
        """Timeline entries, oldest first."""
        return sorted(self.timeline, key=lambda entry: entry.recorded_at)

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(current.value, target_status.value)

    def _record(self, status: str, note: str | None, actor: str | None, at: datetime) -> None:
        self.add_timeline(TimelineEntry(status=status, note=note, actor=actor, recorded_at=at))

    def advance(self, target_status, note: str | None = None, actor: str | None = None):
        """Move the order along one edge of the lifecycle.

        Appends a timeline entry stamped with the server clock. An illegal
        edge raises InvalidTransition and leaves the order untouched.
        """
        target = OrderStatus(target_status)
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        previous = self.status
        self.status = target.value
        self.updated_at = now
        self._record(target.value, note, actor, now)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=target.value,
                note=note,
                actor=actor,
                changed_at=now,
            )
        )
        return self

    # -------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------
    def assign_to(self, driver: DriverSnapshot) -> None:
        """Hand the order to a pilot and move it to DISPATCHED."""
        self._assert_can_transition(OrderStatus.DISPATCHED)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.assigned_pilot_id = driver.pilot_id
            self.driver = driver
            self.delivery = DeliveryDetails(assigned_at=now)
            self.advance(
                OrderStatus.DISPATCHED,
                note=f"Order picked up by {driver.name}",
                actor=str(driver.pilot_id),
            )

        self.raise_(
            OrderClaimed(
                order_id=str(self.id),
                pilot_id=str(driver.pilot_id),
                pilot_name=driver.name,
                pilot_phone=driver.phone,
                vehicle_number=driver.vehicle_number,
                vehicle_type=driver.vehicle_type,
                customer_name=self.customer_name,
                customer_phone=self.customer_phone,
                drop_address=self.drop_address,
                transport_cost=self.pricing.transport_cost if self.pricing else 0.0,
                order_total=self.pricing.total if self.pricing else 0.0,
                assigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Journey
    # -------------------------------------------------------------------
    def start_journey(self, pilot_id: str, latitude: float | None = None, longitude: float | None = None) -> None:
        if OrderStatus(self.status) != OrderStatus.DISPATCHED:
            raise InvalidTransition(self.status, "in_transit", "Journey can only start for a dispatched order")
        if str(self.assigned_pilot_id) != str(pilot_id):
            raise AgentUnavailable(str(pilot_id), "Only the assigned pilot can start this journey")
        if self.delivery and self.delivery.journey_started_at:
            raise InvalidTransition(self.status, "in_transit", "Journey has already started")

        now = datetime.now(UTC)
        self.delivery = DeliveryDetails(
            assigned_at=self.delivery.assigned_at if self.delivery else None,
            journey_started_at=now,
        )
        self.updated_at = now
        self._record(OrderStatus.DISPATCHED.value, "Journey started", pilot_id, now)
        self.raise_(
            JourneyStarted(
                order_id=str(self.id),
                pilot_id=pilot_id,
                pilot_name=self.driver.name if self.driver else None,
                customer_name=self.customer_name,
                customer_phone=self.customer_phone,
                eta_label=self.pricing.eta_label if self.pricing else None,
                estimate_min_hours=self.pricing.estimate_min_hours if self.pricing else None,
                estimate_max_hours=self.pricing.estimate_max_hours if self.pricing else None,
                latitude=latitude,
                longitude=longitude,
                started_at=now,
            )
        )

    def request_code_resend(self, requested_by: str | None = None) -> None:
        """Ask for the handoff code to be sent to the customer again.

        Only a dispatched order has a code worth sending. A pilot may ask
        only for the order they carry; without a pilot the customer asked.
        """
        if OrderStatus(self.status) != OrderStatus.DISPATCHED:
            raise InvalidTransition(self.status, self.status, "Handoff codes are only resent for dispatched orders")
        if requested_by and str(self.assigned_pilot_id) != str(requested_by):
            raise AgentUnavailable(str(requested_by), "Only the assigned pilot can request the handoff code")

        now = datetime.now(UTC)
        actor = str(requested_by) if requested_by else "customer"
        self.updated_at = now
        self._record(OrderStatus.DISPATCHED.value, "Handoff code resent", actor, now)
        self.raise_(
            HandoffCodeResent(
                order_id=str(self.id),
                customer_phone=self.customer_phone,
                requested_by=actor,
                resent_at=now,
            )
        )

    def complete_delivery(self, notes: str | None = None, rating: int | None = None) -> str:
        """Close the order after a verified handoff.

        Returns the id of the pilot that delivered it.
        """
        self._assert_can_transition(OrderStatus.DELIVERED)

        now = datetime.now(UTC)
        pilot_id = str(self.assigned_pilot_id)
        details = self.delivery or DeliveryDetails()

        with atomic_change(self):
            self.assigned_pilot_id = None
            self.delivery = DeliveryDetails(
                assigned_at=details.assigned_at,
                journey_started_at=details.journey_started_at,
                delivered_at=now,
                delivery_notes=notes,
                customer_rating=rating,
            )
            self.advance(OrderStatus.DELIVERED, note=notes or "Delivered to customer", actor=pilot_id)

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                pilot_id=pilot_id,
                customer_name=self.customer_name,
                customer_phone=self.customer_phone,
                delivery_notes=notes,
                customer_rating=rating,
                transport_cost=self.pricing.transport_cost if self.pricing else 0.0,
                order_total=self.pricing.total if self.pricing else 0.0,
                delivered_at=now,
            )
        )
        return pilot_id

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str, actor: str | None = None) -> str | None:
        """Cancel a non-terminal order, releasing any assignment.

        Returns the id of the pilot that held the order, if any.
        """
        self._assert_can_transition(OrderStatus.CANCELLED)

        now = datetime.now(UTC)
        previous = self.status
        pilot_id = str(self.assigned_pilot_id) if self.assigned_pilot_id else None

        with atomic_change(self):
            self.assigned_pilot_id = None
            self.cancellation_reason = reason
            self.advance(OrderStatus.CANCELLED, note=reason, actor=actor)

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                pilot_id=pilot_id,
                previous_status=previous,
                reason=reason,
                actor=actor,
                cancelled_at=now,
            )
        )
        return pilot_id


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------
@dispatch.repository(part_of=Order)
class OrderRepository:
    """Lookups and the conditional writes of the claim protocol.

    Each conditional write is a single compare-and-swap in the store: the
    filter is the precondition and the number of updated rows tells
    whether it held.
    """

    def load(self, order_id: str) -> Order:
        try:
            return self.get(order_id)
        except ObjectNotFoundError:
            raise NotFound("Order", order_id) from None

    def claim_if_unassigned(self, order_id: str, pilot_id: str) -> bool:
        updated = self._dao._update_all(
            Q(id=order_id)
            & Q(assigned_pilot_id__isnull=True)
            & Q(status__in=[s.value for s in READY_STATUSES]),
            assigned_pilot_id=pilot_id,
            status=OrderStatus.DISPATCHED.value,
        )
        return updated == 1

    def revert_claim(self, order_id: str, pilot_id: str, previous_status: str) -> bool:
        updated = self._dao._update_all(
            Q(id=order_id, assigned_pilot_id=pilot_id, status=OrderStatus.DISPATCHED.value),
            assigned_pilot_id=None,
            status=previous_status,
        )
        return updated == 1

    def claim_state(self, order_id: str) -> tuple[str, str | None]:
        """Status and assignee as stored, bypassing any loaded copy."""
        record = self._dao.get(order_id)
        return record.status, record.assigned_pilot_id

    def mark_delivered_if_dispatched(self, order_id: str) -> bool:
        updated = self._dao._update_all(
            Q(id=order_id, status=OrderStatus.DISPATCHED.value),
            assigned_pilot_id=None,
            status=OrderStatus.DELIVERED.value,
        )
        return updated == 1

    def mark_cancelled_if_status(self, order_id: str, expected_status: str) -> bool:
        updated = self._dao._update_all(
            Q(id=order_id, status=expected_status),
            assigned_pilot_id=None,
            status=OrderStatus.CANCELLED.value,
        )
        return updated == 1

    def unassigned_ready_orders(self) -> list[Order]:
        return (
            self._dao.query.filter(
                assigned_pilot_id__isnull=True,
                status__in=[s.value for s in READY_STATUSES],
            )
            .all()
            .items
        )
