"""Order domain events — immutable facts about order lifecycle changes.

Events carry enough of the order (customer contact, driver snapshot,
pricing) for the notification handler and the delivery-history projector
to work without loading the aggregate again.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from dispatch.domain import dispatch


@dispatch.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order and its delivery leg was priced."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    subtotal = Float(required=True)
    transport_cost = Float(required=True)
    total = Float(required=True)
    distance_km = Float(required=True)
    zone = String(required=True)
    placed_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderStatusChanged:
    """The order moved along an edge of the lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    note = Text()
    actor = String()
    changed_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderClaimed:
    """A pilot won the claim for an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    pilot_id = Identifier(required=True)
    pilot_name = String(required=True)
    pilot_phone = String()
    vehicle_number = String()
    vehicle_type = String()
    customer_name = String()
    customer_phone = String()
    drop_address = String()
    transport_cost = Float()
    order_total = Float()
    assigned_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class JourneyStarted:
    """The assigned pilot picked up the parcel and is on the way."""

    __version__ = 1

    order_id = Identifier(required=True)
    pilot_id = Identifier(required=True)
    pilot_name = String()
    customer_name = String()
    customer_phone = String()
    eta_label = String()
    estimate_min_hours = Integer()
    estimate_max_hours = Integer()
    latitude = Float()
    longitude = Float()
    started_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderDelivered:
    """The customer confirmed the handoff with their code."""

    __version__ = 1

    order_id = Identifier(required=True)
    pilot_id = Identifier(required=True)
    customer_name = String()
    customer_phone = String()
    delivery_notes = Text()
    customer_rating = Integer()
    transport_cost = Float()
    order_total = Float()
    delivered_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before delivery."""

    __version__ = 1

    order_id = Identifier(required=True)
    pilot_id = Identifier()  # pilot that held the order, if any
    previous_status = String(required=True)
    reason = String(required=True)
    actor = String()
    cancelled_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class HandoffCodeResent:
    """The handoff code of a dispatched order was sent to the customer again."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_phone = String()
    requested_by = String()
    resent_at = DateTime(required=True)
