"""Pilot domain events."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Pilot")
class PilotRegistered:
    """A delivery pilot submitted their profile for approval."""

    __version__ = 1

    pilot_id = Identifier(required=True)
    name = String(required=True)
    phone = String(required=True)
    vehicle_number = String(required=True)
    vehicle_type = String(required=True)
    registered_at = DateTime(required=True)


@dispatch.event(part_of="Pilot")
class PilotApproved:
    __version__ = 1

    pilot_id = Identifier(required=True)
    approved_at = DateTime(required=True)


@dispatch.event(part_of="Pilot")
class PilotDeactivated:
    __version__ = 1

    pilot_id = Identifier(required=True)
    reason = String()
    deactivated_at = DateTime(required=True)


@dispatch.event(part_of="Pilot")
class PilotProfileResubmitted:
    """A pilot corrected their profile; it needs approval again."""

    __version__ = 1

    pilot_id = Identifier(required=True)
    resubmitted_at = DateTime(required=True)


@dispatch.event(part_of="Pilot")
class PilotReleased:
    """A pilot finished with an order and is available again."""

    __version__ = 1

    pilot_id = Identifier(required=True)
    order_id = Identifier(required=True)
    total_deliveries = Integer(required=True)
    rating_average = Float()
    released_at = DateTime(required=True)
