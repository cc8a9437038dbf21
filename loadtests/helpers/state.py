"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state. State tracks entity
IDs returned by creation endpoints so follow-up operations can reference
them.
"""

from dataclasses import dataclass


@dataclass
class PilotState:
    """Tracks a single simulated pilot."""

    pilot_id: str | None = None
    current_order_id: str | None = None
    deliveries_started: int = 0


@dataclass
class DeliveryState:
    """Tracks one order from placement to pickup."""

    order_id: str | None = None
    pilot_id: str | None = None
    current_status: str = "placed"
