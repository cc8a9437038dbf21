"""Dispatch bounded context — Order Fulfillment and Delivery Dispatch.

Moves a paid order through its lifecycle, binds it to exactly one delivery
pilot, verifies the doorstep handoff with a one-time code and prices the
delivery leg from coordinates. Uses CQRS: orders and pilots are plain
aggregates, the pilot's delivery history is a projection.
"""

from protean.domain import Domain

from dispatch.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
dispatch = Domain(name="dispatch")
