"""Distance pricing: pure functions, no state."""

from dispatch.pricing.geo import (
    EARTH_RADIUS_KM,
    distance_km,
    estimate_driving_minutes,
    validate_coordinates,
)
from dispatch.pricing.zones import (
    ZONES,
    ConsolidatedQuote,
    DeliveryArea,
    DeliveryQuote,
    DeliveryZone,
    consolidate_quotes,
    delivery_estimate,
    delivery_zone,
    quote_delivery,
    transport_cost,
    weight_multiplier,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "ZONES",
    "ConsolidatedQuote",
    "DeliveryArea",
    "DeliveryQuote",
    "DeliveryZone",
    "consolidate_quotes",
    "delivery_estimate",
    "delivery_zone",
    "distance_km",
    "estimate_driving_minutes",
    "quote_delivery",
    "transport_cost",
    "validate_coordinates",
    "weight_multiplier",
]
