"""Nearby order discovery for idle pilots."""

from protean.utils.globals import current_domain

from dispatch.assignment.scan import order_summary
from dispatch.order.order import Order
from dispatch.pricing import distance_km, validate_coordinates

DEFAULT_RADIUS_KM = 25.0


def find_nearby_orders(latitude: float, longitude: float, radius_km: float = DEFAULT_RADIUS_KM) -> list[dict]:
    """Unassigned ready orders whose pickup lies within ``radius_km``, closest first."""
    here = validate_coordinates(latitude, longitude)

    nearby = []
    for order in current_domain.repository_for(Order).unassigned_ready_orders():
        distance = distance_km(here, order.pickup_location)
        if distance <= radius_km:
            summary = order_summary(order)
            summary["pickup_distance_km"] = round(distance, 2)
            nearby.append(summary)

    nearby.sort(key=lambda s: s["pickup_distance_km"])
    return nearby
