"""Distance tiers, transport pricing and delivery estimates."""

import math
from dataclasses import dataclass, field
from enum import Enum

from dispatch.pricing.geo import distance_km, estimate_driving_minutes

# Every full block of this many kilograms adds WEIGHT_SURCHARGE_RATE
WEIGHT_BLOCK_KG = 100
WEIGHT_SURCHARGE_RATE = 0.2

CONSOLIDATION_DISCOUNT = 0.15
CONSOLIDATION_MIN_SAVING = 50


class DeliveryArea(Enum):
    URBAN = "urban"
    RURAL = "rural"


@dataclass(frozen=True)
class DeliveryZone:
    name: str
    max_km: float  # inclusive upper bound; inf for the last tier
    rate_per_km: float
    minimum_charge: float
    eta_min_hours: int
    eta_max_hours: int
    eta_label: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "max_km": None if math.isinf(self.max_km) else self.max_km,
            "rate_per_km": self.rate_per_km,
            "minimum_charge": self.minimum_charge,
            "eta_min_hours": self.eta_min_hours,
            "eta_max_hours": self.eta_max_hours,
            "eta_label": self.eta_label,
        }


ZONES: tuple[DeliveryZone, ...] = (
    DeliveryZone("0-5km", 5, 50, 100, 2, 4, "2-4 hours"),
    DeliveryZone("5-10km", 10, 75, 200, 4, 8, "4-8 hours"),
    DeliveryZone("10-20km", 20, 100, 350, 8, 24, "8-24 hours"),
    DeliveryZone("20km+", math.inf, 150, 500, 24, 48, "1-2 days"),
)


@dataclass(frozen=True)
class DeliveryQuote:
    distance_km: float
    zone: DeliveryZone
    transport_cost: int
    estimate_min_hours: int
    estimate_max_hours: int
    driving_minutes: int

    def to_dict(self) -> dict:
        return {
            "distance_km": self.distance_km,
            "zone": self.zone.name,
            "eta_label": self.zone.eta_label,
            "transport_cost": self.transport_cost,
            "estimate_min_hours": self.estimate_min_hours,
            "estimate_max_hours": self.estimate_max_hours,
            "driving_minutes": self.driving_minutes,
        }


@dataclass(frozen=True)
class ConsolidatedQuote:
    legs: list[DeliveryQuote] = field(default_factory=list)
    individual_cost: int = 0
    consolidated_cost: int = 0
    savings: int = 0
    recommend_consolidation: bool = False


def delivery_zone(distance: float) -> DeliveryZone:
    """Map a distance to its tier. Boundaries belong to the lower tier."""
    if distance < 0:
        raise ValueError(f"Distance cannot be negative: {distance}")

    for zone in ZONES:
        if distance <= zone.max_km:
            return zone
    return ZONES[-1]


def transport_cost(distance: float, rate_per_km: float, minimum_charge: float) -> float:
    return max(distance * rate_per_km, minimum_charge)


def delivery_estimate(distance: float, area: str = "urban") -> tuple[int, int]:
    """Delivery window in hours as ``(min, max)``.

    Rural drop points need an extra hour on both bounds. An unknown area
    raises ValueError.
    """
    base = 2 if DeliveryArea(area) is DeliveryArea.RURAL else 1

    if distance <= 5:
        return base, base + 2
    if distance <= 10:
        return base + 1, base + 4
    if distance <= 20:
        return base + 2, base + 6
    return base + 4, base + 8


def weight_multiplier(total_weight_kg: float) -> float:
    blocks = math.floor(max(total_weight_kg, 0) / WEIGHT_BLOCK_KG)
    return 1 + blocks * WEIGHT_SURCHARGE_RATE


def quote_delivery(origin, destination, total_weight_kg: float = 0, area: str = "urban") -> DeliveryQuote:
    """Price and estimate a single delivery leg."""
    distance = distance_km(origin, destination)
    zone = delivery_zone(distance)

    cost = transport_cost(distance, zone.rate_per_km, zone.minimum_charge)
    cost *= weight_multiplier(total_weight_kg)

    min_hours, max_hours = delivery_estimate(distance, area)

    return DeliveryQuote(
        distance_km=round(distance, 2),
        zone=zone,
        transport_cost=round(cost),
        estimate_min_hours=min_hours,
        estimate_max_hours=max_hours,
        driving_minutes=estimate_driving_minutes(distance),
    )


def consolidate_quotes(quotes) -> ConsolidatedQuote:
    """Combine several legs into one shipment with the consolidation discount.

    Legs are ordered closest first.
    """
    legs = sorted(quotes, key=lambda q: q.distance_km)
    individual = sum(q.transport_cost for q in legs)
    consolidated = round(individual * (1 - CONSOLIDATION_DISCOUNT))
    savings = individual - consolidated

    return ConsolidatedQuote(
        legs=legs,
        individual_cost=individual,
        consolidated_cost=consolidated,
        savings=savings,
        recommend_consolidation=len(legs) > 1 and savings > CONSOLIDATION_MIN_SAVING,
    )
