"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules
and match the exact field names expected by the API's Pydantic request
schemas. Coordinates are scattered around a single metro area so most
orders land in the nearer pricing zones.
"""

import random
import uuid

from faker import Faker

fake = Faker("en_IN")

# Mumbai city centre
CITY_CENTRE = (19.0760, 72.8777)

VEHICLE_TYPES = ["truck", "mini_truck", "pickup", "tractor", "trailer"]


def point_near(centre: tuple[float, float] = CITY_CENTRE, spread_deg: float = 0.15) -> dict:
    """Random point within roughly ``spread_deg`` degrees of ``centre``."""
    return {
        "latitude": round(centre[0] + random.uniform(-spread_deg, spread_deg), 6),
        "longitude": round(centre[1] + random.uniform(-spread_deg, spread_deg), 6),
    }


def valid_phone() -> str:
    return f"+91{random.randint(7000000000, 9999999999)}"


def vehicle_number() -> str:
    letters = "".join(random.choices("ABCDEFGHJKLMNPRSTUVWXYZ", k=2))
    return f"MH{random.randint(1, 50):02d}{letters}{random.randint(1000, 9999)}"


def order_data() -> dict:
    """PlaceOrderRequest payload."""
    return {
        "customer_id": f"cust-{uuid.uuid4().hex[:8]}",
        "supplier_id": f"sup-{random.randint(1, 20):03d}",
        "customer_name": fake.name()[:100],
        "customer_phone": valid_phone(),
        "pickup": point_near(),
        "pickup_address": fake.street_address()[:500],
        "drop": point_near(),
        "drop_address": fake.street_address()[:500],
        "subtotal": round(random.uniform(500, 50_000), 2),
        "total_weight_kg": round(random.uniform(5, 600), 1),
        "area": random.choice(["urban", "urban", "urban", "rural"]),
    }


def pilot_data() -> dict:
    """RegisterPilotRequest payload."""
    return {
        "name": fake.name()[:100],
        "phone": valid_phone(),
        "email": fake.email(),
        "license_number": f"MH{random.randint(10, 99)}{random.randint(2000, 2024)}{random.randint(1000000, 9999999)}",
        "vehicle_number": vehicle_number(),
        "vehicle_type": random.choice(VEHICLE_TYPES),
        "capacity_tonnes": round(random.uniform(1, 25), 1),
    }


def quote_data() -> dict:
    """QuoteRequest payload."""
    return {
        "origin": point_near(),
        "destination": point_near(spread_deg=random.choice([0.05, 0.2, 1.0])),
        "total_weight_kg": round(random.uniform(0, 800), 1),
    }


def cancel_reason() -> str:
    return random.choice(
        [
            "Customer changed mind",
            "Supplier out of stock",
            "Address not serviceable",
            "Duplicate order",
        ]
    )
