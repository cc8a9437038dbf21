"""Pydantic API schemas for the Dispatch domain.

These are the external API contracts — separate from domain commands.
The API layer translates between these schemas and domain commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class Coordinates(BaseModel):
    # Range checks happen in the domain so they surface as INVALID_COORDINATES
    latitude: float
    longitude: float


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_id: str
    supplier_id: str
    customer_name: str | None = Field(None, max_length=100)
    customer_phone: str | None = Field(None, max_length=20)
    pickup: Coordinates
    pickup_address: str | None = Field(None, max_length=500)
    drop: Coordinates
    drop_address: str | None = Field(None, max_length=500)
    subtotal: float = Field(..., ge=0)
    total_weight_kg: float = Field(0.0, ge=0)
    area: str = Field("urban", pattern=r"^(urban|rural)$")


class AdvanceStatusRequest(BaseModel):
    target_status: str
    note: str | None = None
    actor: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str = Field(..., max_length=500)
    actor: str | None = None


class ScanOrderRequest(BaseModel):
    order_id: str
    pilot_id: str | None = None


class ResendCodeRequest(BaseModel):
    order_id: str
    pilot_id: str | None = None


class ClaimOrderRequest(BaseModel):
    order_id: str
    pilot_id: str


class StartJourneyRequest(BaseModel):
    order_id: str
    pilot_id: str
    current_location: Coordinates


class CompleteDeliveryRequest(BaseModel):
    order_id: str
    code: str = Field(..., max_length=10)
    notes: str | None = None
    rating: int | None = Field(None, ge=1, le=5)


class ReportLocationRequest(BaseModel):
    pilot_id: str
    coordinates: Coordinates


class QuoteRequest(BaseModel):
    origin: Coordinates
    destination: Coordinates
    total_weight_kg: float = Field(0.0, ge=0)
    area: str = Field("urban", pattern=r"^(urban|rural)$")


class RegisterPilotRequest(BaseModel):
    name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=20)
    email: str | None = Field(None, max_length=254)
    license_number: str = Field(..., max_length=30)
    vehicle_number: str = Field(..., max_length=20)
    vehicle_type: str
    capacity_tonnes: float


class ResubmitPilotRequest(BaseModel):
    name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=20)
    email: str | None = Field(None, max_length=254)
    license_number: str | None = Field(None, max_length=30)
    vehicle_number: str | None = Field(None, max_length=20)
    vehicle_type: str | None = None
    capacity_tonnes: float | None = None


class DeactivatePilotRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class PilotIdResponse(BaseModel):
    pilot_id: str


class StatusResponse(BaseModel):
    status: str


class DriverResponse(BaseModel):
    pilot_id: str
    name: str
    phone: str | None = None
    vehicle_number: str | None = None
    vehicle_type: str | None = None


class ClaimResponse(BaseModel):
    order_id: str
    status: str
    pilot_id: str
    driver: DriverResponse


class QuoteResponse(BaseModel):
    distance_km: float
    zone: str
    eta_label: str
    transport_cost: int
    estimate_min_hours: int
    estimate_max_hours: int
    driving_minutes: int


class ZoneResponse(BaseModel):
    name: str
    max_km: float | None
    rate_per_km: float
    minimum_charge: float
    eta_min_hours: int
    eta_max_hours: int
    eta_label: str
