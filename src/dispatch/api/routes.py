"""FastAPI routes for the Dispatch domain."""

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from dispatch.api.schemas import (
    AdvanceStatusRequest,
    CancelOrderRequest,
    ClaimOrderRequest,
    ClaimResponse,
    CompleteDeliveryRequest,
    DeactivatePilotRequest,
    OrderIdResponse,
    PilotIdResponse,
    PlaceOrderRequest,
    QuoteRequest,
    QuoteResponse,
    RegisterPilotRequest,
    ReportLocationRequest,
    ResendCodeRequest,
    ResubmitPilotRequest,
    ScanOrderRequest,
    StartJourneyRequest,
    StatusResponse,
    ZoneResponse,
)
from dispatch.assignment.claim import process_claim
from dispatch.assignment.discovery import DEFAULT_RADIUS_KM, find_nearby_orders
from dispatch.assignment.scan import ScanOrder
from dispatch.handoff.resend import ResendHandoffCode
from dispatch.journey.journey import CompleteDelivery, StartJourney
from dispatch.order.cancellation import CancelOrder
from dispatch.order.lifecycle import AdvanceOrderStatus
from dispatch.order.order import Order
from dispatch.order.placement import ConfirmOrder, PlaceOrder
from dispatch.pilot.location import ReportLocation
from dispatch.pilot.pilot import Pilot
from dispatch.pilot.registration import (
    ApprovePilot,
    DeactivatePilot,
    RegisterPilot,
    ResubmitPilotProfile,
)
from dispatch.pricing import ZONES, quote_delivery, validate_coordinates
from dispatch.projections.delivery_history import MAX_PAGE_SIZE, delivery_totals, history_page

# ---------------------------------------------------------------------------
# Dispatch Router (pilot app)
# ---------------------------------------------------------------------------
dispatch_router = APIRouter(prefix="/dispatch", tags=["dispatch"])


@dispatch_router.post("/scan")
async def scan_order(body: ScanOrderRequest) -> dict:
    """Scan an order label; returns the order summary for the pilot."""
    command = ScanOrder(order_id=body.order_id, pilot_id=body.pilot_id)
    summary = current_domain.process(command, asynchronous=False)
    return {"order": summary}


@dispatch_router.post("/claim", response_model=ClaimResponse)
async def claim_order(body: ClaimOrderRequest) -> ClaimResponse:
    """Claim a ready order for the requesting pilot."""
    result = process_claim(body.order_id, body.pilot_id)
    return ClaimResponse(**result)


@dispatch_router.post("/handoff-code/resend")
async def resend_handoff_code(body: ResendCodeRequest) -> dict:
    """Send the handoff code of a dispatched order to the customer again."""
    command = ResendHandoffCode(order_id=body.order_id, pilot_id=body.pilot_id)
    return current_domain.process(command, asynchronous=False)


@dispatch_router.post("/journey/start")
async def start_journey(body: StartJourneyRequest) -> dict:
    """Record that the assigned pilot is on the way."""
    command = StartJourney(
        order_id=body.order_id,
        pilot_id=body.pilot_id,
        latitude=body.current_location.latitude,
        longitude=body.current_location.longitude,
    )
    return current_domain.process(command, asynchronous=False)


@dispatch_router.post("/complete")
async def complete_delivery(body: CompleteDeliveryRequest) -> dict:
    """Complete the delivery with the customer's handoff code."""
    command = CompleteDelivery(
        order_id=body.order_id,
        code=body.code,
        notes=body.notes,
        rating=body.rating,
    )
    return current_domain.process(command, asynchronous=False)


@dispatch_router.post("/location", response_model=StatusResponse)
async def report_location(body: ReportLocationRequest) -> StatusResponse:
    """Overwrite the pilot's current location."""
    command = ReportLocation(
        pilot_id=body.pilot_id,
        latitude=body.coordinates.latitude,
        longitude=body.coordinates.longitude,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="location_updated")


@dispatch_router.get("/agent/{pilot_id}/history")
async def delivery_history(
    pilot_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    status: str | None = Query(None, pattern="^(delivered|cancelled)$"),
) -> dict:
    """Delivered and cancelled orders for a pilot, newest first."""
    current_domain.repository_for(Pilot).load(pilot_id)
    return history_page(pilot_id, page=page, limit=limit, status=status)


@dispatch_router.get("/agent/{pilot_id}/stats")
async def pilot_stats(pilot_id: str) -> dict:
    """Profile counters plus delivered count and earnings."""
    pilot = current_domain.repository_for(Pilot).load(pilot_id)
    return {
        "pilot_id": str(pilot.id),
        "name": pilot.name,
        "status": pilot.status,
        "is_available": pilot.is_available,
        "current_order_id": pilot.current_order_id,
        "total_deliveries": pilot.total_deliveries,
        "rating_average": pilot.rating_average,
        "rating_count": pilot.rating_count,
        **delivery_totals(str(pilot.id)),
    }


@dispatch_router.get("/zones", response_model=list[ZoneResponse])
async def list_zones() -> list[ZoneResponse]:
    return [ZoneResponse(**zone.to_dict()) for zone in ZONES]


@dispatch_router.post("/quote", response_model=QuoteResponse)
async def quote(body: QuoteRequest) -> QuoteResponse:
    """Price a delivery leg without placing an order."""
    origin = validate_coordinates(body.origin.latitude, body.origin.longitude)
    destination = validate_coordinates(body.destination.latitude, body.destination.longitude)
    result = quote_delivery(origin, destination, body.total_weight_kg, body.area)
    return QuoteResponse(**result.to_dict())


# ---------------------------------------------------------------------------
# Order Router (customer, supplier and admin side)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/dispatch/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(
        customer_id=body.customer_id,
        supplier_id=body.supplier_id,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        pickup_latitude=body.pickup.latitude,
        pickup_longitude=body.pickup.longitude,
        pickup_address=body.pickup_address,
        drop_latitude=body.drop.latitude,
        drop_longitude=body.drop.longitude,
        drop_address=body.drop_address,
        subtotal=body.subtotal,
        total_weight_kg=body.total_weight_kg,
        area=body.area,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=order_id)


@order_router.get("/nearby")
async def nearby_orders(
    latitude: float,
    longitude: float,
    radius_km: float = Query(DEFAULT_RADIUS_KM, gt=0),
) -> dict:
    """Unassigned ready orders near the given point, closest first."""
    orders = find_nearby_orders(latitude, longitude, radius_km)
    return {"orders": orders, "count": len(orders)}


@order_router.get("/{order_id}")
async def get_order(order_id: str) -> dict:
    order = current_domain.repository_for(Order).load(order_id)
    return order.to_dict()


@order_router.put("/{order_id}/confirm", response_model=StatusResponse)
async def confirm_order(order_id: str) -> StatusResponse:
    current_domain.process(ConfirmOrder(order_id=order_id, actor="admin"), asynchronous=False)
    return StatusResponse(status="confirmed")


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def advance_order_status(order_id: str, body: AdvanceStatusRequest) -> StatusResponse:
    """Move an order to preparing or processing."""
    command = AdvanceOrderStatus(
        order_id=order_id,
        target_status=body.target_status,
        note=body.note,
        actor=body.actor,
    )
    status = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=status)


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=body.reason, actor=body.actor)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


# ---------------------------------------------------------------------------
# Pilot Router (onboarding)
# ---------------------------------------------------------------------------
pilot_router = APIRouter(prefix="/dispatch/pilots", tags=["pilots"])


@pilot_router.post("", status_code=201, response_model=PilotIdResponse)
async def register_pilot(body: RegisterPilotRequest) -> PilotIdResponse:
    command = RegisterPilot(**body.model_dump())
    pilot_id = current_domain.process(command, asynchronous=False)
    return PilotIdResponse(pilot_id=pilot_id)


@pilot_router.get("/{pilot_id}")
async def get_pilot(pilot_id: str) -> dict:
    pilot = current_domain.repository_for(Pilot).load(pilot_id)
    return pilot.to_dict()


@pilot_router.put("/{pilot_id}/approve", response_model=StatusResponse)
async def approve_pilot(pilot_id: str) -> StatusResponse:
    current_domain.process(ApprovePilot(pilot_id=pilot_id), asynchronous=False)
    return StatusResponse(status="approved")


@pilot_router.put("/{pilot_id}/resubmit", response_model=StatusResponse)
async def resubmit_pilot_profile(pilot_id: str, body: ResubmitPilotRequest) -> StatusResponse:
    command = ResubmitPilotProfile(pilot_id=pilot_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="pending_approval")


@pilot_router.put("/{pilot_id}/deactivate", response_model=StatusResponse)
async def deactivate_pilot(pilot_id: str, body: DeactivatePilotRequest) -> StatusResponse:
    current_domain.process(DeactivatePilot(pilot_id=pilot_id, reason=body.reason), asynchronous=False)
    return StatusResponse(status="deactivated")
