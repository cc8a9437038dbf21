"""Pilot delivery history — one row per order a pilot carried.

Rows are opened when a pilot claims an order and closed on delivery or
cancellation. The history endpoint only lists closed rows.
"""

import math

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.events import OrderCancelled, OrderClaimed, OrderDelivered
from dispatch.order.order import Order

CLOSED_STATUSES = ("delivered", "cancelled")

MAX_PAGE_SIZE = 50


@dispatch.projection
class PilotDeliveryHistory:
    order_id = Identifier(identifier=True, required=True)
    pilot_id = Identifier(required=True)
    customer_name = String(max_length=100)
    drop_address = String(max_length=500)
    status = String(required=True, max_length=20)
    transport_cost = Float(default=0.0)
    order_total = Float(default=0.0)
    assigned_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    closed_at = DateTime()
    delivery_notes = Text()
    customer_rating = Integer()


@dispatch.projector(projector_for=PilotDeliveryHistory, aggregates=[Order])
class PilotDeliveryHistoryProjector:
    @on(OrderClaimed)
    def on_order_claimed(self, event):
        current_domain.repository_for(PilotDeliveryHistory).add(
            PilotDeliveryHistory(
                order_id=event.order_id,
                pilot_id=event.pilot_id,
                customer_name=event.customer_name,
                drop_address=event.drop_address,
                status="dispatched",
                transport_cost=event.transport_cost or 0.0,
                order_total=event.order_total or 0.0,
                assigned_at=event.assigned_at,
            )
        )

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        repo = current_domain.repository_for(PilotDeliveryHistory)
        try:
            row = repo.get(event.order_id)
        except ObjectNotFoundError:
            return
        row.status = "delivered"
        row.delivered_at = event.delivered_at
        row.closed_at = event.delivered_at
        row.delivery_notes = event.delivery_notes
        row.customer_rating = event.customer_rating
        repo.add(row)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        # Orders cancelled before any pilot claimed them have no history row
        if not event.pilot_id:
            return
        repo = current_domain.repository_for(PilotDeliveryHistory)
        try:
            row = repo.get(event.order_id)
        except ObjectNotFoundError:
            return
        row.status = "cancelled"
        row.cancelled_at = event.cancelled_at
        row.closed_at = event.cancelled_at
        repo.add(row)


def history_page(pilot_id: str, page: int = 1, limit: int = 10, status: str | None = None) -> dict:
    """Closed deliveries for a pilot, newest first, with pagination info."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    statuses = [status] if status in CLOSED_STATUSES else list(CLOSED_STATUSES)

    query = (
        current_domain.repository_for(PilotDeliveryHistory)
        ._dao.query.filter(pilot_id=pilot_id, status__in=statuses)
        .order_by("-closed_at")
    )
    total = query.all().total
    rows = query.offset((page - 1) * limit).limit(limit).all().items
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "deliveries": [row.to_dict() for row in rows],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_items": total,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def delivery_totals(pilot_id: str) -> dict:
    rows = (
        current_domain.repository_for(PilotDeliveryHistory)
        ._dao.query.filter(pilot_id=pilot_id, status="delivered")
        .all()
        .items
    )
    ratings = [r.customer_rating for r in rows if r.customer_rating]
    return {
        "delivered_count": len(rows),
        "total_earnings": round(sum(r.transport_cost or 0.0 for r in rows)),
        "rated_deliveries": len(ratings),
    }
