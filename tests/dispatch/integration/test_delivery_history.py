"""Integration tests for the pilot delivery history projection and endpoints."""

from dispatch.assignment.claim import ClaimOrder
from dispatch.journey.journey import CompleteDelivery
from dispatch.order.cancellation import CancelOrder
from dispatch.projections.delivery_history import PilotDeliveryHistory, delivery_totals, history_page
from protean import current_domain


def _claim(order_id, pilot_id):
    current_domain.process(ClaimOrder(order_id=order_id, pilot_id=pilot_id), asynchronous=False)


def _deliver(order_id, code, rating=None):
    current_domain.process(CompleteDelivery(order_id=order_id, code=code, rating=rating), asynchronous=False)


def _cancel(order_id):
    current_domain.process(CancelOrder(order_id=order_id, reason="Customer unreachable"), asynchronous=False)


class TestProjection:
    def test_claim_opens_row(self, claimed_order):
        order_id, pilot_id = claimed_order
        row = current_domain.repository_for(PilotDeliveryHistory).get(order_id)
        assert row.pilot_id == pilot_id
        assert row.status == "dispatched"
        assert row.customer_name == "Asha Patel"
        assert row.transport_cost > 0

    def test_delivery_closes_row(self, claimed_order, handoff_code):
        order_id, _ = claimed_order
        _deliver(order_id, handoff_code(order_id), rating=5)

        row = current_domain.repository_for(PilotDeliveryHistory).get(order_id)
        assert row.status == "delivered"
        assert row.customer_rating == 5
        assert row.closed_at is not None

    def test_cancellation_closes_row(self, claimed_order):
        order_id, _ = claimed_order
        _cancel(order_id)

        row = current_domain.repository_for(PilotDeliveryHistory).get(order_id)
        assert row.status == "cancelled"
        assert row.cancelled_at is not None

    def test_unclaimed_cancellation_leaves_no_row(self, place_order):
        order_id = place_order()
        _cancel(order_id)
        assert current_domain.repository_for(PilotDeliveryHistory)._dao.query.filter(order_id=order_id).all().total == 0


class TestHistoryPage:
    def _deliver_many(self, place_order, register_pilot, handoff_code, count):
        pilot_id = register_pilot()
        for _ in range(count):
            order_id = place_order()
            _claim(order_id, pilot_id)
            _deliver(order_id, handoff_code(order_id), rating=4)
        return pilot_id

    def test_open_rows_are_not_listed(self, claimed_order):
        _, pilot_id = claimed_order
        page = history_page(pilot_id)
        assert page["deliveries"] == []
        assert page["pagination"]["total_items"] == 0

    def test_pagination(self, place_order, register_pilot, handoff_code):
        pilot_id = self._deliver_many(place_order, register_pilot, handoff_code, 3)

        first = history_page(pilot_id, page=1, limit=2)
        assert len(first["deliveries"]) == 2
        assert first["pagination"] == {
            "current_page": 1,
            "total_pages": 2,
            "total_items": 3,
            "has_next": True,
            "has_prev": False,
        }

        second = history_page(pilot_id, page=2, limit=2)
        assert len(second["deliveries"]) == 1
        assert second["pagination"]["has_next"] is False
        assert second["pagination"]["has_prev"] is True

    def test_newest_first(self, place_order, register_pilot, handoff_code):
        pilot_id = self._deliver_many(place_order, register_pilot, handoff_code, 3)
        closed = [row["closed_at"] for row in history_page(pilot_id)["deliveries"]]
        assert closed == sorted(closed, reverse=True)

    def test_status_filter(self, place_order, register_pilot, handoff_code):
        pilot_id = self._deliver_many(place_order, register_pilot, handoff_code, 1)
        cancelled = place_order()
        _claim(cancelled, pilot_id)
        _cancel(cancelled)

        assert history_page(pilot_id)["pagination"]["total_items"] == 2
        only_cancelled = history_page(pilot_id, status="cancelled")["deliveries"]
        assert [row["order_id"] for row in only_cancelled] == [cancelled]

    def test_totals(self, place_order, register_pilot, handoff_code):
        pilot_id = self._deliver_many(place_order, register_pilot, handoff_code, 2)
        rows = history_page(pilot_id)["deliveries"]

        totals = delivery_totals(pilot_id)
        assert totals["delivered_count"] == 2
        assert totals["rated_deliveries"] == 2
        assert totals["total_earnings"] == round(sum(r["transport_cost"] for r in rows))


class TestHistoryEndpoints:
    def test_history(self, client, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        _deliver(order_id, handoff_code(order_id))

        response = client.get(f"/dispatch/agent/{pilot_id}/history", params={"limit": 5})
        assert response.status_code == 200
        data = response.json()
        assert data["deliveries"][0]["order_id"] == order_id
        assert data["pagination"]["total_items"] == 1

    def test_limit_above_cap_is_422(self, client, claimed_order):
        _, pilot_id = claimed_order
        response = client.get(f"/dispatch/agent/{pilot_id}/history", params={"limit": 51})
        assert response.status_code == 422

    def test_unknown_status_filter_is_422(self, client, claimed_order):
        _, pilot_id = claimed_order
        response = client.get(f"/dispatch/agent/{pilot_id}/history", params={"status": "dispatched"})
        assert response.status_code == 422

    def test_unknown_pilot_is_404(self, client):
        assert client.get("/dispatch/agent/missing-pilot/history").status_code == 404

    def test_stats(self, client, claimed_order, handoff_code):
        order_id, pilot_id = claimed_order
        _deliver(order_id, handoff_code(order_id), rating=5)

        response = client.get(f"/dispatch/agent/{pilot_id}/stats")
        assert response.status_code == 200
        data = response.json()
        assert data["total_deliveries"] == 1
        assert data["rating_average"] == 5.0
        assert data["delivered_count"] == 1
        assert data["is_available"] is True
