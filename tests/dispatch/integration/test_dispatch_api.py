"""Integration tests for the pilot-facing dispatch endpoints via TestClient."""

from dispatch.order.order import Order
from dispatch.pilot.pilot import Pilot
from protean import current_domain


def _claim(client, order_id, pilot_id):
    return client.post("/dispatch/claim", json={"order_id": order_id, "pilot_id": pilot_id})


class TestScanEndpoint:
    def test_scan_ready_order(self, client, api_order):
        order_id = api_order()
        response = client.post("/dispatch/scan", json={"order_id": order_id})

        assert response.status_code == 200
        order = response.json()["order"]
        assert order["order_id"] == order_id
        assert order["zone"] == "10-20km"
        assert "code" not in order

    def test_scan_placed_order_is_404(self, client, api_order):
        response = client.post("/dispatch/scan", json={"order_id": api_order(confirm=False)})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestClaimEndpoint:
    def test_claim(self, client, api_order, api_pilot):
        order_id, pilot_id = api_order(), api_pilot()
        response = _claim(client, order_id, pilot_id)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "dispatched"
        assert data["driver"]["name"] == "Ravi Kumar"
        assert current_domain.repository_for(Pilot).get(pilot_id).is_available is False

    def test_second_claim_is_rejected(self, client, api_order, api_pilot):
        order_id = api_order()
        first = api_pilot()
        second = api_pilot(name="Sunil", phone="+919800000102", vehicle_number="MH01AB9999")
        _claim(client, order_id, first)

        response = _claim(client, order_id, second)
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "ALREADY_ASSIGNED"
        assert error["details"]["assigned_to_requester"] is False

    def test_busy_pilot(self, client, api_order, api_pilot):
        pilot_id = api_pilot()
        _claim(client, api_order(), pilot_id)

        response = _claim(client, api_order(), pilot_id)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "AGENT_UNAVAILABLE"

    def test_unready_order(self, client, api_order, api_pilot):
        response = _claim(client, api_order(confirm=False), api_pilot())
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ORDER_NOT_READY"

    def test_unknown_pilot(self, client, api_order):
        response = _claim(client, api_order(), "missing-pilot")
        assert response.status_code == 404


class TestJourneyEndpoints:
    def test_full_delivery(self, client, api_order, api_pilot, handoff_code):
        order_id, pilot_id = api_order(), api_pilot()
        _claim(client, order_id, pilot_id)

        started = client.post(
            "/dispatch/journey/start",
            json={
                "order_id": order_id,
                "pilot_id": pilot_id,
                "current_location": {"latitude": 18.93, "longitude": 72.83},
            },
        )
        assert started.status_code == 200

        completed = client.post(
            "/dispatch/complete",
            json={"order_id": order_id, "code": handoff_code(order_id), "rating": 5},
        )
        assert completed.status_code == 200
        assert completed.json()["status"] == "delivered"
        assert current_domain.repository_for(Order).get(order_id).status == "delivered"

    def test_wrong_code(self, client, api_order, api_pilot, handoff_code):
        order_id = api_order()
        _claim(client, order_id, api_pilot())
        code = handoff_code(order_id)

        response = client.post(
            "/dispatch/complete",
            json={"order_id": order_id, "code": "000000" if code != "000000" else "111111"},
        )
        assert response.status_code == 400
        assert response.json() == {
            "error": {"code": "INVALID_CODE", "message": "Invalid delivery code", "details": {}}
        }

    def test_rating_out_of_range_is_422(self, client, api_order):
        response = client.post("/dispatch/complete", json={"order_id": api_order(), "code": "123456", "rating": 6})
        assert response.status_code == 422

    def test_journey_with_invalid_location(self, client, api_order, api_pilot):
        order_id, pilot_id = api_order(), api_pilot()
        _claim(client, order_id, pilot_id)

        response = client.post(
            "/dispatch/journey/start",
            json={"order_id": order_id, "pilot_id": pilot_id, "current_location": {"latitude": 91, "longitude": 0}},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_COORDINATES"


class TestLocationEndpoint:
    def test_report_location(self, client, api_pilot):
        pilot_id = api_pilot()
        response = client.post(
            "/dispatch/location",
            json={"pilot_id": pilot_id, "coordinates": {"latitude": 19.0, "longitude": 72.9}},
        )
        assert response.status_code == 200
        assert response.json() == {"status": "location_updated"}
        assert current_domain.repository_for(Pilot).get(pilot_id).current_location.latitude == 19.0


class TestPricingEndpoints:
    def test_zones(self, client):
        response = client.get("/dispatch/zones")
        assert response.status_code == 200
        zones = response.json()
        assert [z["name"] for z in zones] == ["0-5km", "5-10km", "10-20km", "20km+"]
        assert zones[-1]["max_km"] is None

    def test_quote_mumbai_to_pune(self, client):
        response = client.post(
            "/dispatch/quote",
            json={
                "origin": {"latitude": 19.0760, "longitude": 72.8777},
                "destination": {"latitude": 18.5204, "longitude": 73.8567},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["zone"] == "20km+"
        assert data["eta_label"] == "1-2 days"
        assert 115 < data["distance_km"] < 125

    def test_quote_invalid_coordinates(self, client):
        response = client.post(
            "/dispatch/quote",
            json={"origin": {"latitude": 0, "longitude": 0}, "destination": {"latitude": 0, "longitude": 190}},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_COORDINATES"


class TestHandoffCodeResendEndpoint:
    def test_resend_for_claimed_order(self, client, api_order, api_pilot, handoff_code):
        order_id, pilot_id = api_order(), api_pilot()
        _claim(client, order_id, pilot_id)
        code = handoff_code(order_id)

        response = client.post("/dispatch/handoff-code/resend", json={"order_id": order_id, "pilot_id": pilot_id})

        assert response.status_code == 200
        assert response.json()["status"] == "code_sent"
        assert handoff_code(order_id) == code

    def test_resend_before_claim_is_rejected(self, client, api_order):
        response = client.post("/dispatch/handoff-code/resend", json={"order_id": api_order()})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"
