"""Dispatch load test scenarios.

Stateful SequentialTaskSet journeys covering the pickup flow from
placement to journey start, cancellation of a claimed order, and the
read-only pricing and discovery endpoints pilots poll.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import CITY_CENTRE, cancel_reason, order_data, pilot_data, point_near, quote_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import DeliveryState


class _DispatchJourney(SequentialTaskSet):
    """Shared steps for journeys that need a ready order and a fresh pilot."""

    def on_start(self):
        self.state = DeliveryState()

    def _place_and_confirm(self):
        with self.client.post(
            "/dispatch/orders",
            json=order_data(),
            catch_response=True,
            name="POST /dispatch/orders",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Place order failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()
                return
            self.state.order_id = resp.json()["order_id"]

        with self.client.put(
            f"/dispatch/orders/{self.state.order_id}/confirm",
            catch_response=True,
            name="PUT /dispatch/orders/{id}/confirm",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "confirmed"
            else:
                resp.failure(f"Confirm failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    def _onboard_pilot(self):
        with self.client.post(
            "/dispatch/pilots",
            json=pilot_data(),
            catch_response=True,
            name="POST /dispatch/pilots",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Register pilot failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()
                return
            self.state.pilot_id = resp.json()["pilot_id"]

        self.client.put(
            f"/dispatch/pilots/{self.state.pilot_id}/approve",
            name="PUT /dispatch/pilots/{id}/approve",
        )

    def _claim(self):
        with self.client.post(
            "/dispatch/claim",
            json={"order_id": self.state.order_id, "pilot_id": self.state.pilot_id},
            catch_response=True,
            name="POST /dispatch/claim",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "dispatched"
            else:
                resp.failure(f"Claim failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()


class PickupJourney(_DispatchJourney):
    """Place -> Confirm -> Onboard pilot -> Scan -> Claim -> Start journey.

    Completion needs the code the customer received by SMS, so the
    journey stops once the pilot is on the road.
    """

    @task
    def prepare(self):
        self._place_and_confirm()
        self._onboard_pilot()

    @task
    def scan(self):
        with self.client.post(
            "/dispatch/scan",
            json={"order_id": self.state.order_id, "pilot_id": self.state.pilot_id},
            catch_response=True,
            name="POST /dispatch/scan",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Scan failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def claim(self):
        self._claim()

    @task
    def start_journey(self):
        with self.client.post(
            "/dispatch/journey/start",
            json={
                "order_id": self.state.order_id,
                "pilot_id": self.state.pilot_id,
                "current_location": point_near(spread_deg=0.01),
            },
            catch_response=True,
            name="POST /dispatch/journey/start",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Start journey failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ClaimedCancellationJourney(_DispatchJourney):
    """Place -> Confirm -> Onboard pilot -> Claim -> Cancel -> Check pilot stats."""

    @task
    def prepare(self):
        self._place_and_confirm()
        self._onboard_pilot()

    @task
    def claim(self):
        self._claim()

    @task
    def cancel(self):
        with self.client.put(
            f"/dispatch/orders/{self.state.order_id}/cancel",
            json={"reason": cancel_reason(), "actor": "supplier"},
            catch_response=True,
            name="PUT /dispatch/orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def pilot_released(self):
        with self.client.get(
            f"/dispatch/agent/{self.state.pilot_id}/stats",
            catch_response=True,
            name="GET /dispatch/agent/{id}/stats",
        ) as resp:
            if resp.status_code == 200 and not resp.json()["is_available"]:
                resp.failure("Pilot still busy after cancellation")

    @task
    def done(self):
        self.interrupt()


class DispatchUser(HttpUser):
    """Locust user simulating pilots and suppliers.

    Weighted distribution:
    - 50% Pickup journey (happy path)
    - 20% Claimed order cancelled
    - 30% Quotes and nearby-order polling
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        PickupJourney: 5,
        ClaimedCancellationJourney: 2,
    }

    @task(2)
    def quote(self):
        self.client.post("/dispatch/quote", json=quote_data(), name="POST /dispatch/quote")

    @task(1)
    def nearby(self):
        self.client.get(
            "/dispatch/orders/nearby",
            params={"latitude": CITY_CENTRE[0], "longitude": CITY_CENTRE[1], "radius_km": 10},
            name="GET /dispatch/orders/nearby",
        )
