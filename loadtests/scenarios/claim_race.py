"""Claim race scenario.

Many pilots compete for a small pool of ready orders. Every order must
end up with exactly one pilot; losing a race is an expected outcome and
is recorded as a success. The open-order pool is shared by all users in
the Locust process so that claims actually collide.
"""

import random
from collections import deque

from locust import HttpUser, constant_pacing, task

from loadtests.data_generators import order_data, pilot_data
from loadtests.helpers.response import error_code, extract_error_detail
from loadtests.helpers.state import PilotState

# Orders published for claiming; newest on the right
OPEN_ORDERS: deque[str] = deque(maxlen=20)

# Losing a race or already holding an order are expected outcomes
EXPECTED_REJECTIONS = {"ALREADY_ASSIGNED", "ORDER_NOT_READY", "AGENT_UNAVAILABLE"}

# Winners seen by this process, order id -> pilot id
WINNERS: dict[str, str] = {}


class ClaimRaceUser(HttpUser):
    """A pilot that keeps publishing and grabbing orders.

    Target: zero double assignments. Any order that two pilots both
    claimed successfully is reported as a failure.
    """

    wait_time = constant_pacing(0.2)

    def on_start(self):
        self.state = PilotState()
        resp = self.client.post("/dispatch/pilots", json=pilot_data(), name="[RACE] POST /dispatch/pilots")
        if resp.status_code != 201:
            self.stop()
            return
        self.state.pilot_id = resp.json()["pilot_id"]
        self.client.put(f"/dispatch/pilots/{self.state.pilot_id}/approve", name="[RACE] PUT /dispatch/pilots/{id}/approve")

    @task(1)
    def publish_order(self):
        resp = self.client.post("/dispatch/orders", json=order_data(), name="[RACE] POST /dispatch/orders")
        if resp.status_code != 201:
            return
        order_id = resp.json()["order_id"]
        confirmed = self.client.put(f"/dispatch/orders/{order_id}/confirm", name="[RACE] PUT /dispatch/orders/{id}/confirm")
        if confirmed.status_code == 200:
            OPEN_ORDERS.append(order_id)

    @task(4)
    def claim_order(self):
        if not OPEN_ORDERS:
            return
        order_id = OPEN_ORDERS[-1] if random.random() < 0.8 else random.choice(OPEN_ORDERS)

        with self.client.post(
            "/dispatch/claim",
            json={"order_id": order_id, "pilot_id": self.state.pilot_id},
            catch_response=True,
            name="[RACE] POST /dispatch/claim",
        ) as resp:
            if resp.status_code == 200:
                winner = WINNERS.setdefault(order_id, self.state.pilot_id)
                if winner != self.state.pilot_id:
                    resp.failure(f"Order {order_id} claimed by {winner} and {self.state.pilot_id}")
                    return
                self.state.current_order_id = order_id
                self._release()
            elif error_code(resp) in EXPECTED_REJECTIONS:
                resp.success()
            else:
                resp.failure(f"Claim failed: {resp.status_code} — {extract_error_detail(resp)}")

    def _release(self):
        """Cancel the won order so the pilot can race again."""
        self.client.put(
            f"/dispatch/orders/{self.state.current_order_id}/cancel",
            json={"reason": "Load test release", "actor": "loadtest"},
            name="[RACE] PUT /dispatch/orders/{id}/cancel",
        )
        self.state.current_order_id = None
