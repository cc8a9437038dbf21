import pytest
from dispatch.api import dispatch_router, order_router, pilot_router, register_dispatch_error_handlers
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    app = FastAPI()
    register_dispatch_error_handlers(app)
    app.include_router(dispatch_router)
    app.include_router(order_router)
    app.include_router(pilot_router)
    return TestClient(app)


@pytest.fixture()
def api_order(client):
    """Place and confirm an order over HTTP; returns the order id."""

    def _create(confirm=True, **overrides):
        body = {
            "customer_id": "cust-001",
            "supplier_id": "sup-001",
            "customer_name": "Asha Patel",
            "customer_phone": "+919800000001",
            "pickup": {"latitude": 18.9220, "longitude": 72.8347},
            "pickup_address": "Apollo Bunder, Colaba",
            "drop": {"latitude": 19.0596, "longitude": 72.8295},
            "drop_address": "Hill Road, Bandra West",
            "subtotal": 2500.0,
            "total_weight_kg": 40.0,
        }
        body.update(overrides)
        response = client.post("/dispatch/orders", json=body)
        assert response.status_code == 201
        order_id = response.json()["order_id"]
        if confirm:
            assert client.put(f"/dispatch/orders/{order_id}/confirm").status_code == 200
        return order_id

    return _create


@pytest.fixture()
def api_pilot(client):
    """Register and approve a pilot over HTTP; returns the pilot id."""

    def _create(approve=True, **overrides):
        body = {
            "name": "Ravi Kumar",
            "phone": "+919800000101",
            "license_number": "MH0120190001234",
            "vehicle_number": "MH01AB1234",
            "vehicle_type": "mini_truck",
            "capacity_tonnes": 2.5,
        }
        body.update(overrides)
        response = client.post("/dispatch/pilots", json=body)
        assert response.status_code == 201
        pilot_id = response.json()["pilot_id"]
        if approve:
            assert client.put(f"/dispatch/pilots/{pilot_id}/approve").status_code == 200
        return pilot_id

    return _create
