"""Shared fixtures: a scripted PostgREST backend behind httpx.MockTransport."""

import json

import httpx
import pytest

from deal_engine.backend import BackendClient
from deal_engine.config import Settings


class FakeBackend:
    """Answers PostgREST requests by (method, table) and records every request."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def on(self, method, table, status=200, body=None, error=None):
        self.routes[(method, table)] = (status, body, error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        status, body, error = self.routes.get(
            (request.method, table), (404, {"message": f"no route for {table}"}, None)
        )
        if error is not None:
            raise error
        if callable(body):
            body = body(request)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def client(self, settings: Settings) -> BackendClient:
        return BackendClient(settings, transport=httpx.MockTransport(self.handler))

    def sent(self, method, table):
        """Requests sent for one (method, table) pair."""
        return [
            r for r in self.requests
            if r.method == method and r.url.path.rsplit("/", 1)[-1] == table
        ]

    @staticmethod
    def body(request: httpx.Request):
        return json.loads(request.content)


@pytest.fixture
def backend_settings():
    return Settings(supabase_url="https://lumina.example.co", supabase_service_key="service-key")


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend, backend_settings):
    client = fake_backend.client(backend_settings)
    yield client
    client.close()


@pytest.fixture
def reference_inputs():
    """The reference deal: R500k car, R400k cost, R5k ledger recon, default fees."""
    return {
        "selling_price": 500000,
        "discount_amount": 0,
        "external_admin_fee": 7000,
        "bank_initiation_fee": 1207,
        "client_deposit": 0,
        "dealer_deposit_contribution": 0,
        "cost_price": 400000,
        "vehicle_ledger_costs": 5000,
        "additional_deal_costs": 0,
        "dic_amount": 0,
        "referral_income_amount": 0,
        "referral_commission_amount": 0,
        "addons": [],
    }


@pytest.fixture
def vehicle_data():
    return {
        "id": "veh-001",
        "make": "Toyota",
        "model": "Hilux",
        "year": 2021,
        "price": 500000,
        "mileage": 45000,
        "cost_price": 400000,
        "stock_number": "LA-0042",
        "status": "available",
    }
