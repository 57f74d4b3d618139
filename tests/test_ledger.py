"""Tests for LedgerCostLoader."""

from decimal import Decimal

import httpx

from deal_engine.ledger import LedgerCostLoader


class TestLedgerCostLoader:
    """Ledger loads never fail the calculator."""

    def test_sums_ledger_rows(self, fake_backend, backend_client):
        fake_backend.on("GET", "vehicle_expenses", body=[
            {"amount": 3500, "category": "recon", "description": "Paint correction"},
            {"amount": "1500.25", "category": "parts", "description": "Brake pads"},
        ])
        summary = LedgerCostLoader(backend_client).fetch("veh-001")

        assert summary.total == Decimal("5000.25")
        assert summary.degraded is False
        assert [e.category for e in summary.expenses] == ["recon", "parts"]

    def test_queries_by_vehicle(self, fake_backend, backend_client):
        fake_backend.on("GET", "vehicle_expenses", body=[])
        LedgerCostLoader(backend_client).fetch("veh-001")

        request = fake_backend.sent("GET", "vehicle_expenses")[0]
        assert request.url.params["vehicle_id"] == "eq.veh-001"
        assert request.url.params["select"] == "amount,category,description"

    def test_no_rows_is_zero(self, fake_backend, backend_client):
        fake_backend.on("GET", "vehicle_expenses", body=[])
        summary = LedgerCostLoader(backend_client).fetch("veh-001")

        assert summary.total == Decimal("0")
        assert summary.degraded is False

    def test_server_error_degrades(self, fake_backend, backend_client):
        fake_backend.on("GET", "vehicle_expenses", status=500, body={"message": "boom"})
        summary = LedgerCostLoader(backend_client).fetch("veh-001")

        assert summary.total == Decimal("0")
        assert summary.expenses == ()
        assert summary.degraded is True

    def test_connection_error_degrades(self, fake_backend, backend_client):
        fake_backend.on("GET", "vehicle_expenses", error=httpx.ConnectError("unreachable"))
        summary = LedgerCostLoader(backend_client).fetch("veh-001")

        assert summary.degraded is True

    def test_malformed_amount_degrades(self, fake_backend, backend_client):
        fake_backend.on("GET", "vehicle_expenses", body=[{"amount": "n/a"}])
        summary = LedgerCostLoader(backend_client).fetch("veh-001")

        assert summary.degraded is True
        assert summary.total == Decimal("0")

    def test_no_backend_degrades(self):
        summary = LedgerCostLoader(None).fetch("veh-001")

        assert summary.vehicle_id == "veh-001"
        assert summary.degraded is True
