"""Tests for the Flask app."""

import pytest

import main
from deal_engine.config import Settings


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "settings", Settings())
    monkeypatch.setitem(main.app.config, "BACKEND_CLIENT", None)
    main.app.config["TESTING"] = True
    return main.app.test_client()


@pytest.fixture
def backed_client(client, monkeypatch, backend_client):
    monkeypatch.setitem(main.app.config, "BACKEND_CLIENT", backend_client)
    return client


class TestInfoRoutes:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_api_info(self, client):
        body = client.get("/api").get_json()
        assert set(body["endpoints"]) >= {"deal_breakdown", "partner_report", "finalize_deal", "vehicle_ledger"}

    def test_cors_header(self, client):
        response = client.get("/health", headers={"Origin": "https://admin.example.co"})
        assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestDealBreakdown:

    def test_success(self, client, reference_inputs):
        response = client.post("/deal_breakdown", json=reference_inputs)

        assert response.status_code == 200
        assert response.get_json()["calculations"]["total_finance_amount"]["value"] == 508207.0

    def test_empty_body(self, client):
        response = client.post("/deal_breakdown", data="")
        assert response.status_code == 400

    def test_validation_error(self, client):
        response = client.post("/deal_breakdown", json={"selling_price": "lots"})

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_addon_must_be_object(self, client, reference_inputs):
        reference_inputs["addons"] = ["Tint"]
        response = client.post("/deal_breakdown", json=reference_inputs)

        assert response.status_code == 400
        assert "addon must be an object" in response.get_json()["error"]

    def test_body_must_be_object(self, client):
        response = client.post("/deal_breakdown", json=[500000])

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"


class TestPartnerReport:

    def test_posted_record(self, client):
        response = client.post("/partner_report", json={"id": "abcdef12", "sold_price": 1000, "cost_price": 600})

        assert response.status_code == 200
        assert response.get_json()["breakdown"]["net_profit"] == 400.0

    def test_stored_record(self, backed_client, fake_backend):
        fake_backend.on("GET", "deal_records", body=[{"id": "abcdef12-99", "sold_price": 1000, "cost_price": 600}])
        response = backed_client.get("/deals/abcdef12-99/partner_report")

        assert response.status_code == 200
        assert response.get_json()["header"]["deal_reference"] == "ABCDEF12"

    def test_stored_record_missing(self, backed_client, fake_backend):
        fake_backend.on("GET", "deal_records", body=[])
        assert backed_client.get("/deals/nope/partner_report").status_code == 404

    def test_stored_record_backend_failure(self, backed_client, fake_backend):
        fake_backend.on("GET", "deal_records", status=500, body={"message": "db down"})
        response = backed_client.get("/deals/abc/partner_report")

        assert response.status_code == 502
        assert response.get_json()["status"] == "failed"

    def test_vehicle_join_must_be_object(self, client):
        response = client.post("/partner_report", json={"id": "abcdef12", "vehicle": "Hilux"})

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_unexpected_error_returns_json(self, client, monkeypatch):
        def explode(record):
            raise RuntimeError("renderer crashed")

        monkeypatch.setattr(main.processor, "partner_report", explode)
        response = client.post("/partner_report", json={"id": "abcdef12"})

        assert response.status_code == 500
        assert response.get_json()["error"] == "An unexpected error occurred during processing"

    def test_stored_record_without_backend(self, client):
        assert client.get("/deals/abc/partner_report").status_code == 503


class TestFinalizeDeal:

    @pytest.fixture
    def payload(self, reference_inputs, vehicle_data):
        return {
            "inputs": reference_inputs,
            "vehicle": vehicle_data,
            "sales_rep_name": "Thabo Mokoena",
            "delivery": {"address": "12 Long Street", "date": "2026-04-01"},
            "vehicle_info": {"sold_mileage": 45100},
        }

    def test_without_backend(self, client, payload):
        assert client.post("/finalize_deal", json=payload).status_code == 503

    def test_saved(self, backed_client, fake_backend, payload):
        fake_backend.on("POST", "deal_records", status=201, body=[{"id": "deal-1"}])
        response = backed_client.post("/finalize_deal", json=payload)

        assert response.status_code == 200
        sent = fake_backend.body(fake_backend.sent("POST", "deal_records")[0])
        assert sent["gross_profit"] == 95000.0
        assert sent["sold_mileage"] == 45100

    def test_blocked(self, backed_client, payload):
        del payload["vehicle"]
        response = backed_client.post("/finalize_deal", json=payload)

        assert response.status_code == 422
        assert response.get_json()["issues"] == ["No vehicle assigned to this deal"]

    def test_persistence_failure(self, backed_client, fake_backend, payload):
        fake_backend.on("POST", "deal_records", status=409, body={"message": "conflict"})
        response = backed_client.post("/finalize_deal", json=payload)

        assert response.status_code == 502
        assert response.get_json()["error"] == "Failed to save deal record"

    def test_delivery_must_be_object(self, backed_client, payload):
        payload["delivery"] = "tomorrow"
        response = backed_client.post("/finalize_deal", json=payload)

        assert response.status_code == 400
        assert "delivery must be an object" in response.get_json()["error"]

    def test_unexpected_error_returns_json(self, backed_client, payload, monkeypatch):
        def explode(request, store):
            raise RuntimeError("store wiring broken")

        monkeypatch.setattr(main.processor, "finalize", explode)
        response = backed_client.post("/finalize_deal", json=payload)

        assert response.status_code == 500
        assert response.get_json()["status"] == "failed"


class TestVehicleLedger:

    def test_ledger_total(self, backed_client, fake_backend):
        fake_backend.on("GET", "vehicle_expenses", body=[
            {"amount": 3000, "category": "recon", "description": "Panel beating"},
            {"amount": 2000, "category": "parts", "description": "Tyres"},
        ])
        body = backed_client.get("/vehicles/veh-001/ledger").get_json()

        assert body["total"] == 5000.0
        assert body["degraded"] is False
        assert len(body["expenses"]) == 2

    def test_degrades_without_backend(self, client):
        response = client.get("/vehicles/veh-001/ledger")

        assert response.status_code == 200
        assert response.get_json() == {"vehicle_id": "veh-001", "total": 0.0, "degraded": True, "expenses": []}


class TestReportSummary:

    def test_summary_for_range(self, backed_client, fake_backend):
        fake_backend.on("GET", "deal_records", body=[
            {"sale_date": "2026-03-02", "gross_profit": 47500, "sold_price": 500000},
            {"sale_date": "2026-05-02", "gross_profit": 10000, "sold_price": 150000},
        ])
        body = backed_client.get("/reports/summary?from=2026-03-01&to=2026-03-31").get_json()

        assert body["deal_count"] == 1
        assert body["net_profit"] == 47500.0

    def test_bad_date(self, backed_client, fake_backend):
        fake_backend.on("GET", "deal_records", body=[])
        assert backed_client.get("/reports/summary?from=March").status_code == 400

    def test_without_backend(self, client):
        assert client.get("/reports/summary").status_code == 503
