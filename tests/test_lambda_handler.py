"""Tests for AWS Lambda handler."""

import base64
import json

import pytest

import lambda_handler as handler_module
from deal_engine.config import Settings
from lambda_handler import lambda_handler


def post(path, payload, **extra):
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return {"httpMethod": "POST", "path": path, "body": body, **extra}


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        response = lambda_handler({"httpMethod": "GET", "path": "/health"}, None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["status"] == "healthy"

    def test_api_info(self):
        response = lambda_handler({"httpMethod": "GET", "path": "/api"}, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert "deal_breakdown" in body["endpoints"]

    def test_cors_preflight(self):
        response = lambda_handler({"httpMethod": "OPTIONS", "path": "/deal_breakdown"}, None)

        assert response["statusCode"] == 200
        assert response["headers"]["Access-Control-Allow-Origin"] == "*"
        assert "Access-Control-Allow-Methods" in response["headers"]

    def test_http_api_event_format(self):
        event = {"rawPath": "/health", "requestContext": {"http": {"method": "GET"}}}
        assert lambda_handler(event, None)["statusCode"] == 200

    def test_not_found(self):
        response = lambda_handler({"httpMethod": "GET", "path": "/unknown"}, None)
        assert response["statusCode"] == 404

    def test_wrong_method_not_found(self):
        response = lambda_handler({"httpMethod": "GET", "path": "/deal_breakdown"}, None)
        assert response["statusCode"] == 404


class TestDealBreakdownRoute:

    def test_success(self, reference_inputs):
        response = lambda_handler(post("/deal_breakdown", reference_inputs), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["calculations"]["gross_profit"]["value"] == 95000.0

    def test_base64_body(self, reference_inputs):
        encoded = base64.b64encode(json.dumps(reference_inputs).encode("utf-8")).decode("ascii")
        response = lambda_handler(post("/deal_breakdown", encoded, isBase64Encoded=True), None)

        assert response["statusCode"] == 200

    def test_dict_body(self, reference_inputs):
        event = {"httpMethod": "POST", "path": "/deal_breakdown", "body": reference_inputs}
        assert lambda_handler(event, None)["statusCode"] == 200

    def test_empty_body(self):
        response = lambda_handler(post("/deal_breakdown", ""), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error"] == "No input data provided"

    def test_invalid_json(self):
        response = lambda_handler(post("/deal_breakdown", "{not json"), None)

        assert response["statusCode"] == 400
        assert "Invalid JSON" in json.loads(response["body"])["error"]

    def test_validation_error(self, reference_inputs):
        reference_inputs["partner_split_type"] = "ratio"
        response = lambda_handler(post("/deal_breakdown", reference_inputs), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "validation_failed"

    def test_addon_must_be_object(self, reference_inputs):
        reference_inputs["addons"] = ["Tint"]
        response = lambda_handler(post("/deal_breakdown", reference_inputs), None)

        assert response["statusCode"] == 400
        assert "addon must be an object" in json.loads(response["body"])["error"]


class TestPartnerReportRoute:

    def test_success(self):
        record = {
            "id": "abcdef12-0000",
            "sold_price": 500000,
            "cost_price": 400000,
            "recon_cost": 5000,
            "is_shared_capital": True,
            "partner_split_value": 50,
            "partner_capital_contribution": 100000,
            "sale_date": "2026-03-05",
        }
        response = lambda_handler(post("/partner_report", record), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["totals"]["partner_payout_total"] == 147500.0
        assert body["header"]["deal_reference"] == "ABCDEF12"


class TestFinalizeDealRoute:

    @pytest.fixture
    def payload(self, reference_inputs, vehicle_data):
        return {
            "inputs": reference_inputs,
            "vehicle": vehicle_data,
            "sales_rep_name": "Thabo Mokoena",
            "delivery": {"address": "12 Long Street", "date": "2026-04-01"},
        }

    @pytest.fixture
    def no_backend(self, monkeypatch):
        monkeypatch.setattr(handler_module, "settings", Settings())
        monkeypatch.setattr(handler_module, "backend_client", None)

    @pytest.fixture
    def with_backend(self, monkeypatch, backend_client):
        monkeypatch.setattr(handler_module, "backend_client", backend_client)

    def test_backend_not_configured(self, no_backend, payload):
        response = lambda_handler(post("/finalize_deal", payload), None)
        assert response["statusCode"] == 503

    def test_delivery_must_be_object(self, with_backend, payload):
        payload["delivery"] = "tomorrow"
        response = lambda_handler(post("/finalize_deal", payload), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "validation_failed"

    def test_saved(self, with_backend, fake_backend, payload):
        fake_backend.on("POST", "deal_records", status=201, body=[{"id": "deal-1", "gross_profit": 95000}])
        response = lambda_handler(post("/finalize_deal", payload), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "saved"
        assert body["record"]["id"] == "deal-1"

    def test_blocked(self, with_backend, fake_backend, payload):
        payload["sales_rep_name"] = ""
        response = lambda_handler(post("/finalize_deal", payload), None)

        assert response["statusCode"] == 422
        assert json.loads(response["body"])["issues"] == ["Select a sales rep"]
        assert fake_backend.requests == []

    def test_persistence_failure(self, with_backend, fake_backend, payload):
        fake_backend.on("POST", "deal_records", status=500, body={"message": "db down"})
        response = lambda_handler(post("/finalize_deal", payload), None)

        assert response["statusCode"] == 502
        assert json.loads(response["body"])["error"] == "Failed to save deal record"
