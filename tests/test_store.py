"""Tests for the backend client and DealRecordStore."""

import httpx
import pytest

from deal_engine.backend import BackendClient, BackendError
from deal_engine.config import Settings
from deal_engine.store import DealNotFoundError, DealPersistenceError, DealRecordStore


class TestBackendClient:
    """Test PostgREST request shaping."""

    def test_requires_configuration(self):
        with pytest.raises(BackendError, match="not configured"):
            BackendClient(Settings())

    def test_sends_auth_headers(self, fake_backend, backend_client):
        fake_backend.on("GET", "deal_records", body=[])
        backend_client.select("deal_records")

        request = fake_backend.requests[0]
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert str(request.url).startswith("https://lumina.example.co/rest/v1/deal_records")

    def test_insert_asks_for_representation(self, fake_backend, backend_client):
        fake_backend.on("POST", "deal_records", status=201, body=[{"id": "deal-1", "gross_profit": 47500}])
        row = backend_client.insert("deal_records", {"gross_profit": 47500})

        assert row == {"id": "deal-1", "gross_profit": 47500}
        assert fake_backend.requests[0].headers["Prefer"] == "return=representation"

    def test_empty_response_body(self, fake_backend, backend_client):
        fake_backend.on("POST", "deal_records", status=201)
        assert backend_client.insert("deal_records", {"gross_profit": 1}) == {}

    def test_update_with_no_matching_row_raises(self, fake_backend, backend_client):
        fake_backend.on("PATCH", "deal_records", body=[])
        with pytest.raises(BackendError, match="No deal_records row"):
            backend_client.update("deal_records", "missing", {"gross_profit": 1})

    def test_http_error_wrapped(self, fake_backend, backend_client):
        fake_backend.on("GET", "deal_records", status=401, body={"message": "JWT expired"})
        with pytest.raises(BackendError, match="401"):
            backend_client.select("deal_records")

    def test_transport_error_wrapped(self, fake_backend, backend_client):
        fake_backend.on("GET", "deal_records", error=httpx.ReadTimeout("slow"))
        with pytest.raises(BackendError):
            backend_client.select("deal_records")


class TestDealRecordStore:
    """Test deal persistence and the sourced-count bump."""

    @pytest.fixture
    def store(self, backend_client):
        return DealRecordStore(backend_client)

    @pytest.fixture
    def record(self):
        return {"vehicle_id": "veh-001", "gross_profit": 47500.0, "sold_price": 500000.0}

    def test_new_deal_inserted(self, fake_backend, store, record):
        fake_backend.on("POST", "deal_records", status=201, body=[{"id": "deal-1", **record}])
        saved = store.save(record)

        assert saved["id"] == "deal-1"
        assert fake_backend.body(fake_backend.requests[0]) == record

    def test_existing_deal_updated(self, fake_backend, store, record):
        fake_backend.on("PATCH", "deal_records", body=[{"id": "deal-7", **record}])
        saved = store.save(record, deal_id="deal-7")

        request = fake_backend.sent("PATCH", "deal_records")[0]
        assert request.url.params["id"] == "eq.deal-7"
        assert saved["id"] == "deal-7"
        assert fake_backend.sent("POST", "deal_records") == []

    def test_rejected_save_raises(self, fake_backend, store, record):
        fake_backend.on("POST", "deal_records", status=400, body={"message": "violates check constraint"})
        with pytest.raises(DealPersistenceError, match="Failed to save deal record"):
            store.save(record)

    def test_update_of_missing_deal_raises(self, fake_backend, store, record):
        fake_backend.on("PATCH", "deal_records", body=[])
        with pytest.raises(DealPersistenceError):
            store.save(record, deal_id="gone")

    def test_load_joins_vehicle(self, fake_backend, store):
        fake_backend.on("GET", "deal_records", body=[{"id": "deal-1", "vehicle": {"make": "Toyota"}}])
        row = store.load("deal-1")

        request = fake_backend.requests[0]
        assert request.url.params["select"] == DealRecordStore.REPORT_COLUMNS
        assert request.url.params["id"] == "eq.deal-1"
        assert row["vehicle"]["make"] == "Toyota"

    def test_load_missing_deal_raises(self, fake_backend, store):
        fake_backend.on("GET", "deal_records", body=[])
        with pytest.raises(DealNotFoundError, match="not found"):
            store.load("deal-404")

    def test_load_failure_is_not_reported_as_missing(self, fake_backend, store):
        fake_backend.on("GET", "deal_records", status=500, body={"message": "db down"})
        with pytest.raises(DealPersistenceError) as excinfo:
            store.load("deal-1")

        assert not isinstance(excinfo.value, DealNotFoundError)

    def test_list_deals(self, fake_backend, store):
        fake_backend.on("GET", "deal_records", body=[{"id": "a"}, {"id": "b"}])
        assert [r["id"] for r in store.list_deals()] == ["a", "b"]

    def test_list_deals_failure_raises(self, fake_backend, store):
        fake_backend.on("GET", "deal_records", status=503, body={"message": "down"})
        with pytest.raises(DealPersistenceError):
            store.list_deals()

    def test_sourced_count_incremented(self, fake_backend, store):
        fake_backend.on("GET", "vehicles", body=[{"sourced_count": 2}])
        fake_backend.on("PATCH", "vehicles", body=[{"id": "veh-9", "sourced_count": 3}])

        assert store.increment_sourced_count("veh-9") is True
        patch = fake_backend.sent("PATCH", "vehicles")[0]
        assert fake_backend.body(patch) == {"sourced_count": 3}

    def test_sourced_count_starts_from_zero(self, fake_backend, store):
        fake_backend.on("GET", "vehicles", body=[{"sourced_count": None}])
        fake_backend.on("PATCH", "vehicles", body=[{"id": "veh-9", "sourced_count": 1}])

        assert store.increment_sourced_count("veh-9") is True
        assert fake_backend.body(fake_backend.sent("PATCH", "vehicles")[0]) == {"sourced_count": 1}

    def test_sourced_count_failure_reported_not_raised(self, fake_backend, store):
        fake_backend.on("GET", "vehicles", status=500, body={"message": "boom"})
        assert store.increment_sourced_count("veh-9") is False
