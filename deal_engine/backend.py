"""
Hosted backend (PostgREST) client.

Thin wrapper over httpx for the three tables the deal engine touches:
vehicle_expenses, deal_records and vehicles.
"""

import httpx

from .config import Settings


class BackendError(Exception):
    """The hosted backend rejected a request or could not be reached."""


class BackendClient:
    """Synchronous PostgREST client.

    Pass ``transport`` to route requests somewhere other than the network
    (tests use httpx.MockTransport).
    """

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        if not settings.backend_enabled:
            raise BackendError("Backend not configured (SUPABASE_URL / SUPABASE_SERVICE_KEY)")
        self.settings = settings
        self._client = httpx.Client(
            base_url=settings.rest_url,
            timeout=settings.backend_timeout_seconds,
            headers=self._headers(settings.supabase_service_key),
            transport=transport,
        )

    @staticmethod
    def _headers(key: str) -> dict:
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def close(self) -> None:
        self._client.close()

    def select(self, table: str, columns: str = "*", **filters) -> list[dict]:
        params = {"select": columns}
        params.update({name: f"eq.{value}" for name, value in filters.items()})
        return self._send("GET", f"/{table}", params=params)

    def insert(self, table: str, row: dict) -> dict:
        rows = self._send(
            "POST", f"/{table}", json=row, headers={"Prefer": "return=representation"}
        )
        return rows[0] if rows else {}

    def update(self, table: str, row_id: str, changes: dict) -> dict:
        rows = self._send(
            "PATCH",
            f"/{table}",
            params={"id": f"eq.{row_id}"},
            json=changes,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise BackendError(f"No {table} row with id {row_id}")
        return rows[0]

    def _send(self, method: str, path: str, **kwargs) -> list[dict]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"{method} {path} failed with {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]
