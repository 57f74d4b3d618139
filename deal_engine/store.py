"""
Deal Record Store

Persists finalized deals to the hosted backend in a single write.
"""

import logging

from .backend import BackendClient, BackendError

logger = logging.getLogger(__name__)


class DealPersistenceError(Exception):
    """A deal record could not be saved or loaded."""


class DealNotFoundError(DealPersistenceError):
    """The backend answered, but holds no deal with that id."""


class DealRecordStore:
    """Insert, update and read deal_records rows."""

    DEALS_TABLE = "deal_records"
    VEHICLES_TABLE = "vehicles"
    REPORT_COLUMNS = "*,vehicle:vehicles(make,model,year,vin,registration_number)"

    def __init__(self, client: BackendClient):
        self.client = client

    def save(self, record: dict, deal_id: str | None = None) -> dict:
        """Insert a new deal, or update the existing one when deal_id is given."""
        try:
            if deal_id:
                saved = self.client.update(self.DEALS_TABLE, deal_id, record)
            else:
                saved = self.client.insert(self.DEALS_TABLE, record)
        except BackendError as e:
            logger.error(f"Failed to save deal record for vehicle {record.get('vehicle_id')}: {e}")
            raise DealPersistenceError("Failed to save deal record") from e

        logger.info(f"Deal record saved: {saved.get('id', deal_id)}")
        return saved

    def load(self, deal_id: str) -> dict:
        try:
            rows = self.client.select(self.DEALS_TABLE, columns=self.REPORT_COLUMNS, id=deal_id)
        except BackendError as e:
            logger.error(f"Failed to load deal record {deal_id}: {e}")
            raise DealPersistenceError("Could not load deal data") from e
        if not rows:
            raise DealNotFoundError(f"Deal record not found: {deal_id}")
        return rows[0]

    def list_deals(self) -> list[dict]:
        try:
            return self.client.select(self.DEALS_TABLE)
        except BackendError as e:
            logger.error(f"Failed to list deal records: {e}")
            raise DealPersistenceError("Could not load deal records") from e

    def increment_sourced_count(self, vehicle_id: str) -> bool:
        """Sourcing vehicles stay listed; each sale bumps their sourced count.

        Runs after the deal row is written, so a failure is logged and
        reported back but does not fail the deal.
        """
        try:
            rows = self.client.select(self.VEHICLES_TABLE, columns="sourced_count", id=vehicle_id)
            current = int((rows[0].get("sourced_count") if rows else 0) or 0)
            self.client.update(self.VEHICLES_TABLE, vehicle_id, {"sourced_count": current + 1})
        except BackendError as e:
            logger.error(f"Failed to bump sourced_count for vehicle {vehicle_id}: {e}")
            return False
        return True
