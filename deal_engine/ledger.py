"""
Vehicle Ledger Costs

Loads the reconditioning/expense ledger for the selected vehicle.
A failed load never blocks the calculator: it degrades to zero cost.
"""

import logging
from dataclasses import dataclass

from .backend import BackendClient, BackendError
from .models import LedgerExpense, LedgerSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerTicket:
    """Tags one ledger request with the vehicle it was issued for."""

    vehicle_id: str
    sequence: int


class LedgerCostLoader:
    """Reads vehicle_expenses rows for one vehicle."""

    TABLE = "vehicle_expenses"

    def __init__(self, client: BackendClient | None):
        self.client = client

    def fetch(self, vehicle_id: str) -> LedgerSummary:
        if self.client is None:
            logger.warning(f"Ledger backend unavailable, using zero costs for vehicle {vehicle_id}")
            return LedgerSummary.empty(vehicle_id, degraded=True)

        try:
            rows = self.client.select(
                self.TABLE, columns="amount,category,description", vehicle_id=vehicle_id
            )
            expenses = tuple(LedgerExpense.from_dict(row) for row in rows)
        except (BackendError, ValueError) as e:
            logger.warning(f"Ledger fetch failed for vehicle {vehicle_id}, using zero costs: {e}")
            return LedgerSummary.empty(vehicle_id, degraded=True)

        return LedgerSummary(vehicle_id=vehicle_id, expenses=expenses)
