"""
Deal Builder

Holds the in-progress deal while an agent finalizes or edits it.

States:
    UNINITIALIZED --open_new / open_existing--> HYDRATED --close--> UNINITIALIZED

Hydration happens once per open. Any further open_* call while HYDRATED is
ignored, so a late-arriving vehicle or record can never reset the agent's
edits.
"""

import itertools
import logging
from enum import Enum

from .config import Settings
from .ledger import LedgerCostLoader, LedgerTicket
from .models import (
    ZERO,
    Addon,
    AftersalesExpense,
    DealInputs,
    DeliveryDetails,
    FinalizeOutcome,
    FinalizeRequest,
    LedgerSummary,
    SalesRep,
    VehicleHandover,
    VehicleRecord,
    parse_split_type,
    to_decimal,
)
from .processor import DealProcessor
from .store import DealRecordStore

logger = logging.getLogger(__name__)


class BuilderState(Enum):
    UNINITIALIZED = "uninitialized"
    HYDRATED = "hydrated"


# Fields an agent can edit through apply_edit
EDITABLE_MONEY_FIELDS = tuple(f for f in DealInputs.MONEY_FIELDS if f != "vehicle_ledger_costs")


class DealBuilder:
    """Form state for one deal, with a single reducer for field edits."""

    def __init__(self, settings: Settings | None = None, sales_reps: list[SalesRep] | None = None):
        self.settings = settings or Settings()
        self.sales_reps = {rep.name: rep for rep in sales_reps or []}
        # Not reset on close, so tickets from an earlier open never match
        self._ledger_sequence = itertools.count(1)
        self._reset()

    def _reset(self) -> None:
        self.state = BuilderState.UNINITIALIZED
        self.inputs: DealInputs | None = None
        self.vehicle: VehicleRecord | None = None
        self.deal_id: str | None = None
        self.application_id: str | None = None
        self.sales_rep_name = ""
        self.delivery = DeliveryDetails()
        self.handover = VehicleHandover()
        self.ledger = LedgerSummary.empty(None)
        self.pending_ticket: LedgerTicket | None = None
        self._addon_ids = itertools.count(1)
        # Legacy rows stored ledger and deal costs as one recon figure
        self._legacy_recon = False

    @property
    def is_open(self) -> bool:
        return self.state is BuilderState.HYDRATED

    def _require_open(self) -> None:
        if not self.is_open:
            raise RuntimeError("Deal builder is not open")

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def open_new(self, vehicle: VehicleRecord, application_id: str | None = None) -> bool:
        """Start a fresh deal seeded from the selected vehicle."""
        if self.is_open:
            logger.debug("Deal builder already hydrated, ignoring open_new")
            return False

        self.inputs = DealInputs(
            selling_price=vehicle.price,
            cost_price=vehicle.cost_price,
            external_admin_fee=self.settings.default_external_admin_fee,
            bank_initiation_fee=self.settings.default_bank_initiation_fee,
        )
        self.application_id = application_id
        self.handover = VehicleHandover(sold_mileage=vehicle.mileage)
        self.state = BuilderState.HYDRATED
        self._set_vehicle(vehicle)
        return True

    def open_existing(self, record: dict, vehicle: VehicleRecord | None = None) -> bool:
        """Hydrate from a persisted deal record for editing."""
        if self.is_open:
            logger.debug("Deal builder already hydrated, ignoring open_existing")
            return False

        self.inputs = DealInputs.from_record(record)
        self._legacy_recon = record.get("additional_deal_costs") is None and bool(record.get("recon_cost"))
        # Hydrated add-ons are numbered 1..n; new rows continue after them
        self._addon_ids = itertools.count(len(self.inputs.addons) + 1)

        self.deal_id = record.get("id")
        self.application_id = record.get("application_id")
        self.sales_rep_name = record.get("sales_rep_name") or ""
        if record.get("sales_rep_commission_percent") is None and self.sales_rep_name in self.sales_reps:
            self.inputs = self.inputs.with_changes(
                sales_rep_commission_percent=self.sales_reps[self.sales_rep_name].commission
            )

        delivery_at = record.get("delivery_date") or ""
        day, _, clock = delivery_at.partition("T")
        self.delivery = DeliveryDetails(
            address=record.get("delivery_address") or "", date=day, time=clock[:5] or "10:00"
        )
        self.handover = VehicleHandover.from_dict(record)
        self.state = BuilderState.HYDRATED
        if vehicle is not None:
            self._set_vehicle(vehicle)
        return True

    def close(self) -> None:
        """Discard all in-progress state."""
        self._reset()

    # ── Edits ────────────────────────────────────────────────────────────────

    def apply_edit(self, field_name: str, value) -> DealInputs:
        """Apply one field edit and return the new inputs."""
        self._require_open()

        if field_name in EDITABLE_MONEY_FIELDS:
            change = to_decimal(value, field_name)
        elif field_name == "is_shared_capital":
            change = bool(value)
        elif field_name == "partner_split_type":
            change = parse_split_type(value)
        elif field_name == "referral_person_name":
            change = value or None
        elif field_name == "vehicle_ledger_costs":
            raise ValueError("vehicle_ledger_costs is read-only; it comes from the vehicle ledger")
        else:
            raise ValueError(f"Unknown deal field: {field_name}")

        if field_name == "additional_deal_costs":
            self._legacy_recon = False
        self.inputs = self.inputs.with_changes(**{field_name: change})
        return self.inputs

    def add_addon(self, name: str = "", cost=0, price=0) -> Addon:
        self._require_open()
        addon = Addon(
            addon_id=next(self._addon_ids),
            name=name,
            cost=to_decimal(cost, "addon cost"),
            price=to_decimal(price, "addon price"),
        )
        self.inputs = self.inputs.with_changes(addons=self.inputs.addons + (addon,))
        return addon

    def update_addon(self, addon_id: int, **changes) -> Addon:
        self._require_open()
        for key in ("cost", "price"):
            if key in changes:
                changes[key] = to_decimal(changes[key], f"addon {key}")
        updated = None
        addons = []
        for addon in self.inputs.addons:
            if addon.addon_id == addon_id:
                addon = updated = Addon(
                    addon_id=addon_id,
                    name=changes.get("name", addon.name),
                    cost=changes.get("cost", addon.cost),
                    price=changes.get("price", addon.price),
                )
            addons.append(addon)
        if updated is None:
            raise ValueError(f"No add-on with id {addon_id}")
        self.inputs = self.inputs.with_changes(addons=tuple(addons))
        return updated

    def remove_addon(self, addon_id: int) -> None:
        self._require_open()
        addons = tuple(a for a in self.inputs.addons if a.addon_id != addon_id)
        if len(addons) == len(self.inputs.addons):
            raise ValueError(f"No add-on with id {addon_id}")
        self.inputs = self.inputs.with_changes(addons=addons)

    def move_addon(self, addon_id: int, position: int) -> None:
        self._require_open()
        addons = list(self.inputs.addons)
        moving = next((a for a in addons if a.addon_id == addon_id), None)
        if moving is None:
            raise ValueError(f"No add-on with id {addon_id}")
        addons.remove(moving)
        addons.insert(max(0, min(position, len(addons))), moving)
        self.inputs = self.inputs.with_changes(addons=tuple(addons))

    def add_expense(self, expense_type: str = "Gift", amount=0, description: str = "") -> None:
        self._require_open()
        expense = AftersalesExpense(type=expense_type, amount=to_decimal(amount, "expense amount"), description=description)
        self.inputs = self.inputs.with_changes(
            aftersales_expenses=self.inputs.aftersales_expenses + (expense,)
        )

    def remove_expense(self, index: int) -> None:
        self._require_open()
        expenses = list(self.inputs.aftersales_expenses)
        del expenses[index]
        self.inputs = self.inputs.with_changes(aftersales_expenses=tuple(expenses))

    def select_sales_rep(self, name: str) -> None:
        """Pick a rep; their configured rate is loaded but stays editable."""
        self._require_open()
        self.sales_rep_name = name
        rep = self.sales_reps.get(name)
        if rep is not None:
            self.inputs = self.inputs.with_changes(sales_rep_commission_percent=rep.commission)

    def set_delivery(self, address: str = "", date: str = "", time: str = "10:00") -> None:
        self._require_open()
        self.delivery = DeliveryDetails(address=address.strip(), date=date, time=time)

    def set_handover(self, sold_mileage: int, next_service_date: str | None = None, next_service_km: int | None = None) -> None:
        self._require_open()
        self.handover = VehicleHandover(sold_mileage, next_service_date, next_service_km)

    # ── Vehicle + ledger ─────────────────────────────────────────────────────

    def select_vehicle(self, vehicle: VehicleRecord) -> LedgerTicket:
        """Switch the deal to another vehicle and issue a new ledger request."""
        self._require_open()
        self._legacy_recon = False
        return self._set_vehicle(vehicle)

    def _set_vehicle(self, vehicle: VehicleRecord) -> LedgerTicket:
        self.vehicle = vehicle
        # Costs of the previous vehicle must not leak into this one
        self.ledger = LedgerSummary.empty(vehicle.vehicle_id)
        self.inputs = self.inputs.with_changes(vehicle_ledger_costs=ZERO)
        self.pending_ticket = LedgerTicket(vehicle.vehicle_id, next(self._ledger_sequence))
        return self.pending_ticket

    def request_ledger(self) -> LedgerTicket:
        """Issue a new ledger request for the current vehicle, superseding any pending one."""
        self._require_open()
        if self.vehicle is None:
            raise RuntimeError("No vehicle selected")
        self.pending_ticket = LedgerTicket(self.vehicle.vehicle_id, next(self._ledger_sequence))
        return self.pending_ticket

    def receive_ledger(self, ticket: LedgerTicket, summary: LedgerSummary) -> bool:
        """
        Apply a ledger response if it is still current.

        Responses for a vehicle that is no longer selected, or superseded by
        a newer request, are dropped.
        """
        if not self.is_open or ticket != self.pending_ticket:
            logger.warning(f"Discarding stale ledger response for vehicle {ticket.vehicle_id}")
            return False

        self.ledger = summary
        changes = {"vehicle_ledger_costs": summary.total}
        if self._legacy_recon and not summary.degraded:
            changes["additional_deal_costs"] = max(ZERO, self.inputs.additional_deal_costs - summary.total)
            self._legacy_recon = False
        self.inputs = self.inputs.with_changes(**changes)
        self.pending_ticket = None
        return True

    def load_ledger(self, loader: LedgerCostLoader) -> bool:
        """Fetch and apply ledger costs for the pending request, if any."""
        ticket = self.pending_ticket
        if ticket is None:
            return False
        return self.receive_ledger(ticket, loader.fetch(ticket.vehicle_id))

    # ── Output ───────────────────────────────────────────────────────────────

    def finalize_request(self) -> FinalizeRequest:
        self._require_open()
        return FinalizeRequest(
            inputs=self.inputs,
            vehicle=self.vehicle,
            sales_rep_name=self.sales_rep_name,
            delivery=self.delivery,
            handover=self.handover,
            application_id=self.application_id,
            deal_id=self.deal_id,
        )

    def preview(self, processor: DealProcessor) -> dict:
        """Full breakdown of the current inputs."""
        self._require_open()
        return processor.process_to_dict(self.inputs)

    def submit(self, processor: DealProcessor, store: DealRecordStore) -> FinalizeOutcome:
        """
        Save the deal. The builder closes only after a successful save;
        a blocked submit or DealPersistenceError leaves every input in place.
        """
        outcome = processor.finalize(self.finalize_request(), store)
        if outcome.saved:
            self.close()
        return outcome
