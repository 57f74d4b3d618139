"""
Domain Models for the Deal Economics Engine

These dataclasses provide type-safe representations of all deal entities.
All monetary values use Decimal for precision.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation

SPLIT_PERCENTAGE = "percentage"
SPLIT_FIXED = "fixed"
SPLIT_TYPES = (SPLIT_PERCENTAGE, SPLIT_FIXED)

EXPENSE_TYPES = ("Gift", "Car Wash", "Fuel", "Polish", "Service", "Repairs", "Other")

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value, field_name: str = "value") -> Decimal:
    """Convert a raw form/record value to Decimal. Absent values are 0."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{field_name} must be a number, got: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{field_name} must be a finite number, got: {value!r}")
    return result


def require_object(data, label: str) -> dict:
    """Nested payload sections must be JSON objects."""
    if not isinstance(data, dict):
        raise ValueError(f"{label} must be an object, got: {data!r}")
    return data


def clamp_split_value(split_type: str, value: Decimal) -> Decimal:
    """Percentage splits live in [0, 100]; fixed splits are taken as entered."""
    if split_type == SPLIT_PERCENTAGE:
        return min(HUNDRED, max(ZERO, value))
    return value


def parse_split_type(value) -> str:
    split_type = value or SPLIT_PERCENTAGE
    if split_type not in SPLIT_TYPES:
        raise ValueError(f"Invalid partner_split_type: {split_type}. Must be 'percentage' or 'fixed'")
    return split_type


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass(frozen=True)
class Addon:
    """A value-added product sold with the vehicle.

    addon_id is assigned when the row is created and survives reordering;
    it is never persisted.
    """

    addon_id: int
    name: str
    cost: Decimal = ZERO
    price: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.price - self.cost

    def to_record(self) -> dict:
        return {"name": self.name, "cost": float(self.cost), "price": float(self.price)}

    @classmethod
    def from_dict(cls, data: dict, addon_id: int) -> "Addon":
        require_object(data, "addon")
        return cls(
            addon_id=addon_id,
            name=data.get("name") or "",
            cost=to_decimal(data.get("cost"), "addon cost"),
            price=to_decimal(data.get("price"), "addon price"),
        )


@dataclass(frozen=True)
class AftersalesExpense:
    """A once-off expense booked against the deal (gift, car wash, fuel...)."""

    type: str = "Gift"
    amount: Decimal = ZERO
    description: str = ""

    def to_record(self) -> dict:
        return {"type": self.type, "amount": float(self.amount), "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> "AftersalesExpense":
        require_object(data, "aftersales expense")
        return cls(
            type=data.get("type") or "Other",
            amount=to_decimal(data.get("amount"), "expense amount"),
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class LedgerExpense:
    """A cost row from the vehicle's expense ledger."""

    amount: Decimal
    category: str = "general"
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerExpense":
        require_object(data, "ledger expense")
        return cls(
            amount=to_decimal(data.get("amount"), "ledger amount"),
            category=data.get("category") or "general",
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class LedgerSummary:
    """All ledger costs for one vehicle."""

    vehicle_id: str | None
    expenses: tuple[LedgerExpense, ...] = ()
    degraded: bool = False

    @property
    def total(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO)

    @classmethod
    def empty(cls, vehicle_id: str | None, degraded: bool = False) -> "LedgerSummary":
        return cls(vehicle_id=vehicle_id, expenses=(), degraded=degraded)


@dataclass(frozen=True)
class SalesRep:
    name: str
    commission: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> "SalesRep":
        return cls(name=data["name"], commission=to_decimal(data.get("commission"), "commission"))


@dataclass(frozen=True)
class VehicleRecord:
    """The vehicle being sold, as read from inventory."""

    vehicle_id: str
    make: str = ""
    model: str = ""
    year: int | None = None
    price: Decimal = ZERO
    mileage: int = 0
    cost_price: Decimal = ZERO
    stock_number: str | None = None
    status: str = "available"

    @property
    def title(self) -> str:
        return " ".join(str(p) for p in (self.year, self.make, self.model) if p)

    @property
    def is_sourcing(self) -> bool:
        return self.status == "sourcing"

    @classmethod
    def from_dict(cls, data: dict) -> "VehicleRecord":
        require_object(data, "vehicle")
        # Older inventory rows only carry purchase_price
        cost = data.get("cost_price") or data.get("purchase_price")
        return cls(
            vehicle_id=str(data["id"]),
            make=data.get("make") or "",
            model=data.get("model") or "",
            year=data.get("year"),
            price=to_decimal(data.get("price"), "price"),
            mileage=int(data.get("mileage") or 0),
            cost_price=to_decimal(cost, "cost_price"),
            stock_number=data.get("stock_number"),
            status=data.get("status") or "available",
        )


@dataclass(frozen=True)
class DeliveryDetails:
    address: str = ""
    date: str = ""
    time: str = "10:00"

    @property
    def scheduled_at(self) -> str:
        return f"{self.date}T{self.time}:00"

    @classmethod
    def from_dict(cls, data: dict) -> "DeliveryDetails":
        require_object(data, "delivery")
        return cls(
            address=(data.get("address") or "").strip(),
            date=data.get("date") or "",
            time=data.get("time") or "10:00",
        )


@dataclass(frozen=True)
class VehicleHandover:
    """Odometer and service details captured when the car is handed over."""

    sold_mileage: int = 0
    next_service_date: str | None = None
    next_service_km: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "VehicleHandover":
        require_object(data, "vehicle_info")
        km = data.get("next_service_km")
        return cls(
            sold_mileage=int(data.get("sold_mileage") or 0),
            next_service_date=data.get("next_service_date") or None,
            next_service_km=int(km) if km else None,
        )


@dataclass(frozen=True)
class DealInputs:
    """Every commercial input of a deal.

    Immutable: edits produce a new instance via DealBuilder.apply_edit.
    """

    selling_price: Decimal = ZERO
    discount_amount: Decimal = ZERO
    external_admin_fee: Decimal = ZERO
    bank_initiation_fee: Decimal = ZERO
    client_deposit: Decimal = ZERO
    dealer_deposit_contribution: Decimal = ZERO
    cost_price: Decimal = ZERO
    vehicle_ledger_costs: Decimal = ZERO
    additional_deal_costs: Decimal = ZERO
    dic_amount: Decimal = ZERO
    referral_income_amount: Decimal = ZERO
    referral_commission_amount: Decimal = ZERO
    referral_person_name: str | None = None
    addons: tuple[Addon, ...] = ()
    aftersales_expenses: tuple[AftersalesExpense, ...] = ()
    is_shared_capital: bool = False
    partner_split_type: str = SPLIT_PERCENTAGE
    partner_split_value: Decimal = ZERO
    partner_capital_contribution: Decimal = ZERO
    sales_rep_commission_percent: Decimal = ZERO

    MONEY_FIELDS = (
        "selling_price",
        "discount_amount",
        "external_admin_fee",
        "bank_initiation_fee",
        "client_deposit",
        "dealer_deposit_contribution",
        "cost_price",
        "vehicle_ledger_costs",
        "additional_deal_costs",
        "dic_amount",
        "referral_income_amount",
        "referral_commission_amount",
        "partner_split_value",
        "partner_capital_contribution",
        "sales_rep_commission_percent",
    )

    @property
    def total_recon_cost(self) -> Decimal:
        return self.vehicle_ledger_costs + self.additional_deal_costs

    def with_changes(self, **changes) -> "DealInputs":
        updated = replace(self, **changes)
        clamped = clamp_split_value(updated.partner_split_type, updated.partner_split_value)
        if clamped != updated.partner_split_value:
            updated = replace(updated, partner_split_value=clamped)
        return updated

    @classmethod
    def from_dict(cls, data: dict) -> "DealInputs":
        """Build inputs from a form/API payload (snake_case keys)."""
        require_object(data, "deal inputs")
        values = {name: to_decimal(data.get(name), name) for name in cls.MONEY_FIELDS}
        split_type = parse_split_type(data.get("partner_split_type"))
        values["partner_split_value"] = clamp_split_value(split_type, values["partner_split_value"])
        addons = tuple(Addon.from_dict(a, addon_id=i + 1) for i, a in enumerate(data.get("addons") or []))
        expenses = tuple(AftersalesExpense.from_dict(e) for e in data.get("aftersales_expenses") or [])
        return cls(
            referral_person_name=data.get("referral_person_name") or None,
            addons=addons,
            aftersales_expenses=expenses,
            is_shared_capital=bool(data.get("is_shared_capital", False)),
            partner_split_type=split_type,
            **values,
        )

    @classmethod
    def from_record(cls, record: dict) -> "DealInputs":
        """Hydrate inputs from a persisted deal_records row.

        vehicle_ledger_costs starts at 0; the ledger is fetched separately.
        """
        require_object(record, "deal record")
        split_value = record.get("partner_split_value")
        if split_value is None:
            split_value = record.get("partner_split_percent")

        additional = record.get("additional_deal_costs")
        if additional is None:
            # Rows saved before the ledger split carry one combined recon figure
            additional = record.get("recon_cost")

        data = {name: record.get(name) for name in cls.MONEY_FIELDS}
        data.update(
            selling_price=record.get("sold_price"),
            vehicle_ledger_costs=None,
            additional_deal_costs=additional,
            partner_split_value=split_value,
            partner_split_type=record.get("partner_split_type"),
            referral_person_name=record.get("referral_person_name"),
            addons=record.get("addons_data"),
            aftersales_expenses=record.get("aftersales_expenses"),
            is_shared_capital=record.get("is_shared_capital", False),
        )
        return cls.from_dict(data)


@dataclass(frozen=True)
class DealRecord:
    """A persisted deal_records row, as read back for reporting."""

    deal_id: str
    sold_price: Decimal = ZERO
    discount_amount: Decimal = ZERO
    cost_price: Decimal = ZERO
    recon_cost: Decimal = ZERO
    dealer_deposit_contribution: Decimal = ZERO
    dic_amount: Decimal = ZERO
    gross_profit: Decimal = ZERO
    addons: tuple[Addon, ...] = ()
    is_shared_capital: bool = False
    partner_split_type: str = SPLIT_PERCENTAGE
    partner_split_value: Decimal = ZERO
    partner_profit_amount: Decimal = ZERO
    partner_capital_contribution: Decimal = ZERO
    sale_date: str | None = None
    vehicle_title: str = ""
    vehicle_registration: str | None = None
    vehicle_vin: str | None = None

    @property
    def reference(self) -> str:
        return self.deal_id[:8].upper()

    @property
    def vap_revenue(self) -> Decimal:
        return sum((a.price for a in self.addons), ZERO)

    @property
    def vap_cost(self) -> Decimal:
        return sum((a.cost for a in self.addons), ZERO)

    @classmethod
    def from_dict(cls, data: dict) -> "DealRecord":
        require_object(data, "deal record")
        vehicle = require_object(data.get("vehicle") or {}, "deal record vehicle")
        title = " ".join(str(vehicle[k]) for k in ("year", "make", "model") if vehicle.get(k))
        split_type = parse_split_type(data.get("partner_split_type"))
        split_value = data.get("partner_split_value")
        if split_value is None:
            # Rows written before split types existed only carry a percent
            split_value = data.get("partner_split_percent")
        addons = tuple(Addon.from_dict(a, addon_id=i + 1) for i, a in enumerate(data.get("addons_data") or []))
        return cls(
            deal_id=str(data.get("id") or ""),
            sold_price=to_decimal(data.get("sold_price"), "sold_price"),
            discount_amount=to_decimal(data.get("discount_amount"), "discount_amount"),
            cost_price=to_decimal(data.get("cost_price"), "cost_price"),
            recon_cost=to_decimal(data.get("recon_cost"), "recon_cost"),
            dealer_deposit_contribution=to_decimal(
                data.get("dealer_deposit_contribution"), "dealer_deposit_contribution"
            ),
            dic_amount=to_decimal(data.get("dic_amount"), "dic_amount"),
            gross_profit=to_decimal(data.get("gross_profit"), "gross_profit"),
            addons=addons,
            is_shared_capital=bool(data.get("is_shared_capital", False)),
            partner_split_type=split_type,
            partner_split_value=clamp_split_value(split_type, to_decimal(split_value, "partner_split_value")),
            partner_profit_amount=to_decimal(data.get("partner_profit_amount"), "partner_profit_amount"),
            partner_capital_contribution=to_decimal(
                data.get("partner_capital_contribution"), "partner_capital_contribution"
            ),
            sale_date=data.get("sale_date") or None,
            vehicle_title=title,
            vehicle_registration=vehicle.get("registration_number"),
            vehicle_vin=vehicle.get("vin"),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class DealBreakdown:
    """Results of the profit calculation, in derivation order."""

    total_addon_cost: Decimal = ZERO
    total_addon_price: Decimal = ZERO
    addon_profit: Decimal = ZERO
    adjusted_selling_price: Decimal = ZERO
    gross_deal: Decimal = ZERO
    total_deposits: Decimal = ZERO
    total_finance_amount: Decimal = ZERO
    total_recon_cost: Decimal = ZERO
    total_expenses: Decimal = ZERO
    gross_income: Decimal = ZERO
    total_costs: Decimal = ZERO
    gross_profit: Decimal = ZERO


@dataclass
class PartnerSplit:
    """Results of the partner split step."""

    partner_payout: Decimal = ZERO
    lumina_net_profit: Decimal = ZERO


@dataclass
class CommissionResult:
    """Results of the commission step. final_net_after_payouts is display-only."""

    commission_amount: Decimal = ZERO
    final_net_after_payouts: Decimal = ZERO


@dataclass
class MetalLogicBreakdown:
    """Restricted partner-settlement breakdown computed from a persisted deal."""

    sold_price_net: Decimal = ZERO
    gross_profit_metal: Decimal = ZERO
    total_deductions: Decimal = ZERO
    net_profit: Decimal = ZERO
    vap_profit: Decimal = ZERO
    total_retained: Decimal = ZERO
    distributable_profit: Decimal = ZERO
    partner_share_amount: Decimal = ZERO
    lumina_share_amount: Decimal = ZERO
    partner_payout_total: Decimal = ZERO
    lumina_keeps_total: Decimal = ZERO


@dataclass
class ProcessingContext:
    """
    Holds all intermediate state during deal processing.
    This is the "bag" that flows through the pipeline.
    """

    inputs: DealInputs
    breakdown: DealBreakdown = field(default_factory=DealBreakdown)
    partner: PartnerSplit = field(default_factory=PartnerSplit)
    commission: CommissionResult = field(default_factory=CommissionResult)


@dataclass
class DealResult:
    """Final output of deal processing."""

    deal_summary: dict
    calculations: dict
    persisted_figures: dict


@dataclass(frozen=True)
class FinalizeRequest:
    """Everything needed to save a finalized deal."""

    inputs: DealInputs
    vehicle: VehicleRecord | None = None
    sales_rep_name: str = ""
    delivery: DeliveryDetails = field(default_factory=DeliveryDetails)
    handover: VehicleHandover = field(default_factory=VehicleHandover)
    application_id: str | None = None
    deal_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "FinalizeRequest":
        require_object(data, "finalize request")
        vehicle = data.get("vehicle")
        return cls(
            inputs=DealInputs.from_dict(data.get("inputs") or {}),
            vehicle=VehicleRecord.from_dict(vehicle) if vehicle else None,
            sales_rep_name=(data.get("sales_rep_name") or "").strip(),
            delivery=DeliveryDetails.from_dict(data.get("delivery") or {}),
            handover=VehicleHandover.from_dict(data.get("vehicle_info") or {}),
            application_id=data.get("application_id"),
            deal_id=data.get("deal_id"),
        )


@dataclass
class FinalizeOutcome:
    """Result of trying to save a deal.

    status is 'saved' or 'blocked'. Persistence failures raise
    DealPersistenceError instead.
    """

    status: str
    issues: list[str] = field(default_factory=list)
    record: dict | None = None
    sourced_count_updated: bool | None = None

    @property
    def saved(self) -> bool:
        return self.status == "saved"
