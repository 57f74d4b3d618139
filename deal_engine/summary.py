"""
Financial summary across persisted deals, for the reports screen.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .models import ZERO, to_decimal
from .output import to_money


@dataclass
class FinancialSummary:
    deal_count: int = 0
    net_profit: Decimal = ZERO
    gross_revenue: Decimal = ZERO
    total_costs: Decimal = ZERO
    total_expenses: Decimal = ZERO
    commission_payouts: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "deal_count": self.deal_count,
            "net_profit": to_money(self.net_profit),
            "gross_revenue": to_money(self.gross_revenue),
            "total_costs": to_money(self.total_costs),
            "total_expenses": to_money(self.total_expenses),
            "commission_payouts": to_money(self.commission_payouts),
        }


def _deal_day(record: dict) -> date | None:
    stamp = record.get("sale_date") or record.get("created_at")
    if not stamp:
        return None
    return date.fromisoformat(str(stamp)[:10])


def summarize_deals(records: list[dict], start: date | None = None, end: date | None = None) -> FinancialSummary:
    """Sum profit, revenue, costs and payouts for deals sold within [start, end]."""
    summary = FinancialSummary()
    for record in records:
        day = _deal_day(record)
        if start and (day is None or day < start):
            continue
        if end and (day is None or day > end):
            continue

        summary.deal_count += 1
        summary.net_profit += to_decimal(record.get("gross_profit"), "gross_profit")
        summary.gross_revenue += to_decimal(record.get("sold_price"), "sold_price")
        summary.total_costs += to_decimal(record.get("cost_price"), "cost_price") + to_decimal(
            record.get("recon_cost"), "recon_cost"
        )
        summary.total_expenses += sum(
            (to_decimal(e.get("amount"), "expense amount") for e in record.get("aftersales_expenses") or []),
            ZERO,
        )
        summary.commission_payouts += to_decimal(
            record.get("sales_rep_commission"), "sales_rep_commission"
        ) + to_decimal(record.get("referral_commission_amount"), "referral_commission_amount")
    return summary
