"""
Partner Payout Report

Lays out the Metal Logic breakdown as a printable partner settlement.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from .models import SPLIT_PERCENTAGE, DealRecord, MetalLogicBreakdown
from .output import format_currency, to_money


@dataclass
class ReportLine:
    label: str
    value: Decimal
    emphasis: bool = False

    def to_dict(self) -> dict:
        return {"label": self.label, "value": to_money(self.value), "emphasis": self.emphasis}


def _report_date(record: DealRecord, today: date | None) -> str:
    if record.sale_date:
        day = date.fromisoformat(record.sale_date[:10])
    else:
        day = today or date.today()
    return day.strftime("%d %B %Y")


class PartnerReportRenderer:
    """Turns a MetalLogicBreakdown into labelled report sections."""

    WIDTH = 56

    def __init__(self, currency_symbol: str = "R", dealership_name: str = "Lumina Auto"):
        self.currency_symbol = currency_symbol
        self.dealership_name = dealership_name

    def build(self, record: DealRecord, m: MetalLogicBreakdown, today: date | None = None) -> dict:
        return {
            "header": {
                "title": "Partner Payout",
                "dealership": self.dealership_name,
                "deal_reference": record.reference,
                "date": _report_date(record, today),
                "vehicle": record.vehicle_title,
                "registration": record.vehicle_registration,
                "vin": record.vehicle_vin,
            },
            "sections": [
                {"title": "Deal Economics", "lines": [l.to_dict() for l in self._economics(record, m)]},
                {"title": "Retained by Dealership", "lines": [l.to_dict() for l in self._retained(record, m)]},
                {"title": "Partner Distribution", "lines": [l.to_dict() for l in self._distribution(record, m)]},
            ],
            "totals": {
                "partner_payout_total": to_money(m.partner_payout_total),
                "lumina_keeps_total": to_money(m.lumina_keeps_total),
            },
        }

    def _economics(self, record: DealRecord, m: MetalLogicBreakdown) -> list[ReportLine]:
        lines = [ReportLine("Selling Price", record.sold_price)]
        if record.discount_amount:
            lines.append(ReportLine("(Less) Discount", -record.discount_amount))
        lines += [
            ReportLine("Sale Price (Net)", m.sold_price_net),
            ReportLine("(Less) Vehicle Cost", -record.cost_price),
            ReportLine("Gross Profit", m.gross_profit_metal, emphasis=True),
            ReportLine("(Less) Recon & Expenses", -record.recon_cost),
        ]
        if record.dealer_deposit_contribution:
            lines.append(ReportLine("(Less) Dealer Deposit Contribution", -record.dealer_deposit_contribution))
        lines += [
            ReportLine("Total Deductions", -m.total_deductions),
            ReportLine("Net Profit", m.net_profit, emphasis=True),
        ]
        return lines

    def _retained(self, record: DealRecord, m: MetalLogicBreakdown) -> list[ReportLine]:
        return [
            ReportLine("DIC / Bank Reward", record.dic_amount),
            ReportLine("VAP Profit", m.vap_profit),
            ReportLine("Total Retained", m.total_retained, emphasis=True),
        ]

    def _distribution(self, record: DealRecord, m: MetalLogicBreakdown) -> list[ReportLine]:
        if not record.is_shared_capital:
            share_label = "Partner Share (N/A)"
        elif record.partner_split_type == SPLIT_PERCENTAGE:
            share_label = f"Partner Share ({record.partner_split_value.normalize():f}%)"
        else:
            share_label = "Partner Share (Fixed)"
        lines = [
            ReportLine("Distributable Profit", m.distributable_profit),
            ReportLine(share_label, m.partner_share_amount),
            ReportLine("Dealership Share", m.lumina_share_amount),
        ]
        # Only shared-capital deals have partner capital to hand back
        if record.is_shared_capital:
            lines.append(ReportLine("(+) Capital Refund", record.partner_capital_contribution))
        lines += [
            ReportLine("FINAL PAYOUT TO PARTNER", m.partner_payout_total, emphasis=True),
            ReportLine("DEALERSHIP KEEPS", m.lumina_keeps_total, emphasis=True),
        ]
        return lines

    def render_text(self, report: dict) -> str:
        """Plain-text rendition for printing or attaching to an email."""
        header = report["header"]
        rule = "=" * self.WIDTH
        out = [
            rule,
            f"{header['title'].upper()} | {header['dealership']}",
            f"Date: {header['date']}    Deal Ref: {header['deal_reference']}",
        ]
        if header["vehicle"]:
            out.append(f"Vehicle: {header['vehicle']}")
        if header["registration"] or header["vin"]:
            out.append(f"Reg: {header['registration'] or '-'}    VIN: {header['vin'] or '-'}")
        out.append(rule)

        for section in report["sections"]:
            out.append("")
            out.append(section["title"])
            out.append("-" * self.WIDTH)
            for line in section["lines"]:
                value = format_currency(line["value"], self.currency_symbol)
                label = line["label"].upper() if line["emphasis"] else line["label"]
                out.append(f"{label:<{self.WIDTH - 20}}{value:>20}")

        out.append("")
        out.append(rule)
        out.append("System generated document. All figures are subject to final reconciliation.")
        return "\n".join(out)
