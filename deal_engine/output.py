"""
Output Builder

Constructs the Deal Builder breakdown response from a processing context.
"""

from decimal import Decimal

from .calculators.profit import quantize_money
from .models import SPLIT_PERCENTAGE, DealResult, ProcessingContext


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    # + 0.0 turns -0.0 into 0.0
    return float(quantize_money(value)) + 0.0


def format_currency(value, symbol: str = "R") -> str:
    """Format a number as currency, e.g. R 508,207.00 or -R 1,250.00."""
    amount = quantize_money(Decimal(str(value)))
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol} {abs(amount):,.2f}"


def _pct(value: Decimal) -> str:
    return f"{value.normalize():f}%"


class OutputBuilder:
    """Builds the live Deal Builder breakdown."""

    def __init__(self, currency_symbol: str = "R"):
        self.currency_symbol = currency_symbol

    def _fmt(self, value) -> str:
        return format_currency(value, self.currency_symbol)

    def build(self, ctx: ProcessingContext) -> DealResult:
        """Construct the complete deal result from processing context."""
        return DealResult(
            deal_summary=self._build_deal_summary(ctx),
            calculations=self._build_calculations(ctx),
            persisted_figures=self._build_persisted_figures(ctx),
        )

    def _build_deal_summary(self, ctx: ProcessingContext) -> dict:
        inputs = ctx.inputs
        return {
            "addon_count": len(inputs.addons),
            "expense_count": len(inputs.aftersales_expenses),
            "is_shared_capital": inputs.is_shared_capital,
            "partner_split_type": inputs.partner_split_type if inputs.is_shared_capital else None,
            "partner_split_value": to_money(inputs.partner_split_value) if inputs.is_shared_capital else None,
            "sales_rep_commission_percent": to_money(inputs.sales_rep_commission_percent),
            "referral_person_name": inputs.referral_person_name,
            "is_loss_making": ctx.breakdown.gross_profit < 0,
        }

    def _build_calculations(self, ctx: ProcessingContext) -> dict:
        """Build calculations section with value and description for each line."""
        inputs = ctx.inputs
        b = ctx.breakdown
        partner = ctx.partner
        commission = ctx.commission
        fmt = self._fmt

        if not inputs.is_shared_capital:
            partner_desc = "Not a shared-capital deal - no partner payout"
        elif inputs.partner_split_type == SPLIT_PERCENTAGE:
            partner_desc = (
                f"{_pct(inputs.partner_split_value)} × gross profit ({fmt(b.gross_profit)}) "
                f"= {fmt(partner.partner_payout)}"
            )
        else:
            partner_desc = f"Fixed partner payout of {fmt(partner.partner_payout)}, independent of deal profit"

        return {
            # Add-ons
            "total_addon_cost": {
                "value": to_money(b.total_addon_cost),
                "description": f"Cost of {len(inputs.addons)} value-added product(s)",
            },
            "total_addon_price": {
                "value": to_money(b.total_addon_price),
                "description": f"Selling price of {len(inputs.addons)} value-added product(s)",
            },
            "addon_profit": {
                "value": to_money(b.addon_profit),
                "description": f"{fmt(b.total_addon_price)} - {fmt(b.total_addon_cost)} = {fmt(b.addon_profit)}",
            },
            # Invoice side
            "adjusted_selling_price": {
                "value": to_money(b.adjusted_selling_price),
                "description": (
                    f"selling_price ({fmt(inputs.selling_price)}) - discount ({fmt(inputs.discount_amount)}) "
                    f"= {fmt(b.adjusted_selling_price)}"
                ),
            },
            "gross_deal": {
                "value": to_money(b.gross_deal),
                "description": (
                    f"Client invoice: {fmt(b.adjusted_selling_price)} + add-ons ({fmt(b.total_addon_price)}) "
                    f"+ admin fee ({fmt(inputs.external_admin_fee)}) "
                    f"+ bank initiation fee ({fmt(inputs.bank_initiation_fee)}) = {fmt(b.gross_deal)}"
                ),
            },
            "total_deposits": {
                "value": to_money(b.total_deposits),
                "description": (
                    f"client deposit ({fmt(inputs.client_deposit)}) + dealer deposit contribution "
                    f"({fmt(inputs.dealer_deposit_contribution)}) = {fmt(b.total_deposits)}"
                ),
            },
            "total_finance_amount": {
                "value": to_money(b.total_finance_amount),
                "description": (
                    f"Invoice to bank: gross deal ({fmt(b.gross_deal)}) - deposits ({fmt(b.total_deposits)}) "
                    f"= {fmt(b.total_finance_amount)}"
                ),
            },
            # Costs
            "total_recon_cost": {
                "value": to_money(b.total_recon_cost),
                "description": (
                    f"vehicle ledger ({fmt(inputs.vehicle_ledger_costs)}) + additional deal costs "
                    f"({fmt(inputs.additional_deal_costs)}) = {fmt(b.total_recon_cost)}"
                ),
            },
            "total_expenses": {
                "value": to_money(b.total_expenses),
                "description": f"{len(inputs.aftersales_expenses)} aftersales expense(s)",
            },
            # Profit
            "gross_income": {
                "value": to_money(b.gross_income),
                "description": (
                    f"{fmt(b.adjusted_selling_price)} + add-ons ({fmt(b.total_addon_price)}) "
                    f"+ DIC ({fmt(inputs.dic_amount)}) + referral income ({fmt(inputs.referral_income_amount)}). "
                    f"Admin and bank fees are pass-through and excluded"
                ),
            },
            "total_costs": {
                "value": to_money(b.total_costs),
                "description": (
                    f"cost price ({fmt(inputs.cost_price)}) + recon ({fmt(b.total_recon_cost)}) "
                    f"+ expenses ({fmt(b.total_expenses)}) + dealer deposit ({fmt(inputs.dealer_deposit_contribution)}) "
                    f"+ add-on cost ({fmt(b.total_addon_cost)}) "
                    f"+ referral commission ({fmt(inputs.referral_commission_amount)}) = {fmt(b.total_costs)}"
                ),
            },
            "gross_profit": {
                "value": to_money(b.gross_profit),
                "description": f"{fmt(b.gross_income)} - {fmt(b.total_costs)} = {fmt(b.gross_profit)}",
            },
            # Partner split
            "partner_payout": {
                "value": to_money(partner.partner_payout),
                "description": partner_desc,
            },
            "lumina_net_profit": {
                "value": to_money(partner.lumina_net_profit),
                "description": (
                    f"House profit saved on the deal: {fmt(b.gross_profit)} - {fmt(partner.partner_payout)} "
                    f"= {fmt(partner.lumina_net_profit)}"
                ),
            },
            # Commission
            "commission_amount": {
                "value": to_money(commission.commission_amount),
                "description": (
                    f"{_pct(inputs.sales_rep_commission_percent)} × house profit "
                    f"({fmt(partner.lumina_net_profit)}) = {fmt(commission.commission_amount)}"
                ),
            },
            "final_net_after_payouts": {
                "value": to_money(commission.final_net_after_payouts),
                "description": (
                    f"Display only: {fmt(partner.lumina_net_profit)} - commission "
                    f"({fmt(commission.commission_amount)}) = {fmt(commission.final_net_after_payouts)}"
                ),
            },
        }

    def _build_persisted_figures(self, ctx: ProcessingContext) -> dict:
        """The computed figures that are written to the deal record on save."""
        b = ctx.breakdown
        return {
            "gross_profit": to_money(ctx.partner.lumina_net_profit),
            "recon_cost": to_money(b.total_recon_cost),
            "partner_profit_amount": to_money(ctx.partner.partner_payout),
            "total_financed_amount": to_money(b.total_finance_amount),
            "sales_rep_commission": to_money(ctx.commission.commission_amount),
        }
