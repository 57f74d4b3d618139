"""
Profit Calculator for the Deal Economics Engine

Derives the full deal profit/loss from a DealInputs value.
All arithmetic is exact Decimal; rounding happens only at the edges.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..models import ZERO, DealBreakdown, DealInputs


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class ProfitCalculator:
    """Calculates gross deal, finance amount, costs and gross profit."""

    def calculate(self, inputs: DealInputs) -> DealBreakdown:
        """
        Run the profit derivations in order.

        Admin and bank initiation fees are pass-through: they inflate the
        invoice (gross deal / finance amount) but never the profit.
        DIC and referral income are pure profit and never invoiced.
        """
        # 1. Add-ons
        total_addon_cost = sum((a.cost for a in inputs.addons), ZERO)
        total_addon_price = sum((a.price for a in inputs.addons), ZERO)
        addon_profit = total_addon_price - total_addon_cost

        # 2-5. Invoice side
        adjusted_selling_price = inputs.selling_price - inputs.discount_amount
        gross_deal = (
            adjusted_selling_price
            + total_addon_price
            + inputs.external_admin_fee
            + inputs.bank_initiation_fee
        )
        total_deposits = inputs.client_deposit + inputs.dealer_deposit_contribution
        total_finance_amount = gross_deal - total_deposits

        # 6-7. Costs booked against the vehicle and the deal
        total_recon_cost = inputs.vehicle_ledger_costs + inputs.additional_deal_costs
        total_expenses = sum((e.amount for e in inputs.aftersales_expenses), ZERO)

        # 8-10. Profit side
        gross_income = (
            adjusted_selling_price
            + total_addon_price
            + inputs.dic_amount
            + inputs.referral_income_amount
        )
        total_costs = (
            inputs.cost_price
            + total_recon_cost
            + total_expenses
            + inputs.dealer_deposit_contribution
            + total_addon_cost
            + inputs.referral_commission_amount
        )

        return DealBreakdown(
            total_addon_cost=total_addon_cost,
            total_addon_price=total_addon_price,
            addon_profit=addon_profit,
            adjusted_selling_price=adjusted_selling_price,
            gross_deal=gross_deal,
            total_deposits=total_deposits,
            total_finance_amount=total_finance_amount,
            total_recon_cost=total_recon_cost,
            total_expenses=total_expenses,
            gross_income=gross_income,
            total_costs=total_costs,
            gross_profit=gross_income - total_costs,
        )


def compute_deal_breakdown(inputs: DealInputs) -> DealBreakdown:
    return ProfitCalculator().calculate(inputs)
