"""
Metal Logic Calculator

Partner-settlement breakdown worked out from a persisted deal record.

This is deliberately narrower than ProfitCalculator: banking/admin fees and
referral flows are left out, add-on (VAP) profit is floored at zero, and the
partner's share comes out of distributable profit rather than gross profit.
The two formulas answer different questions and are kept apart.
"""

from ..models import HUNDRED, SPLIT_PERCENTAGE, ZERO, DealRecord, MetalLogicBreakdown


class MetalLogicCalculator:
    """Calculates what the partner is paid and what the dealership keeps."""

    def calculate(self, record: DealRecord) -> MetalLogicBreakdown:
        sold_price_net = record.sold_price - record.discount_amount
        gross_profit_metal = sold_price_net - record.cost_price

        total_deductions = record.recon_cost + record.dealer_deposit_contribution
        net_profit = gross_profit_metal - total_deductions

        vap_profit = max(ZERO, record.vap_revenue - record.vap_cost)
        total_retained = record.dic_amount + vap_profit
        distributable_profit = net_profit - total_retained

        partner_share = self._partner_share(record, distributable_profit)
        lumina_share = distributable_profit - partner_share

        return MetalLogicBreakdown(
            sold_price_net=sold_price_net,
            gross_profit_metal=gross_profit_metal,
            total_deductions=total_deductions,
            net_profit=net_profit,
            vap_profit=vap_profit,
            total_retained=total_retained,
            distributable_profit=distributable_profit,
            partner_share_amount=partner_share,
            lumina_share_amount=lumina_share,
            partner_payout_total=record.partner_capital_contribution + partner_share,
            lumina_keeps_total=total_deductions + total_retained + lumina_share,
        )

    def _partner_share(self, record: DealRecord, distributable_profit):
        if not record.is_shared_capital:
            return ZERO
        if record.partner_split_type == SPLIT_PERCENTAGE:
            return distributable_profit * (record.partner_split_value / HUNDRED)
        # Fixed splits were settled at finalization time
        return record.partner_profit_amount
