"""
Commission Resolver

Calculates the sales rep's commission from the house's share of profit.
"""

from decimal import Decimal

from ..models import HUNDRED, CommissionResult


class CommissionResolver:
    """Calculates sales commission and the residual after all payouts."""

    def resolve(self, lumina_net_profit: Decimal, commission_percent: Decimal) -> CommissionResult:
        """
        Commission = house profit × rate.

        final_net_after_payouts is shown to the agent but never persisted;
        the saved profit figure stays pre-commission.
        """
        commission_amount = lumina_net_profit * (commission_percent / HUNDRED)
        return CommissionResult(
            commission_amount=commission_amount,
            final_net_after_payouts=lumina_net_profit - commission_amount,
        )


def resolve_commission(lumina_net_profit: Decimal, commission_percent: Decimal) -> CommissionResult:
    return CommissionResolver().resolve(lumina_net_profit, commission_percent)
