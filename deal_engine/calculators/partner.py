"""
Partner Split Resolver

Works out the joint-venture partner's share of a shared-capital deal.
"""

from decimal import Decimal

from ..models import HUNDRED, SPLIT_FIXED, SPLIT_PERCENTAGE, ZERO, PartnerSplit


class PartnerSplitResolver:
    """Resolves partner payout and the house's remaining profit."""

    def resolve(
        self,
        gross_profit: Decimal,
        is_shared_capital: bool,
        split_type: str,
        split_value: Decimal,
    ) -> PartnerSplit:
        """
        Split gross profit between partner and house.

        The house figure (lumina_net_profit) is what gets persisted as the
        deal's profit. Commission is worked out from it later but is not
        taken off before saving.
        """
        payout = self.partner_payout(gross_profit, is_shared_capital, split_type, split_value)
        return PartnerSplit(partner_payout=payout, lumina_net_profit=gross_profit - payout)

    def partner_payout(
        self,
        gross_profit: Decimal,
        is_shared_capital: bool,
        split_type: str,
        split_value: Decimal,
    ) -> Decimal:
        if not is_shared_capital:
            return ZERO

        if split_type == SPLIT_PERCENTAGE:
            # split_value is clamped to [0, 100] when the input is captured
            return gross_profit * (split_value / HUNDRED)

        if split_type == SPLIT_FIXED:
            # A fixed payout does not move with deal performance
            return split_value

        raise ValueError(f"Invalid partner_split_type: {split_type}. Must be 'percentage' or 'fixed'")


def resolve_partner_payout(
    gross_profit: Decimal, is_shared_capital: bool, split_type: str, split_value: Decimal
) -> Decimal:
    return PartnerSplitResolver().partner_payout(gross_profit, is_shared_capital, split_type, split_value)
