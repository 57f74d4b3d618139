"""
Calculators Package

Provides all calculation components for deal processing.
"""

from .commission import CommissionResolver, resolve_commission
from .metal_logic import MetalLogicCalculator
from .partner import PartnerSplitResolver, resolve_partner_payout
from .profit import ProfitCalculator, compute_deal_breakdown, quantize_money

__all__ = [
    "ProfitCalculator",
    "PartnerSplitResolver",
    "CommissionResolver",
    "MetalLogicCalculator",
    "compute_deal_breakdown",
    "resolve_partner_payout",
    "resolve_commission",
    "quantize_money",
]
