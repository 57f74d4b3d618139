"""
DEAL ECONOMICS ENGINE
Deal profit, partner split and commission calculations for the dealership back office.
"""

from .builder import DealBuilder
from .models import DealInputs, DealResult
from .processor import DealProcessor

__all__ = ['DealProcessor', 'DealBuilder', 'DealInputs', 'DealResult']
