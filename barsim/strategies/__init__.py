# barsim/strategies/__init__.py
"""
Algorithm base class and bundled example algorithms.
"""

from .base_algorithm import Algorithm
from .buy_and_hold import BuyAndHold
from .moving_average import DualMovingAverage

__all__ = [
    "Algorithm",
    "BuyAndHold",
    "DualMovingAverage",
]
