# barsim/strategies/base_algorithm.py
"""
Base algorithm interface for backtesting.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..core.context import Context
from ..core.history import DataView
from ..models.results import PerformanceSeries


class Algorithm(ABC):
    """
    Class-based alternative to passing bare ``initialize``/``handle_data`` functions.

    Subclasses keep per-run state on ``context``, not on ``self``, so one
    instance can be run more than once.
    """

    def __init__(self, name: Optional[str] = None, **params: Any):
        """
        Initialize algorithm.

        Args:
            name: Algorithm name (defaults to the class name)
            **params: Parameters available as ``self.params``
        """
        self.name = name or self.__class__.__name__
        self.params = params

    @abstractmethod
    def initialize(self, context: Context) -> None:
        """
        Set up user fields on the context before the first tick.

        Args:
            context: Run context
        """
        pass

    @abstractmethod
    def handle_data(self, context: Context, data: DataView) -> None:
        """
        React to one tick of market data.

        Args:
            context: Run context
            data: Data view scoped to the current tick
        """
        pass

    def analyze(self, context: Context, perf: PerformanceSeries) -> None:
        """
        Inspect the finished run.

        Args:
            context: Run context
            perf: Complete performance series
        """
        # Default implementation does nothing
        pass

    def get_state(self) -> dict:
        """
        Get algorithm description.

        Returns:
            Algorithm state dictionary
        """
        return {
            'name': self.name,
            'params': dict(self.params),
        }
