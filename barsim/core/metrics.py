# barsim/core/metrics.py
"""
Performance metrics calculator for backtesting results.
"""

import logging
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ..models.results import PerformanceMetrics, PerformanceSeries
from ..utils.time_helpers import normalize_frequency


logger = logging.getLogger(__name__)

# Periods per year used to annualize per-tick returns
PERIODS_PER_YEAR = {
    '1d': 252,
    '1m': 252 * 390,
}


class MetricsCalculator:
    """
    Calculate summary performance metrics over a performance series.

    Returns are taken tick over tick from the portfolio value column and
    annualized with the number of periods per year for the series frequency.
    """

    def __init__(self, risk_free_rate: float = 0.02):
        """
        Initialize metrics calculator.

        Args:
            risk_free_rate: Annual risk-free rate for Sharpe and Sortino
        """
        self.risk_free_rate = risk_free_rate
        logger.debug(f"Metrics calculator initialized with risk-free rate: {risk_free_rate:.2%}")

    def calculate_metrics(
        self,
        series: PerformanceSeries,
        initial_cash: Optional[float] = None,
    ) -> PerformanceMetrics:
        """
        Calculate performance metrics.

        Args:
            series: Completed performance series
            initial_cash: Starting capital (defaults to the series' own)

        Returns:
            PerformanceMetrics object
        """
        initial_capital = float(series.initial_cash if initial_cash is None else initial_cash)
        if len(series) == 0:
            return self._create_empty_metrics(initial_capital)

        equity = pd.Series([row.portfolio_value for row in series], dtype=float)
        periods_per_year = PERIODS_PER_YEAR[normalize_frequency(series.frequency)]

        final_capital = float(equity.iloc[-1])
        total_return = final_capital - initial_capital
        total_return_pct = (total_return / initial_capital * 100) if initial_capital > 0 else 0.0

        # One return per tick after the first
        periods = len(equity) - 1
        if periods > 0 and initial_capital > 0 and final_capital > 0:
            annualized_return = ((final_capital / initial_capital) ** (periods_per_year / periods) - 1) * 100
        else:
            annualized_return = 0.0

        returns = self._returns(equity)
        max_drawdown, max_drawdown_pct = self._calculate_max_drawdown(equity)
        volatility = self._calculate_volatility(returns, periods_per_year)

        metrics = PerformanceMetrics(
            total_return=total_return,
            total_return_pct=total_return_pct,
            annualized_return=float(annualized_return),
            max_drawdown=max_drawdown,
            max_drawdown_pct=max_drawdown_pct,
            sharpe_ratio=self._calculate_sharpe_ratio(annualized_return, volatility),
            sortino_ratio=self._calculate_sortino_ratio(returns, annualized_return, periods_per_year),
            volatility=volatility,
            initial_capital=initial_capital,
            final_capital=final_capital,
            peak_capital=float(max(equity.max(), initial_capital)),
            total_fills=len(series.fills),
            total_commission=float(sum(fill.commission for fill in series.fills)),
        )
        logger.debug(f"Metrics calculated - return {total_return_pct:.2f}%, "
                     f"max drawdown {max_drawdown_pct:.2f}%")
        return metrics

    @staticmethod
    def _returns(equity: pd.Series) -> np.ndarray:
        previous = equity.shift(1)
        valid = previous > 0
        return ((equity[valid] - previous[valid]) / previous[valid]).to_numpy()

    def _calculate_max_drawdown(self, equity: pd.Series) -> Tuple[float, float]:
        """
        Calculate maximum drawdown in absolute and percentage terms.

        Args:
            equity: Portfolio value per tick

        Returns:
            Tuple of (max_drawdown_abs, max_drawdown_pct)
        """
        peak = equity.cummax()
        drawdown = peak - equity
        drawdown_pct = (drawdown / peak.where(peak > 0)).fillna(0.0) * 100
        return float(drawdown.max()), float(drawdown_pct.max())

    def _calculate_volatility(self, returns: np.ndarray, periods_per_year: int) -> float:
        """Annualized volatility of returns as a percentage."""
        if len(returns) < 2:
            return 0.0
        return float(np.std(returns, ddof=1) * np.sqrt(periods_per_year) * 100)

    def _calculate_sharpe_ratio(self, annualized_return: float, volatility: float) -> Optional[float]:
        """
        Calculate Sharpe ratio.

        Args:
            annualized_return: Annualized return percentage
            volatility: Annualized volatility percentage

        Returns:
            Sharpe ratio or None if cannot calculate
        """
        if volatility <= 0:
            return None

        excess_return = annualized_return - (self.risk_free_rate * 100)
        return float(excess_return / volatility)

    def _calculate_sortino_ratio(
        self,
        returns: np.ndarray,
        annualized_return: float,
        periods_per_year: int,
    ) -> Optional[float]:
        """
        Calculate Sortino ratio (using downside deviation).

        Returns:
            Sortino ratio or None if cannot calculate
        """
        if len(returns) < 2:
            return None

        target_return = self.risk_free_rate / periods_per_year
        downside_returns = np.minimum(0.0, returns - target_return)
        downside_deviation = np.std(downside_returns, ddof=1)

        if np.isclose(downside_deviation, 0.0):
            return None

        annual_downside_dev = downside_deviation * np.sqrt(periods_per_year) * 100
        excess_return = annualized_return - (self.risk_free_rate * 100)
        return float(excess_return / annual_downside_dev)

    def _create_empty_metrics(self, initial_capital: float) -> PerformanceMetrics:
        """Zeroed metrics for an empty series."""
        return PerformanceMetrics(
            total_return=0.0,
            total_return_pct=0.0,
            annualized_return=0.0,
            max_drawdown=0.0,
            max_drawdown_pct=0.0,
            sharpe_ratio=None,
            sortino_ratio=None,
            volatility=0.0,
            initial_capital=initial_capital,
            final_capital=initial_capital,
            peak_capital=initial_capital,
        )


def compute_metrics(
    series: PerformanceSeries,
    initial_cash: Optional[float] = None,
    risk_free_rate: float = 0.02,
) -> PerformanceMetrics:
    """Shortcut for ``MetricsCalculator(risk_free_rate).calculate_metrics(series, initial_cash)``."""
    return MetricsCalculator(risk_free_rate).calculate_metrics(series, initial_cash)
