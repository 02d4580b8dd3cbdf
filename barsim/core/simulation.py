# barsim/core/simulation.py
"""
Event-driven simulation loop.

For each clock tick the loop:
  1. Clears the recorder and scopes a data view to the tick.
  2. Calls ``handle_data(context, data)``; orders settle inside the call.
  3. Snapshots portfolio value, cash and recorded fields into a row.

A run either completes with one row per tick or fails with a single error
tagged with the failing tick. Partial series are never returned.
"""

import time
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

import pandas as pd
from tqdm import tqdm

from .clock import Clock, ticks
from .context import Context
from .errors import BacktestError, UserCallbackError
from .history import DataHistoryStore, DataView
from .order_engine import CommissionModel, OrderEngine
from .portfolio import Portfolio
from .recorder import Recorder
from ..models.market_data import Bar
from ..models.results import PerformanceRow, PerformanceSeries
from ..utils.time_helpers import DateLike, format_duration


logger = logging.getLogger(__name__)

InitializeFn = Callable[[Context], None]
HandleDataFn = Callable[[Context, DataView], None]
AnalyzeFn = Callable[[Context, PerformanceSeries], None]


class SimulationState(str, Enum):
    """Lifecycle of a simulation run."""
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    ABORTED = "ABORTED"


@dataclass
class RunFailure:
    """Where and why a run failed."""
    tick_index: Optional[int]
    timestamp: Optional[datetime]
    cause: BaseException


class TradingSimulation:
    """
    One backtest run over a clock.

    The portfolio and context are created here and owned by this run only;
    the history store is read-only and may be shared.
    """

    def __init__(
        self,
        initialize: InitializeFn,
        handle_data: HandleDataFn,
        store: DataHistoryStore,
        clock: Clock,
        initial_cash: float = 100000.0,
        allow_margin: bool = False,
        commission: Optional[CommissionModel] = None,
        analyze: Optional[AnalyzeFn] = None,
        show_progress: bool = False,
    ):
        """
        Initialize simulation.

        Args:
            initialize: Called once with the context before the first tick
            handle_data: Called with (context, data) on every tick
            store: Loaded history store
            clock: Tick sequence to run over
            initial_cash: Starting cash
            allow_margin: Permit negative cash
            commission: Commission model (zero when omitted)
            analyze: Optional callback receiving the finished series
            show_progress: Show a tqdm progress bar
        """
        self.initialize = initialize
        self.handle_data = handle_data
        self.analyze = analyze
        self.store = store
        self.clock = clock
        self.initial_cash = initial_cash
        self.show_progress = show_progress

        self.portfolio = Portfolio(store, initial_cash)
        self.order_engine = OrderEngine(store, self.portfolio, allow_margin, commission)
        self.recorder = Recorder()
        self.context = Context(
            store,
            self.portfolio,
            self.order_engine,
            self.recorder,
            config={
                'start': clock.start,
                'end': clock.end,
                'frequency': clock.frequency,
                'calendar': clock.calendar,
                'initial_cash': initial_cash,
                'allow_margin': allow_margin,
            },
        )

        self.state = SimulationState.NOT_STARTED
        self.rows: List[PerformanceRow] = []
        self.failure: Optional[RunFailure] = None
        self.result: Optional[PerformanceSeries] = None

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self) -> PerformanceSeries:
        """
        Run every tick and return the complete series.

        Raises:
            BacktestError: Any engine error, tagged with the failing tick
            UserCallbackError: Wrapping any other exception from a callback
        """
        for _ in self.stream():
            pass
        return self.result

    def stream(self) -> Iterator[PerformanceRow]:
        """
        Run tick by tick, yielding each row as it is appended.

        Stopping iteration between ticks aborts the run.
        """
        if self.state != SimulationState.NOT_STARTED:
            raise RuntimeError(f"Simulation already {self.state.value.lower()}; create a new one to rerun")

        self.state = SimulationState.RUNNING
        total = len(self.clock)
        first_tick = self.clock.index[0] if total else self.clock.start
        start_time = time.time()
        logger.info(f"Starting backtest over {total} {self.clock.frequency} ticks "
                    f"({self.clock.start.date()} to {self.clock.end.date()})")

        tick_index = 0
        tick = first_tick
        try:
            self.context._advance(first_tick, 0, trading=False)
            self._invoke('initialize', self.initialize, (self.context,), first_tick, 0)

            with tqdm(total=total, desc="Backtesting", disable=not self.show_progress) as pbar:
                for tick_index, tick in enumerate(self.clock):
                    row = self._process_tick(tick, tick_index)
                    pbar.update(1)
                    yield row

            result = PerformanceSeries(
                self.rows,
                orders=self.order_engine.orders,
                fills=self.order_engine.fills,
                initial_cash=self.initial_cash,
                frequency=self.clock.frequency,
            )
            if self.analyze is not None:
                self._invoke('analyze', self.analyze, (self.context, result), tick, tick_index)
            self.result = result

        except GeneratorExit:
            self.state = SimulationState.ABORTED
            logger.info(f"Backtest aborted by caller after {len(self.rows)} ticks")
            raise
        except BacktestError as e:
            if e.timestamp is None:
                e.attach_tick(tick.to_pydatetime(), tick_index)
            self._fail(e)
            raise

        self.state = SimulationState.COMPLETED
        logger.info(f"Backtest completed in {format_duration(time.time() - start_time)}: "
                    f"{len(self.rows)} ticks, {len(self.order_engine.fills)} fills")
        logger.debug(f"Final positions: {self.portfolio.get_positions_summary()}")

    def _process_tick(self, tick: pd.Timestamp, tick_index: int) -> PerformanceRow:
        """Run one tick: callback, then snapshot."""
        self.recorder.clear()
        self.context._advance(tick, tick_index)
        data = DataView(self.store, tick, self.clock.frequency)

        self._invoke('handle_data', self.handle_data, (self.context, data), tick, tick_index)

        row = PerformanceRow(
            date=tick.to_pydatetime(),
            portfolio_value=self.portfolio.value(tick),
            cash=self.portfolio.cash,
            recorded=self.recorder.snapshot(),
        )
        self.rows.append(row)
        return row

    def _invoke(
        self,
        name: str,
        callback: Callable[..., Any],
        args: tuple,
        tick: pd.Timestamp,
        tick_index: int,
    ) -> None:
        """Call a user callback, tagging or wrapping whatever it raises."""
        try:
            callback(*args)
        except BacktestError as e:
            e.attach_tick(tick.to_pydatetime(), tick_index)
            raise
        except Exception as e:
            raise UserCallbackError(
                f"{name} raised {type(e).__name__}: {e}",
                callback=name,
                timestamp=tick.to_pydatetime(),
                tick_index=tick_index,
            ) from e

    def _fail(self, error: BacktestError) -> None:
        self.state = SimulationState.FAILED
        cause = error.__cause__ if isinstance(error, UserCallbackError) and error.__cause__ else error
        self.failure = RunFailure(
            tick_index=error.tick_index,
            timestamp=error.timestamp,
            cause=cause,
        )
        logger.error(f"Backtest failed at tick {error.tick_index} ({error.timestamp}): {error}")


def build_store(
    bars: Dict[str, Union[Sequence[Bar], pd.DataFrame]],
    frequency: str = "1d",
) -> DataHistoryStore:
    """
    Build a history store from a mapping of symbol to bars.

    Args:
        bars: Symbol to bars (Bar models or OHLCV DataFrame)
        frequency: Bar frequency

    Returns:
        Loaded DataHistoryStore
    """
    store = DataHistoryStore()
    for symbol, symbol_bars in bars.items():
        store.add_bars(symbol, symbol_bars, frequency)
    return store


def run(
    initialize: InitializeFn,
    handle_data: HandleDataFn,
    start_date: DateLike,
    end_date: DateLike,
    frequency: str = "1d",
    initial_cash: float = 100000.0,
    allow_margin: bool = False,
    store: Optional[DataHistoryStore] = None,
    bars: Optional[Dict[str, Union[Sequence[Bar], pd.DataFrame]]] = None,
    calendar: str = "all",
    session_open: Optional[str] = None,
    session_close: Optional[str] = None,
    commission: Optional[CommissionModel] = None,
    analyze: Optional[AnalyzeFn] = None,
    show_progress: bool = False,
) -> PerformanceSeries:
    """
    Run a backtest and return its performance series.

    Args:
        initialize: Called once with the context before the first tick
        handle_data: Called with (context, data) on every tick
        start_date: First tick date
        end_date: Last tick date
        frequency: '1d' or '1m'
        initial_cash: Starting cash
        allow_margin: Permit negative cash
        store: Loaded history store
        bars: Symbol to bars, used to build a store when ``store`` is omitted
        calendar: 'all' or 'weekdays'
        session_open: Optional 'HH:MM' lower bound for minute ticks
        session_close: Optional 'HH:MM' upper bound for minute ticks
        commission: Commission model
        analyze: Optional callback receiving the finished series
        show_progress: Show a tqdm progress bar

    Returns:
        PerformanceSeries with one row per tick

    Raises:
        ValueError: If neither store nor bars is given
        InvalidRangeError: On a bad date range or frequency
    """
    clock = ticks(start_date, end_date, frequency, calendar, session_open, session_close)

    if store is None:
        if bars is None:
            raise ValueError("Either store or bars must be provided")
        store = build_store(bars, clock.frequency)

    simulation = TradingSimulation(
        initialize,
        handle_data,
        store,
        clock,
        initial_cash=initial_cash,
        allow_margin=allow_margin,
        commission=commission,
        analyze=analyze,
        show_progress=show_progress,
    )
    return simulation.run()


def run_algorithm(algorithm: Any, start_date: DateLike, end_date: DateLike, **kwargs: Any) -> PerformanceSeries:
    """
    Run an :class:`~barsim.strategies.base_algorithm.Algorithm` instance.

    Accepts the same keyword arguments as :func:`run`.
    """
    logger.info(f"Running algorithm {getattr(algorithm, 'name', type(algorithm).__name__)}")
    return run(
        algorithm.initialize,
        algorithm.handle_data,
        start_date,
        end_date,
        analyze=algorithm.analyze,
        **kwargs,
    )
