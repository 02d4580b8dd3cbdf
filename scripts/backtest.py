# scripts/backtest.py
"""
CLI script for running backtests.
"""

import sys
import importlib
import inspect
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

import click
import yaml
from barsim.core.errors import BacktestError
from barsim.core.metrics import compute_metrics
from barsim.core.order_engine import CommissionModel
from barsim.core.simulation import run_algorithm
from barsim.data.csv_loader import load_bars_dir
from barsim.data.synthetic_data import SyntheticDataProvider
from barsim.strategies.base_algorithm import Algorithm
from barsim.utils.config_loader import DEFAULT_CONFIG_PATH, get_default_config, load_config, save_config
from barsim.utils.logging_config import setup_logging_from_config


DEFAULT_ALGORITHM = "barsim.strategies.buy_and_hold:BuyAndHold"


def load_algorithm(path: str, params: dict, default_symbol: str) -> Algorithm:
    """
    Import ``module:attr`` and return an Algorithm instance.

    A class is instantiated with ``params``; ``symbol`` defaults to the
    first configured symbol when the class accepts one.
    """
    if ':' not in path:
        raise click.BadParameter(f"Expected module:attr, got {path!r}", param_hint='--algorithm')

    module_name, attr = path.split(':', 1)
    target = getattr(importlib.import_module(module_name), attr)

    if inspect.isclass(target):
        if 'symbol' in inspect.signature(target.__init__).parameters:
            params.setdefault('symbol', default_symbol)
        target = target(**params)

    if not isinstance(target, Algorithm):
        raise click.BadParameter(f"{path} is not an Algorithm", param_hint='--algorithm')
    return target


def parse_params(pairs) -> dict:
    """Parse ``key=value`` pairs, reading each value as YAML."""
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got {pair!r}", param_hint='--param')
        params[key.strip()] = yaml.safe_load(value)
    return params


@click.command()
@click.option('--config', '-c', default=None, help=f'Configuration file path (default: {DEFAULT_CONFIG_PATH})')
@click.option('--algorithm', '-a', default=DEFAULT_ALGORITHM, help='Algorithm as module:attr')
@click.option('--param', '-p', multiple=True, help='Algorithm parameter as key=value (repeatable)')
@click.option('--output', '-o', default=None, help='Output directory for results')
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
@click.option('--color', is_flag=True, help='Color console log output by level')
def main(config, algorithm, param, output, verbose, color):
    """Run backtest from command line."""

    try:
        if config is None and not Path(DEFAULT_CONFIG_PATH).exists():
            click.echo("No configuration file found, using defaults")
            app_config = get_default_config()
        else:
            config = config or DEFAULT_CONFIG_PATH
            click.echo(f"Loading configuration from {config}")
            app_config = load_config(config)

        logging_config = app_config.logging
        if verbose:
            logging_config = logging_config.model_copy(update={"level": "DEBUG"})
        setup_logging_from_config(logging_config, colored=color)

        data_config = app_config.data
        backtest_config = app_config.backtest
        click.echo(f"Starting backtest: {', '.join(data_config.symbols)} "
                   f"{data_config.start} to {data_config.end} ({data_config.frequency})")

        if data_config.use_synthetic or not data_config.bars_dir:
            click.echo("Using synthetic data")
            store = SyntheticDataProvider(seed=backtest_config.seed).populate_store(
                data_config.symbols,
                data_config.start,
                data_config.end,
                frequency=data_config.frequency,
                calendar=data_config.calendar,
            )
        else:
            click.echo(f"Loading bars from {data_config.bars_dir}")
            store = load_bars_dir(data_config.bars_dir, data_config.symbols, data_config.frequency)

        algo = load_algorithm(algorithm, parse_params(param), data_config.symbols[0])
        click.echo(f"Running {algo.name}...")

        perf = run_algorithm(
            algo,
            data_config.start,
            data_config.end,
            frequency=data_config.frequency,
            initial_cash=backtest_config.initial_cash,
            allow_margin=backtest_config.allow_margin,
            store=store,
            calendar=data_config.calendar,
            session_open=data_config.session_open,
            session_close=data_config.session_close,
            commission=CommissionModel(
                per_share=backtest_config.commission_per_share,
                per_trade=backtest_config.commission_per_trade,
            ),
            show_progress=backtest_config.show_progress,
        )

        metrics = compute_metrics(perf)
        click.echo("\n" + "="*50)
        click.echo("BACKTEST RESULTS")
        click.echo("="*50)
        click.echo(f"Ticks: {len(perf)}")
        click.echo(f"Final Value: {metrics.final_capital:,.2f}")
        click.echo(f"Total Return: {metrics.total_return:.2f} ({metrics.total_return_pct:.2f}%)")
        click.echo(f"Annualized Return: {metrics.annualized_return:.2f}%")
        click.echo(f"Max Drawdown: {metrics.max_drawdown:.2f} ({metrics.max_drawdown_pct:.2f}%)")
        click.echo(f"Sharpe Ratio: {metrics.sharpe_ratio:.3f}" if metrics.sharpe_ratio is not None else "Sharpe Ratio: N/A")
        click.echo(f"Fills: {metrics.total_fills}")

        if output:
            output_dir = Path(output)
            output_dir.mkdir(parents=True, exist_ok=True)
            run_id = app_config.run_id

            json_path = output_dir / f"{run_id}_results.json"
            perf.save_to_json(str(json_path))

            csv_path = output_dir / f"{run_id}_performance.csv"
            perf.save_to_csv(str(csv_path))

            config_path = output_dir / f"{run_id}_config.yaml"
            save_config(app_config, str(config_path))

            click.echo(f"\nResults saved to:")
            click.echo(f"  JSON: {json_path}")
            click.echo(f"  CSV:  {csv_path}")
            click.echo(f"  Config: {config_path}")

        click.echo("Backtest completed successfully!")

    except click.BadParameter:
        raise
    except (BacktestError, FileNotFoundError, ValueError, yaml.YAMLError) as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
