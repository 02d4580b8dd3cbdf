# barsim/data/__init__.py
"""
Bar data loaders and generators.
"""

from .csv_loader import load_bars_csv, load_bars_dir
from .synthetic_data import SyntheticDataProvider

__all__ = [
    "load_bars_csv",
    "load_bars_dir",
    "SyntheticDataProvider",
]
