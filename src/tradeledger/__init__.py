"""Append-only archive of historical exchange trades with a backtest harness."""

__version__ = "0.1.0"
