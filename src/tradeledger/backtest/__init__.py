"""Backtest harness package.

Replays random windows of a persisted trade archive against pluggable
strategies with proportional fee bookkeeping.
"""

from tradeledger.backtest.runner import run_backtest
from tradeledger.backtest.simulator import SimulationResult, Simulator, TrialSummary
from tradeledger.backtest.strategies import (
    STRATEGIES,
    DummyStrategy,
    HoldUntilDropStrategy,
    Strategy,
    TradeAction,
    get_strategy,
)

__all__ = [
    "STRATEGIES",
    "DummyStrategy",
    "HoldUntilDropStrategy",
    "SimulationResult",
    "Simulator",
    "Strategy",
    "TradeAction",
    "TrialSummary",
    "get_strategy",
    "run_backtest",
]
