"""High-level entry point for running randomized backtests over an archive."""

import time
from pathlib import Path

from tradeledger.backtest.simulator import Simulator, TrialSummary
from tradeledger.backtest.strategies import get_strategy
from tradeledger.config import BacktestSettings
from tradeledger.ledger.store import TradeLedger
from tradeledger.logging import get_logger

logger = get_logger(__name__)


def run_backtest(
    archive_path: str | Path,
    trials: int,
    fee: float,
    strategy: str = "hold_until_drop",
    seed: int | None = None,
    verbose: bool = False,
    settings: BacktestSettings | None = None,
) -> TrialSummary:
    """Load an archive and run ``trials`` random-window simulations.

    Args:
        archive_path: Persisted trade archive.
        trials: Number of simulations.
        fee: Proportional conversion fee (e.g. 0.00001).
        strategy: Registry name of the strategy to replay.
        seed: Optional RNG seed for reproducible runs.
        verbose: Log every replayed step.
        settings: Initial balances. Defaults to BacktestSettings().

    Returns:
        TrialSummary with success and total counts.
    """
    if settings is None:
        settings = BacktestSettings()
    strategy_cls = get_strategy(strategy)

    ledger = TradeLedger.load(archive_path)
    simulator = Simulator(
        ledger,
        fee=fee,
        initial_base=settings.initial_base,
        initial_quote=settings.initial_quote,
    )

    start_time = time.monotonic()
    summary = simulator.run_trials(strategy_cls, trials, seed=seed, verbose=verbose)

    logger.info(
        "backtest_complete",
        strategy=summary.strategy,
        records=len(ledger),
        fee=fee,
        success_count=summary.success_count,
        total_count=summary.total_count,
        success_rate=round(summary.success_rate, 4),
        elapsed_seconds=round(time.monotonic() - start_time, 2),
    )
    return summary
