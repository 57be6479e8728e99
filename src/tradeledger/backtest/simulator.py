"""Randomized window replay of a trade archive against a strategy.

Each simulation draws a random window of logical indices, replays its trades
oldest-first, and applies the strategy's actions to a base/quote balance pair
with a proportional fee. The ledger is only read, never merged.

Bookkeeping for an action of q base units at price p:
    base  -= q
    quote += q * p * (1 - fee)   when q >= 0 (selling base, receive less)
    quote += q * p * (1 + fee)   when q < 0  (buying base, pay more)
"""

import random
from dataclasses import dataclass

from tradeledger.backtest.strategies import Strategy
from tradeledger.exceptions import BalanceUnderflowError
from tradeledger.ledger.store import TradeLedger
from tradeledger.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SimulationResult:
    """Final balances of one replayed window."""

    start_index: int
    finish_index: int
    base_balance: float
    quote_balance: float
    actions_taken: int


@dataclass
class TrialSummary:
    """Aggregate of many simulations. Success = final base above initial base."""

    strategy: str
    success_count: int
    total_count: int

    @property
    def success_rate(self) -> float:
        if self.total_count == 0:
            return 0.0
        return self.success_count / self.total_count


class Simulator:
    """Replays random windows of a ledger against strategies.

    Args:
        ledger: Loaded trade ledger (read-only use).
        fee: Proportional fee applied to every conversion.
        initial_base: Starting base asset balance.
        initial_quote: Starting quote asset balance.
        base_name: Label for the base asset in logs and errors.
        quote_name: Label for the quote asset in logs and errors.
    """

    def __init__(
        self,
        ledger: TradeLedger,
        fee: float,
        initial_base: float = 1.0,
        initial_quote: float = 0.0,
        base_name: str = "base",
        quote_name: str = "quote",
    ) -> None:
        self._ledger = ledger
        self._fee = fee
        self._initial_base = initial_base
        self._initial_quote = initial_quote
        self._base_name = base_name
        self._quote_name = quote_name

    def simulate(
        self,
        strategy_cls: type[Strategy],
        rng: random.Random,
        verbose: bool = False,
    ) -> SimulationResult:
        """Replay one random window and return the final balances.

        Raises:
            BalanceUnderflowError: An action drove a balance below zero.
            DecodeError: A replayed trade carries a non-decimal price.
        """
        n = len(self._ledger)
        start = rng.randrange(n)
        finish = rng.randrange(start, n)

        base_balance = self._initial_base
        quote_balance = self._initial_quote
        strategy = strategy_cls(base_balance, quote_balance, self._fee)
        actions_taken = 0

        if verbose:
            logger.info("simulation_window", start=start, finish=finish)

        # Logical index 0 is the newest trade; walk the window oldest-first
        for index in range(finish - 1, start - 1, -1):
            trade = self._ledger.record_at(index)
            action = strategy.react_to_data(base_balance, quote_balance, trade)
            quantity = action.base_quantity
            last_price = trade.get_price()

            base_balance -= quantity
            if quantity >= 0.0:
                quote_diff = quantity * last_price * (1.0 - self._fee)
            else:
                quote_diff = quantity * last_price * (1.0 + self._fee)
            quote_balance += quote_diff

            if quantity != 0.0:
                actions_taken += 1
            if verbose:
                logger.info(
                    "simulation_step",
                    price=last_price,
                    base_quantity=quantity,
                    quote_diff=quote_diff,
                    base_balance=base_balance,
                    quote_balance=quote_balance,
                )

            if base_balance < 0.0:
                raise BalanceUnderflowError(self._base_name, base_balance)
            if quote_balance < 0.0:
                raise BalanceUnderflowError(self._quote_name, quote_balance)

        if verbose:
            logger.info(
                "simulation_final",
                base_balance=base_balance,
                quote_balance=quote_balance,
            )

        return SimulationResult(
            start_index=start,
            finish_index=finish,
            base_balance=base_balance,
            quote_balance=quote_balance,
            actions_taken=actions_taken,
        )

    def run_trials(
        self,
        strategy_cls: type[Strategy],
        trials: int,
        seed: int | None = None,
        verbose: bool = False,
    ) -> TrialSummary:
        """Run ``trials`` independent simulations and count successes."""
        rng = random.Random(seed)
        success_count = 0
        for _ in range(trials):
            result = self.simulate(strategy_cls, rng, verbose=verbose)
            if result.base_balance > self._initial_base:
                success_count += 1
        return TrialSummary(
            strategy=strategy_cls.name or strategy_cls.__name__,
            success_count=success_count,
            total_count=trials,
        )
