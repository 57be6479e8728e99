"""Trading strategies replayed by the simulator.

A strategy sees one trade at a time together with the balances that resulted
from its previous action, and answers with a TradeAction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from tradeledger.ledger.models import HistoricalTrade


@dataclass(frozen=True)
class TradeAction:
    """Exchange ``base_quantity`` of the base asset for quote at the last price.

    A negative quantity buys base back with quote. Zero means hold.
    """

    base_quantity: float

    @classmethod
    def hold(cls) -> "TradeAction":
        return cls(base_quantity=0.0)


class Strategy(ABC):
    """Base class for replayable strategies."""

    name: str = ""

    def __init__(self, base_balance: float, quote_balance: float, fee: float) -> None:
        self.base_balance = base_balance
        self.quote_balance = quote_balance
        self.fee = fee

    @abstractmethod
    def react_to_data(
        self,
        base_balance: float,
        quote_balance: float,
        trade: HistoricalTrade,
    ) -> TradeAction:
        """Decide on an action given post-action balances and the next trade."""
        ...


class DummyStrategy(Strategy):
    """Never trades. Baseline for the success rate."""

    name = "dummy"

    def react_to_data(
        self,
        base_balance: float,
        quote_balance: float,
        trade: HistoricalTrade,
    ) -> TradeAction:
        return TradeAction.hold()


class HoldUntilDropStrategy(Strategy):
    """Sell all base on the first trade, buy back once the price falls enough.

    The first trade converts 1.0 base into quote and remembers the fee-adjusted
    entry price. When the fee-adjusted current price drops below the
    fee-adjusted entry, the whole quote balance is converted back into base
    and the strategy holds for the rest of the window.
    """

    name = "hold_until_drop"

    # keeps the buy-back strictly inside the quote balance after rounding
    BUY_BACK_SAFETY = 0.999999

    def __init__(self, base_balance: float, quote_balance: float, fee: float) -> None:
        super().__init__(base_balance, quote_balance, fee)
        self.last_buying_price: float | None = None
        self.already_sold = False

    def react_to_data(
        self,
        base_balance: float,
        quote_balance: float,
        trade: HistoricalTrade,
    ) -> TradeAction:
        self.base_balance = base_balance
        self.quote_balance = quote_balance
        if self.already_sold:
            return TradeAction.hold()

        price = trade.get_price()
        if self.last_buying_price is None:
            self.last_buying_price = price * (1.0 + self.fee)
            return TradeAction(base_quantity=1.0)

        if price * (1.0 + self.fee) < self.last_buying_price * (1.0 - self.fee):
            self.already_sold = True
            return TradeAction(
                base_quantity=-self.quote_balance
                / price
                * self.BUY_BACK_SAFETY
                * (1.0 - self.fee)
            )
        return TradeAction.hold()


STRATEGIES: dict[str, type[Strategy]] = {
    DummyStrategy.name: DummyStrategy,
    HoldUntilDropStrategy.name: HoldUntilDropStrategy,
}


def get_strategy(name: str) -> type[Strategy]:
    """Look up a strategy class by its registry name."""
    try:
        return STRATEGIES[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown strategy '{name}'. Available: {', '.join(sorted(STRATEGIES))}"
        ) from e
