"""Inverted-pair view of a trade archive.

Turns an ETHBTC archive into a BTCETH one: the price becomes its reciprocal
and base/quote quantities swap places. Ids, times and flags are unchanged.
"""

from dataclasses import replace
from decimal import Decimal

from tradeledger.exceptions import DecodeError
from tradeledger.ledger.models import HistoricalTrade
from tradeledger.ledger.store import TradeLedger


def invert_trade(trade: HistoricalTrade) -> HistoricalTrade:
    """Return the same trade expressed in the inverted pair.

    Raises:
        DecodeError: Price is not a decimal number or is zero.
    """
    price = trade.get_price()
    if price == 0:
        raise DecodeError(f"Trade {trade.trade_id} has zero price, cannot invert")
    return replace(
        trade,
        price=_plain_decimal(1.0 / price),
        quantity=trade.quote_quantity,
        quote_quantity=trade.quantity,
    )


def invert_ledger(ledger: TradeLedger) -> TradeLedger:
    """Build a new ledger holding every trade of ``ledger`` inverted."""
    return TradeLedger.from_records(
        (invert_trade(trade) for trade in ledger),
        batch_limit=ledger.batch_limit,
    )


def _plain_decimal(value: float) -> str:
    """Shortest round-trip text of ``value`` without exponent notation."""
    return format(Decimal(repr(value)), "f")
