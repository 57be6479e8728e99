"""Trade ledger: record model, JSON archive codec, and invariant-checked store."""

from tradeledger.ledger.models import HistoricalTrade
from tradeledger.ledger.codec import decode_trades, encode_trades
from tradeledger.ledger.store import DEFAULT_BATCH_LIMIT, TradeLedger
from tradeledger.ledger.invert import invert_ledger, invert_trade

__all__ = [
    "DEFAULT_BATCH_LIMIT",
    "HistoricalTrade",
    "TradeLedger",
    "decode_trades",
    "encode_trades",
    "invert_ledger",
    "invert_trade",
]
