"""JSON codec for the persisted trade archive.

The archive is a single JSON array with one wire-format object per trade.
Decimal fields are JSON strings, so they survive a round trip byte-for-byte.
Physical array order is not significant; readers re-sort by id.
"""

import json
from collections.abc import Iterable

from tradeledger.exceptions import DecodeError, EncodeError
from tradeledger.ledger.models import INT64_MAX, INT64_MIN, HistoricalTrade


def decode_trades(raw: bytes | str) -> list[HistoricalTrade]:
    """Parse archive content into trades, preserving physical order.

    Raises:
        DecodeError: If the content is not JSON, not an array, or any entry
            does not match the trade schema.
    """
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Archive is not valid JSON: {e}") from e
    except RecursionError as e:
        raise DecodeError(f"Archive nesting is too deep to decode: {e}") from e

    if not isinstance(payload, list):
        raise DecodeError(
            f"Archive top level must be an array, got {type(payload).__name__}"
        )

    trades = []
    for position, entry in enumerate(payload):
        try:
            trades.append(HistoricalTrade.from_wire(entry))
        except DecodeError as e:
            raise DecodeError(f"Archive entry {position}: {e}") from e
    return trades


def encode_trades(trades: Iterable[HistoricalTrade]) -> bytes:
    """Serialize trades to a complete archive buffer.

    Raises:
        EncodeError: If a record cannot be represented in the archive format.
    """
    entries = []
    for trade in trades:
        _check_encodable(trade)
        entries.append(trade.to_wire())
    try:
        text = json.dumps(entries, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise EncodeError(f"Trade records are not JSON serializable: {e}") from e
    return text.encode("utf-8")


def _check_encodable(trade: HistoricalTrade) -> None:
    for field in ("trade_id", "time_milliseconds"):
        value = getattr(trade, field)
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(
                f"Trade {trade.trade_id} field '{field}' is not an integer"
            )
        if not INT64_MIN <= value <= INT64_MAX:
            raise EncodeError(
                f"Trade {trade.trade_id} field '{field}' value {value} is outside int64 range"
            )
    for field in ("price", "quantity", "quote_quantity"):
        if not isinstance(getattr(trade, field), str):
            raise EncodeError(
                f"Trade {trade.trade_id} field '{field}' is not a decimal string"
            )
