"""Data model for a single historical trade.

CRITICAL: price, quantity and quote_quantity are kept as the exact decimal text
received from the exchange. Never store them as float; convert on demand only.

Wire format (Binance /api/v3/historicalTrades):
    {
        "id": 340327051,
        "price": "0.06901500",
        "qty": "0.00160000",
        "quoteQty": "0.00011042",
        "time": 1652614347356,
        "isBuyerMaker": false,
        "isBestMatch": true
    }
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from tradeledger.exceptions import DecodeError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Plain decimal or exponent notation; no whitespace, underscores, inf or nan
_DECIMAL_LITERAL = re.compile(
    r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII
)


@dataclass(frozen=True)
class HistoricalTrade:
    """One executed trade. Immutable once ingested."""

    trade_id: int
    price: str
    quantity: str
    quote_quantity: str
    time_milliseconds: int
    is_buyer_maker: bool
    is_best_match: bool

    @classmethod
    def from_wire(cls, payload: object) -> "HistoricalTrade":
        """Build a trade from a wire-format dict, validating every field.

        Raises:
            DecodeError: If a field is missing or has the wrong type.
        """
        if not isinstance(payload, dict):
            raise DecodeError(
                f"Trade entry must be an object, got {type(payload).__name__}"
            )
        return cls(
            trade_id=_require_int64(payload, "id"),
            price=_require_str(payload, "price"),
            quantity=_require_str(payload, "qty"),
            quote_quantity=_require_str(payload, "quoteQty"),
            time_milliseconds=_require_int64(payload, "time"),
            is_buyer_maker=_require_bool(payload, "isBuyerMaker"),
            is_best_match=_require_bool(payload, "isBestMatch"),
        )

    def to_wire(self) -> dict:
        """Serialize to the wire-format dict used by the exchange and the archive."""
        return {
            "id": self.trade_id,
            "price": self.price,
            "qty": self.quantity,
            "quoteQty": self.quote_quantity,
            "time": self.time_milliseconds,
            "isBuyerMaker": self.is_buyer_maker,
            "isBestMatch": self.is_best_match,
        }

    def get_price(self) -> float:
        """Return the trade price as a float for arithmetic consumers.

        Raises:
            DecodeError: If the stored text is not a finite decimal number.
        """
        return _to_float(self.trade_id, "price", self.price)

    def get_quantity(self) -> float:
        """Return the base quantity as a float."""
        return _to_float(self.trade_id, "qty", self.quantity)

    def get_quote_quantity(self) -> float:
        """Return the quote quantity as a float."""
        return _to_float(self.trade_id, "quoteQty", self.quote_quantity)


def _to_float(trade_id: int, field: str, text: str) -> float:
    if not _DECIMAL_LITERAL.fullmatch(text):
        raise DecodeError(f"Trade {trade_id} has non-decimal {field} '{text}'")
    try:
        value = float(Decimal(text))
    except InvalidOperation as e:
        raise DecodeError(
            f"Trade {trade_id} has non-decimal {field} '{text}'"
        ) from e
    # finite text can still overflow a float, e.g. "1e400"
    if not math.isfinite(value):
        raise DecodeError(f"Trade {trade_id} has non-finite {field} '{text}'")
    return value


def _require_int64(payload: dict, field: str) -> int:
    value = _require(payload, field)
    # bool is an int subclass; JSON true/false must not pass as an id or time
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(
            f"Field '{field}' must be an integer, got {type(value).__name__}"
        )
    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"Field '{field}' value {value} is outside int64 range")
    return value


def _require_str(payload: dict, field: str) -> str:
    value = _require(payload, field)
    if not isinstance(value, str):
        raise DecodeError(
            f"Field '{field}' must be a decimal string, got {type(value).__name__}"
        )
    return value


def _require_bool(payload: dict, field: str) -> bool:
    value = _require(payload, field)
    if not isinstance(value, bool):
        raise DecodeError(
            f"Field '{field}' must be a boolean, got {type(value).__name__}"
        )
    return value


def _require(payload: dict, field: str) -> object:
    try:
        return payload[field]
    except KeyError as e:
        raise DecodeError(f"Trade entry is missing field '{field}'") from e
