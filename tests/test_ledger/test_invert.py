"""Tests for the inverted-pair archive tool."""

import pytest

from tradeledger.exceptions import DecodeError
from tradeledger.ledger.invert import invert_ledger, invert_trade
from tradeledger.ledger.store import TradeLedger


class TestInvertTrade:
    def test_reciprocal_price_and_swapped_quantities(self, trade_factory) -> None:
        trade = trade_factory(
            42, price="0.05000000", quantity="2.00000000", quote_quantity="0.10000000"
        )
        inverted = invert_trade(trade)
        assert inverted.price == "20.0"
        assert inverted.quantity == "0.10000000"
        assert inverted.quote_quantity == "2.00000000"

    def test_small_reciprocal_written_without_exponent(self, trade_factory) -> None:
        inverted = invert_trade(trade_factory(7, price="60000.00000000"))
        assert inverted.price == "0.000016666666666666667"
        assert inverted.get_price() == pytest.approx(1 / 60000)

    def test_large_reciprocal_written_without_exponent(self, trade_factory) -> None:
        # 2**-60, whose reciprocal 2**60 has repr 1.152921504606847e+18
        price = "0.000000000000000000867361737988403547205962240695953369140625"
        inverted = invert_trade(trade_factory(7, price=price))
        assert inverted.price == "1152921504606847000"

    def test_identity_fields_unchanged(self, trade_factory) -> None:
        trade = trade_factory(42, time_ms=777, is_buyer_maker=True, is_best_match=False)
        inverted = invert_trade(trade)
        assert inverted.trade_id == 42
        assert inverted.time_milliseconds == 777
        assert inverted.is_buyer_maker is True
        assert inverted.is_best_match is False

    def test_zero_price_rejected(self, trade_factory) -> None:
        with pytest.raises(DecodeError, match="zero price"):
            invert_trade(trade_factory(1, price="0.00000000"))

    def test_corrupt_price_rejected(self, trade_factory) -> None:
        with pytest.raises(DecodeError):
            invert_trade(trade_factory(1, price="n/a"))


class TestInvertLedger:
    def test_builds_new_ledger(self, trade_factory) -> None:
        ledger = TradeLedger.from_records(
            [trade_factory(i, price="0.25") for i in (5, 6, 7)], batch_limit=50
        )
        inverted = invert_ledger(ledger)

        assert inverted is not ledger
        assert len(inverted) == 3
        assert inverted.min_trade_id() == 5
        assert inverted.batch_limit == 50
        assert {t.price for t in inverted} == {"4.0"}
        # source untouched
        assert {t.price for t in ledger} == {"0.25"}
