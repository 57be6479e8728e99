"""Shared test fixtures for the trade ledger."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from tradeledger.config import AppSettings, ExchangeSettings, IngestSettings, LedgerSettings
from tradeledger.exchange.client import TradeHistoryClient
from tradeledger.ledger.models import HistoricalTrade


def make_trade(
    trade_id: int,
    time_ms: int | None = None,
    price: str = "0.06901500",
    quantity: str = "0.00160000",
    quote_quantity: str = "0.00011042",
    is_buyer_maker: bool = False,
    is_best_match: bool = True,
) -> HistoricalTrade:
    """Build a trade whose time defaults to a value increasing with its id."""
    return HistoricalTrade(
        trade_id=trade_id,
        price=price,
        quantity=quantity,
        quote_quantity=quote_quantity,
        time_milliseconds=time_ms if time_ms is not None else 1652614347000 + trade_id,
        is_buyer_maker=is_buyer_maker,
        is_best_match=is_best_match,
    )


class FakeTradeClient(TradeHistoryClient):
    """Scripted fetch adapter.

    Each call pops the next scripted response. A response that is an
    exception instance is raised instead of returned.
    """

    def __init__(self, responses: list[list[HistoricalTrade] | Exception]) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, int | None, int]] = []
        self.closed = False

    async def fetch_batch(
        self,
        pair_symbol: str,
        from_id: int | None,
        limit: int,
    ) -> list[HistoricalTrade]:
        self.calls.append((pair_symbol, from_id, limit))
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return list(response)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def trade_factory() -> Callable[..., HistoricalTrade]:
    """Factory for HistoricalTrade records."""
    return make_trade


@pytest.fixture
def fake_client() -> Callable[..., FakeTradeClient]:
    """Factory for scripted fetch adapters."""
    return FakeTradeClient


@pytest.fixture
def write_archive(tmp_path: Path) -> Callable[..., Path]:
    """Write wire-format entries to a JSON archive and return its path."""

    def _write(trades: list[HistoricalTrade], name: str = "trades.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps([t.to_wire() for t in trades]))
        return path

    return _write


@pytest.fixture
def small_archive(write_archive: Callable[..., Path]) -> Path:
    """Archive with ids {100, 101, 102} stored out of order."""
    return write_archive([make_trade(102), make_trade(100), make_trade(101)])


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (dummy API key, no retry delay)."""
    return AppSettings(
        log_level="DEBUG",
        exchange=ExchangeSettings(api_key="test-api-key"),  # type: ignore[arg-type]
        ledger=LedgerSettings(batch_limit=3),
        ingest=IngestSettings(max_retries=3, retry_base_delay=0.0),
    )
