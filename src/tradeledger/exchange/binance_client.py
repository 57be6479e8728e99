"""Binance historical trades client via ccxt async.

Calls GET /api/v3/historicalTrades through ccxt's implicit API rather than the
unified fetch_trades(): the raw response keeps price/qty/quoteQty as exact
decimal strings, which the ledger persists verbatim. ccxt attaches the API key
as the X-MBX-APIKEY header for this endpoint.
"""

import ccxt.async_support as ccxt_async

from tradeledger.config import ExchangeSettings
from tradeledger.exceptions import (
    AuthError,
    DecodeError,
    NetworkError,
    RemoteRejectionError,
)
from tradeledger.exchange.client import TradeHistoryClient
from tradeledger.ledger.models import HistoricalTrade
from tradeledger.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 1000


class BinanceTradeClient(TradeHistoryClient):
    """Concrete fetch adapter for Binance spot historical trades."""

    def __init__(self, settings: ExchangeSettings) -> None:
        self._settings = settings
        self._exchange = ccxt_async.binance(
            {
                "apiKey": settings.api_key.get_secret_value(),
                "enableRateLimit": True,
                "timeout": settings.timeout_ms,
            }
        )

    @property
    def exchange(self) -> ccxt_async.binance:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def fetch_batch(
        self,
        pair_symbol: str,
        from_id: int | None,
        limit: int,
    ) -> list[HistoricalTrade]:
        """Fetch one page of historical trades, ascending by id."""
        if not self._settings.api_key.get_secret_value():
            raise AuthError(
                "No api key found in env variable. Please set it to BINANCE_API_KEY"
            )

        params: dict = {"symbol": pair_symbol, "limit": min(limit, MAX_PAGE_SIZE)}
        if from_id is not None:
            params["fromId"] = from_id

        logger.debug("fetching_historical_trades", **params)

        try:
            payload = await self._exchange.publicGetHistoricalTrades(params)
        except ccxt_async.AuthenticationError as e:
            raise AuthError(f"Binance rejected API key: {e}") from e
        except ccxt_async.NetworkError as e:
            raise NetworkError(
                f"historicalTrades request for symbol '{pair_symbol}' "
                f"from_id '{from_id}' failed: {e}"
            ) from e
        except ccxt_async.BaseError as e:
            raise RemoteRejectionError(pair_symbol, from_id, str(e)) from e

        if not isinstance(payload, list):
            raise DecodeError(
                f"historicalTrades response for symbol '{pair_symbol}' is not a list: "
                f"{payload!r}"
            )

        trades = [HistoricalTrade.from_wire(entry) for entry in payload]
        trades.sort(key=lambda trade: trade.trade_id)

        logger.debug(
            "fetched_historical_trades",
            symbol=pair_symbol,
            from_id=from_id,
            count=len(trades),
        )
        return trades

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        await self._exchange.close()
        logger.debug("binance_connection_closed")
