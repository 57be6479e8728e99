"""Exchange client layer -- Binance historical trades via ccxt."""

from tradeledger.exchange.binance_client import BinanceTradeClient
from tradeledger.exchange.client import TradeHistoryClient

__all__ = ["BinanceTradeClient", "TradeHistoryClient"]
