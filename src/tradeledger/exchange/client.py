"""Abstract trade-history client interface.

The ledger depends only on this contract. Authentication, connection
handling and status-code interpretation stay in the concrete implementation.
"""

from abc import ABC, abstractmethod

from tradeledger.ledger.models import HistoricalTrade


class TradeHistoryClient(ABC):
    """Abstract base class for historical trade fetch adapters."""

    @abstractmethod
    async def fetch_batch(
        self,
        pair_symbol: str,
        from_id: int | None,
        limit: int,
    ) -> list[HistoricalTrade]:
        """Fetch up to ``limit`` trades starting at ``from_id``.

        Returns trades ordered ascending by trade_id. ``from_id=None`` asks
        for the most recent page.

        Pagination is NOT handled here -- the ledger computes the cursor.

        Raises:
            NetworkError: Transport failure.
            AuthError: Missing or rejected API key.
            RemoteRejectionError: The exchange answered with a non-success status.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources (CRITICAL for ccxt async)."""
        ...
