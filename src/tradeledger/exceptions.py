"""Custom exceptions for the trade ledger.

Every error names the boundary or invariant that failed so a pagination bug
can be root-caused from the message alone. Adapter-boundary errors
(NetworkError, AuthError, RemoteRejectionError) pass through the ledger
unchanged.
"""


class LedgerError(Exception):
    """Base exception for all trade ledger errors."""


class IoError(LedgerError):
    """Raised when an archive file cannot be opened, read, or written."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"I/O failure on archive '{self.path}': {reason}")


class DecodeError(LedgerError):
    """Raised when archive or batch content is not a valid trade sequence."""


class EncodeError(LedgerError):
    """Raised when in-memory records cannot be represented in the archive format."""


class EmptyArchiveError(LedgerError):
    """Raised when a load or wrap produced zero records."""


class EmptyBatchError(EmptyArchiveError):
    """Raised when the fetch adapter returned zero records for a page."""

    def __init__(self, symbol: str, from_id: int | None) -> None:
        self.symbol = symbol
        self.from_id = from_id
        super().__init__(
            f"Fetched empty batch for symbol '{symbol}' starting at from_id '{from_id}'"
        )


class IntersectingRangeError(LedgerError):
    """Raised when a fetched batch is not strictly older than the stored range."""

    def __init__(self, old_id: int, new_id: int) -> None:
        self.old_id = old_id
        self.new_id = new_id
        super().__init__(
            "Loaded trade data intersects with old trade data; "
            f"old_id: '{old_id}', new_id: '{new_id}'"
        )


class NetworkError(LedgerError):
    """Raised when the remote trade-history API cannot be reached."""


class AuthError(LedgerError):
    """Raised when the API key is missing or rejected by the exchange."""


class RemoteRejectionError(LedgerError):
    """Raised when the exchange answers with a non-success status."""

    def __init__(self, symbol: str, from_id: int | None, body: str) -> None:
        self.symbol = symbol
        self.from_id = from_id
        self.body = body
        super().__init__(
            f"Exchange rejected historicalTrades request for symbol '{symbol}' "
            f"from_id '{from_id}': {body}"
        )


class BalanceUnderflowError(LedgerError):
    """Raised when a simulated balance drops below zero during replay."""

    def __init__(self, asset: str, balance: float) -> None:
        self.asset = asset
        self.balance = balance
        super().__init__(f"{asset} balance < 0! {balance}")
