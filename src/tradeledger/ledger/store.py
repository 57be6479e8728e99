"""In-memory trade ledger with invariant-checked backward extension.

TradeLedger holds a single contiguous range of trade ids for one pair. It only
ever grows toward older trades: each extend_older() call fetches the page
directly below the current minimum id and attaches it there.

Storage is canonical ascending order by trade_id, kept as a list of pages.
The first page is the newest block; every successful extension appends an
older page, and record_at() maps logical indices onto pages with bisect.

Invariants:
- Never empty. An empty archive is a construction error.
- No duplicate trade ids.
- Ascending id order is consistent with ascending time order.
- A batch is merged only when it is strictly older than the current minimum.
"""

import os
import stat
import tempfile
from bisect import bisect_right
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from tradeledger.exceptions import (
    DecodeError,
    EmptyArchiveError,
    EmptyBatchError,
    IntersectingRangeError,
    IoError,
)
from tradeledger.ledger.codec import decode_trades, encode_trades
from tradeledger.ledger.models import HistoricalTrade
from tradeledger.logging import get_logger

if TYPE_CHECKING:
    from tradeledger.exchange.client import TradeHistoryClient

logger = get_logger(__name__)

DEFAULT_BATCH_LIMIT = 1000


class TradeLedger:
    """Append-only archive of historical trades for one trading pair.

    Build instances with load() or from_records(); the constructor expects an
    already validated ascending page.

    Usage:
        ledger = TradeLedger.load("historical_trades.json")
        await ledger.extend_older(client, "ETHBTC")
        ledger.save("historical_trades.json")
    """

    def __init__(
        self,
        trades: list[HistoricalTrade],
        batch_limit: int = DEFAULT_BATCH_LIMIT,
    ) -> None:
        if not trades:
            raise EmptyArchiveError("Trade ledger cannot be empty")
        if batch_limit <= 0:
            raise ValueError(f"batch_limit must be positive, got {batch_limit}")
        self._batch_limit = batch_limit
        # Newest page first; each page ascending by trade_id
        self._pages: list[list[HistoricalTrade]] = [trades]
        # _offsets[j] = number of records in pages newer than page j
        self._offsets: list[int] = [0]
        self._length = len(trades)

    # ──────────────────────────────────────────────
    # Construction
    # ──────────────────────────────────────────────

    @classmethod
    def load(
        cls, path: str | Path, batch_limit: int = DEFAULT_BATCH_LIMIT
    ) -> "TradeLedger":
        """Read a persisted archive.

        The file's physical order is ignored: records are re-sorted by id and
        the extremities are derived from the sorted data.

        Raises:
            IoError: File missing or unreadable.
            DecodeError: Content is not a valid archive.
            EmptyArchiveError: Archive decodes to zero records.
        """
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise IoError(path, str(e)) from e

        try:
            trades = decode_trades(raw)
        except DecodeError as e:
            raise DecodeError(f"Cannot decode archive '{path}': {e}") from e
        if not trades:
            raise EmptyArchiveError(f"Archive '{path}' contains no trades")

        ledger = cls(_canonical_order(trades, source=str(path)), batch_limit)
        logger.info(
            "ledger_loaded",
            path=str(path),
            records=len(ledger),
            min_trade_id=ledger.min_trade_id(),
            max_trade_id=ledger.max_trade_id(),
        )
        return ledger

    @classmethod
    def from_records(
        cls,
        records: Iterable[HistoricalTrade],
        batch_limit: int = DEFAULT_BATCH_LIMIT,
    ) -> "TradeLedger":
        """Wrap an in-memory batch as a ledger.

        Raises:
            EmptyArchiveError: No records given.
            DecodeError: Duplicate ids or id/time order disagreement.
        """
        trades = list(records)
        if not trades:
            raise EmptyArchiveError("Cannot build a trade ledger from zero records")
        return cls(_canonical_order(trades, source="records"), batch_limit)

    # ──────────────────────────────────────────────
    # Accessors
    # ──────────────────────────────────────────────

    @property
    def batch_limit(self) -> int:
        return self._batch_limit

    def min_trade_id(self) -> int:
        return self._pages[-1][0].trade_id

    def max_trade_id(self) -> int:
        return self._pages[0][-1].trade_id

    def min_time_milliseconds(self) -> int:
        return self._pages[-1][0].time_milliseconds

    def max_time_milliseconds(self) -> int:
        return self._pages[0][-1].time_milliseconds

    def __len__(self) -> int:
        return self._length

    def record_at(self, logical_index: int) -> HistoricalTrade:
        """Return the record at a logical position.

        Index 0 is the highest-id (newest) trade; increasing indices walk
        toward older trades. Index 0 stays stable as the archive grows
        backward in time.

        Raises:
            IndexError: Index outside [0, len).
        """
        if not 0 <= logical_index < self._length:
            raise IndexError(
                f"Logical index {logical_index} out of range for ledger of {self._length}"
            )
        page_no = bisect_right(self._offsets, logical_index) - 1
        page = self._pages[page_no]
        return page[len(page) - 1 - (logical_index - self._offsets[page_no])]

    def records(self) -> list[HistoricalTrade]:
        """Return all records ascending by trade_id (a copy)."""
        return list(self._iter_ascending())

    def __iter__(self) -> Iterator[HistoricalTrade]:
        return self._iter_ascending()

    def _iter_ascending(self) -> Iterator[HistoricalTrade]:
        for page in reversed(self._pages):
            yield from page

    # ──────────────────────────────────────────────
    # Mutation
    # ──────────────────────────────────────────────

    async def extend_older(
        self, fetch_adapter: "TradeHistoryClient", pair_symbol: str
    ) -> int:
        """Fetch the page directly below the current minimum and attach it.

        Adapter errors propagate unchanged. The ledger is only mutated after
        every check passes, so a failed call leaves it exactly as it was.

        Returns:
            Number of records added.

        Raises:
            EmptyBatchError: The adapter returned zero records.
            IntersectingRangeError: The batch is not strictly older than the
                current minimum id.
            DecodeError: The batch contains duplicate ids or its id and time
                order disagree with the stored range.
        """
        old_min_id = self.min_trade_id()
        target_from_id = old_min_id - self._batch_limit

        batch = await fetch_adapter.fetch_batch(
            pair_symbol, target_from_id, self._batch_limit
        )

        if not batch:
            raise EmptyBatchError(pair_symbol, target_from_id)

        boundary_id = min(trade.trade_id for trade in batch)
        if boundary_id >= old_min_id:
            raise IntersectingRangeError(old_min_id, boundary_id)

        page = _canonical_order(batch, source=f"batch from_id={target_from_id}")

        newest_in_batch = page[-1]
        if newest_in_batch.trade_id >= old_min_id:
            raise IntersectingRangeError(old_min_id, newest_in_batch.trade_id)
        if newest_in_batch.time_milliseconds > self.min_time_milliseconds():
            raise DecodeError(
                f"Batch from_id={target_from_id} trade {newest_in_batch.trade_id} "
                f"at {newest_in_batch.time_milliseconds}ms is newer than stored "
                f"minimum trade {old_min_id} at {self.min_time_milliseconds()}ms"
            )

        gap = old_min_id - newest_in_batch.trade_id - 1
        if gap > 0:
            logger.warning(
                "ledger_gap_detected",
                symbol=pair_symbol,
                old_min_id=old_min_id,
                batch_max_id=newest_in_batch.trade_id,
                missing_ids=gap,
            )

        self._offsets.append(self._length)
        self._pages.append(page)
        self._length += len(page)

        logger.debug(
            "ledger_extended",
            symbol=pair_symbol,
            added=len(page),
            min_trade_id=self.min_trade_id(),
            records=self._length,
        )
        return len(page)

    # ──────────────────────────────────────────────
    # Persistence
    # ──────────────────────────────────────────────

    def save(self, path: str | Path) -> None:
        """Persist the full record set atomically.

        The archive is encoded into a complete buffer first, written to a
        temporary sibling file, fsynced, then moved over ``path``. A failure at
        any step leaves a previously valid file untouched. File permissions are
        preserved across the replace.

        Raises:
            EncodeError: Records cannot be represented in the archive format.
            IoError: Filesystem failure.
        """
        path = Path(path)
        buffer = encode_trades(self._iter_ascending())

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
        except OSError as e:
            raise IoError(path, str(e)) from e

        try:
            with os.fdopen(fd, "wb") as tmp_file:
                tmp_file.write(buffer)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            os.chmod(tmp_name, _target_mode(path))
            os.replace(tmp_name, path)
        except OSError as e:
            _discard(tmp_name)
            raise IoError(path, str(e)) from e

        logger.info(
            "ledger_saved",
            path=str(path),
            records=self._length,
            bytes=len(buffer),
            min_trade_id=self.min_trade_id(),
            max_trade_id=self.max_trade_id(),
        )


def _canonical_order(
    trades: list[HistoricalTrade], source: str
) -> list[HistoricalTrade]:
    """Sort trades by id and verify uniqueness and id/time agreement."""
    ordered = sorted(trades, key=lambda trade: trade.trade_id)
    for previous, current in zip(ordered, ordered[1:]):
        if current.trade_id == previous.trade_id:
            raise DecodeError(
                f"Duplicate trade id {current.trade_id} in {source}"
            )
        if current.time_milliseconds < previous.time_milliseconds:
            raise DecodeError(
                f"Trade {current.trade_id} at {current.time_milliseconds}ms is older "
                f"than trade {previous.trade_id} at {previous.time_milliseconds}ms "
                f"in {source}"
            )
    return ordered


def _discard(tmp_name: str) -> None:
    try:
        os.unlink(tmp_name)
    except FileNotFoundError:
        pass


def _target_mode(path: Path) -> int:
    """Permission bits the saved archive should end up with.

    An existing archive keeps its mode. A new one gets the usual 0o666 minus
    the process umask instead of mkstemp's 0o600.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask
