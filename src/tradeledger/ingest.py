"""Backward ingestion runner: load, extend page by page, save.

The ledger never retries. This runner is its caller and owns the retry
policy: transient NetworkError is retried with exponential backoff, every
other failure aborts the run without saving so the archive on disk keeps its
last valid state.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from tradeledger.config import IngestSettings, LedgerSettings
from tradeledger.exceptions import EmptyBatchError, NetworkError
from tradeledger.exchange.client import TradeHistoryClient
from tradeledger.ledger.store import TradeLedger
from tradeledger.logging import get_logger

logger = get_logger(__name__)


@dataclass
class IngestSummary:
    """Outcome of one ingestion run."""

    pages: int
    records_added: int
    min_trade_id: int
    min_time_ms: int
    total_records: int


def format_time_ms(time_ms: int) -> str:
    """Render epoch milliseconds as a UTC timestamp for progress logs."""
    return datetime.fromtimestamp(time_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


async def run_ingest(
    input_path: str | Path,
    output_path: str | Path,
    count: int,
    symbol: str,
    client: TradeHistoryClient,
    ledger_settings: LedgerSettings | None = None,
    ingest_settings: IngestSettings | None = None,
) -> IngestSummary:
    """Extend the archive at ``input_path`` by ``count`` older pages.

    Args:
        input_path: Existing archive to load.
        output_path: Where the extended archive is saved (may equal input_path).
        count: Number of pages to fetch.
        symbol: Exchange pair symbol, e.g. "ETHBTC".
        client: Fetch adapter.
        ledger_settings: Page size. Defaults to LedgerSettings().
        ingest_settings: Retry and pacing policy. Defaults to IngestSettings().

    Returns:
        IngestSummary for the run.
    """
    if ledger_settings is None:
        ledger_settings = LedgerSettings()
    if ingest_settings is None:
        ingest_settings = IngestSettings()

    ledger = TradeLedger.load(input_path, batch_limit=ledger_settings.batch_limit)
    _log_position("ingest_starting", ledger)

    start_time = time.monotonic()
    records_added = 0

    for page in range(count):
        records_added += await _extend_with_retry(
            ledger, client, symbol, ingest_settings
        )
        _log_position("ingest_page_done", ledger, page=page + 1)

        if page % ingest_settings.progress_every == 0:
            logger.info("ingest_progress", processed=page, total=count)

        if ingest_settings.fetch_batch_delay > 0 and page + 1 < count:
            await asyncio.sleep(ingest_settings.fetch_batch_delay)

    ledger.save(output_path)

    summary = IngestSummary(
        pages=count,
        records_added=records_added,
        min_trade_id=ledger.min_trade_id(),
        min_time_ms=ledger.min_time_milliseconds(),
        total_records=len(ledger),
    )
    logger.info(
        "ingest_complete",
        pages=summary.pages,
        records_added=summary.records_added,
        total_records=summary.total_records,
        min_trade_id=summary.min_trade_id,
        min_time=format_time_ms(summary.min_time_ms),
        elapsed_seconds=round(time.monotonic() - start_time, 1),
    )
    return summary


async def run_seed(
    output_path: str | Path,
    symbol: str,
    client: TradeHistoryClient,
    ledger_settings: LedgerSettings | None = None,
) -> TradeLedger:
    """Create a new archive from the most recent page of trades.

    Raises:
        FileExistsError: ``output_path`` already exists.
        EmptyBatchError: The exchange returned no trades.
    """
    if ledger_settings is None:
        ledger_settings = LedgerSettings()

    output_path = Path(output_path)
    if output_path.exists():
        raise FileExistsError(f"Refusing to overwrite existing archive '{output_path}'")

    batch = await client.fetch_batch(symbol, None, ledger_settings.batch_limit)
    if not batch:
        raise EmptyBatchError(symbol, None)

    ledger = TradeLedger.from_records(batch, batch_limit=ledger_settings.batch_limit)
    ledger.save(output_path)
    _log_position("seed_complete", ledger, path=str(output_path))
    return ledger


async def _extend_with_retry(
    ledger: TradeLedger,
    client: TradeHistoryClient,
    symbol: str,
    settings: IngestSettings,
) -> int:
    """Call extend_older, retrying only transient network failures.

    A failed extend_older leaves the ledger untouched, so retrying it is safe.
    Delays: base, 2*base, 4*base, ... Re-raises on final failure.
    """
    attempts = max(settings.max_retries, 1)

    for attempt in range(attempts):
        try:
            return await ledger.extend_older(client, symbol)
        except NetworkError as e:
            if attempt == attempts - 1:
                logger.error(
                    "fetch_failed_permanently",
                    symbol=symbol,
                    error=str(e),
                    attempts=attempts,
                )
                raise

            delay = settings.retry_base_delay * (2**attempt)
            logger.warning(
                "fetch_retry",
                symbol=symbol,
                attempt=attempt + 1,
                max_retries=attempts,
                delay=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)

    return 0  # Unreachable, but satisfies type checker


def _log_position(event: str, ledger: TradeLedger, **extra: object) -> None:
    logger.info(
        event,
        min_trade_id=ledger.min_trade_id(),
        records=len(ledger),
        min_time=format_time_ms(ledger.min_time_milliseconds()),
        **extra,
    )
