"""Command-line entry point for the trade ledger tools.

Commands:
    init      seed a new archive from the most recent page of trades
    ingest    extend an archive backward in time and save it
    backtest  replay random windows of an archive against a strategy
    invert    write the inverted-pair version of an archive

Any LedgerError is logged and turned into exit status 1.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from tradeledger.backtest.runner import run_backtest
from tradeledger.config import AppSettings
from tradeledger.exceptions import LedgerError
from tradeledger.exchange.binance_client import BinanceTradeClient
from tradeledger.ingest import run_ingest, run_seed
from tradeledger.ledger.invert import invert_ledger
from tradeledger.ledger.store import TradeLedger
from tradeledger.logging import bind_run_context, get_logger, setup_logging

app = typer.Typer(help="Historical trade archive and backtest tools")

logger = get_logger("tradeledger.cli")


def _bootstrap(command: str, **context: object) -> AppSettings:
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    bind_run_context(command=command, **context)
    return settings


def _fail(error: Exception) -> typer.Exit:
    logger.error("command_failed", error_type=type(error).__name__, error=str(error))
    return typer.Exit(code=1)


@app.command()
def init(
    output: Path = typer.Option(..., "--output", "-o", help="Archive file to create"),
    symbol: str = typer.Option("ETHBTC", "--symbol", "-s"),
) -> None:
    """Create a new archive from the most recent page of trades."""
    settings = _bootstrap("init", symbol=symbol, output=str(output))

    async def _run() -> None:
        client = BinanceTradeClient(settings.exchange)
        try:
            await run_seed(output, symbol, client, settings.ledger)
        finally:
            await client.close()

    try:
        asyncio.run(_run())
    except (LedgerError, FileExistsError) as e:
        raise _fail(e) from e


@app.command()
def ingest(
    input_path: Path = typer.Option(..., "--input", "-i", help="Archive to extend"),
    count: int = typer.Option(..., "--count", "-c", min=0, help="Pages to fetch"),
    symbol: str = typer.Option("ETHBTC", "--symbol", "-s"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Where to save (defaults to --input)"
    ),
) -> None:
    """Fetch COUNT older pages into the archive and save it."""
    target = output or input_path
    settings = _bootstrap("ingest", symbol=symbol, archive=str(input_path))

    async def _run() -> None:
        client = BinanceTradeClient(settings.exchange)
        try:
            await run_ingest(
                input_path,
                target,
                count,
                symbol,
                client,
                settings.ledger,
                settings.ingest,
            )
        finally:
            await client.close()

    try:
        asyncio.run(_run())
    except LedgerError as e:
        raise _fail(e) from e


@app.command()
def backtest(
    input_path: Path = typer.Option(..., "--input", "-i", help="Archive to replay"),
    trials: Optional[int] = typer.Option(None, "--trials", "-n", min=1),
    fee: Optional[float] = typer.Option(None, "--fee", "-f", min=0.0),
    strategy: str = typer.Option("hold_until_drop", "--strategy"),
    seed: Optional[int] = typer.Option(None, "--seed"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Replay random windows of the archive and report the success count."""
    settings = _bootstrap("backtest", archive=str(input_path), strategy=strategy)

    try:
        summary = run_backtest(
            input_path,
            trials=trials if trials is not None else settings.backtest.trials,
            fee=fee if fee is not None else settings.backtest.fee,
            strategy=strategy,
            seed=seed,
            verbose=verbose,
            settings=settings.backtest,
        )
    except (LedgerError, ValueError) as e:
        raise _fail(e) from e

    typer.echo(
        f"success count: {summary.success_count}, total_count: {summary.total_count}"
    )


@app.command()
def invert(
    input_path: Path = typer.Option(..., "--input", "-i", help="Archive to invert"),
    output: Path = typer.Option(..., "--output", "-o", help="Inverted archive"),
) -> None:
    """Write the archive re-expressed in the inverted pair."""
    _bootstrap("invert", archive=str(input_path), output=str(output))

    try:
        inverted = invert_ledger(TradeLedger.load(input_path))
        inverted.save(output)
    except LedgerError as e:
        raise _fail(e) from e


if __name__ == "__main__":
    app()
