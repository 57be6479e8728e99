"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExchangeSettings(BaseSettings):
    """Binance connection settings for the historical trades endpoint."""

    model_config = SettingsConfigDict(env_prefix="BINANCE_")

    api_key: SecretStr = SecretStr("")
    timeout_ms: int = 10000


class LedgerSettings(BaseSettings):
    """Trade archive parameters.

    batch_limit is the page size requested per backward extension. Binance
    caps historicalTrades at 1000 records per call.
    """

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    batch_limit: int = 1000
    archive_path: str = "historical_trades.json"
    default_symbol: str = "ETHBTC"


class IngestSettings(BaseSettings):
    """Retry and pacing policy for the ingestion runner.

    The ledger itself never retries. Only transient network failures are
    retried here, everything else aborts the run.
    """

    model_config = SettingsConfigDict(env_prefix="INGEST_")

    max_retries: int = 5
    retry_base_delay: float = 1.0
    fetch_batch_delay: float = 0.0  # seconds between pages
    progress_every: int = 100  # pages between checkpoint log lines


class BacktestSettings(BaseSettings):
    """Randomized replay defaults."""

    model_config = SettingsConfigDict(env_prefix="BACKTEST_")

    fee: float = 0.00001
    trials: int = 10000
    initial_base: float = 1.0
    initial_quote: float = 0.0


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json" (LOG_FORMAT)
    exchange: ExchangeSettings = ExchangeSettings()
    ledger: LedgerSettings = LedgerSettings()
    ingest: IngestSettings = IngestSettings()
    backtest: BacktestSettings = BacktestSettings()
