"""Tests for the typer command-line entry point."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tradeledger.cli import app
from tradeledger.config import AppSettings

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_settings(mock_settings: AppSettings):
    """Make every command run with the test settings instead of the environment."""
    with (
        patch("tradeledger.cli.AppSettings", return_value=mock_settings),
        patch("tradeledger.cli.setup_logging"),
    ):
        yield mock_settings


def _ids(path: Path) -> list[int]:
    return [entry["id"] for entry in json.loads(path.read_text())]


class TestIngestCommand:
    def test_extends_archive_in_place(
        self, small_archive: Path, fake_client, trade_factory
    ) -> None:
        client = fake_client([[trade_factory(97), trade_factory(98), trade_factory(99)]])
        with patch("tradeledger.cli.BinanceTradeClient", return_value=client):
            result = runner.invoke(app, ["ingest", "-i", str(small_archive), "-c", "1"])

        assert result.exit_code == 0, result.output
        assert _ids(small_archive) == list(range(97, 103))
        assert client.calls == [("ETHBTC", 97, 3)]
        assert client.closed is True

    def test_output_option(
        self, small_archive: Path, tmp_path: Path, fake_client, trade_factory
    ) -> None:
        out = tmp_path / "out.json"
        client = fake_client([[trade_factory(99)]])
        with patch("tradeledger.cli.BinanceTradeClient", return_value=client):
            result = runner.invoke(
                app,
                ["ingest", "-i", str(small_archive), "-c", "1", "-o", str(out), "-s", "BNBBTC"],
            )

        assert result.exit_code == 0, result.output
        assert _ids(out) == [99, 100, 101, 102]
        assert _ids(small_archive) == [100, 101, 102]
        assert client.calls[0][0] == "BNBBTC"

    def test_overlap_exits_with_status_one(
        self, small_archive: Path, fake_client, trade_factory
    ) -> None:
        original = small_archive.read_bytes()
        client = fake_client([[trade_factory(101)]])
        with patch("tradeledger.cli.BinanceTradeClient", return_value=client):
            result = runner.invoke(app, ["ingest", "-i", str(small_archive), "-c", "1"])

        assert result.exit_code == 1
        assert small_archive.read_bytes() == original
        assert client.closed is True

    def test_missing_archive(self, tmp_path: Path, fake_client) -> None:
        with patch("tradeledger.cli.BinanceTradeClient", return_value=fake_client([])):
            result = runner.invoke(
                app, ["ingest", "-i", str(tmp_path / "absent.json"), "-c", "1"]
            )
        assert result.exit_code == 1


class TestInitCommand:
    def test_seeds_new_archive(self, tmp_path: Path, fake_client, trade_factory) -> None:
        out = tmp_path / "seed.json"
        client = fake_client([[trade_factory(11), trade_factory(10)]])
        with patch("tradeledger.cli.BinanceTradeClient", return_value=client):
            result = runner.invoke(app, ["init", "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert _ids(out) == [10, 11]
        assert client.calls == [("ETHBTC", None, 3)]

    def test_existing_file_is_refused(self, small_archive: Path, fake_client) -> None:
        original = small_archive.read_bytes()
        with patch("tradeledger.cli.BinanceTradeClient", return_value=fake_client([])):
            result = runner.invoke(app, ["init", "-o", str(small_archive)])
        assert result.exit_code == 1
        assert small_archive.read_bytes() == original


class TestBacktestCommand:
    def test_prints_counts(self, write_archive, trade_factory) -> None:
        path = write_archive([trade_factory(i, price=str(50 - i)) for i in range(1, 40)])
        result = runner.invoke(
            app, ["backtest", "-i", str(path), "-n", "20", "--seed", "5"]
        )
        assert result.exit_code == 0, result.output
        assert "total_count: 20" in result.output
        assert "success count: " in result.output

    def test_unknown_strategy(self, small_archive: Path) -> None:
        result = runner.invoke(
            app, ["backtest", "-i", str(small_archive), "-n", "1", "--strategy", "nope"]
        )
        assert result.exit_code == 1

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(app, ["backtest", "-i", str(path), "-n", "1"])
        assert result.exit_code == 1


class TestInvertCommand:
    def test_writes_inverted_archive(self, write_archive, trade_factory, tmp_path: Path) -> None:
        path = write_archive([trade_factory(1, price="0.5"), trade_factory(2, price="0.25")])
        out = tmp_path / "inverted.json"
        result = runner.invoke(app, ["invert", "-i", str(path), "-o", str(out)])

        assert result.exit_code == 0, result.output
        entries = json.loads(out.read_text())
        assert [e["price"] for e in entries] == ["2.0", "4.0"]

    def test_missing_input(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["invert", "-i", str(tmp_path / "nope.json"), "-o", str(tmp_path / "x.json")]
        )
        assert result.exit_code == 1
        assert not (tmp_path / "x.json").exists()
