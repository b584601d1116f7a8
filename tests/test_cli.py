"""Tests for the CLI interface."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from bookmark_router.cli import main
from bookmark_router.config import AppConfig, save_config
from bookmark_router.enrichment import minimal_enrichment
from bookmark_router.source import SourceError
from bookmark_router.state import ProcessedLedger


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.toml"


@pytest.fixture
def state_path(tmp_path, monkeypatch):
    path = tmp_path / "processed.json"
    monkeypatch.setenv("STATE_PATH", str(path))
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("BOOKMARK_COUNT", raising=False)
    monkeypatch.delenv("DRY_RUN", raising=False)
    return path


@pytest.fixture
def configured(config_path):
    """Create a valid config file."""
    save_config(AppConfig(), config_path)
    return config_path


@pytest.fixture
def populated_ledger(state_path, sample_bookmarks, clock):
    ledger = ProcessedLedger(state_path, clock=clock)
    ledger.mark_processed(
        sample_bookmarks[0].id,
        author="testuser",
        destination="omnifocus",
        action="send_to_omnifocus",
        bookmark=sample_bookmarks[0],
    )
    clock.advance(minutes=5)
    ledger.mark_error(
        sample_bookmarks[1].id, "Rate limited.", author="photouser", bookmark=sample_bookmarks[1]
    )
    ledger.save()
    return ledger


class TestCLI:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Bookmark Router" in result.output
        for command in ("init", "run", "list", "reprocess", "status"):
            assert command in result.output

    def test_init_creates_config(self, runner, config_path):
        result = runner.invoke(main, ["--config", str(config_path), "init"])
        assert result.exit_code == 0
        assert "Config saved" in result.output
        assert config_path.exists()

    def test_init_keeps_existing_config(self, runner, configured):
        result = runner.invoke(main, ["--config", str(configured), "init"])
        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_status_without_config(self, runner, config_path, state_path):
        result = runner.invoke(main, ["--config", str(config_path), "status"])
        assert result.exit_code == 0
        assert "Not configured" in result.output
        assert "Processed bookmarks: 0" in result.output
        assert "Last run: never" in result.output
        assert "API key: missing" in result.output

    def test_status_with_state(self, runner, configured, populated_ledger):
        result = runner.invoke(main, ["--config", str(configured), "status"])
        assert result.exit_code == 0
        assert "Found" in result.output
        assert "Processed bookmarks: 2" in result.output

    def test_invalid_config(self, runner, config_path, state_path):
        config_path.write_text("not = [valid")
        result = runner.invoke(main, ["--config", str(config_path), "status"])
        assert result.exit_code == 1

    def test_run_help_shows_options(self, runner):
        result = runner.invoke(main, ["run", "--help"])
        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "--count" in result.output


class TestList:
    def test_empty(self, runner, config_path, state_path):
        result = runner.invoke(main, ["--config", str(config_path), "list"])
        assert result.exit_code == 0
        assert "No processed bookmarks yet." in result.output

    def test_newest_first_with_indexes(self, runner, config_path, populated_ledger):
        result = runner.invoke(main, ["--config", str(config_path), "list"])

        assert result.exit_code == 0
        lines = [line for line in result.output.splitlines() if "@" in line]
        assert "9876543210" in lines[0]
        assert "ERROR Rate limited." in lines[0]
        assert lines[0].strip().startswith("-1")
        assert "1234567890" in lines[1]
        assert "omnifocus" in lines[1]
        assert "Total: 2 processed bookmarks" in result.output


class TestRun:
    @patch("bookmark_router.source.BirdClient.fetch_bookmarks")
    def test_source_failure_exits(self, mock_fetch, runner, config_path, state_path):
        mock_fetch.side_effect = SourceError("bird exited with code 1: no auth")

        result = runner.invoke(main, ["--config", str(config_path), "run"])

        assert result.exit_code == 1
        assert "Failed to fetch bookmarks" in result.output
        assert not state_path.exists()

    @patch("bookmark_router.source.BirdClient.fetch_bookmarks")
    def test_nothing_new(self, mock_fetch, runner, config_path, state_path):
        mock_fetch.return_value = []

        result = runner.invoke(main, ["--config", str(config_path), "run", "-n", "5"])

        assert result.exit_code == 0
        mock_fetch.assert_called_once_with(5)
        assert "Mode: LIVE" in result.output
        assert "Fetched 0 bookmarks, 0 new." in result.output
        assert "No new bookmarks to process." in result.output

    @patch("bookmark_router.source.BirdClient.fetch_bookmarks")
    def test_closes_destinations(self, mock_fetch, runner, config_path, state_path):
        mock_fetch.return_value = []

        with patch("bookmark_router.destinations.DestinationRegistry.close") as mock_close:
            result = runner.invoke(main, ["--config", str(config_path), "run"])

        assert result.exit_code == 0
        mock_close.assert_called_once_with()

    @patch("bookmark_router.source.BirdClient.fetch_bookmarks")
    def test_missing_api_key_records_errors(
        self, mock_fetch, runner, config_path, state_path, sample_bookmarks
    ):
        mock_fetch.return_value = sample_bookmarks[1:2]

        with patch("bookmark_router.enrichment.Enricher.enrich_safely") as mock_enrich:
            mock_enrich.side_effect = minimal_enrichment
            result = runner.invoke(main, ["--config", str(config_path), "run"])

        assert result.exit_code == 0
        assert "Errors: 1" in result.output
        entry = ProcessedLedger(state_path).get_entry(sample_bookmarks[1].id)
        assert entry.error == "ANTHROPIC_API_KEY is not set"

    @patch("bookmark_router.source.BirdClient.fetch_bookmarks")
    def test_save_failure_exits(
        self, mock_fetch, runner, config_path, state_path, tmp_path, monkeypatch, sample_bookmarks
    ):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        monkeypatch.setenv("STATE_PATH", str(blocker / "processed.json"))
        mock_fetch.return_value = sample_bookmarks[:1]

        with patch("bookmark_router.enrichment.Enricher.enrich_safely") as mock_enrich:
            mock_enrich.side_effect = minimal_enrichment
            result = runner.invoke(main, ["--config", str(config_path), "run"])

        assert result.exit_code == 1
        assert "Failed to save state" in result.output

    @patch("bookmark_router.source.BirdClient.fetch_bookmarks")
    def test_dry_run_flag(self, mock_fetch, runner, config_path, state_path):
        mock_fetch.return_value = []

        result = runner.invoke(main, ["--config", str(config_path), "run", "--dry-run"])

        assert result.exit_code == 0
        assert "Mode: DRY RUN" in result.output


class TestReprocess:
    def test_nothing_to_reprocess(self, runner, config_path, state_path):
        result = runner.invoke(main, ["--config", str(config_path), "reprocess", "last"])
        assert result.exit_code == 1
        assert "No processed bookmark at index" in result.output

    def test_negative_index_accepted(self, runner, config_path, state_path):
        result = runner.invoke(main, ["--config", str(config_path), "reprocess", "-3"])
        assert result.exit_code == 1
        assert "index -3" in result.output

    @patch("bookmark_router.enrichment.Enricher.enrich_safely")
    def test_reprocess_cached_bookmark(
        self, mock_enrich, runner, config_path, populated_ledger, state_path
    ):
        mock_enrich.side_effect = minimal_enrichment

        result = runner.invoke(main, ["--config", str(config_path), "reprocess", "1234567890"])

        # No API key: the agent step fails and the failure is recorded
        assert result.exit_code == 1
        assert "Reprocessing failed." in result.output
        entry = ProcessedLedger(state_path).get_entry("1234567890")
        assert entry.error == "ANTHROPIC_API_KEY is not set"
