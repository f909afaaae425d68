"""End-to-end tests for the memberlink CLI.

This module drives the Typer app through CliRunner against a temporary
Members directory and JSON member snapshot.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from memberlink import __version__
from memberlink.cli import app
from memberlink.models import ApplySummary


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a CliRunner instance for testing."""
    return CliRunner()


@pytest.mark.integration
class TestGlobalOptions:
    """Tests for app-level behaviour."""

    def test_version(self, cli_runner: CliRunner):
        result = cli_runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_args_shows_help(self, cli_runner: CliRunner):
        result = cli_runner.invoke(app, [])
        assert "scan" in result.output
        assert "match" in result.output
        assert "apply" in result.output


@pytest.mark.integration
class TestScanCommand:
    """Tests for `memberlink scan`."""

    def test_scan(self, cli_runner: CliRunner, member_folders_dir: Path, temp_dir: Path):
        log_file = temp_dir / "scan.log"
        result = cli_runner.invoke(app, ["scan", str(member_folders_dir), "--log-file", str(log_file)])

        assert result.exit_code == 0
        assert "Found 4 member folder(s)" in result.output
        assert log_file.exists()

    def test_scan_missing_path(self, cli_runner: CliRunner, temp_dir: Path):
        result = cli_runner.invoke(app, ["scan", str(temp_dir / "missing")])

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_scan_unsupported_file(self, cli_runner: CliRunner, temp_dir: Path):
        path = temp_dir / "folders.txt"
        path.write_text("x")
        result = cli_runner.invoke(app, ["scan", str(path), "-l", str(temp_dir / "scan.log")])

        assert result.exit_code == 1
        assert ".json or .csv" in result.output


@pytest.mark.integration
class TestMatchCommand:
    """Tests for `memberlink match`."""

    def test_match_with_output(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path, temp_dir: Path):
        output = temp_dir / "result.json"
        result = cli_runner.invoke(app, [
            "match", str(member_folders_dir), str(members_json),
            "-o", str(output), "-l", str(temp_dir / "match.log"),
        ])

        assert result.exit_code == 0
        assert "3 suggestion(s), 2 requiring review" in result.output
        document = json.loads(output.read_text())
        assert len(document["suggestions"]) == 3

    def test_match_threshold(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path, temp_dir: Path):
        result = cli_runner.invoke(app, [
            "match", str(member_folders_dir), str(members_json),
            "--min-confidence", "60", "-l", str(temp_dir / "match.log"),
        ])

        assert result.exit_code == 0
        assert "2 suggestion(s)" in result.output

    def test_match_optimal_strategy(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path, temp_dir: Path):
        result = cli_runner.invoke(app, [
            "match", str(member_folders_dir), str(members_json),
            "--strategy", "optimal", "-l", str(temp_dir / "match.log"),
        ])

        assert result.exit_code == 0
        assert "3 suggestion(s)" in result.output

    @pytest.mark.parametrize("value", ["-5", "150"])
    def test_invalid_confidence(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path, value: str):
        result = cli_runner.invoke(app, ["match", str(member_folders_dir), str(members_json), "-c", value])
        assert result.exit_code == 2

    def test_missing_members_file(self, cli_runner: CliRunner, member_folders_dir: Path, temp_dir: Path):
        result = cli_runner.invoke(app, ["match", str(member_folders_dir), str(temp_dir / "none.json")])

        assert result.exit_code == 1
        assert "Members file does not exist" in result.output

    def test_invalid_members_json(self, cli_runner: CliRunner, member_folders_dir: Path, temp_dir: Path):
        members = temp_dir / "members.json"
        members.write_text("{broken")
        result = cli_runner.invoke(app, [
            "match", str(member_folders_dir), str(members), "-l", str(temp_dir / "match.log"),
        ])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


@pytest.mark.integration
class TestApplyCommand:
    """Tests for `memberlink apply`."""

    def test_dry_run(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path, temp_dir: Path):
        before = members_json.read_text()
        result = cli_runner.invoke(app, [
            "apply", str(member_folders_dir), str(members_json),
            "--dry-run", "-l", str(temp_dir / "apply.log"),
        ])

        assert result.exit_code == 0
        assert "DRY RUN MODE" in result.output
        assert members_json.read_text() == before

    def test_apply_auto_only(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path, temp_dir: Path):
        result = cli_runner.invoke(app, [
            "apply", str(member_folders_dir), str(members_json), "-l", str(temp_dir / "apply.log"),
        ])

        assert result.exit_code == 0
        document = json.loads(members_json.read_text())
        smith = next(m for m in document["members"] if m["memberId"] == "1001")
        assert smith["folderSyncStatus"] == "Matched"
        assert smith["folderMatchType"] == "exact"

    def test_apply_rejects_csv_members(self, cli_runner: CliRunner, member_folders_dir: Path, temp_dir: Path):
        members = temp_dir / "members.csv"
        members.write_text("memberId,firstName,lastName\n1001,John,Smith\n")
        result = cli_runner.invoke(app, [
            "apply", str(member_folders_dir), str(members), "-l", str(temp_dir / "apply.log"),
        ])

        assert result.exit_code == 1
        assert "JSON" in result.output

    def test_invalid_max_attempts(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path):
        result = cli_runner.invoke(app, [
            "apply", str(member_folders_dir), str(members_json), "--max-attempts", "0",
        ])
        assert result.exit_code == 2

    @patch("memberlink.cli.MatchOrchestrator")
    def test_retry_delay_option(self, mock_orchestrator, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path):
        mock_orchestrator.return_value.apply.return_value = ApplySummary()
        result = cli_runner.invoke(app, [
            "apply", str(member_folders_dir), str(members_json),
            "--max-attempts", "2", "--retry-delay", "0.5",
        ])

        assert result.exit_code == 0
        kwargs = mock_orchestrator.return_value.apply.call_args.kwargs
        assert kwargs["max_attempts"] == 2
        assert kwargs["retry_delay"] == 0.5

    def test_negative_retry_delay(self, cli_runner: CliRunner, member_folders_dir: Path, members_json: Path):
        result = cli_runner.invoke(app, [
            "apply", str(member_folders_dir), str(members_json), "--retry-delay", "-1",
        ])
        assert result.exit_code == 2


@pytest.mark.integration
class TestNicknameOption:
    """Tests for --nicknames on match."""

    def test_nickname_folder_matched(self, cli_runner: CliRunner, temp_dir: Path):
        base = temp_dir / "Members"
        base.mkdir()
        (base / "Bill Smith").mkdir()
        members = temp_dir / "members.json"
        members.write_text(json.dumps([{"memberId": "7", "firstName": "William", "lastName": "Smith"}]))
        output = temp_dir / "result.json"

        result = cli_runner.invoke(app, [
            "match", str(base), str(members), "--nicknames",
            "-o", str(output), "-l", str(temp_dir / "match.log"),
        ])

        assert result.exit_code == 0
        suggestion = json.loads(output.read_text())["suggestions"][0]
        assert suggestion["confidence"] == 50
        assert "Nickname match for first name" in suggestion["reasons"]
