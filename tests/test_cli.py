"""Tests for the campusguard CLI."""

import tempfile
from pathlib import Path

from click.testing import CliRunner

from campusguard.auth.models import Profile
from campusguard.auth.store import ProfileStore
from campusguard.cli import main
from campusguard.content.store import JsonContentStore


def _seed(tmpdir: str) -> None:
    ProfileStore(Path(tmpdir) / "auth").create_profile(Profile(id="admin", name="Ada", role="admin"))
    JsonContentStore(Path(tmpdir) / "content").add("listing", {"id": "L1", "seller_id": "u1", "title": "Lamp"})


def test_check_and_score():
    with tempfile.TemporaryDirectory() as tmpdir:
        runner = CliRunner()
        result = runner.invoke(main, ["-d", tmpdir, "check", "send money first via wire transfer"])
        assert result.exit_code == 0
        assert "flag_for_review" in result.output

        result = runner.invoke(main, ["-d", tmpdir, "check", "Desk lamp"])
        assert "Clean" in result.output

        result = runner.invoke(main, ["-d", tmpdir, "score", "-t", "IPHONE FOR SALE", "-p", "100"])
        assert result.exit_code == 0
        assert "Spam score" in result.output


def test_rules_and_queue_workflow():
    with tempfile.TemporaryDirectory() as tmpdir:
        _seed(tmpdir)
        runner = CliRunner()

        result = runner.invoke(main, ["-d", tmpdir, "rules", "add", "lamp", "--severity", "high", "--as", "admin"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(main, ["-d", tmpdir, "rules", "list", "--as", "admin"])
        assert "Prohibited items (1)" in result.output

        for reporter in ("r1", "r2", "r3"):
            result = runner.invoke(main, ["-d", tmpdir, "report", "listing", "L1", "scam", "--as", reporter])
            assert result.exit_code == 0, result.output

        result = runner.invoke(main, ["-d", tmpdir, "queue", "--as", "admin"])
        assert "1 of 1" in result.output

        result = runner.invoke(main, ["-d", tmpdir, "stats", "--as", "admin"])
        assert result.exit_code == 0
        assert "flags.total" in result.output


def test_errors_exit_non_zero():
    with tempfile.TemporaryDirectory() as tmpdir:
        _seed(tmpdir)
        runner = CliRunner()
        result = runner.invoke(main, ["-d", tmpdir, "queue", "--as", "nobody"])
        assert result.exit_code == 1
        assert "Unauthorized" in result.output

        result = runner.invoke(main, ["-d", tmpdir, "resolve", "missing", "approved", "--as", "admin"])
        assert result.exit_code == 1
        assert "not found" in result.output


def test_api_key_commands():
    with tempfile.TemporaryDirectory() as tmpdir:
        _seed(tmpdir)
        runner = CliRunner()

        result = runner.invoke(main, ["-d", tmpdir, "keys", "create", "admin", "--name", "ops"])
        assert result.exit_code == 0, result.output
        raw_key = next(line for line in result.output.splitlines() if line.startswith("cg_"))
        assert ProfileStore(Path(tmpdir) / "auth").validate_api_key(raw_key).id == "admin"

        key_id = ProfileStore(Path(tmpdir) / "auth").list_api_keys("admin")[0].id
        result = runner.invoke(main, ["-d", tmpdir, "keys", "revoke", key_id])
        assert result.exit_code == 0
        assert ProfileStore(Path(tmpdir) / "auth").validate_api_key(raw_key) is None

        result = runner.invoke(main, ["-d", tmpdir, "keys", "create", "ghost"])
        assert result.exit_code == 1
