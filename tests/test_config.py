"""Tests for settings loading."""

import tempfile
from pathlib import Path

import pytest
import yaml

from campusguard.config import ScoringWeights, Settings, load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CAMPUSGUARD_CONFIG", "CAMPUSGUARD_DATA_DIR", "CAMPUSGUARD_REPORT_THRESHOLD",
                 "CAMPUSGUARD_LOG_LEVEL", "CAMPUSGUARD_SENDGRID_API_KEY", "SENDGRID_API_KEY",
                 "SENDGRID_FROM_EMAIL", "CAMPUSGUARD_SENDGRID_FROM_EMAIL"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.report_threshold == 3
    assert settings.scoring == ScoringWeights()
    assert not settings.email_configured


def test_yaml_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "campusguard.yaml"
        path.write_text(yaml.safe_dump({
            "data_dir": tmpdir,
            "report_threshold": 5,
            "scoring": {"free_price": 0, "unknown_weight": 99},
        }))
        settings = load_settings(path)
        assert settings.data_dir == Path(tmpdir)
        assert settings.report_threshold == 5
        assert settings.scoring.free_price == 0
        assert settings.scoring.title_flag == ScoringWeights().title_flag


def test_env_overrides_file(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "campusguard.yaml"
        path.write_text(yaml.safe_dump({"report_threshold": 5, "log_level": "WARNING"}))
        monkeypatch.setenv("CAMPUSGUARD_CONFIG", str(path))
        monkeypatch.setenv("CAMPUSGUARD_REPORT_THRESHOLD", "7")

        settings = load_settings()
        assert settings.report_threshold == 7
        assert settings.log_level == "WARNING"


def test_sendgrid_aliases(monkeypatch):
    monkeypatch.setenv("SENDGRID_API_KEY", "SG.key")
    monkeypatch.setenv("SENDGRID_FROM_EMAIL", "noreply@example.edu")
    settings = load_settings()
    assert settings.email_configured


def test_non_mapping_file_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bad.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(path)


def test_missing_file_ignored():
    assert load_settings("/nonexistent/campusguard.yaml") == Settings()
