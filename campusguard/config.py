"""Runtime configuration for campusguard.

Settings come from three layers, later ones winning: built-in defaults, an
optional YAML file, and ``CAMPUSGUARD_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass
class ScoringWeights:
    """Point values used by the listing spam scorer.

    These are product-tunable; the defaults match the live marketplace.
    """

    title_flag: int = 25
    description_flag: int = 20
    title_high_confidence: int = 20
    description_high_confidence: int = 15
    free_price: int = 5
    unrealistic_price: int = 35
    token_price: int = 10
    all_caps_title: int = 20
    exclamations: int = 15
    questions: int = 10
    dollar_signs: int = 15
    emoji: int = 10
    short_description: int = 15
    repetitive_description: int = 20
    phone_in_description: int = 25
    email_in_description: int = 25


@dataclass
class Settings:
    """Top-level configuration."""

    data_dir: Path = field(default_factory=lambda: Path.home() / ".campusguard")
    report_threshold: int = 3
    log_level: str = "INFO"
    rate_limit_storage: str = "memory://"
    base_url: str = "http://localhost:3000"
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = ""
    scoring: ScoringWeights = field(default_factory=ScoringWeights)

    @property
    def email_configured(self) -> bool:
        return bool(self.sendgrid_api_key and self.sendgrid_from_email)


_ENV_PREFIX = "CAMPUSGUARD_"

# Environment variables that are read without the prefix, for parity with
# how the mail provider documents them.
_ENV_ALIASES = {
    "sendgrid_api_key": "SENDGRID_API_KEY",
    "sendgrid_from_email": "SENDGRID_FROM_EMAIL",
}


def _apply(settings: Settings, values: dict[str, Any]) -> None:
    for f in fields(Settings):
        if f.name not in values or values[f.name] is None:
            continue
        value = values[f.name]
        if f.name == "scoring":
            known = {w.name for w in fields(ScoringWeights)}
            weights = {k: int(v) for k, v in dict(value).items() if k in known}
            settings.scoring = ScoringWeights(**{**vars(settings.scoring), **weights})
        elif f.name == "data_dir":
            settings.data_dir = Path(value).expanduser()
        elif f.name == "report_threshold":
            settings.report_threshold = int(value)
        else:
            setattr(settings, f.name, str(value))


def load_settings(path: Optional[str | Path] = None) -> Settings:
    """Build a :class:`Settings` from defaults, *path* and the environment.

    *path* falls back to ``$CAMPUSGUARD_CONFIG``.  A missing file is ignored;
    a file that is not a YAML mapping raises ``ValueError``.
    """
    settings = Settings()

    config_path = path or os.environ.get(f"{_ENV_PREFIX}CONFIG")
    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        _apply(settings, data)

    env_values: dict[str, Any] = {}
    for f in fields(Settings):
        if f.name == "scoring":
            continue
        raw = os.environ.get(f"{_ENV_PREFIX}{f.name.upper()}")
        if raw is None and f.name in _ENV_ALIASES:
            raw = os.environ.get(_ENV_ALIASES[f.name])
        if raw is not None:
            env_values[f.name] = raw
    _apply(settings, env_values)
    return settings
