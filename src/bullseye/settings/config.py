"""Application-wide configuration defaults and helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Base directory for resolving relative paths (repository root in a source checkout).
BASE_DIR = Path(__file__).resolve().parents[3]

MALFORMED_DATE_POLICIES = ("raise", "skip")


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Parse truthy environment values like '1' or 'true'."""
    if value is None:
        return default
    # Normalize non-string inputs (e.g., int defaults) before parsing.
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int) -> int:
    """Safely parse an integer env var, returning the default on failure."""
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _to_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Config:
    """Runtime configuration loaded from environment variables."""

    debug: bool = False
    database_path: Path = BASE_DIR / "data" / "earnings.db"
    sqlite_echo: bool = False
    trend_window: int = 2
    trend_flat_threshold: float = 0.02
    trend_count_threshold: int = 2
    trend_ignore_none: bool = True
    net_margin_factor: float = 3.0
    malformed_date_policy: str = "raise"

    @classmethod
    def from_env(cls) -> "Config":
        """Build a configuration instance using environment overrides."""
        db_path = Path(os.getenv("BULLSEYE_DATABASE_PATH", BASE_DIR / "data" / "earnings.db"))
        policy = os.getenv("MALFORMED_DATE_POLICY", "raise").strip().lower()
        if policy not in MALFORMED_DATE_POLICIES:
            policy = "raise"

        config = cls(
            debug=_to_bool(os.getenv("APP_DEBUG")),
            database_path=db_path,
            sqlite_echo=_to_bool(os.getenv("SQLITE_ECHO")),
            trend_window=_to_int(os.getenv("TREND_WINDOW"), 2),
            trend_flat_threshold=_to_float(os.getenv("TREND_FLAT_THRESHOLD"), 0.02),
            trend_count_threshold=_to_int(os.getenv("TREND_COUNT_THRESHOLD"), 2),
            trend_ignore_none=_to_bool(os.getenv("TREND_IGNORE_NONE"), default=True),
            net_margin_factor=_to_float(os.getenv("NET_MARGIN_FACTOR"), 3.0),
            malformed_date_policy=policy,
        )
        config.ensure_directories()
        return config

    @property
    def database_uri(self) -> str:
        return f"sqlite:///{self.database_path}"

    def ensure_directories(self) -> None:
        """Create directories needed for runtime artifacts."""
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
