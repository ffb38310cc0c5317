"""Environment-driven settings for the raffle command line."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .db.utils import resolve_sqlite_url

# Project root directory (repo root)
ROOT_DIR = Path(__file__).resolve().parents[1]


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value or None


@dataclass
class Settings:
    """Runtime settings read from the environment (and ``.env``, if present).

    Attributes
    ----------
    participants_csv : str
        ``RAFFLE_PARTICIPANTS_CSV``; participant export to draw from.
    template_path : Optional[str]
        ``RAFFLE_TEMPLATE``; results template. ``None`` uses the packaged one.
    csv_encoding : str
        ``RAFFLE_CSV_ENCODING``; encoding of the participant export.
    db_url : str
        ``DB_URL``; audit database. Relative SQLite paths resolve against the
        project root.
    log_level : str
        ``RAFFLE_LOG_LEVEL``; level name for the stderr log handler.
    """

    participants_csv: str = field(
        default_factory=lambda: os.getenv("RAFFLE_PARTICIPANTS_CSV", "raffle.csv")
    )
    template_path: Optional[str] = field(
        default_factory=lambda: _optional_env("RAFFLE_TEMPLATE")
    )
    csv_encoding: str = field(
        default_factory=lambda: os.getenv("RAFFLE_CSV_ENCODING", "utf-8")
    )
    db_url: str = field(
        default_factory=lambda: resolve_sqlite_url(
            os.getenv("DB_URL", "sqlite:///./raffle.db"), ROOT_DIR
        )
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("RAFFLE_LOG_LEVEL", "INFO").upper()
    )


def load_settings() -> Settings:
    """Load ``.env`` into the process environment and build :class:`Settings`."""
    load_dotenv()
    return Settings()


__all__ = ["ROOT_DIR", "Settings", "load_settings"]
