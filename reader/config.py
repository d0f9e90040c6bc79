"""Runtime configuration for the reader service.

Settings are read from environment variables on every call to
:func:`get_settings` so that tests can change them with ``monkeypatch``.
The application factory loads a ``.env`` file before reading them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DB_PATH = "reader.db"
DEFAULT_ASSET_BASE_URL = "https://team.wtf/uploads"


@dataclass(frozen=True)
class Settings:
    db_path: str
    asset_base_url: str
    log_level: str


def get_settings() -> Settings:
    """Build a :class:`Settings` from the current environment."""
    return Settings(
        db_path=os.environ.get("READER_DB") or DEFAULT_DB_PATH,
        asset_base_url=(os.environ.get("READER_ASSET_BASE_URL") or DEFAULT_ASSET_BASE_URL).rstrip("/"),
        log_level=(os.environ.get("READER_LOG_LEVEL") or "INFO").upper(),
    )
