import sys
from pathlib import Path

import pytest

# Ensure repository root is importable during test collection
REPO_ROOT = str(Path(__file__).resolve().parents[1])
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from reader import db  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_test_env(monkeypatch, tmp_path):
    # Keep the default database and any .env lookups inside the test directory
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("READER_DB", str(tmp_path / "reader.db"))
    monkeypatch.setenv("READER_ASSET_BASE_URL", "https://assets.test")
    monkeypatch.setenv("READER_LOG_LEVEL", "DEBUG")


@pytest.fixture()
def db_path(tmp_path):
    path = str(tmp_path / "reader.db")
    db.init_db(path)
    return path


@pytest.fixture()
def add_story(db_path):
    """Insert a story (and optionally its tags) into the test database."""

    def _add(story_id, name, *, tags=(), **fields):
        row = {"id": story_id, "name": name, "owner_id": fields.pop("owner_id", 1)}
        row.update(fields)
        db.insert_story(row, db_path)
        if tags:
            db.set_story_tags(story_id, list(tags), db_path)
        return row

    return _add
