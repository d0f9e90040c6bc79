"""Database helpers for the reader service.

Story cards, tags and the links between them are stored in an SQLite
database. Each helper opens its own connection on demand using the
standard ``sqlite3`` module and closes it before returning, so no
connection is shared between threads or requests. The database path is
always passed in by the caller; when omitted it falls back to the value
from :func:`reader.config.get_settings`.

The schema is defined in ``init_db()``. Story identifiers are TEXT and
expected to be globally unique (e.g. UUIDs). ``status`` and ``type`` hold
the enum names used by the API (``ONGOING``, ``ORIGINAL`` ...). Tag order
on a story is kept in ``story_tags.position``.

Errors raised by ``sqlite3`` are not caught here; they propagate to the
caller unchanged.
"""

from __future__ import annotations

import json
import sqlite3
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import get_settings

if TYPE_CHECKING:
    from .models import StoryQuery

STORY_FIELDS = [
    "id",
    "name",
    "summary",
    "owner_id",
    "status",
    "type",
    "words_per_week",
    "chapters",
    "pages",
    "sort_order",
    "cover_art_asset",
    "cover_color",
    "cover_text_color",
    "cover_font_family",
]

STORY_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "status": "ONGOING",
    "type": "ORIGINAL",
    "sort_order": 0,
    "cover_color": "#000000",
    "cover_text_color": "#FFFFFF",
    "cover_font_family": "Georgia",
}


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Return a new SQLite connection with row_factory set to dict-like.

    ``row_factory`` is configured so that rows behave like dictionaries
    keyed by column names.
    """
    conn = sqlite3.connect(db_path or get_settings().db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Optional[str] = None) -> None:
    """Initialise the SQLite database and create tables if they do not exist.

    This function is idempotent: it can be called repeatedly without
    harming existing data. It creates three tables: ``stories``, ``tags``
    and ``story_tags``, plus the indices used by the search filter.
    """
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS stories (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                summary TEXT,
                owner_id INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'ONGOING',
                type TEXT NOT NULL DEFAULT 'ORIGINAL',
                words_per_week INTEGER,
                chapters INTEGER,
                pages INTEGER,
                sort_order INTEGER NOT NULL DEFAULT 0,
                cover_art_asset TEXT,
                cover_color TEXT NOT NULL DEFAULT '#000000',
                cover_text_color TEXT NOT NULL DEFAULT '#FFFFFF',
                cover_font_family TEXT NOT NULL DEFAULT 'Georgia',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_stories_sort_order ON stories(sort_order, id)")
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS tags (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS story_tags (
                story_id TEXT NOT NULL,
                tag_id INTEGER NOT NULL,
                position INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (story_id, tag_id),
                FOREIGN KEY(story_id) REFERENCES stories(id) ON DELETE CASCADE,
                FOREIGN KEY(tag_id) REFERENCES tags(id) ON DELETE CASCADE
            )
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_story_tags_tag_id ON story_tags(tag_id)")
        conn.commit()
    finally:
        conn.close()


def insert_story(story: Dict[str, Any], db_path: Optional[str] = None) -> None:
    """Insert or update a story row.

    The provided ``story`` dictionary must contain at least ``id`` and
    ``owner_id``. Missing keys take the column defaults. If a row with the
    same ``id`` already exists the function performs an ``UPDATE``
    instead of an ``INSERT``.
    """
    values = [story.get(f, STORY_DEFAULTS.get(f)) for f in STORY_FIELDS]
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        placeholders = ", ".join("?" for _ in STORY_FIELDS)
        try:
            cur.execute(
                f"INSERT INTO stories({', '.join(STORY_FIELDS)}) VALUES ({placeholders})",
                values,
            )
        except sqlite3.IntegrityError:
            set_clause = ", ".join([f"{field} = ?" for field in STORY_FIELDS[1:]])
            cur.execute(
                f"UPDATE stories SET {set_clause}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                values[1:] + [story["id"]],
            )
        conn.commit()
    finally:
        conn.close()


def insert_tag(name: str, db_path: Optional[str] = None) -> int:
    """Return the id of the tag called ``name``, creating it if needed."""
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute("INSERT OR IGNORE INTO tags(name) VALUES (?)", (name,))
        cur.execute("SELECT id FROM tags WHERE name = ?", (name,))
        tag_id = cur.fetchone()["id"]
        conn.commit()
        return tag_id
    finally:
        conn.close()


def set_story_tags(story_id: str, names: Sequence[str], db_path: Optional[str] = None) -> None:
    """Replace the tags of a story, keeping the given order.

    Duplicate names are collapsed to their first occurrence.
    """
    tag_ids: List[int] = []
    for name in names:
        tag_id = insert_tag(name, db_path)
        if tag_id not in tag_ids:
            tag_ids.append(tag_id)
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute("DELETE FROM story_tags WHERE story_id = ?", (story_id,))
        cur.executemany(
            "INSERT INTO story_tags(story_id, tag_id, position) VALUES (?, ?, ?)",
            [(story_id, tag_id, pos) for pos, tag_id in enumerate(tag_ids)],
        )
        conn.commit()
    finally:
        conn.close()


def build_filter(query: StoryQuery) -> Tuple[str, List[Any]]:
    """Translate a search query into a ``WHERE`` clause and its parameters.

    Status and type are skipped when ``None``. Words-per-week bounds, the
    ``tags`` list and the free-text query are skipped when falsy, so a
    bound of ``0`` or an empty list filters nothing. Tags are passed as a
    single JSON array and expanded with ``json_each``, so the number of
    bound parameters does not grow with the tag list. The free-text
    condition uses ``instr`` so that matching is a case-sensitive
    substring test, unlike ``LIKE``.

    Returns ``("1", [])`` when nothing is filtered.
    """
    clauses: List[str] = []
    params: List[Any] = []
    if query.status is not None:
        clauses.append("status = ?")
        params.append(_enum_value(query.status))
    if query.type is not None:
        clauses.append("type = ?")
        params.append(_enum_value(query.type))
    if query.minWordsPerWeek:
        clauses.append("words_per_week >= ?")
        params.append(query.minWordsPerWeek)
    if query.maxWordsPerWeek:
        clauses.append("words_per_week <= ?")
        params.append(query.maxWordsPerWeek)
    if query.tags:
        clauses.append(
            "EXISTS (SELECT 1 FROM story_tags st JOIN tags t ON t.id = st.tag_id "
            "WHERE st.story_id = stories.id AND t.name IN (SELECT value FROM json_each(?)))"
        )
        params.append(json.dumps(list(dict.fromkeys(query.tags))))
    if query.query:
        clauses.append("(instr(name, ?) > 0 OR instr(COALESCE(summary, ''), ?) > 0)")
        params.extend([query.query, query.query])
    if not clauses:
        return "1", []
    return " AND ".join(clauses), params


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def find_stories(where: str, params: Iterable[Any], offset: int, limit: int,
                 db_path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return one page of matching story rows in storage order.

    Storage order is ``sort_order`` ascending, then ``id`` ascending.
    """
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT * FROM stories WHERE {where} ORDER BY sort_order ASC, id ASC LIMIT ? OFFSET ?",
            list(params) + [limit, offset],
        )
        return [dict(row) for row in cur.fetchall()]
    finally:
        conn.close()


def count_stories(where: str, params: Iterable[Any], db_path: Optional[str] = None) -> int:
    """Return the number of stories matching ``where``."""
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute(f"SELECT COUNT(*) AS n FROM stories WHERE {where}", list(params))
        return cur.fetchone()["n"]
    finally:
        conn.close()


def get_story_tags(story_ids: Sequence[str], db_path: Optional[str] = None) -> Dict[str, List[str]]:
    """Return tag names for each of ``story_ids``, in tag position order."""
    result: Dict[str, List[str]] = {sid: [] for sid in story_ids}
    if not story_ids:
        return result
    placeholders = ", ".join("?" for _ in story_ids)
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            SELECT st.story_id, t.name FROM story_tags st
            JOIN tags t ON t.id = st.tag_id
            WHERE st.story_id IN ({placeholders})
            ORDER BY st.story_id, st.position ASC
            """,
            list(story_ids),
        )
        for row in cur.fetchall():
            result[row["story_id"]].append(row["name"])
        return result
    finally:
        conn.close()


def get_story(story_id: str, db_path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return the story row for ``story_id`` as a dict, or None if absent."""
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute("SELECT * FROM stories WHERE id = ?", (story_id,))
        row = cur.fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def list_tags(db_path: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return all tags with the number of stories carrying each, by name."""
    conn = get_connection(db_path)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT t.name AS name, COUNT(st.story_id) AS stories FROM tags t
            LEFT JOIN story_tags st ON st.tag_id = t.id
            GROUP BY t.id ORDER BY t.name ASC
            """
        )
        return [dict(row) for row in cur.fetchall()]
    finally:
        conn.close()
