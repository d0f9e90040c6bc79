"""Story search and ranking.

A search runs in two steps. The storage layer filters and paginates the
stories (see :func:`reader.db.build_filter`); then, when a free-text
query is present, the fetched page is re-ordered by a relevance score
computed in Python. Only the fetched page is re-ordered: a strong match
that falls outside ``offset``/``limit`` is never promoted onto the page.

Nothing here mutates stored state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from . import db
from .assets import story_asset_url
from .config import get_settings
from .models import RankedStory, SearchResponse, StoryQuery

logger = logging.getLogger(__name__)

EXACT_NAME_SCORE = 100
NAME_CONTAINS_SCORE = 50
SUMMARY_CONTAINS_SCORE = 10
NAME_WORD_SCORE = 25


def score_story(name: str, summary: Optional[str], query: str) -> int:
    """Compute the relevance score of a story for ``query``.

    The comparison is case-insensitive. Weights add up, so an exact name
    match also collects the substring and whole-word bonuses.
    """
    q = query.lower()
    name = (name or "").lower()
    summary = (summary or "").lower()
    score = 0
    if name == q:
        score += EXACT_NAME_SCORE
    if q in name:
        score += NAME_CONTAINS_SCORE
    if q in summary:
        score += SUMMARY_CONTAINS_SCORE
    if any(word == q for word in name.split()):
        score += NAME_WORD_SCORE
    return score


def rank_stories(stories: List[RankedStory], query: str) -> List[RankedStory]:
    """Score ``stories`` against ``query`` and sort them by relevance.

    Higher scores come first; equal scores fall back to ``sortOrder``
    ascending. The sort is stable, so stories that also share a
    ``sortOrder`` keep their incoming (storage) order.
    """
    for story in stories:
        story.score = score_story(story.name, story.summary, query)
    return sorted(stories, key=lambda s: (-s.score, s.sortOrder))


def story_from_row(row: Dict[str, Any], tags: List[str], asset_base_url: str) -> RankedStory:
    """Build the API representation of a ``stories`` row."""
    return RankedStory(
        id=row["id"],
        name=row["name"],
        summary=row.get("summary"),
        ownerId=row["owner_id"],
        status=row["status"],
        type=row["type"],
        wordsPerWeek=row.get("words_per_week"),
        chapters=row.get("chapters"),
        pages=row.get("pages"),
        sortOrder=row.get("sort_order") or 0,
        coverArtAsset=story_asset_url(row["owner_id"], row["id"], row.get("cover_art_asset"), asset_base_url),
        coverColor=row.get("cover_color") or "#000000",
        coverTextColor=row.get("cover_text_color") or "#FFFFFF",
        coverFontFamily=row.get("cover_font_family") or "Georgia",
        tags=tags,
    )


def search_stories(query: StoryQuery, db_path: Optional[str] = None,
                   asset_base_url: Optional[str] = None) -> SearchResponse:
    """Return one page of stories matching ``query`` and the total match count.

    Without a free-text query the page keeps storage order. With one, the
    page is ranked by :func:`rank_stories` and each story carries its
    score. Storage errors propagate to the caller.
    """
    if asset_base_url is None:
        asset_base_url = get_settings().asset_base_url
    where, params = db.build_filter(query)
    logger.debug("Searching stories: where=%s params=%s offset=%d limit=%d",
                 where, params, query.offset, query.limit)

    rows = db.find_stories(where, params, query.offset, query.limit, db_path)
    total = db.count_stories(where, params, db_path)
    tags = db.get_story_tags([row["id"] for row in rows], db_path)
    stories = [story_from_row(row, tags[row["id"]], asset_base_url) for row in rows]

    if query.query:
        stories = rank_stories(stories, query.query)

    logger.info("Story search returned %d of %d matches", len(stories), total)
    return SearchResponse(stories=stories, totalCount=total)
