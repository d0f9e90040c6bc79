"""Pydantic models for the search API.

Field names follow the wire format used by the Reader front end
(camelCase), so the models serialise without aliases.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class StoryStatus(str, Enum):
    COMPLETED = "COMPLETED"
    ONGOING = "ONGOING"
    HIATUS = "HIATUS"


class StoryType(str, Enum):
    FANFICTION = "FANFICTION"
    ORIGINAL = "ORIGINAL"


class StoryQuery(BaseModel):
    """Filter and search criteria for listing stories."""

    query: Optional[str] = None
    status: Optional[StoryStatus] = None
    type: Optional[StoryType] = None
    tags: Optional[List[str]] = None
    minWordsPerWeek: Optional[float] = None
    maxWordsPerWeek: Optional[float] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)


class StoryCard(BaseModel):
    id: str
    name: str
    summary: Optional[str] = None
    ownerId: int
    status: StoryStatus
    type: StoryType
    wordsPerWeek: Optional[int] = None
    chapters: Optional[int] = None
    pages: Optional[int] = None
    sortOrder: int = 0
    coverArtAsset: Optional[str] = None
    coverColor: str = "#000000"
    coverTextColor: str = "#FFFFFF"
    coverFontFamily: str = "Georgia"
    tags: List[str] = Field(default_factory=list)


class RankedStory(StoryCard):
    # Only set when the request carried a free-text query.
    score: Optional[int] = None


class SearchResponse(BaseModel):
    stories: List[RankedStory]
    totalCount: int


class TagCount(BaseModel):
    name: str
    stories: int
