"""Main FastAPI application for the reader service.

This module defines the HTTP API for listing and searching stories.
``POST /searchStories`` is the procedure used by the Reader front end;
``GET /search`` exposes the same operation through query parameters.

The application initialises its database on startup. Storage failures
are not retried: they are logged and reported to the client as a
generic 500 so the UI can show a "could not load results" state.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from . import db, search
from .config import Settings, get_settings
from .models import RankedStory, SearchResponse, StoryQuery, StoryStatus, StoryType, TagCount

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Application factory that wires up settings, logging and routes."""
    load_dotenv(find_dotenv(usecwd=True))
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Reader Story Search")
    app.state.settings = settings

    @app.on_event("startup")
    async def on_startup() -> None:
        """Initialise the database on startup."""
        db.init_db(settings.db_path)
        logger.info("Reader database ready at %s", settings.db_path)

    @app.exception_handler(sqlite3.Error)
    async def storage_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.exception("Storage error while handling %s %s", request.method, request.url.path)
        return JSONResponse({"detail": "Could not load results"}, status_code=500)

    @app.get("/health")
    def health_check(cfg: Settings = Depends(get_app_settings)) -> dict:
        return {"status": "healthy", "database": cfg.db_path}

    @app.post("/searchStories", response_model=SearchResponse)
    def search_stories_endpoint(query: StoryQuery, cfg: Settings = Depends(get_app_settings)) -> SearchResponse:
        """Filter, paginate and rank stories."""
        return search.search_stories(query, cfg.db_path, cfg.asset_base_url)

    @app.get("/search", response_model=SearchResponse)
    def search_get_endpoint(
        q: Optional[str] = None,
        status: Optional[StoryStatus] = None,
        type: Optional[StoryType] = None,
        tags: Optional[List[str]] = Query(None),
        minWordsPerWeek: Optional[float] = None,
        maxWordsPerWeek: Optional[float] = None,
        limit: int = Query(50, ge=1, le=100),
        offset: int = Query(0, ge=0),
        cfg: Settings = Depends(get_app_settings),
    ) -> SearchResponse:
        """Search stories via query parameters. ``tags`` may be repeated."""
        query = StoryQuery(
            query=q,
            status=status,
            type=type,
            tags=tags,
            minWordsPerWeek=minWordsPerWeek,
            maxWordsPerWeek=maxWordsPerWeek,
            limit=limit,
            offset=offset,
        )
        return search.search_stories(query, cfg.db_path, cfg.asset_base_url)

    @app.get("/stories/{story_id}", response_model=RankedStory)
    def get_story_endpoint(story_id: str, cfg: Settings = Depends(get_app_settings)) -> RankedStory:
        row = db.get_story(story_id, cfg.db_path)
        if not row:
            raise HTTPException(status_code=404, detail="Story not found")
        tags = db.get_story_tags([story_id], cfg.db_path)[story_id]
        return search.story_from_row(row, tags, cfg.asset_base_url)

    @app.get("/tags", response_model=List[TagCount])
    def list_tags_endpoint(cfg: Settings = Depends(get_app_settings)) -> List[TagCount]:
        return [TagCount(**row) for row in db.list_tags(cfg.db_path)]

    return app


app = create_app()
