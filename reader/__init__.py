"""Story search service for the Reader site.

This package contains modules that implement a FastAPI based service for
listing and searching serialized web fiction. Story cards and their tags
live in an SQLite database; a search request filters them in SQL,
paginates, and re-ranks the returned page by a simple textual relevance
heuristic when a free-text query is present.

The modules in this package are:

* ``config.py`` – Environment driven settings (database path, asset base
  URL, log level). A ``.env`` file is honoured when present.

* ``db.py`` – Functions for creating and querying the SQLite database:
  stories, tags and the links between them, plus the translation of a
  search query into a parameterised ``WHERE`` clause.

* ``assets.py`` – Resolution of stored cover art paths into public URLs.

* ``models.py`` – Pydantic models describing the search input, story
  cards and the search response. Input validation happens here.

* ``search.py`` – The search and ranking pass itself.

* ``main.py`` – The FastAPI application. It wires the database and
  search layers to HTTP endpoints and maps storage failures to a generic
  error response.
"""
