"""
Entry point for ASGI hosts.

This module exposes the FastAPI application instance defined in the
`reader.main` module. Hosting runtimes (Vercel, uvicorn) import this
file and look for an object called `app`.

Usage:
    uvicorn main:app --reload
"""

from reader.main import app as app  # noqa: F401  re-export FastAPI instance
