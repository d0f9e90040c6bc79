"""Cover art URL helpers."""

from __future__ import annotations

from typing import Optional


def story_asset_url(owner_id: int, story_id: str, asset: Optional[str], base_url: str) -> Optional[str]:
    """Return the public URL for a story asset, or ``None`` if there is none.

    Assets are stored relative to ``{owner_id}/{story_id}/``. Values that
    are already absolute http(s) URLs (e.g. imported covers) are returned
    unchanged.
    """
    if not asset:
        return None
    if asset.startswith(("http://", "https://")):
        return asset
    return f"{base_url.rstrip('/')}/{owner_id}/{story_id}/{asset.lstrip('/')}"
