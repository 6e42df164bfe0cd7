from __future__ import annotations

from urllib.parse import quote

from ..settings import DEFAULT_ASSET_BASE_URL


def asset_url(asset_key: str, base_url: str = DEFAULT_ASSET_BASE_URL) -> str:
    """Return the download URL of an audio asset, e.g. 'A_minor.m4a'."""
    if not asset_key:
        raise ValueError("asset_key must be a non-empty string")
    base = base_url if base_url.endswith("/") else base_url + "/"
    return base + quote(asset_key)
