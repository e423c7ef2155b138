"""Service layer entry points for newsharvest."""

from __future__ import annotations

from .crawler import (  # noqa: F401
    ArticleStream,
    Site,
    SiteState,
    aextract_url,
    extract_url,
    stream_urls,
)
from .fetcher import FetchResponse, Fetcher  # noqa: F401

__all__ = [
    "ArticleStream",
    "FetchResponse",
    "Fetcher",
    "Site",
    "SiteState",
    "aextract_url",
    "extract_url",
    "stream_urls",
]
