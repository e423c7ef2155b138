"""newsharvest: news article extraction and site crawling."""

from __future__ import annotations

import os
from pathlib import Path


def _load_local_env() -> None:
    """Populate ``os.environ`` with variables from a project-level ``.env`` file."""

    env_path = Path(__file__).resolve().parent.parent.parent / ".env"
    if not env_path.exists():
        return

    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue

        os.environ[key] = value.strip()


_load_local_env()

from .config import AppConfig, CrawlConfig, ExtractionConfig, HarvestConfig, SiteConfig  # noqa: E402,F401
from .document import Document  # noqa: E402,F401
from .errors import (  # noqa: E402,F401
    DiscoveryError,
    ExtractionError,
    InvalidUrlError,
    NewsHarvestError,
    ParseError,
    TransportError,
)
from .extraction import Extractor  # noqa: E402,F401
from .models import Article, ArticleContent, ArticleResult, PublishingDate  # noqa: E402,F401
from .services import ArticleStream, Site, SiteState, aextract_url, extract_url, stream_urls  # noqa: E402,F401

__all__ = [
    "AppConfig",
    "Article",
    "ArticleContent",
    "ArticleResult",
    "ArticleStream",
    "CrawlConfig",
    "DiscoveryError",
    "Document",
    "ExtractionConfig",
    "ExtractionError",
    "Extractor",
    "HarvestConfig",
    "InvalidUrlError",
    "NewsHarvestError",
    "ParseError",
    "PublishingDate",
    "Site",
    "SiteConfig",
    "SiteState",
    "TransportError",
    "aextract_url",
    "extract_url",
    "stream_urls",
]
