"""Filesystem blob store for extracted articles."""

from __future__ import annotations

import datetime
import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterator, List, Union

from newsharvest.models import Article
from newsharvest.urls import host_of

logger = logging.getLogger(__name__)

__all__ = ["ArticleStore", "DEFAULT_BLOB_ROOT", "STORED_URLS_INDEX", "article_path"]

_Pathish = Union[str, Path]

#: Default location of stored articles; ``NEWSHARVEST_BLOB_ROOT`` overrides it.
DEFAULT_BLOB_ROOT = Path(
    os.environ.get(
        "NEWSHARVEST_BLOB_ROOT",
        Path(__file__).resolve().parents[2] / "data" / "blobstore",
    )
)

STORED_URLS_INDEX = "stored_urls.json"


def article_path(url: str, when: datetime.datetime | None = None) -> str:
    """Blob path of ``url``: ``site=<host>/<YYYYMMDD>/<sha1 of url>.json``."""

    when = when or datetime.datetime.now(datetime.timezone.utc)
    url_hash = hashlib.sha1(url.encode("utf-8")).hexdigest()
    return f"site={host_of(url)}/{when.strftime('%Y%m%d')}/{url_hash}.json"


def _read_url_list(path: Path) -> List[str]:
    try:
        with path.open("r", encoding="utf-8") as file:
            data = json.load(file)
    except FileNotFoundError:
        return []
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable URL index %s: %s", path, exc)
        return []

    if isinstance(data, dict):
        data = data.get("urls")
    if isinstance(data, list):
        return [str(url) for url in data]
    return []


class ArticleStore:
    """Stores article payloads as JSON blobs and keeps an index of their URLs."""

    def __init__(self, root: _Pathish | None = None, index_filename: str = STORED_URLS_INDEX) -> None:
        self.root = Path(root) if root is not None else DEFAULT_BLOB_ROOT
        self.index_filename = index_filename

    @property
    def index_path(self) -> Path:
        return self.root / self.index_filename

    def store(self, article: Article) -> Path:
        """Write ``article`` to its blob path and record its URL."""

        payload: dict[str, Any] = {
            "url": article.url,
            "fetched_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            **article.content.model_dump(mode="json"),
        }
        full_path = self.root / article_path(article.url)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        with full_path.open("w", encoding="utf-8") as file:
            json.dump(payload, file, ensure_ascii=False, indent=2)

        self.record_url(article.url)
        logger.info("Stored %s at %s", article.url, full_path)
        return full_path

    def record_url(self, url: str) -> None:
        urls = self.load_urls()
        if url in urls:
            return
        urls.append(url)
        self.root.mkdir(parents=True, exist_ok=True)
        with self.index_path.open("w", encoding="utf-8") as file:
            json.dump({"urls": urls}, file, ensure_ascii=False, indent=2)

    def load_urls(self) -> List[str]:
        """URLs recorded in the index, in the order they were stored."""

        return _read_url_list(self.index_path)

    def has_article(self, url: str) -> bool:
        return url in self.load_urls()

    def iter_payloads(self) -> Iterator[dict[str, Any]]:
        """Yield every stored article payload."""

        if not self.root.exists():
            return
        for json_path in sorted(self.root.rglob("*.json")):
            if json_path == self.index_path:
                continue
            try:
                with json_path.open("r", encoding="utf-8") as file:
                    payload = json.load(file)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable blob %s: %s", json_path, exc)
                continue
            if isinstance(payload, dict):
                yield payload
