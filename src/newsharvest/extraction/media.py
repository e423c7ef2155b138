"""Image and video URL collection."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

from bs4 import Tag

from newsharvest.document import Document

__all__ = [
    "VIDEO_PROVIDERS",
    "collect_images",
    "collect_videos",
    "dedupe",
    "find_top_image",
    "image_sources",
    "video_provider",
]

#: Host fragments of embeddable video players, mapped to a provider name.
VIDEO_PROVIDERS = {
    "youtube": "youtube",
    "youtu.be": "youtube",
    "youtube-nocookie": "youtube",
    "vimeo": "vimeo",
    "dailymotion": "dailymotion",
    "dai.ly": "dailymotion",
    "brightcove": "brightcove",
    "jwplayer": "jwplayer",
    "wistia": "wistia",
}

TOP_IMAGE_META_KEYS = ("og:image", "og:image:url", "og:image:secure_url", "twitter:image", "twitter:image:src")

_DIMENSION_RE = re.compile(r"^\s*(\d+)(?:px)?\s*$")


def dedupe(urls: Iterable[Optional[str]]) -> List[str]:
    """Drop empty values and repeats, keeping the first occurrence."""

    seen: set[str] = set()
    unique: List[str] = []
    for url in urls:
        if url and url not in seen:
            seen.add(url)
            unique.append(url)
    return unique


def _usable(url: str | None) -> bool:
    return bool(url) and urlsplit(url).scheme in {"http", "https"}


def image_sources(img: Tag) -> Iterator[str]:
    """Raw candidate URLs of an ``<img>``: ``src``, lazy-load attrs, ``srcset``."""

    for attribute in ("src", "data-src", "data-lazy-src", "data-original"):
        value = img.get(attribute)
        if isinstance(value, str) and value.strip() and not value.strip().lower().startswith("data:"):
            yield value.strip()
    srcset = img.get("srcset") or img.get("data-srcset")
    if isinstance(srcset, str):
        for candidate in srcset.split(","):
            source = candidate.strip().split(" ", 1)[0]
            if source and not source.lower().startswith("data:"):
                yield source


def collect_images(document: Document, root: Tag | None) -> List[str]:
    """Absolute URLs of every image below ``root`` in document order."""

    if root is None:
        return []
    images = root.find_all("img") if root.name != "img" else [root]
    resolved = (document.resolve(source) for img in images for source in image_sources(img))
    return dedupe(url for url in resolved if _usable(url))


def video_provider(url: str) -> str | None:
    """Provider name for a player URL, or ``None`` for unknown hosts."""

    host = (urlsplit(url).hostname or "").lower()
    for fragment, provider in VIDEO_PROVIDERS.items():
        if fragment in host:
            return provider
    return None


def _video_sources(root: Tag) -> Iterator[Tuple[str, bool]]:
    """Yield ``(url, needs_known_provider)`` for every player element."""

    for element in root.find_all(["video", "iframe", "embed", "object"]):
        if element.name == "video":
            if element.get("src"):
                yield str(element["src"]), False
            for source in element.find_all("source", src=True):
                yield str(source["src"]), False
        elif element.name == "object":
            param = element.find("param", attrs={"name": "movie"})
            if isinstance(param, Tag) and param.get("value"):
                yield str(param["value"]), True
            elif element.get("data"):
                yield str(element["data"]), True
        else:
            source = element.get("src") or element.get("data-src")
            if source:
                yield str(source), True


def collect_videos(document: Document, root: Tag | None) -> List[str]:
    """Video and embedded-player URLs below ``root``.

    Native ``<video>`` sources are always kept; iframes, embeds and objects
    only when they point at a known provider.
    """

    if root is None:
        return []
    urls: List[str] = []
    for source, needs_provider in _video_sources(root):
        url = document.resolve(source)
        if not _usable(url):
            continue
        if needs_provider and video_provider(url) is None:
            continue
        urls.append(url)
    return dedupe(urls)


def _dimension(img: Tag, attribute: str) -> int:
    value = img.get(attribute)
    if not isinstance(value, str):
        return 0
    match = _DIMENSION_RE.match(value)
    return int(match.group(1)) if match else 0


def _largest_image(document: Document, scope: Tag) -> str | None:
    best: Tuple[int, str] | None = None
    for img in scope.find_all("img"):
        area = _dimension(img, "width") * _dimension(img, "height")
        if area <= 0:
            continue
        url = next((document.resolve(source) for source in image_sources(img)), None)
        if not _usable(url):
            continue
        if best is None or area > best[0]:
            best = (area, url)
    return best[1] if best else None


def find_top_image(document: Document, body: Tag | None) -> str | None:
    """The page's lead image.

    Declared social images win; otherwise the largest sized ``<img>`` in or
    around the body, otherwise the first image in the document.
    """

    for key in TOP_IMAGE_META_KEYS:
        url = document.resolve(document.meta_content(key))
        if _usable(url):
            return url

    link = document.tree.find("link", rel="image_src", href=True)
    if isinstance(link, Tag):
        url = document.resolve(str(link["href"]))
        if _usable(url):
            return url

    if body is not None:
        scope = body.parent if isinstance(body.parent, Tag) and body.parent.name != "[document]" else body
        largest = _largest_image(document, scope)
        if largest:
            return largest

    images = collect_images(document, document.body or document.tree)
    return images[0] if images else None
