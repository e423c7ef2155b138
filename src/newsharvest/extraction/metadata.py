"""Title, byline, description and link metadata of an article page."""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Sequence
from urllib.parse import urlsplit

from bs4 import Tag

from newsharvest.document import Document
from newsharvest.errors import InvalidUrlError
from newsharvest.extraction.cleaner import is_boilerplate, node_text, normalize_whitespace, truncate
from newsharvest.urls import canonicalize_url, dedup_key, host_of, is_ignored_path

__all__ = [
    "AUTHOR_META_KEYS",
    "TITLE_SEPARATORS",
    "clean_title",
    "extract_authors",
    "extract_canonical_url",
    "extract_description",
    "extract_favicon",
    "extract_meta_keywords",
    "extract_references",
    "extract_site_name",
    "extract_title",
    "parse_byline",
]

TITLE_SEPARATORS = ("|", " - ", ":", "–", "—", "»")

AUTHOR_META_KEYS = ("author", "article:author", "byl", "dc.creator", "sailthru.author", "parsely-author")
AUTHOR_ATTRIBUTE_VALUES = ("author", "byline", "dc.creator", "byl")

#: Characters of body text searched for a ``By <Name>`` line.
BYLINE_WINDOW = 400
MAX_NAME_TOKENS = 5

_DIGITS_RE = re.compile(r"\d")
_BY_PREFIX_RE = re.compile(r"^\s*(?:by|from|von|par|por|door)\s*[:\s]\s*", re.IGNORECASE)
_BYLINE_TEXT_RE = re.compile(
    r"\bBy[:\s]+((?:[A-Z][\w'\-\.]*\s?){2,4}(?:(?:,\s*|\s+and\s+)(?:[A-Z][\w'\-\.]*\s?){2,4})*)"
)
_NAME_SPLIT_RE = re.compile(r"[^\w'\-\.]")
_NAME_DELIMITERS = {"and", "&", "und", "et", "y", ""}


def clean_title(raw: str) -> str:
    """Strip site-name decoration from a ``<title>``.

    The first separator of :data:`TITLE_SEPARATORS` present in the title
    splits it, and the longest segment is kept.
    """

    title = normalize_whitespace(raw)
    for separator in TITLE_SEPARATORS:
        if separator in title:
            segments = [segment.strip() for segment in title.split(separator)]
            longest = max(segments, key=len)
            return longest or title
    return title


def extract_title(document: Document, body: Tag | None, max_length: int) -> str | None:
    """``og:title``, cleaned ``<title>``, a heading in the body, the first ``<h1>``."""

    title = document.meta_content("og:title")
    if not title:
        title_tag = document.tree.find("title")
        raw = node_text(title_tag) if isinstance(title_tag, Tag) else ""
        title = clean_title(raw) if raw else None
    if not title and body is not None:
        heading = body.find(["h1", "h2"])
        title = node_text(heading) if isinstance(heading, Tag) else None
    if not title:
        heading = document.tree.find("h1")
        title = node_text(heading) if isinstance(heading, Tag) else None
    if not title:
        return None
    return truncate(normalize_whitespace(title), max_length)


def parse_byline(value: str) -> List[str]:
    """Split a byline such as ``"By Jane Doe and John Smith"`` into names.

    Tokens with digits are dropped; a name needs at least two tokens and at
    most :data:`MAX_NAME_TOKENS`.
    """

    value = _BY_PREFIX_RE.sub("", normalize_whitespace(value))
    if not value or "://" in value or value.startswith("/"):
        return []

    names: List[str] = []
    current: List[str] = []
    for token in _NAME_SPLIT_RE.split(value):
        token = token.strip()
        if token.lower() in _NAME_DELIMITERS:
            if current:
                names.append(" ".join(current))
                current = []
        elif not _DIGITS_RE.search(token):
            current.append(token)
    if current:
        names.append(" ".join(current))
    return [name for name in names if 2 <= len(name.split()) <= MAX_NAME_TOKENS]


def _json_ld_author_names(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str):
            yield name
    elif isinstance(value, list):
        for item in value:
            yield from _json_ld_author_names(item)


def _unique_names(names: Iterable[str], limit: int) -> List[str]:
    seen: set[str] = set()
    unique: List[str] = []
    for name in names:
        name = normalize_whitespace(name).strip(" ,;")
        if not name or "://" in name or _DIGITS_RE.search(name):
            continue
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(name)
        if len(unique) >= limit:
            break
    return unique


def extract_authors(document: Document, body: Tag | None, limit: int) -> List[str]:
    """Author names from byline metadata, author markup or a ``By`` line."""

    if limit <= 0:
        return []

    candidates: List[str] = []
    for key in AUTHOR_META_KEYS:
        content = document.meta_content(key)
        if content:
            candidates.extend(parse_byline(content) or [content])
    for item in document.json_ld():
        candidates.extend(_json_ld_author_names(item.get("author")))
    authors = _unique_names(candidates, limit)
    if authors:
        return authors

    for element in document.tree.find_all(True):
        if element.name in {"meta", "script", "style"}:
            continue
        if _is_author_element(element):
            candidates.extend(parse_byline(node_text(element)))
    authors = _unique_names(candidates, limit)
    if authors:
        return authors

    if body is not None:
        match = _BYLINE_TEXT_RE.search(node_text(body)[:BYLINE_WINDOW])
        if match:
            authors = _unique_names(parse_byline(match.group(1)), limit)
    return authors


def _is_author_element(element: Tag) -> bool:
    rel = element.get("rel")
    if rel and "author" in [value.lower() for value in rel]:
        return True
    for attribute in ("itemprop", "class", "id", "name"):
        value = element.get(attribute)
        if not value:
            continue
        values = [value] if isinstance(value, str) else list(value)
        if any(item.lower() in AUTHOR_ATTRIBUTE_VALUES for item in values):
            return True
    return False


def extract_description(document: Document, body: Tag | None, max_length: int) -> str | None:
    """Meta description, else the first paragraph of the body."""

    description = (
        document.meta_content("og:description")
        or document.meta_content("description", attr="name")
        or document.meta_content("twitter:description")
    )
    if not description and body is not None:
        paragraph = body if body.name == "p" else body.find("p")
        description = node_text(paragraph) if isinstance(paragraph, Tag) else None
    if not description:
        return None
    return truncate(normalize_whitespace(description), max_length)


def _is_navigation_link(url: str, article_host: str) -> bool:
    if host_of(url) != article_host:
        return False
    path = urlsplit(url).path
    return not path or is_ignored_path(path)


def extract_references(document: Document, body: Tag | None, boilerplate_tokens: Sequence[str]) -> List[str]:
    """Outbound links inside the body text.

    Self-links, links inside boilerplate containers and navigation links of
    the article's own site are skipped.
    """

    if body is None:
        return []

    own_key = dedup_key(document.url)
    article_host = host_of(document.url)
    references: List[str] = []
    seen: set[str] = set()
    for anchor in body.find_all("a", href=True):
        if _inside_boilerplate(anchor, body, boilerplate_tokens):
            continue
        resolved = document.resolve(str(anchor["href"]))
        if not resolved:
            continue
        try:
            canonical = canonicalize_url(resolved)
        except InvalidUrlError:
            continue
        if dedup_key(canonical) == own_key or _is_navigation_link(canonical, article_host):
            continue
        if canonical not in seen:
            seen.add(canonical)
            references.append(resolved)
    return references


def _inside_boilerplate(node: Tag, stop: Tag, tokens: Sequence[str]) -> bool:
    for parent in node.parents:
        if parent is stop:
            return False
        if is_boilerplate(parent, tokens):
            return True
    return False


def extract_canonical_url(document: Document) -> str | None:
    link = document.tree.find("link", rel="canonical", href=True)
    raw = str(link["href"]) if isinstance(link, Tag) else document.meta_content("og:url")
    resolved = document.resolve(raw)
    if not resolved:
        return None
    try:
        return canonicalize_url(resolved)
    except InvalidUrlError:
        return None


def extract_site_name(document: Document) -> str | None:
    return document.meta_content("og:site_name") or document.meta_content("application-name")


def extract_meta_keywords(document: Document) -> List[str]:
    """Comma separated ``keywords`` / ``news_keywords`` meta values."""

    raw = document.meta_content("keywords", attr="name") or document.meta_content("news_keywords")
    if not raw:
        return []
    seen: set[str] = set()
    keywords: List[str] = []
    for keyword in raw.split(","):
        keyword = normalize_whitespace(keyword)
        if keyword and keyword.lower() not in seen:
            seen.add(keyword.lower())
            keywords.append(keyword)
    return keywords


def extract_favicon(document: Document) -> str | None:
    for link in document.tree.find_all("link", href=True):
        rel = [value.lower() for value in link.get("rel") or []]
        if "icon" in rel:
            return document.resolve(str(link["href"]))
    return None
