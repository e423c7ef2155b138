"""Publishing and update date extraction."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Iterable, Sequence
from urllib.parse import urlsplit

from bs4 import Tag
from dateutil import parser as date_parser

from newsharvest.document import Document
from newsharvest.extraction.cleaner import node_text
from newsharvest.models import PublishingDate

logger = logging.getLogger(__name__)

__all__ = [
    "MODIFIED_META_KEYS",
    "PUBLISHED_META_KEYS",
    "date_from_url",
    "extract_publishing_date",
    "find_date_in_text",
    "parse_date",
]

#: ``<meta>`` keys holding the publishing date, most specific first.
PUBLISHED_META_KEYS = (
    "article:published_time",
    "rnews:datePublished",
    "datePublished",
    "OriginalPublicationDate",
    "og:published_time",
    "article_date_original",
    "publication_date",
    "sailthru.date",
    "PublishDate",
    "publish_date",
    "pubdate",
    "dc.date.issued",
    "dcterms.created",
)

MODIFIED_META_KEYS = (
    "article:modified_time",
    "og:updated_time",
    "dateModified",
    "last-modified",
    "dcterms.modified",
)

_MONTH_PATTERN = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|jun(?:e)?|"
    r"jul(?:y)?|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|"
    r"dec(?:ember)?)"
)

_TEXT_DATE_RE = re.compile(
    rf"""(?ix)
    (?<!\d)
    (?P<date>
        \d{{4}}-\d{{1,2}}-\d{{1,2}}(?:[T\s]\d{{1,2}}:\d{{2}}(?::\d{{2}})?)?
        |
        \d{{4}}/\d{{1,2}}/\d{{1,2}}
        |
        {_MONTH_PATTERN}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}
        |
        \d{{1,2}}(?:st|nd|rd|th)?\.?\s+{_MONTH_PATTERN}\.?,?\s+\d{{4}}
        |
        \d{{1,2}}\.\d{{1,2}}\.\d{{4}}
    )
    (?!\d)
    """
)

_URL_DATE_RE = re.compile(
    r"/(?P<year>(?:19|20)\d{2})[/-](?P<month>\d{1,2})[/-](?P<day>\d{1,2})(?:/|-|$)"
)
_ORDINAL_RE = re.compile(r"(?<=\d)(?:st|nd|rd|th)\b", re.IGNORECASE)
_SEPT_RE = re.compile(r"\bsept\b", re.IGNORECASE)

#: Characters of visible text scanned around the body start.
TEXT_WINDOW = 1500


def _clean_value(value: str) -> str:
    cleaned = " ".join(value.split())
    cleaned = _ORDINAL_RE.sub("", cleaned)
    cleaned = _SEPT_RE.sub("Sep", cleaned)
    cleaned = re.sub(r"(?<=[A-Za-z])\.(?=\s)", "", cleaned)
    return cleaned.strip(" ,;")


def parse_date(value: str | None, formats: Sequence[str], *, iso_fallback: bool = False) -> datetime | None:
    """Parse ``value`` against ``formats`` in order; the first match wins.

    With ``iso_fallback`` a value matching none of the formats is handed to
    :func:`dateutil.parser.isoparse`. Anything unparseable yields ``None``.
    """

    if not value:
        return None
    cleaned = _clean_value(value)
    if not cleaned:
        return None

    for fmt in formats:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue

    if iso_fallback:
        try:
            return date_parser.isoparse(cleaned)
        except (ValueError, OverflowError):
            logger.debug("Unparseable structured date %r", value)
    return None


def find_date_in_text(text: str, formats: Sequence[str]) -> datetime | None:
    """Return the first parseable date pattern found in ``text``."""

    for match in _TEXT_DATE_RE.finditer(text):
        parsed = parse_date(match.group("date"), formats)
        if parsed is not None:
            return parsed
    return None


def date_from_url(url: str) -> datetime | None:
    """Return the date encoded in a ``/2023/04/05/`` style URL path."""

    match = _URL_DATE_RE.search(urlsplit(url).path)
    if match is None:
        return None
    try:
        return datetime(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError:
        return None


def _json_ld_values(document: Document, key: str) -> Iterable[Any]:
    for item in document.json_ld():
        value = item.get(key)
        if value:
            yield value


def _structured_date(document: Document, keys: Sequence[str], formats: Sequence[str]) -> datetime | None:
    for key in keys:
        parsed = parse_date(document.meta_content(key), formats, iso_fallback=True)
        if parsed is not None:
            return parsed

    for key in keys:
        for element in document.tree.find_all(attrs={"itemprop": key}):
            raw = element.get("datetime") or element.get("content") or node_text(element)
            parsed = parse_date(str(raw), formats, iso_fallback=True)
            if parsed is not None:
                return parsed
    return None


def _near_body_text(document: Document, body: Tag | None) -> str:
    container = body.parent if body is not None and isinstance(body.parent, Tag) else None
    if container is None:
        container = document.body or document.tree
    return node_text(container)[:TEXT_WINDOW]


def extract_publishing_date(
    document: Document, body: Tag | None, formats: Sequence[str]
) -> PublishingDate | None:
    """Find when the article was published and last updated.

    Structured sources (meta tags, schema.org microdata, JSON-LD, ``<time>``)
    are tried first, then visible text near the article body, then the URL.
    """

    published = _structured_date(document, PUBLISHED_META_KEYS, formats)

    if published is None:
        for value in _json_ld_values(document, "datePublished"):
            published = parse_date(str(value), formats, iso_fallback=True)
            if published is not None:
                break

    if published is None:
        time_tag = document.tree.find("time", attrs={"pubdate": True}) or document.tree.find(
            "time", datetime=True
        )
        if isinstance(time_tag, Tag):
            published = parse_date(str(time_tag.get("datetime") or node_text(time_tag)), formats, iso_fallback=True)

    if published is None:
        published = find_date_in_text(_near_body_text(document, body), formats)

    if published is None:
        published = date_from_url(document.url)

    if published is None:
        return None

    last_updated = _structured_date(document, MODIFIED_META_KEYS, formats)
    if last_updated is None:
        for value in _json_ld_values(document, "dateModified"):
            last_updated = parse_date(str(value), formats, iso_fallback=True)
            if last_updated is not None:
                break

    return PublishingDate(published=published, last_updated=last_updated)
