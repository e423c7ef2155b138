"""Parsed HTML document wrapper used by every field extractor."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, List

from bs4 import BeautifulSoup, Tag

from newsharvest.errors import ParseError
from newsharvest.language import normalize_language
from newsharvest.urls import canonicalize_url, resolve_url

logger = logging.getLogger(__name__)

__all__ = ["Document"]

HTML_PARSER = "lxml"


class Document:
    """A parsed page together with the URL it was fetched from.

    The tree is owned by the document and treated as read-only: extraction
    never modifies it, so the same document always yields the same content.
    """

    def __init__(self, url: str, tree: BeautifulSoup, language: str | None = None) -> None:
        self.url = canonicalize_url(url)
        self.source_url = url.strip()
        self.tree = tree
        self._language = normalize_language(language)

    @classmethod
    def from_markup(
        cls, url: str, markup: str | bytes, *, language: str | None = None
    ) -> "Document":
        """Parse ``markup`` fetched from ``url``.

        lxml recovers from malformed markup; only payloads that yield no
        element at all raise :class:`~newsharvest.errors.ParseError`.
        """

        if markup is None or not markup.strip():
            raise ParseError("Document is empty", url=url)

        try:
            tree = BeautifulSoup(markup, HTML_PARSER)
        except (ValueError, TypeError, UnicodeDecodeError) as exc:
            raise ParseError(f"Failed to parse document: {exc}", url=url) from exc

        if tree.find(True) is None:
            raise ParseError("Document contains no HTML elements", url=url)
        return cls(url, tree, language=language)

    @property
    def head(self) -> Tag | None:
        return self.tree.head

    @property
    def body(self) -> Tag | None:
        return self.tree.body

    @property
    def language(self) -> str | None:
        """Configured language, else the one declared by the page."""

        return self._language or self.declared_language()

    def declared_language(self) -> str | None:
        html = self.tree.find("html")
        if isinstance(html, Tag) and html.get("lang"):
            return normalize_language(str(html["lang"]))
        declared = self.meta_content("content-language", attr="http-equiv")
        if declared:
            return normalize_language(declared.split(",")[0])
        locale = self.meta_content("og:locale")
        return normalize_language(locale) if locale else None

    def select(self, selector: str, root: Tag | None = None) -> List[Tag]:
        return (root or self.tree).select(selector)

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        return (root or self.tree).select_one(selector)

    def meta_content(self, key: str, *, attr: str | None = None) -> str | None:
        """Return the stripped ``content`` of the first matching ``<meta>``.

        Without ``attr`` the key is looked up in ``property``, ``name`` and
        ``itemprop`` (case-insensitively), which covers OpenGraph, classic and
        schema.org meta tags.
        """

        attributes = (attr,) if attr else ("property", "name", "itemprop")
        wanted = key.lower()
        for meta in self.tree.find_all("meta"):
            for attribute in attributes:
                value = meta.get(attribute)
                if isinstance(value, list):
                    value = " ".join(value)
                if value and value.strip().lower() == wanted:
                    content = meta.get("content")
                    if content and content.strip():
                        return content.strip()
        return None

    def resolve(self, href: str | None) -> str | None:
        """Resolve ``href`` against the document URL (``<base href>`` aware)."""

        base = self.source_url
        base_tag = self.tree.find("base", href=True)
        if isinstance(base_tag, Tag):
            base = resolve_url(self.source_url, str(base_tag["href"])) or self.source_url
        return resolve_url(base, href)

    def json_ld(self) -> Iterator[dict[str, Any]]:
        """Yield every JSON-LD object embedded in the page, flattening graphs."""

        for script in self.tree.find_all("script", type="application/ld+json"):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring malformed JSON-LD block on %s", self.url)
                continue
            yield from _flatten_json_ld(payload)

    def __repr__(self) -> str:
        return f"Document(url={self.url!r})"


def _flatten_json_ld(payload: Any) -> Iterator[dict[str, Any]]:
    if isinstance(payload, list):
        for item in payload:
            yield from _flatten_json_ld(item)
    elif isinstance(payload, dict):
        yield payload
        graph = payload.get("@graph")
        if graph is not None:
            yield from _flatten_json_ld(graph)
