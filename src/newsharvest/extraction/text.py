"""Article body text and keyword extraction."""

from __future__ import annotations

import re
from collections import Counter
from typing import AbstractSet, List, Sequence

from bs4 import Tag

from newsharvest.extraction.cleaner import (
    has_bad_ancestor,
    is_boilerplate,
    link_density,
    node_text,
    truncate,
)

__all__ = ["PARAGRAPH_TAGS", "body_paragraphs", "extract_text", "rank_keywords", "tokenize"]

PARAGRAPH_TAGS = ("p", "pre", "blockquote")

#: Paragraphs with a higher share of anchor text are navigation, not prose.
PARAGRAPH_LINK_DENSITY = 0.5

_TOKEN_RE = re.compile(r"[^\W_]+(?:['’][^\W_]+)*", re.UNICODE)


def tokenize(text: str) -> List[str]:
    """Split ``text`` into lower-cased word tokens without punctuation."""

    return [token.replace("’", "'") for token in _TOKEN_RE.findall(text.lower())]


def body_paragraphs(body: Tag, boilerplate_tokens: Sequence[str] = ()) -> List[str]:
    """Return the visible paragraphs of ``body`` in document order.

    Paragraphs nested in another paragraph element are covered by their outer
    element and skipped. Empty, link-dense and boilerplate paragraphs are
    dropped.
    """

    if body.name in PARAGRAPH_TAGS:
        nodes = [body]
    else:
        nodes = [
            node
            for node in body.find_all(PARAGRAPH_TAGS)
            if not any(parent.name in PARAGRAPH_TAGS for parent in _parents_below(node, body))
        ]

    paragraphs: List[str] = []
    for node in nodes:
        if has_bad_ancestor(node, body):
            continue
        if boilerplate_tokens and any(
            is_boilerplate(element, boilerplate_tokens) for element in [node, *_parents_below(node, body)]
        ):
            continue
        text = node_text(node)
        if not text:
            continue
        if link_density(node, len(text)) > PARAGRAPH_LINK_DENSITY:
            continue
        paragraphs.append(text)
    return paragraphs


def _parents_below(node: Tag, stop: Tag) -> List[Tag]:
    parents: List[Tag] = []
    for parent in node.parents:
        if parent is stop:
            break
        parents.append(parent)
    return parents


def extract_text(
    body: Tag | None, max_length: int, boilerplate_tokens: Sequence[str] = ()
) -> str | None:
    """Join the body's paragraphs with a blank line, truncated to ``max_length``."""

    if body is None:
        return None
    text = "\n\n".join(body_paragraphs(body, boilerplate_tokens))
    if not text:
        return None
    return truncate(text, max_length)


def rank_keywords(text: str | None, stopwords: AbstractSet[str], limit: int) -> List[str]:
    """Most frequent non-stopword tokens of ``text``.

    Numbers and single characters are dropped; ties keep the order of first
    occurrence, so the same text always ranks the same way.
    """

    if not text or limit <= 0:
        return []

    counts: Counter[str] = Counter()
    first_seen: dict[str, int] = {}
    for position, token in enumerate(tokenize(text)):
        if len(token) < 2 or token.isdigit() or token in stopwords:
            continue
        if any(char.isdigit() for char in token) and not any(char.isalpha() for char in token):
            continue
        counts[token] += 1
        first_seen.setdefault(token, position)

    ranked = sorted(counts, key=lambda token: (-counts[token], first_seen[token]))
    return ranked[:limit]
