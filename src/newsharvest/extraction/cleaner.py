"""Read-only text helpers over BeautifulSoup nodes.

Nothing here mutates the tree: unwanted elements are skipped while walking
instead of being decomposed, so a document can be extracted repeatedly.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, List, Sequence

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

__all__ = [
    "BAD_TAG_NAMES",
    "attribute_words",
    "has_bad_ancestor",
    "is_boilerplate",
    "link_density",
    "node_text",
    "normalize_whitespace",
    "truncate",
]

#: Elements whose content never belongs to article text.
BAD_TAG_NAMES = frozenset(
    {
        "script",
        "style",
        "noscript",
        "template",
        "figcaption",
        "figure",
        "button",
        "svg",
        "form",
        "select",
        "textarea",
        "iframe",
    }
)

BOILERPLATE_TAG_NAMES = frozenset({"nav", "aside", "footer"})
BOILERPLATE_ROLES = frozenset({"navigation", "complementary", "contentinfo", "banner"})

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_SPLIT_RE = re.compile(r"[^0-9a-zA-Z]+")


def normalize_whitespace(value: str) -> str:
    """Collapse whitespace runs to one space and strip the ends."""

    return _WHITESPACE_RE.sub(" ", value).strip()


def _iter_strings(node: Tag) -> Iterator[str]:
    for child in node.children:
        if isinstance(child, Tag):
            if child.name in BAD_TAG_NAMES:
                continue
            if child.name == "br":
                yield " "
                continue
            yield from _iter_strings(child)
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            yield str(child)


def node_text(node: Tag | None) -> str:
    """Visible text of ``node`` with whitespace collapsed."""

    if node is None:
        return ""
    return normalize_whitespace("".join(_iter_strings(node)))


def link_density(node: Tag, text_length: int | None = None) -> float:
    """Share of ``node``'s text that sits inside anchors (0.0 to 1.0)."""

    if text_length is None:
        text_length = len(node_text(node))
    if text_length <= 0:
        return 1.0 if node.find("a") is not None else 0.0

    anchors = [node] if node.name == "a" else node.find_all("a")
    link_length = sum(len(node_text(anchor)) for anchor in anchors if not has_bad_ancestor(anchor, node))
    return min(1.0, link_length / text_length)


def attribute_words(node: Tag) -> List[str]:
    """Lower-cased words from the ``id`` and ``class`` attributes."""

    values: List[str] = []
    for attribute in ("id", "class"):
        value = node.get(attribute)
        if not value:
            continue
        if isinstance(value, str):
            values.append(value)
        else:
            values.extend(value)
    words: List[str] = []
    for value in values:
        words.extend(word for word in _WORD_SPLIT_RE.split(value.lower()) if word)
    return words


def is_boilerplate(node: Tag, tokens: Sequence[str]) -> bool:
    """Return ``True`` when ``node`` looks like navigation, ads or comments.

    Tokens of three or more characters match inside a class/id word
    (``nav`` matches ``navbar``); shorter tokens such as ``ad`` must equal a
    whole word so that ``header`` or ``thread`` are not mistaken for ads.
    """

    if node.name in BOILERPLATE_TAG_NAMES:
        return True
    role = node.get("role")
    if isinstance(role, str) and role.lower() in BOILERPLATE_ROLES:
        return True

    words = attribute_words(node)
    if not words:
        return False
    for token in tokens:
        token = token.lower()
        if len(token) >= 3:
            if any(token in word for word in words):
                return True
        elif token in words:
            return True
    return False


def _ancestors(node: Tag, stop: Tag | None) -> Iterable[Tag]:
    for parent in node.parents:
        if parent is stop or parent.name == "[document]":
            break
        yield parent


def has_bad_ancestor(node: Tag, stop: Tag | None = None) -> bool:
    """Whether ``node`` sits inside a :data:`BAD_TAG_NAMES` element below ``stop``."""

    return any(parent.name in BAD_TAG_NAMES for parent in _ancestors(node, stop))


def truncate(value: str, limit: int) -> str:
    """Cut ``value`` to at most ``limit`` characters on a word boundary."""

    if len(value) <= limit:
        return value
    cut = value[:limit]
    if " " in cut and not value[limit].isspace():
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:-")
