"""URL canonicalisation and link classification for site discovery."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Sequence
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from newsharvest.errors import InvalidUrlError

__all__ = [
    "AnchorContext",
    "IGNORED_PATH_PREFIXES",
    "UrlKind",
    "UrlSet",
    "canonicalize_url",
    "classify_url",
    "dedup_key",
    "host_of",
    "is_ignored_path",
    "is_same_site",
    "resolve_url",
]

ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:", "#")
DEFAULT_PORTS = {"http": 80, "https": 443}

IGNORED_PATH_PREFIXES = (
    "/tag/",
    "/tags/",
    "/topic/",
    "/author/",
    "/authors/",
    "/profile/",
    "/search",
    "/login",
    "/logout",
    "/signin",
    "/signup",
    "/register",
    "/account",
    "/subscribe",
    "/subscription",
    "/newsletter",
    "/privacy",
    "/terms",
    "/cookie",
    "/contact",
    "/about",
    "/feed",
    "/rss",
    "/cdn-cgi/",
    "/wp-admin",
    "/wp-login",
    "/wp-json",
    "/static/",
    "/assets/",
)

IGNORED_SEGMENTS = frozenset({"tag", "tags", "author", "authors", "topic", "search"})

STATIC_EXTENSIONS = (
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".webp",
    ".svg",
    ".ico",
    ".bmp",
    ".css",
    ".js",
    ".json",
    ".xml",
    ".rss",
    ".pdf",
    ".zip",
    ".gz",
    ".mp3",
    ".mp4",
    ".mov",
    ".avi",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
)

CATEGORY_STOPWORDS = (
    "about",
    "help",
    "privacy",
    "legal",
    "feedback",
    "sitemap",
    "site-map",
    "profile",
    "account",
    "mobile",
    "facebook",
    "twitter",
    "linkedin",
    "youtube",
    "instagram",
    "store",
    "shop",
    "mail",
    "preferences",
    "password",
    "login",
    "signup",
    "register",
    "subscribe",
    "subscription",
    "newsletter",
    "jobs",
    "careers",
    "donate",
    "advert",
    "tickets",
    "coupons",
    "forum",
    "archive",
    "faq",
    "terms",
    "contact",
    "admin",
)

_DATE_SEGMENT_RE = re.compile(
    r"/(?:19|20)\d{2}/(?:0?[1-9]|1[0-2])(?:/|$)"
    r"|/(?:19|20)\d{2}-(?:0[1-9]|1[0-2])-(?:0[1-9]|[12]\d|3[01])"
    r"|/(?:19|20)\d{2}(?:0[1-9]|1[0-2])(?:0[1-9]|[12]\d|3[01])(?:/|$)"
)
_NUMERIC_ID_RE = re.compile(r"(?:^|[-_])\d{6,}(?:$|[-_.])")
_MAX_CATEGORY_SEGMENT_LEN = 20


class UrlKind(str, Enum):
    """Outcome of classifying a discovered link."""

    CATEGORY = "category"
    ARTICLE = "article"
    IGNORE = "ignore"


@dataclass(frozen=True)
class AnchorContext:
    """Where a link was found on the page it was discovered from."""

    text: str = ""
    in_navigation: bool = False
    on_homepage: bool = False


def host_of(url: str) -> str:
    """Return the lower-cased host of ``url`` without a leading ``www.``."""

    host = (urlsplit(url).hostname or "").lower().strip(".")
    if host.startswith("www."):
        host = host[4:]
    return host


def resolve_url(base_url: str, href: str | None) -> str | None:
    """Resolve ``href`` against ``base_url``; return ``None`` for non-links."""

    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(SKIP_HREF_PREFIXES):
        return None
    return urljoin(base_url, href)


def _normalize_path(path: str) -> str:
    if not path:
        return ""
    collapsed = re.sub(r"/{2,}", "/", path)
    normalized = posixpath.normpath(collapsed)
    if normalized in {".", "/"}:
        return ""
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return normalized.rstrip("/")


def canonicalize_url(url: str, significant_query_keys: Sequence[str] = ()) -> str:
    """Return the canonical form of the absolute ``url``.

    Scheme and host are lower-cased, default ports, fragments, duplicate
    slashes, dot segments and the trailing slash are removed, and only query
    keys listed in ``significant_query_keys`` survive (sorted). Applying the
    function to its own output returns the same string.
    """

    if not url or not url.strip():
        raise InvalidUrlError("URL is empty", url=url)

    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {url}", url=url) from exc

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidUrlError(f"Unsupported or missing URL scheme: {url}", url=url)

    host = (parts.hostname or "").lower().strip(".")
    if not host:
        raise InvalidUrlError(f"URL has no host: {url}", url=url)

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    query = ""
    if significant_query_keys and parts.query:
        keys = {key.lower() for key in significant_query_keys}
        kept = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key.lower() in keys
        ]
        query = urlencode(sorted(kept))

    return urlunsplit((scheme, netloc, _normalize_path(parts.path), query, ""))


def dedup_key(canonical_url: str) -> str:
    """Key under which equivalent canonical URLs collapse (``www.`` ignored)."""

    parts = urlsplit(canonical_url)
    netloc = parts.netloc
    if netloc.startswith("www."):
        netloc = netloc[4:]
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, ""))


def is_same_site(url: str, root_url: str, allowed_hosts: Iterable[str] = ()) -> bool:
    """Return ``True`` when ``url`` is on the root's host or an allowed host."""

    host = host_of(url)
    if not host:
        return False
    allowed = {host_of(root_url)}
    allowed.update(host_of(f"//{entry}") or entry for entry in allowed_hosts)
    return host in allowed


class UrlSet:
    """Set of canonical URLs that deduplicates equivalent spellings.

    When two canonical URLs share a :func:`dedup_key`, the lexicographically
    smallest one is kept as the representative.
    """

    def __init__(self, urls: Iterable[str] = ()) -> None:
        self._by_key: Dict[str, str] = {}
        self.update(urls)

    def add(self, canonical_url: str) -> bool:
        """Add ``canonical_url``; return ``True`` if it introduced a new key."""

        key = dedup_key(canonical_url)
        current = self._by_key.get(key)
        if current is None:
            self._by_key[key] = canonical_url
            return True
        if canonical_url < current:
            self._by_key[key] = canonical_url
        return False

    def update(self, urls: Iterable[str]) -> None:
        for url in urls:
            self.add(url)

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and dedup_key(url) in self._by_key

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._by_key.values()))

    def __len__(self) -> int:
        return len(self._by_key)


def is_ignored_path(path: str) -> bool:
    """Whether ``path`` is a tag, author, account, legal or feed page."""

    lowered = path.lower()
    for prefix in IGNORED_PATH_PREFIXES:
        if lowered.startswith(prefix) or lowered + "/" == prefix:
            return True
    segments = lowered.split("/")[:-1]
    return any(segment in IGNORED_SEGMENTS for segment in segments)


def _looks_like_article(path: str, min_slug_words: int) -> bool:
    if _DATE_SEGMENT_RE.search(path):
        return True

    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return False
    slug = segments[-1].lower()
    stem = slug[:-5] if slug.endswith(".html") else slug
    stem = stem[:-4] if stem.endswith(".htm") else stem

    words = [word for word in re.split(r"[-_]", stem) if word]
    if len(words) >= min_slug_words and any(word.isalpha() for word in words):
        return True
    if _NUMERIC_ID_RE.search(slug):
        return True
    return slug.endswith((".html", ".htm")) and len(words) >= 2


def _subdomain_labels(url: str, root_url: str) -> List[str]:
    host = host_of(url)
    root_host = host_of(root_url)
    if host == root_host:
        return []
    if host.endswith("." + root_host):
        return host[: -len(root_host) - 1].split(".")
    return host.split(".")[:-2]


def _looks_like_category(url: str, root_url: str, context: AnchorContext) -> bool:
    parts = urlsplit(url)
    segments = [segment for segment in parts.path.split("/") if segment]
    conjunction = " ".join([*segments, *_subdomain_labels(url, root_url)]).lower()
    if any(word in conjunction for word in CATEGORY_STOPWORDS):
        return False
    if context.in_navigation:
        return bool(segments) or parts.hostname is not None
    return (
        len(segments) == 1
        and len(segments[0]) <= _MAX_CATEGORY_SEGMENT_LEN
        and not any(char.isdigit() for char in segments[0])
    )


def classify_url(
    url: str,
    root_url: str,
    context: AnchorContext | None = None,
    *,
    allowed_hosts: Iterable[str] = (),
    min_slug_words: int = 3,
) -> UrlKind:
    """Decide whether ``url`` is a category page, an article or noise.

    ``url`` is expected to be canonical. Category links are only produced for
    links found on the homepage; elsewhere non-article links are ignored.
    """

    context = context or AnchorContext()
    parts = urlsplit(url)
    if parts.scheme not in ALLOWED_SCHEMES:
        return UrlKind.IGNORE
    if not is_same_site(url, root_url, allowed_hosts):
        return UrlKind.IGNORE

    path = parts.path
    if dedup_key(url) == dedup_key(root_url) or not path and host_of(url) == host_of(root_url):
        return UrlKind.IGNORE
    if is_ignored_path(path) or path.lower().endswith(STATIC_EXTENSIONS):
        return UrlKind.IGNORE

    if _looks_like_article(path, min_slug_words):
        return UrlKind.ARTICLE

    if context.on_homepage and _looks_like_category(url, root_url, context):
        return UrlKind.CATEGORY
    return UrlKind.IGNORE
