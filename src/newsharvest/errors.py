"""Exception hierarchy shared by the extraction engine and the crawler."""

from __future__ import annotations

from typing import Sequence

__all__ = [
    "DiscoveryError",
    "ExtractionError",
    "InvalidUrlError",
    "NewsHarvestError",
    "ParseError",
    "TransportError",
]


class NewsHarvestError(Exception):
    """Base class for every error raised by :mod:`newsharvest`."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class InvalidUrlError(NewsHarvestError, ValueError):
    """A root or candidate URL is malformed or not allowed."""


class TransportError(NewsHarvestError):
    """Fetching a URL failed or returned a non-success status."""

    def __init__(
        self, message: str, *, url: str | None = None, status_code: int | None = None
    ) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class ParseError(TransportError):
    """The fetched payload could not be turned into an HTML tree.

    Subclasses :class:`TransportError` so that callers skip the URL exactly as
    they would for a failed fetch.
    """


class ExtractionError(NewsHarvestError):
    """The document parsed but did not yield the minimum required fields."""


class DiscoveryError(NewsHarvestError):
    """No usable source remained while discovering a site's articles."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        errors: Sequence[NewsHarvestError] = (),
    ) -> None:
        super().__init__(message, url=url)
        self.errors = list(errors)
