"""HTTP fetching over a retrying ``requests`` session."""

from __future__ import annotations

import asyncio
import logging

import requests
from pydantic import BaseModel
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from newsharvest.config import CrawlConfig
from newsharvest.errors import TransportError

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_HEADERS", "FetchResponse", "Fetcher", "build_session"]

DEFAULT_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

RETRY_STATUS_CODES = [429, 500, 502, 503, 504]


class FetchResponse(BaseModel):
    """The parts of an HTTP response the crawler needs."""

    url: str
    final_url: str
    status_code: int
    content: str


def build_session(config: CrawlConfig) -> requests.Session:
    """Return a session with browser headers and retries for idempotent GETs."""

    retry = Retry(
        total=config.max_retries,
        connect=config.max_retries,
        read=config.max_retries,
        backoff_factor=0.5,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods={"GET"},
        raise_on_status=False,
    )
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    session.headers["User-Agent"] = config.user_agent
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class Fetcher:
    """Blocking fetcher with an awaitable wrapper for the crawler.

    ``session`` may be any object with a ``get(url, timeout=...)`` method, which
    keeps the fetcher easy to fake in tests.
    """

    def __init__(self, config: CrawlConfig | None = None, session: requests.Session | None = None) -> None:
        self.config = config or CrawlConfig()
        self._owns_session = session is None
        self._session = session or build_session(self.config)

    def fetch(self, url: str) -> FetchResponse:
        """GET ``url``.

        Raises :class:`~newsharvest.errors.TransportError` on connection
        failures and, when ``http_success_only`` is set, on non-2xx statuses.
        """

        try:
            response = self._session.get(url, timeout=self.config.request_timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Request failed: {exc}", url=url) from exc

        status_code = int(response.status_code)
        if self.config.http_success_only and not 200 <= status_code < 300:
            raise TransportError(f"Unexpected HTTP status {status_code}", url=url, status_code=status_code)

        final_url = getattr(response, "url", None) or url
        logger.debug("Fetched %s (%s)", url, status_code)
        return FetchResponse(url=url, final_url=str(final_url), status_code=status_code, content=response.text)

    async def afetch(self, url: str) -> FetchResponse:
        """Run :meth:`fetch` in a worker thread."""

        return await asyncio.to_thread(self.fetch, url)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
