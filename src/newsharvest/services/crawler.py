"""Site discovery and concurrent article streaming."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Awaitable, Callable, Deque, Iterable, Iterator, List, Optional, Tuple

from bs4 import Tag

from newsharvest.config import HarvestConfig
from newsharvest.document import Document
from newsharvest.errors import (
    DiscoveryError,
    ExtractionError,
    InvalidUrlError,
    NewsHarvestError,
)
from newsharvest.extraction import Extractor
from newsharvest.extraction.cleaner import attribute_words, node_text
from newsharvest.language import language_hint
from newsharvest.models import Article, ArticleResult
from newsharvest.services.fetcher import Fetcher
from newsharvest.urls import AnchorContext, UrlKind, UrlSet, canonicalize_url, classify_url

logger = logging.getLogger(__name__)

__all__ = [
    "ArticleStream",
    "Site",
    "SiteState",
    "aextract_url",
    "extract_url",
    "iter_links",
    "process_article",
    "stream_urls",
]

NAVIGATION_TAGS = frozenset({"nav", "header"})
NAVIGATION_WORDS = frozenset({"header", "masthead", "navigation", "topbar"})
NAVIGATION_PREFIXES = ("nav", "menu")

ArticleWorker = Callable[[str], Awaitable[ArticleResult]]


class SiteState(str, Enum):
    UNINITIALIZED = "uninitialized"
    DISCOVERING = "discovering"
    EXPANDING_CATEGORIES = "expanding_categories"
    READY = "ready"
    CONSUMED = "consumed"


def _in_navigation(anchor: Tag) -> bool:
    for parent in anchor.parents:
        if parent.name == "[document]":
            break
        if parent.name in NAVIGATION_TAGS:
            return True
        role = parent.get("role")
        if isinstance(role, str) and role.lower() == "navigation":
            return True
        for word in attribute_words(parent):
            if word in NAVIGATION_WORDS or word.startswith(NAVIGATION_PREFIXES):
                return True
    return False


def iter_links(document: Document, significant_query_keys: Iterable[str] = ()) -> Iterator[Tuple[str, str, bool]]:
    """Yield ``(canonical_url, anchor_text, in_navigation)`` for every link."""

    keys = tuple(significant_query_keys)
    for anchor in document.tree.find_all("a", href=True):
        resolved = document.resolve(str(anchor["href"]))
        if not resolved:
            continue
        try:
            canonical = canonicalize_url(resolved, keys)
        except InvalidUrlError:
            continue
        yield canonical, node_text(anchor), _in_navigation(anchor)


async def process_article(url: str, fetcher: Fetcher, extractor: Extractor) -> ArticleResult:
    """Fetch and extract ``url``; every failure is returned, never raised."""

    try:
        response = await fetcher.afetch(url)
        document = Document.from_markup(response.final_url, response.content)
        content = extractor.extract(document)
    except NewsHarvestError as exc:
        logger.info("Skipping %s: %s", url, exc)
        return ArticleResult(url=url, error=exc)
    except Exception as exc:  # noqa: BLE001 - broad catch keeps the stream running
        logger.exception("Unexpected failure while extracting %s", url)
        error = ExtractionError(f"Unexpected extraction failure: {exc}", url=url)
        return ArticleResult(url=url, error=error)
    return ArticleResult(url=url, article=Article(url=url, content=content, document=document))


class ArticleStream:
    """Async iterator over :class:`ArticleResult` objects for a list of URLs.

    At most ``concurrency`` fetch+extract tasks run at once and new tasks are
    only started when the consumer asks for the next result. Results arrive in
    completion order, or in URL order when ``ordered`` is set. Closing the
    stream cancels the tasks still running.
    """

    def __init__(
        self,
        urls: Iterable[str],
        worker: ArticleWorker,
        *,
        concurrency: int = 8,
        ordered: bool = False,
    ) -> None:
        self._urls: Deque[str] = deque(urls)
        self._worker = worker
        self._concurrency = max(1, concurrency)
        self._ordered = ordered
        self._tasks: Deque[asyncio.Task] = deque()
        self._ready: Deque[ArticleResult] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "ArticleStream":
        return self

    async def __anext__(self) -> ArticleResult:
        if self._ready:
            return self._ready.popleft()
        if self._closed:
            raise StopAsyncIteration

        self._fill()
        if not self._tasks:
            self._closed = True
            raise StopAsyncIteration

        if self._ordered:
            head = self._tasks[0]
            await asyncio.wait({head})
            self._tasks.popleft()
            return head.result()

        done, _ = await asyncio.wait(set(self._tasks), return_when=asyncio.FIRST_COMPLETED)
        finished = [task for task in self._tasks if task in done]
        self._tasks = deque(task for task in self._tasks if task not in done)
        self._ready.extend(task.result() for task in finished)
        return self._ready.popleft()

    def _fill(self) -> None:
        while self._urls and len(self._tasks) < self._concurrency:
            url = self._urls.popleft()
            self._tasks.append(asyncio.create_task(self._worker(url), name=f"article:{url}"))

    async def aclose(self) -> None:
        """Cancel running tasks and drop every URL not yet started."""

        self._closed = True
        self._urls.clear()
        self._ready.clear()
        tasks = list(self._tasks)
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "ArticleStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class Site:
    """A news site: its discovered category and article URLs.

    Use :meth:`build` (or :meth:`from_category`) to construct a discovered
    site, then consume it once with ``async for result in site`` or
    ``async with site.stream() as results``.
    """

    def __init__(
        self,
        root_url: str,
        *,
        config: HarvestConfig | None = None,
        extractor: Extractor | None = None,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.config = config or HarvestConfig()
        crawl = self.config.crawl
        self.root_url = canonicalize_url(root_url, crawl.significant_query_keys)
        self.extractor = extractor or Extractor(self.config.extraction)
        self.fetcher = fetcher or Fetcher(crawl)
        self.state = SiteState.UNINITIALIZED
        self.category_urls = UrlSet()
        self.article_urls = UrlSet()
        self.errors: List[NewsHarvestError] = []

    @classmethod
    async def build(cls, root_url: str, **kwargs) -> "Site":
        """Create a site for ``root_url`` and run discovery.

        Raises :class:`~newsharvest.errors.InvalidUrlError` for a malformed
        root and :class:`~newsharvest.errors.DiscoveryError` when neither the
        homepage nor any category page could be used.
        """

        site = cls(root_url, **kwargs)
        await site.discover()
        return site

    @classmethod
    async def from_category(cls, category_url: str, **kwargs) -> "Site":
        """Discover articles from a single category page, skipping the homepage.

        A language hinted by the URL (``arabic.cnn.com``, ``/German/``)
        becomes the extraction language unless an extractor is supplied.
        """

        hint = language_hint(category_url)
        if hint and kwargs.get("extractor") is None:
            config = kwargs.get("config") or HarvestConfig()
            extraction = config.extraction.model_copy(update={"language": hint})
            kwargs["config"] = config.model_copy(update={"extraction": extraction})
        site = cls(category_url, **kwargs)
        await site.discover(include_homepage=False)
        return site

    async def discover(self, *, include_homepage: bool = True) -> None:
        """Populate :attr:`category_urls` and :attr:`article_urls`."""

        if self.state is not SiteState.UNINITIALIZED:
            raise RuntimeError(f"Discovery already ran for {self.root_url}")

        crawl = self.config.crawl
        usable_sources = 0
        self.state = SiteState.DISCOVERING

        if include_homepage:
            try:
                homepage = await self._fetch_document(self.root_url)
            except NewsHarvestError as exc:
                self._record_error(exc)
            else:
                usable_sources += 1
                self._classify_links(homepage, on_homepage=True)
        else:
            self.category_urls.add(self.root_url)

        self.state = SiteState.EXPANDING_CATEGORIES
        categories = list(self.category_urls)
        if crawl.max_categories is not None:
            categories = categories[: crawl.max_categories]

        semaphore = asyncio.Semaphore(crawl.category_concurrency)
        outcomes = await asyncio.gather(*(self._fetch_category(url, semaphore) for url in categories))
        for url, document, error in outcomes:
            if error is not None:
                self._record_error(error)
                continue
            usable_sources += 1
            self._classify_links(document, on_homepage=False)

        if not usable_sources:
            raise DiscoveryError(
                f"No usable homepage or category page for {self.root_url}",
                url=self.root_url,
                errors=self.errors,
            )

        self.state = SiteState.READY
        logger.info(
            "Discovered %d categories and %d articles on %s",
            len(self.category_urls),
            len(self.article_urls),
            self.root_url,
        )

    async def _fetch_document(self, url: str) -> Document:
        response = await self.fetcher.afetch(url)
        return Document.from_markup(response.final_url, response.content)

    async def _fetch_category(
        self, url: str, semaphore: asyncio.Semaphore
    ) -> Tuple[str, Optional[Document], Optional[NewsHarvestError]]:
        async with semaphore:
            try:
                return url, await self._fetch_document(url), None
            except NewsHarvestError as exc:
                return url, None, exc

    def _classify_links(self, document: Document, *, on_homepage: bool) -> None:
        crawl = self.config.crawl
        for url, text, in_navigation in iter_links(document, crawl.significant_query_keys):
            kind = classify_url(
                url,
                self.root_url,
                AnchorContext(text=text, in_navigation=in_navigation, on_homepage=on_homepage),
                allowed_hosts=crawl.allowed_hosts,
                min_slug_words=crawl.min_slug_words,
            )
            if kind is UrlKind.ARTICLE:
                self.article_urls.add(url)
            elif kind is UrlKind.CATEGORY:
                self.category_urls.add(url)

    def _record_error(self, error: NewsHarvestError) -> None:
        logger.warning("Discovery source failed for %s: %s", error.url or self.root_url, error)
        self.errors.append(error)

    def stream(self, ordered: bool | None = None) -> ArticleStream:
        """Return the single-use stream of article results."""

        if self.state is SiteState.CONSUMED:
            raise RuntimeError(f"Articles of {self.root_url} were already streamed")
        if self.state is not SiteState.READY:
            raise RuntimeError(f"Site {self.root_url} has not been discovered; use Site.build()")

        crawl = self.config.crawl
        urls = list(self.article_urls)
        if crawl.max_articles is not None:
            urls = urls[: crawl.max_articles]
        self.state = SiteState.CONSUMED
        return ArticleStream(
            urls,
            self._process_article,
            concurrency=crawl.article_concurrency,
            ordered=crawl.ordered if ordered is None else ordered,
        )

    def __aiter__(self) -> ArticleStream:
        return self.stream()

    async def _process_article(self, url: str) -> ArticleResult:
        return await process_article(url, self.fetcher, self.extractor)

    def __repr__(self) -> str:
        return (
            f"Site(root_url={self.root_url!r}, state={self.state.value}, "
            f"categories={len(self.category_urls)}, articles={len(self.article_urls)})"
        )


def stream_urls(
    urls: Iterable[str],
    *,
    config: HarvestConfig | None = None,
    extractor: Extractor | None = None,
    fetcher: Fetcher | None = None,
    ordered: bool | None = None,
) -> ArticleStream:
    """Stream results for known article URLs without any discovery."""

    config = config or HarvestConfig()
    extractor = extractor or Extractor(config.extraction)
    fetcher = fetcher or Fetcher(config.crawl)
    keys = config.crawl.significant_query_keys
    unique = UrlSet(canonicalize_url(url, keys) for url in urls)

    async def worker(url: str) -> ArticleResult:
        return await process_article(url, fetcher, extractor)

    return ArticleStream(
        unique,
        worker,
        concurrency=config.crawl.article_concurrency,
        ordered=config.crawl.ordered if ordered is None else ordered,
    )


async def aextract_url(
    url: str,
    *,
    config: HarvestConfig | None = None,
    extractor: Extractor | None = None,
    fetcher: Fetcher | None = None,
) -> Article:
    """Fetch and extract a single article, raising on failure."""

    config = config or HarvestConfig()
    canonical = canonicalize_url(url, config.crawl.significant_query_keys)
    result = await process_article(
        canonical,
        fetcher or Fetcher(config.crawl),
        extractor or Extractor(config.extraction),
    )
    return result.unwrap()


def extract_url(
    url: str,
    *,
    config: HarvestConfig | None = None,
    extractor: Extractor | None = None,
    fetcher: Fetcher | None = None,
) -> Article:
    """Blocking variant of :func:`aextract_url`."""

    config = config or HarvestConfig()
    canonical = canonicalize_url(url, config.crawl.significant_query_keys)
    fetcher = fetcher or Fetcher(config.crawl)
    extractor = extractor or Extractor(config.extraction)
    response = fetcher.fetch(canonical)
    document = Document.from_markup(response.final_url, response.content)
    return Article(url=canonical, content=extractor.extract(document), document=document)
