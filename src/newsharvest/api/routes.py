"""HTTP routes exposing extraction and crawling."""

from __future__ import annotations

import logging
import re
from typing import List

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field, HttpUrl

from newsharvest.config import AppConfig, HarvestConfig, SiteConfig
from newsharvest.errors import (
    ExtractionError,
    InvalidUrlError,
    NewsHarvestError,
    TransportError,
)
from newsharvest.extraction import Extractor
from newsharvest.models import Article, ArticleContent
from newsharvest.services.crawler import Site, extract_url
from newsharvest.services.fetcher import Fetcher
from newsharvest.storage import ArticleStore

logger = logging.getLogger(__name__)

router = APIRouter()


class ExtractRequest(BaseModel):
    url: HttpUrl
    html: str | None = Field(
        default=None, description="Markup to extract instead of fetching the URL"
    )
    language: str | None = None


class ArticleResponse(BaseModel):
    url: str
    content: ArticleContent

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        return cls(url=article.url, content=article.content)


class CrawlRequest(BaseModel):
    sites: List[str] | None = Field(
        default=None, description="Names of configured sites to crawl; all when omitted"
    )
    max_articles: int | None = Field(default=None, ge=0)
    store: bool = True


class CrawlFailure(BaseModel):
    url: str
    error: str


class SiteCrawlResult(BaseModel):
    site: str
    url: str
    categories: List[str] = Field(default_factory=list)
    articles: List[ArticleResponse] = Field(default_factory=list)
    failures: List[CrawlFailure] = Field(default_factory=list)


class CrawlError(BaseModel):
    site: str
    url: str
    error: str


class CrawlResponse(BaseModel):
    sites: List[SiteCrawlResult] = Field(default_factory=list)
    errors: List[CrawlError] = Field(default_factory=list)
    stored_urls: List[str] = Field(default_factory=list)


class StoredUrlsResponse(BaseModel):
    urls: List[str] = Field(default_factory=list)


class SiteEntry(BaseModel):
    name: str
    slug: str
    host: str
    language: str | None = None


class SitesResponse(BaseModel):
    sites: List[SiteEntry] = Field(default_factory=list)


def get_store() -> ArticleStore:
    return ArticleStore()


def _load_config() -> AppConfig:
    try:
        return AppConfig.from_file()
    except FileNotFoundError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _harvest_config() -> HarvestConfig:
    try:
        return AppConfig.from_file().harvest
    except FileNotFoundError:
        return HarvestConfig()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _slugify_source(name: str) -> str:
    """Return a slug suitable for use in DOM element IDs."""

    normalized = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    slug = normalized.strip("-")
    return slug or "source"


@router.post("/extract", response_model=ArticleResponse)
async def extract_article(request: ExtractRequest) -> ArticleResponse:
    """Extract one article, from the posted markup or by fetching its URL."""

    config = _harvest_config()
    if request.language:
        extraction = config.extraction.model_copy(update={"language": request.language})
        config = config.model_copy(update={"extraction": extraction})
    extractor = Extractor(config.extraction)

    try:
        if request.html is not None:
            article = await run_in_threadpool(
                Article.from_html, str(request.url), request.html, extractor=extractor
            )
        else:
            article = await run_in_threadpool(
                extract_url, str(request.url), config=config, extractor=extractor
            )
    except InvalidUrlError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except TransportError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return ArticleResponse.from_article(article)


async def _crawl_site(
    site_config: SiteConfig, config: AppConfig, store: ArticleStore | None, max_articles: int | None
) -> SiteCrawlResult:
    crawl = site_config.crawl_config(config.harvest.crawl)
    if max_articles is not None:
        crawl = crawl.model_copy(update={"max_articles": max_articles})
    extraction = config.harvest.extraction
    if site_config.language:
        extraction = extraction.model_copy(update={"language": site_config.language})
    harvest = config.harvest.model_copy(update={"crawl": crawl, "extraction": extraction})

    fetcher = Fetcher(crawl)
    try:
        site = await Site.build(str(site_config.url), config=harvest, fetcher=fetcher)
        result = SiteCrawlResult(
            site=site_config.name, url=site.root_url, categories=list(site.category_urls)
        )
        async with site.stream() as stream:
            async for item in stream:
                if not item.ok:
                    result.failures.append(CrawlFailure(url=item.url, error=item.error_message or ""))
                    continue
                article = item.unwrap().drop_document()
                if store is not None:
                    await run_in_threadpool(store.store, article)
                result.articles.append(ArticleResponse.from_article(article))
    finally:
        fetcher.close()
    return result


@router.post("/crawl", response_model=CrawlResponse)
async def trigger_crawler(request: CrawlRequest | None = None) -> CrawlResponse:
    """Crawl configured sites and return every extracted article."""

    request = request or CrawlRequest()
    config = _load_config()

    sites = list(config.iter_sites())
    if request.sites:
        wanted = {name.strip().lower() for name in request.sites}
        sites = [site for site in sites if site.name.lower() in wanted]
        if not sites:
            raise HTTPException(status_code=404, detail="None of the requested sites is configured")

    store = get_store() if request.store else None
    successes: List[SiteCrawlResult] = []
    errors: List[CrawlError] = []

    for site in sites:
        logger.info("Crawling %s (%s)", site.name, site.url)
        try:
            successes.append(await _crawl_site(site, config, store, request.max_articles))
        except NewsHarvestError as exc:
            logger.exception("Failed to crawl %s", site.url)
            errors.append(CrawlError(site=site.name, url=str(site.url), error=str(exc)))

    stored_urls = store.load_urls() if store is not None else []
    return CrawlResponse(sites=successes, errors=errors, stored_urls=stored_urls)


@router.get("/articles/stored", response_model=StoredUrlsResponse)
async def list_stored_urls() -> StoredUrlsResponse:
    """Return the URLs of every article stored by previous crawls."""

    return StoredUrlsResponse(urls=get_store().load_urls())


@router.get("/sites", response_model=SitesResponse)
async def list_sites() -> SitesResponse:
    """Return the configured set of crawlable sites."""

    config = _load_config()
    entries = [
        SiteEntry(
            name=site.name,
            slug=_slugify_source(site.name),
            host=site.host,
            language=site.language,
        )
        for site in config.iter_sites()
    ]
    return SitesResponse(sites=entries)
