"""Configuration models and helpers for extraction and crawling."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Iterable, List, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, HttpUrl, ValidationError, field_validator

__all__ = [
    "AppConfig",
    "CrawlConfig",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_DATE_FORMATS",
    "DEFAULT_USER_AGENT",
    "ExtractionConfig",
    "HarvestConfig",
    "ScoringConfig",
    "SiteConfig",
]

DEFAULT_CONFIG_PATH = Path(
    os.environ.get(
        "NEWSHARVEST_SITES",
        Path(__file__).resolve().parents[2] / "data" / "sites.json",
    )
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/129.0.0.0 Safari/537.36"
)

#: Tried in order; the first format that parses a value wins.
DEFAULT_DATE_FORMATS: List[str] = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M%z",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y%m%d",
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%B %d, %Y %H:%M",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%d/%m/%Y",
]

FieldName = Literal[
    "title",
    "authors",
    "publishing_date",
    "description",
    "keywords",
    "text",
    "top_image",
    "images",
    "videos",
    "references",
]


def _normalize_hosts(hosts: Iterable[str]) -> List[str]:
    return [host.strip().lower() for host in hosts if host.strip()]


class ScoringConfig(BaseModel):
    """Tuning knobs for the content scorer."""

    candidate_tags: List[str] = Field(
        default_factory=lambda: ["p", "pre", "td"],
        description="Paragraph-like tags whose text seeds the scoring pass",
    )
    min_text_length: int = Field(
        default=140,
        ge=0,
        description="Minimum accumulated paragraph text a node needs to be chosen",
    )
    link_density_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Nodes whose anchor text ratio exceeds this are never chosen",
    )
    link_density_weight: float = Field(default=1.0, ge=0.0)
    parent_weight: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Share of a paragraph's score credited to its parent",
    )
    grandparent_weight: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Share of a paragraph's score credited to its grandparent",
    )
    boilerplate_tokens: List[str] = Field(
        default_factory=lambda: [
            "nav",
            "sidebar",
            "comment",
            "footer",
            "ad",
            "ads",
            "advert",
            "sponsor",
            "promo",
            "related",
            "share",
            "social",
            "subscribe",
            "newsletter",
            "breadcrumb",
            "menu",
            "popup",
            "cookie",
        ],
        description="Class/id tokens that mark non-article containers",
    )
    boilerplate_penalty: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Fraction of a paragraph's score removed inside boilerplate containers",
    )


class ExtractionConfig(BaseModel):
    """Options that control field extraction from a single document."""

    language: str = Field(default="en", description="Fallback language identifier")
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    max_title_len: int = Field(default=200, gt=0)
    max_authors: int = Field(default=10, ge=0)
    max_keywords: int = Field(default=10, ge=0)
    max_description_len: int = Field(default=300, gt=0)
    max_text_len: int = Field(default=100_000, gt=0)
    date_formats: List[str] = Field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))
    required_fields: List[FieldName] = Field(
        default_factory=lambda: ["title", "text"],
        description="Extraction fails unless at least one of these fields is present",
    )
    keep_article_html: bool = Field(
        default=False, description="Keep the markup of the scored body node"
    )
    fetch_images: bool = Field(default=True, description="Collect image URLs")


class CrawlConfig(BaseModel):
    """Options for fetching pages and discovering a site's articles."""

    user_agent: str = Field(
        default_factory=lambda: os.environ.get("NEWSHARVEST_USER_AGENT", DEFAULT_USER_AGENT)
    )
    request_timeout: float = Field(default=7.0, gt=0)
    max_retries: int = Field(default=2, ge=0)
    http_success_only: bool = Field(
        default=True, description="Treat non-2xx responses as transport errors"
    )
    category_concurrency: int = Field(default=4, ge=1)
    article_concurrency: int = Field(default=8, ge=1)
    ordered: bool = Field(
        default=False, description="Stream results in sorted URL order instead of completion order"
    )
    allowed_hosts: List[str] = Field(
        default_factory=list,
        description="Hosts besides the root's host that discovered URLs may use",
    )
    significant_query_keys: List[str] = Field(
        default_factory=list,
        description="Query keys kept during canonicalisation; all others are dropped",
    )
    min_slug_words: int = Field(default=3, ge=1)
    max_categories: int | None = Field(default=None, ge=0)
    max_articles: int | None = Field(default=None, ge=0)

    @field_validator("allowed_hosts")
    @classmethod
    def _lower_hosts(cls, hosts: List[str]) -> List[str]:
        return _normalize_hosts(hosts)


class HarvestConfig(BaseModel):
    """Bundle of extraction and crawl configuration."""

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    crawl: CrawlConfig = Field(default_factory=CrawlConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "HarvestConfig":
        """Load configuration data from a JSON file."""

        config_path = Path(path)
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Configuration file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in configuration file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Configuration file is invalid: {config_path}\n{exc}") from exc

    def dump(self, path: Path | str) -> None:
        """Persist the configuration as JSON."""

        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")


class SiteConfig(BaseModel):
    """Configuration for a single news site to crawl."""

    name: str = Field(..., description="Human friendly site name")
    url: HttpUrl = Field(..., description="Homepage URL to start discovery from")
    allowed_hosts: List[str] = Field(
        default_factory=list,
        description="Extra hosts whose links count as part of the site",
    )
    language: str | None = Field(default=None, description="Language identifier override")
    max_articles: int | None = Field(default=None, ge=0)

    @field_validator("allowed_hosts")
    @classmethod
    def _lower_hosts(cls, hosts: List[str]) -> List[str]:
        return _normalize_hosts(hosts)

    @property
    def host(self) -> str:
        return urlparse(str(self.url)).netloc

    def crawl_config(self, base: CrawlConfig | None = None) -> CrawlConfig:
        """Return ``base`` updated with the per-site overrides."""

        base = base or CrawlConfig()
        updates: dict = {"allowed_hosts": [*base.allowed_hosts, *self.allowed_hosts]}
        if self.max_articles is not None:
            updates["max_articles"] = self.max_articles
        return base.model_copy(update=updates)


class AppConfig(BaseModel):
    """Collection of :class:`SiteConfig` entries for the CLI and API."""

    sites: List[SiteConfig] = Field(default_factory=list)
    harvest: HarvestConfig = Field(default_factory=HarvestConfig)

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "AppConfig":
        """Load configuration data from a JSON file."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Configuration file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in configuration file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Configuration file is invalid: {config_path}\n{exc}") from exc

    def dump(self, path: Path | str | None = None) -> None:
        """Persist the configuration back to disk as JSON."""

        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def iter_sites(self) -> Iterable[SiteConfig]:
        """Iterate over configured sites."""

        return iter(self.sites)

    def get_site(self, name: str) -> SiteConfig | None:
        lowered = name.strip().lower()
        return next((site for site in self.sites if site.name.lower() == lowered), None)
