"""Domain models used across the application."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from newsharvest.document import Document
from newsharvest.errors import NewsHarvestError

if TYPE_CHECKING:
    from newsharvest.extraction import Extractor

__all__ = ["Article", "ArticleContent", "ArticleResult", "PublishingDate"]


class PublishingDate(BaseModel):
    """When an article was first published and, if known, last updated."""

    published: datetime
    last_updated: Optional[datetime] = None


class ArticleContent(BaseModel):
    """Everything extracted from a single article page."""

    title: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    publishing_date: Optional[PublishingDate] = None
    description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    text: Optional[str] = None
    top_image: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    references: List[str] = Field(default_factory=list)
    language: Optional[str] = None
    canonical_url: Optional[str] = None
    site_name: Optional[str] = None
    meta_keywords: List[str] = Field(default_factory=list)
    favicon: Optional[str] = None
    html: Optional[str] = Field(
        default=None, description="Markup of the scored body when keep_article_html is set"
    )


class Article(BaseModel):
    """An extracted article and, until dropped, the document it came from."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str
    content: ArticleContent
    document: Optional[Document] = Field(default=None, exclude=True, repr=False)

    @classmethod
    def from_html(
        cls,
        url: str,
        markup: str | bytes,
        *,
        extractor: "Extractor | None" = None,
        language: str | None = None,
    ) -> "Article":
        """Parse ``markup`` and extract it without any network access."""

        from newsharvest.extraction import Extractor

        extractor = extractor or Extractor()
        document = Document.from_markup(url, markup, language=language)
        return cls(url=document.url, content=extractor.extract(document), document=document)

    def drop_document(self) -> "Article":
        """Release the parsed tree, keeping only the extracted content."""

        self.document = None
        return self


class ArticleResult(BaseModel):
    """Outcome of fetching and extracting one article URL."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    url: str
    article: Optional[Article] = None
    error: Optional[NewsHarvestError] = Field(default=None, exclude=True, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None and self.article is not None

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error is not None else None

    def unwrap(self) -> Article:
        """Return the article or raise the recorded error."""

        if self.error is not None:
            raise self.error
        if self.article is None:
            raise NewsHarvestError("Result holds neither an article nor an error", url=self.url)
        return self.article
