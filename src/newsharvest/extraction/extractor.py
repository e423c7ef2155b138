"""The overridable field extractor."""

from __future__ import annotations

import copy
import logging
import types
from typing import Any, Callable, Dict, List

from bs4 import Tag

from newsharvest.config import ExtractionConfig
from newsharvest.document import Document
from newsharvest.errors import ExtractionError
from newsharvest.extraction import dates, media, metadata
from newsharvest.extraction.cleaner import BAD_TAG_NAMES
from newsharvest.extraction.scorer import ContentScorer
from newsharvest.extraction.text import extract_text, rank_keywords
from newsharvest.language import StopwordTable
from newsharvest.models import ArticleContent, PublishingDate

logger = logging.getLogger(__name__)

__all__ = ["FIELD_METHODS", "Extractor"]

#: Methods a caller may replace through ``Extractor(**overrides)``.
FIELD_METHODS = (
    "body",
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
    "language",
    "canonical_url",
    "site_name",
    "meta_keywords",
    "favicon",
    "body_html",
)


class Extractor:
    """Default heuristics for every article field.

    Any field can be replaced without subclassing by passing a plain function
    under the field's name; it receives the extractor as its first argument,
    exactly like a method::

        def first_figure(extractor, document, body):
            return [img["src"] for img in document.select("figure img[src]")]

        extractor = Extractor(images=first_figure)

    Overrides are bound once, when the extractor is built.
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        *,
        scorer: ContentScorer | None = None,
        stopwords: StopwordTable | None = None,
        **overrides: Callable[..., Any],
    ) -> None:
        self.config = config or ExtractionConfig()
        self.scorer = scorer or ContentScorer(self.config.scoring)
        self.stopwords = stopwords or StopwordTable(self.config.language)
        self._overrides: Dict[str, Callable[..., Any]] = {}

        unknown = sorted(set(overrides) - set(FIELD_METHODS))
        if unknown:
            raise TypeError(f"Unknown extractor field(s): {', '.join(unknown)}")
        for name, function in overrides.items():
            if not callable(function):
                raise TypeError(f"Override for {name!r} must be callable")
            self._overrides[name] = function
            setattr(self, name, types.MethodType(function, self))

    def with_overrides(self, **overrides: Callable[..., Any]) -> "Extractor":
        """Return a new extractor sharing this one's configuration plus ``overrides``."""

        combined = {**self._overrides, **overrides}
        return type(self)(self.config, scorer=self.scorer, stopwords=self.stopwords, **combined)

    # Field methods

    def body(self, document: Document) -> Tag | None:
        return self.scorer.best_node(document)

    def title(self, document: Document, body: Tag | None) -> str | None:
        return metadata.extract_title(document, body, self.config.max_title_len)

    def authors(self, document: Document, body: Tag | None) -> List[str]:
        return metadata.extract_authors(document, body, self.config.max_authors)

    def publishing_date(self, document: Document, body: Tag | None) -> PublishingDate | None:
        return dates.extract_publishing_date(document, body, self.config.date_formats)

    def description(self, document: Document, body: Tag | None) -> str | None:
        return metadata.extract_description(document, body, self.config.max_description_len)

    def text(self, document: Document, body: Tag | None) -> str | None:
        return extract_text(body, self.config.max_text_len, self.config.scoring.boilerplate_tokens)

    def keywords(self, document: Document, body: Tag | None, article_text: str | None = None) -> List[str]:
        if article_text is None:
            article_text = self.text(document, body)
        stopwords = self.stopwords.for_language(self.language(document, body))
        return rank_keywords(article_text, stopwords, self.config.max_keywords)

    def top_image(self, document: Document, body: Tag | None) -> str | None:
        if not self.config.fetch_images:
            return None
        return media.find_top_image(document, body)

    def images(self, document: Document, body: Tag | None) -> List[str]:
        if not self.config.fetch_images:
            return []
        return media.collect_images(document, body)

    def videos(self, document: Document, body: Tag | None) -> List[str]:
        return media.collect_videos(document, body)

    def references(self, document: Document, body: Tag | None) -> List[str]:
        return metadata.extract_references(document, body, self.config.scoring.boilerplate_tokens)

    def language(self, document: Document, body: Tag | None) -> str | None:
        return document.language or self.stopwords.default_language

    def canonical_url(self, document: Document, body: Tag | None) -> str | None:
        return metadata.extract_canonical_url(document)

    def site_name(self, document: Document, body: Tag | None) -> str | None:
        return metadata.extract_site_name(document)

    def meta_keywords(self, document: Document, body: Tag | None) -> List[str]:
        return metadata.extract_meta_keywords(document)

    def favicon(self, document: Document, body: Tag | None) -> str | None:
        return metadata.extract_favicon(document)

    def body_html(self, document: Document, body: Tag | None) -> str | None:
        """Markup of ``body`` without scripts, forms and other bad tags."""

        if body is None or not self.config.keep_article_html:
            return None
        cleaned = copy.copy(body)
        for element in cleaned.find_all(list(BAD_TAG_NAMES)):
            element.decompose()
        return str(cleaned)

    # Driver

    def extract(self, document: Document) -> ArticleContent:
        """Run every field method over ``document``.

        Raises :class:`~newsharvest.errors.ExtractionError` when none of the
        configured ``required_fields`` could be extracted.
        """

        body = self.body(document)
        article_text = self.text(document, body)
        content = ArticleContent(
            title=self.title(document, body),
            authors=self.authors(document, body),
            publishing_date=self.publishing_date(document, body),
            description=self.description(document, body),
            keywords=self.keywords(document, body, article_text),
            text=article_text,
            top_image=self.top_image(document, body),
            images=self.images(document, body),
            videos=self.videos(document, body),
            references=self.references(document, body),
            language=self.language(document, body),
            canonical_url=self.canonical_url(document, body),
            site_name=self.site_name(document, body),
            meta_keywords=self.meta_keywords(document, body),
            favicon=self.favicon(document, body),
            html=self.body_html(document, body),
        )

        required = self.config.required_fields
        if required and not any(getattr(content, field) for field in required):
            raise ExtractionError(
                f"None of the required fields ({', '.join(required)}) could be extracted",
                url=document.url,
            )
        logger.debug("Extracted %s (title=%r)", document.url, content.title)
        return content
