from __future__ import annotations

from datetime import datetime, timezone

import pytest

from newsharvest.config import ExtractionConfig
from newsharvest.document import Document
from newsharvest.errors import ExtractionError, ParseError
from newsharvest.extraction import Extractor
from newsharvest.extraction.metadata import clean_title, parse_byline
from newsharvest.language import language_hint, load_stopwords
from newsharvest.models import Article

ARTICLE_URL = "https://example.com/news/council-approves-transit-plan"

P1 = (
    "The city council approved the transit plan on Tuesday after months of debate over "
    "transit costs, according to the report released on Monday."
)
P2 = (
    "Supporters said the transit plan would add bus routes and extend light rail service "
    "to the eastern districts of the city."
)
P3 = (
    "Opponents argued that the council had not explained how the transit expansion would "
    "be funded over the next decade."
)

P2_HTML = P2.replace("transit plan", '<a href="/tag/transit">transit plan</a>')
P3_HTML = P3.replace("council", '<a href="https://www.example.com/">council</a>').replace(
    "decade", '<a href="/news/council-approves-transit-plan#comments">decade</a>'
)

ARTICLE_HTML = f"""
<html lang="en">
<head>
<title>Council approves transit plan | Example News</title>
<meta property="og:title" content="Council Approves Transit Plan: What It Means" />
<meta property="og:description" content="The city council approved a new transit plan." />
<meta property="og:image" content="/images/lead.jpg" />
<meta property="og:site_name" content="Example News" />
<meta name="author" content="Jane Doe" />
<meta name="keywords" content="transit, council, City, transit" />
<meta property="article:published_time" content="2023-04-05T10:30:00+00:00" />
<meta property="article:modified_time" content="2023-04-06T08:00:00+00:00" />
<link rel="canonical" href="https://example.com/news/council-approves-transit-plan" />
<link rel="icon" href="/favicon.ico" />
</head>
<body>
<nav class="main-nav"><a href="/">Home</a> <a href="/world">World</a></nav>
<article>
<h1>Council approves transit plan</h1>
<p>The city council approved the transit plan on Tuesday after months of debate over transit costs, according to the <a href="https://data.example.org/report">report</a> released on Monday.</p>
<p>{P2_HTML}</p>
<p>{P3_HTML}</p>
<img src="/images/body.jpg" width="800" height="600" />
<iframe src="https://www.youtube.com/embed/abc123"></iframe>
<iframe src="https://ads.example.net/frame"></iframe>
</article>
<div class="sidebar"><p>Related: other stories you might like to read today.</p></div>
<footer><p>Copyright Example News</p></footer>
</body>
</html>
"""


@pytest.fixture()
def article() -> Article:
    return Article.from_html(ARTICLE_URL, ARTICLE_HTML)


def test_og_title_wins_over_title_tag(article: Article) -> None:
    assert article.content.title == "Council Approves Transit Plan: What It Means"


def test_title_tag_is_cleaned_without_og_title() -> None:
    markup = ARTICLE_HTML.replace('<meta property="og:title" content="Council Approves Transit Plan: What It Means" />', "")

    content = Article.from_html(ARTICLE_URL, markup).content

    assert content.title == "Council approves transit plan"


def test_clean_title_keeps_longest_segment() -> None:
    assert clean_title("Example News - Storm closes coastal roads") == "Storm closes coastal roads"
    assert clean_title("Budget vote: what we know | Daily") == "Budget vote: what we know"
    assert clean_title("Plain headline") == "Plain headline"


def test_body_text_is_joined_paragraphs(article: Article) -> None:
    assert article.content.text == "\n\n".join([P1, P2, P3])


def test_metadata_fields(article: Article) -> None:
    content = article.content

    assert content.authors == ["Jane Doe"]
    assert content.description == "The city council approved a new transit plan."
    assert content.top_image == "https://example.com/images/lead.jpg"
    assert content.images == ["https://example.com/images/body.jpg"]
    assert content.videos == ["https://www.youtube.com/embed/abc123"]
    assert content.references == ["https://data.example.org/report"]
    assert content.canonical_url == ARTICLE_URL
    assert content.site_name == "Example News"
    assert content.meta_keywords == ["transit", "council", "City"]
    assert content.favicon == "https://example.com/favicon.ico"
    assert content.language == "en"
    assert content.html is None


def test_publishing_date(article: Article) -> None:
    date = article.content.publishing_date

    assert date is not None
    assert date.published == datetime(2023, 4, 5, 10, 30, tzinfo=timezone.utc)
    assert date.last_updated == datetime(2023, 4, 6, 8, 0, tzinfo=timezone.utc)


def test_keywords_exclude_stopwords_and_rank_by_frequency(article: Article) -> None:
    keywords = article.content.keywords
    stopwords = load_stopwords("en")

    assert keywords[0] == "transit"
    assert len(keywords) <= ExtractionConfig().max_keywords
    assert not any(keyword in stopwords for keyword in keywords)
    assert not any(keyword.isdigit() or len(keyword) < 2 for keyword in keywords)


def test_extraction_is_deterministic() -> None:
    first = Article.from_html(ARTICLE_URL, ARTICLE_HTML).content
    second = Article.from_html(ARTICLE_URL, ARTICLE_HTML).content

    assert first.model_dump() == second.model_dump()


def test_reextracting_a_document_gives_identical_content() -> None:
    document = Document.from_markup(ARTICLE_URL, ARTICLE_HTML)
    extractor = Extractor()

    assert extractor.extract(document) == extractor.extract(document)


def test_keep_article_html_strips_bad_tags() -> None:
    extractor = Extractor(ExtractionConfig(keep_article_html=True))

    content = Article.from_html(ARTICLE_URL, ARTICLE_HTML, extractor=extractor).content

    assert content.html is not None
    assert content.html.startswith("<article>")
    assert "<iframe" not in content.html


def test_overrides_replace_single_fields() -> None:
    def first_image_only(extractor, document, body):
        return ["https://cdn.example.com/custom.jpg"]

    extractor = Extractor(images=first_image_only)
    content = Article.from_html(ARTICLE_URL, ARTICLE_HTML, extractor=extractor).content

    assert content.images == ["https://cdn.example.com/custom.jpg"]
    assert content.title == "Council Approves Transit Plan: What It Means"


def test_with_overrides_keeps_existing_overrides() -> None:
    base = Extractor(images=lambda extractor, document, body: [])
    extractor = base.with_overrides(title=lambda extractor, document, body: extractor.config.language.upper())

    content = Article.from_html(ARTICLE_URL, ARTICLE_HTML, extractor=extractor).content

    assert content.title == "EN"
    assert content.images == []
    assert Article.from_html(ARTICLE_URL, ARTICLE_HTML, extractor=base).content.title != "EN"


def test_unknown_override_raises_type_error() -> None:
    with pytest.raises(TypeError):
        Extractor(headline=lambda extractor, document, body: "nope")


def test_subclasses_can_override_fields() -> None:
    class NoAuthors(Extractor):
        def authors(self, document, body):
            return []

    content = Article.from_html(ARTICLE_URL, ARTICLE_HTML, extractor=NoAuthors()).content

    assert content.authors == []
    assert content.text


def test_navigation_page_falls_back_to_metadata() -> None:
    markup = """
    <html><head><meta property="og:title" content="Only Metadata" /></head>
    <body><nav><a href="/a">A</a> <a href="/b">B</a></nav></body></html>
    """

    content = Article.from_html("https://example.com/section", markup).content

    assert content.title == "Only Metadata"
    assert content.text is None
    assert content.references == []


def test_missing_required_fields_raise_extraction_error() -> None:
    with pytest.raises(ExtractionError):
        Article.from_html("https://example.com/empty", "<html><body><div>short</div></body></html>")


def test_empty_markup_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        Article.from_html("https://example.com/empty", "   ")


def test_authors_from_byline_markup_are_split_and_deduplicated() -> None:
    markup = f"""
    <html><head><title>Budget vote</title>
    <script type="application/ld+json">{{"@type": "NewsArticle", "author": [{{"name": "JANE DOE"}}]}}</script>
    </head><body><article>
    <p class="byline">By Jane Doe and John Smith</p>
    <p>{P1}</p><p>{P2}</p></article></body></html>
    """

    content = Article.from_html("https://example.com/news/budget-vote-passes", markup).content

    assert content.authors == ["JANE DOE"]

    without_json_ld = markup.replace('"author"', '"creator"')
    content = Article.from_html("https://example.com/news/budget-vote-passes", without_json_ld).content

    assert content.authors == ["Jane Doe", "John Smith"]


def test_parse_byline_rejects_digits_and_single_tokens() -> None:
    assert parse_byline("By: Lucas Ou-Yang, Alex Smith") == ["Lucas Ou-Yang", "Alex Smith"]
    assert parse_byline("By Jane Doe | March 3, 2023") == ["Jane Doe"]
    assert parse_byline("https://example.com/authors/jane") == []


def test_max_authors_caps_the_list() -> None:
    extractor = Extractor(ExtractionConfig(max_authors=1))
    markup = ARTICLE_HTML.replace(
        '<meta name="author" content="Jane Doe" />', '<meta name="author" content="Jane Doe, John Smith" />'
    )

    content = Article.from_html(ARTICLE_URL, markup, extractor=extractor).content

    assert content.authors == ["Jane Doe"]


def test_language_hint_from_category_urls() -> None:
    assert language_hint("https://arabic.cnn.com/") == "ar"
    assert language_hint("https://cnn.com/German/") == "de"
    assert language_hint("https://cnn.com/Europe") is None


def test_references_skip_own_site_navigation_and_self_links(article: Article) -> None:
    assert 'href="/tag/transit"' in ARTICLE_HTML
    assert 'href="https://www.example.com/"' in ARTICLE_HTML
    assert "#comments" in ARTICLE_HTML

    assert article.content.references == ["https://data.example.org/report"]
