from __future__ import annotations

from datetime import datetime, timezone

from newsharvest.config import DEFAULT_DATE_FORMATS
from newsharvest.document import Document
from newsharvest.extraction.dates import (
    date_from_url,
    extract_publishing_date,
    find_date_in_text,
    parse_date,
)


def _published(url: str, markup: str) -> datetime | None:
    document = Document.from_markup(url, markup)
    date = extract_publishing_date(document, None, DEFAULT_DATE_FORMATS)
    return date.published if date else None


def test_parse_date_handles_ordinals_and_abbreviations() -> None:
    assert parse_date("April 5th, 2023", DEFAULT_DATE_FORMATS) == datetime(2023, 4, 5)
    assert parse_date("Sept. 9, 2022", DEFAULT_DATE_FORMATS) == datetime(2022, 9, 9)
    assert parse_date("05.04.2023", DEFAULT_DATE_FORMATS) == datetime(2023, 4, 5)


def test_parse_date_uses_formats_in_order() -> None:
    assert parse_date("04/05/2023", ["%d/%m/%Y", "%m/%d/%Y"]) == datetime(2023, 5, 4)
    assert parse_date("04/05/2023", ["%m/%d/%Y", "%d/%m/%Y"]) == datetime(2023, 4, 5)


def test_iso_fallback_only_when_requested() -> None:
    assert parse_date("2023-04-05T10:30:00.123+0200", []) is None
    parsed = parse_date("2023-04-05T10:30:00.123+0200", [], iso_fallback=True)

    assert parsed is not None
    assert parsed.utcoffset() is not None
    assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2023, 4, 5, 10)


def test_unparseable_values_give_none() -> None:
    assert parse_date("not a date", DEFAULT_DATE_FORMATS, iso_fallback=True) is None
    assert parse_date("", DEFAULT_DATE_FORMATS) is None
    assert parse_date(None, DEFAULT_DATE_FORMATS) is None


def test_find_date_in_text() -> None:
    text = "Updated by the desk. Published 12 March 2021, 09:00. Read more."

    assert find_date_in_text(text, DEFAULT_DATE_FORMATS) == datetime(2021, 3, 12)
    assert find_date_in_text("No dates in here at all.", DEFAULT_DATE_FORMATS) is None


def test_date_from_url() -> None:
    assert date_from_url("https://example.com/2023/04/05/story-title") == datetime(2023, 4, 5)
    assert date_from_url("https://example.com/news/2021-11-30-budget") == datetime(2021, 11, 30)
    assert date_from_url("https://example.com/2023/13/45/nope") is None
    assert date_from_url("https://example.com/news/story") is None


def test_json_ld_date_published() -> None:
    markup = """
    <html><head><script type="application/ld+json">
    {"@context": "https://schema.org", "@graph": [{"@type": "NewsArticle", "datePublished": "2022-01-02T03:04:05Z"}]}
    </script></head><body><p>Body</p></body></html>
    """

    published = _published("https://example.com/news/story", markup)

    assert published == datetime(2022, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_time_element_datetime() -> None:
    markup = '<html><body><time datetime="2021-06-07">June 7</time><p>Body</p></body></html>'

    assert _published("https://example.com/news/story", markup) == datetime(2021, 6, 7)


def test_text_fallback_near_body() -> None:
    markup = "<html><body><div class='meta'>Posted on March 3, 2020</div><p>Body text</p></body></html>"

    assert _published("https://example.com/news/story", markup) == datetime(2020, 3, 3)


def test_url_is_the_last_fallback() -> None:
    markup = "<html><body><p>Body text without any date.</p></body></html>"

    assert _published("https://example.com/2019/08/15/story", markup) == datetime(2019, 8, 15)
    assert _published("https://example.com/news/story", markup) is None


def test_structured_meta_wins_over_url() -> None:
    markup = """
    <html><head><meta itemprop="datePublished" content="2020-02-02" /></head>
    <body><p>Body</p></body></html>
    """

    assert _published("https://example.com/2019/08/15/story", markup) == datetime(2020, 2, 2)
