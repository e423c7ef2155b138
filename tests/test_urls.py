from __future__ import annotations

import pytest

from newsharvest.errors import InvalidUrlError
from newsharvest.urls import (
    AnchorContext,
    UrlKind,
    UrlSet,
    canonicalize_url,
    classify_url,
    is_same_site,
)

ROOT = "https://example.com"
HOMEPAGE_NAV = AnchorContext(text="World", in_navigation=True, on_homepage=True)


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/news/story",
        "https://example.com/news/story/",
        "https://example.com/news/story#comments",
        "HTTPS://Example.COM:443/news/story/#top",
        "https://example.com//news/./story",
    ],
)
def test_equivalent_urls_share_a_canonical_form(url: str) -> None:
    assert canonicalize_url(url) == "https://example.com/news/story"


def test_canonicalize_is_idempotent() -> None:
    urls = [
        "http://Example.com:8080/a//b/../c/?utm_source=x&id=5#frag",
        "https://www.example.com/",
        "https://example.com/2023/04/05/some-story.html",
    ]
    for url in urls:
        once = canonicalize_url(url, ["id"])
        assert canonicalize_url(once, ["id"]) == once


def test_canonicalize_keeps_only_significant_query_keys_sorted() -> None:
    url = "https://example.com/article?utm_source=feed&id=5&b=2"

    assert canonicalize_url(url) == "https://example.com/article"
    assert canonicalize_url(url, ["id", "b"]) == "https://example.com/article?b=2&id=5"


def test_canonicalize_strips_root_slash_and_default_port() -> None:
    assert canonicalize_url("http://example.com:80/") == "http://example.com"
    assert canonicalize_url("https://example.com:8443/x") == "https://example.com:8443/x"


@pytest.mark.parametrize("url", ["", "/relative/path", "ftp://example.com/file", "https:///nohost"])
def test_canonicalize_rejects_invalid_urls(url: str) -> None:
    with pytest.raises(InvalidUrlError):
        canonicalize_url(url)


def test_invalid_url_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        canonicalize_url("mailto:desk@example.com")


def test_url_set_treats_www_as_equivalent_and_keeps_smallest() -> None:
    urls = UrlSet()

    assert urls.add("https://www.example.com/a") is True
    assert urls.add("https://example.com/a") is False

    assert len(urls) == 1
    assert list(urls) == ["https://example.com/a"]
    assert "https://www.example.com/a" in urls


def test_url_set_iterates_in_sorted_order() -> None:
    urls = UrlSet(["https://example.com/c", "https://example.com/a", "https://example.com/b"])

    assert list(urls) == ["https://example.com/a", "https://example.com/b", "https://example.com/c"]


def test_is_same_site_honours_allowed_hosts() -> None:
    assert is_same_site("https://www.example.com/x", ROOT)
    assert not is_same_site("https://amp.example.org/x", ROOT)
    assert is_same_site("https://amp.example.org/x", ROOT, ["amp.example.org"])


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/2023/04/05/story",
        "https://example.com/world/council-approves-transit-plan",
        "https://example.com/politics/article-1234567",
        "https://example.com/local/budget-vote.html",
    ],
)
def test_article_like_urls(url: str) -> None:
    assert classify_url(url, ROOT, AnchorContext()) is UrlKind.ARTICLE


@pytest.mark.parametrize(
    "url",
    [
        "https://other.com/world/council-approves-transit-plan",
        "https://example.com",
        "https://example.com/tag/politics",
        "https://example.com/author/jane-doe",
        "https://example.com/about",
        "https://example.com/search",
        "https://example.com/images/logo.png",
        "https://example.com/feed",
    ],
)
def test_noise_urls_are_ignored(url: str) -> None:
    assert classify_url(url, ROOT, HOMEPAGE_NAV) is UrlKind.IGNORE


def test_homepage_navigation_links_become_categories() -> None:
    assert classify_url("https://example.com/world", ROOT, HOMEPAGE_NAV) is UrlKind.CATEGORY
    assert classify_url("https://www.example.com/business", ROOT, HOMEPAGE_NAV) is UrlKind.CATEGORY


def test_short_homepage_links_outside_navigation_become_categories() -> None:
    context = AnchorContext(text="Sport", on_homepage=True)

    assert classify_url("https://example.com/sport", ROOT, context) is UrlKind.CATEGORY


def test_category_stopwords_are_not_categories() -> None:
    assert classify_url("https://example.com/shop", ROOT, HOMEPAGE_NAV) is UrlKind.IGNORE
    assert classify_url("https://example.com/help", ROOT, HOMEPAGE_NAV) is UrlKind.IGNORE


def test_category_stopwords_ignore_the_registered_domain() -> None:
    root = "https://www.dailymail.co.uk"

    assert classify_url("https://www.dailymail.co.uk/news", root, HOMEPAGE_NAV) is UrlKind.CATEGORY
    assert classify_url("https://www.mailonline.com/sport", "https://www.mailonline.com", HOMEPAGE_NAV) is UrlKind.CATEGORY


def test_category_stopwords_apply_to_subdomains() -> None:
    hosts = ["shop.example.com", "politics.example.com"]

    assert classify_url("https://shop.example.com/deals", ROOT, HOMEPAGE_NAV, allowed_hosts=hosts) is UrlKind.IGNORE
    assert (
        classify_url("https://politics.example.com/latest", ROOT, HOMEPAGE_NAV, allowed_hosts=hosts)
        is UrlKind.CATEGORY
    )


def test_non_article_links_on_category_pages_are_ignored() -> None:
    context = AnchorContext(text="World", in_navigation=True, on_homepage=False)

    assert classify_url("https://example.com/world", ROOT, context) is UrlKind.IGNORE


def test_allowed_hosts_extend_the_site() -> None:
    url = "https://amp.example.org/world/council-approves-transit-plan"

    assert classify_url(url, ROOT) is UrlKind.IGNORE
    assert classify_url(url, ROOT, allowed_hosts=["amp.example.org"]) is UrlKind.ARTICLE
