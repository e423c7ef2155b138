"""Tests for the HTTP routes in :mod:`newsharvest.api.routes`."""

from __future__ import annotations

from pathlib import Path
from typing import Dict
from unittest.mock import patch

from fastapi.testclient import TestClient

from newsharvest.api.app import create_app
from newsharvest.config import AppConfig, SiteConfig
from newsharvest.errors import TransportError
from newsharvest.services.fetcher import FetchResponse
from newsharvest.storage import ArticleStore

ARTICLE_URL = "https://news.example.com/world/council-approves-transit-plan"

ARTICLE_HTML = """
<html lang="en"><head>
<meta property="og:title" content="Council approves transit plan" />
<meta name="author" content="Jane Doe" />
</head><body><article>
<p>The city council approved the transit plan on Tuesday after months of debate over its costs and routes.</p>
<p>Supporters said the plan would add bus routes and extend light rail service to the eastern districts.</p>
</article></body></html>
"""

HOMEPAGE_HTML = """
<html><body><a href="/world/council-approves-transit-plan">Council approves transit plan</a>
<a href="/world/missing-story-page-here">Missing</a></body></html>
"""


class FakeFetcher:
    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.closed = False

    async def afetch(self, url: str) -> FetchResponse:
        if url not in self.pages:
            raise TransportError("Unexpected HTTP status 404", url=url, status_code=404)
        return FetchResponse(url=url, final_url=url, status_code=200, content=self.pages[url])

    def close(self) -> None:
        self.closed = True


def test_index_page_is_served() -> None:
    client = TestClient(create_app())

    response = client.get("/")

    assert response.status_code == 200
    assert "/api/extract" in response.text


def test_extract_posted_markup() -> None:
    client = TestClient(create_app())

    with patch("newsharvest.api.routes.AppConfig.from_file", side_effect=FileNotFoundError("missing")):
        response = client.post("/api/extract", json={"url": ARTICLE_URL, "html": ARTICLE_HTML})

    assert response.status_code == 200
    payload = response.json()
    assert payload["url"] == ARTICLE_URL
    assert payload["content"]["title"] == "Council approves transit plan"
    assert payload["content"]["authors"] == ["Jane Doe"]
    assert payload["content"]["language"] == "en"


def test_extract_reports_unusable_markup() -> None:
    client = TestClient(create_app())

    response = client.post(
        "/api/extract", json={"url": ARTICLE_URL, "html": "<html><body><div>tiny</div></body></html>"}
    )

    assert response.status_code == 422
    assert response.json()["detail"]


def test_extract_maps_fetch_failures_to_bad_gateway() -> None:
    client = TestClient(create_app())

    def failing_extract(url, **kwargs):
        raise TransportError("Unexpected HTTP status 503", url=url, status_code=503)

    with patch("newsharvest.api.routes.extract_url", side_effect=failing_extract):
        response = client.post("/api/extract", json={"url": ARTICLE_URL})

    assert response.status_code == 502
    assert "503" in response.json()["detail"]


def test_list_sites_returns_configured_sources() -> None:
    """Site metadata from the configuration file is exposed via the API."""

    client = TestClient(create_app())
    config = AppConfig(
        sites=[
            SiteConfig(name="Alpha News", url="https://www.alpha.example.com", language="de"),
            SiteConfig(name="Beta", url="https://beta.example.com"),
        ],
    )

    with patch("newsharvest.api.routes.AppConfig.from_file", return_value=config):
        response = client.get("/api/sites")

    assert response.status_code == 200
    payload = response.json()
    assert [entry["name"] for entry in payload["sites"]] == ["Alpha News", "Beta"]
    assert payload["sites"][0]["slug"] == "alpha-news"
    assert payload["sites"][0]["host"] == "www.alpha.example.com"
    assert payload["sites"][0]["language"] == "de"


def test_list_stored_urls(tmp_path: Path) -> None:
    store = ArticleStore(tmp_path)
    store.record_url(ARTICLE_URL)
    client = TestClient(create_app())

    with patch("newsharvest.api.routes.get_store", return_value=store):
        response = client.get("/api/articles/stored")

    assert response.status_code == 200
    assert response.json() == {"urls": [ARTICLE_URL]}


def test_crawl_streams_and_stores_articles(tmp_path: Path) -> None:
    store = ArticleStore(tmp_path)
    config = AppConfig(sites=[SiteConfig(name="Example", url="https://news.example.com")])
    fetcher = FakeFetcher({"https://news.example.com": HOMEPAGE_HTML, ARTICLE_URL: ARTICLE_HTML})
    client = TestClient(create_app())

    with patch("newsharvest.api.routes.AppConfig.from_file", return_value=config), patch(
        "newsharvest.api.routes.get_store", return_value=store
    ), patch("newsharvest.api.routes.Fetcher", return_value=fetcher):
        response = client.post("/api/crawl", json={})

    assert response.status_code == 200
    payload = response.json()
    assert payload["errors"] == []
    site = payload["sites"][0]
    assert site["site"] == "Example"
    assert [article["url"] for article in site["articles"]] == [ARTICLE_URL]
    assert [failure["url"] for failure in site["failures"]] == [
        "https://news.example.com/world/missing-story-page-here"
    ]
    assert payload["stored_urls"] == [ARTICLE_URL]
    assert fetcher.closed is True


def test_crawl_reports_discovery_failures() -> None:
    config = AppConfig(sites=[SiteConfig(name="Example", url="https://news.example.com")])
    client = TestClient(create_app())

    with patch("newsharvest.api.routes.AppConfig.from_file", return_value=config), patch(
        "newsharvest.api.routes.Fetcher", return_value=FakeFetcher({})
    ):
        response = client.post("/api/crawl", json={"store": False})

    assert response.status_code == 200
    payload = response.json()
    assert payload["sites"] == []
    assert payload["errors"][0]["site"] == "Example"
    assert payload["stored_urls"] == []


def test_crawl_rejects_unknown_site_names() -> None:
    config = AppConfig(sites=[SiteConfig(name="Example", url="https://news.example.com")])
    client = TestClient(create_app())

    with patch("newsharvest.api.routes.AppConfig.from_file", return_value=config):
        response = client.post("/api/crawl", json={"sites": ["Nope"], "store": False})

    assert response.status_code == 404
