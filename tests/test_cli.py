from __future__ import annotations

import json
from pathlib import Path

import run_crawler
from newsharvest.config import HarvestConfig
from newsharvest.errors import TransportError
from newsharvest.services import crawler
from newsharvest.services.fetcher import FetchResponse

ARTICLE_URL = "https://news.example.com/world/council-approves-transit-plan"
ARTICLE_HTML = """
<html lang="en"><head><meta property="og:title" content="Council approves transit plan" /></head>
<body><article><p>The city council approved the transit plan on Tuesday after months of debate.</p></article></body></html>
"""


class FakeFetcher:
    async def afetch(self, url: str) -> FetchResponse:
        if url != ARTICLE_URL:
            raise TransportError("Unexpected HTTP status 404", url=url, status_code=404)
        return FetchResponse(url=url, final_url=url, status_code=200, content=ARTICLE_HTML)


def test_cli_options_override_the_harvest_config() -> None:
    args = run_crawler.build_parser().parse_args(
        ["--language", "german", "--max-keywords", "4", "--max-articles", "2", "--ordered", "site", "https://x.com"]
    )

    config = run_crawler._harvest_config(args, HarvestConfig())

    assert config.extraction.language == "german"
    assert config.extraction.max_keywords == 4
    assert config.crawl.max_articles == 2
    assert config.crawl.ordered is True
    assert config.crawl.user_agent == HarvestConfig().crawl.user_agent


def test_article_command_writes_json(monkeypatch, tmp_path: Path) -> None:
    real_stream_urls = crawler.stream_urls

    def fake_stream_urls(urls, **kwargs):
        return real_stream_urls(urls, fetcher=FakeFetcher(), **kwargs)

    monkeypatch.setattr(run_crawler, "stream_urls", fake_stream_urls)
    output = tmp_path / "out" / "articles.json"

    exit_code = run_crawler.main(
        ["-o", str(output), "article", ARTICLE_URL, "https://news.example.com/world/missing-story-page-here"]
    )

    assert exit_code == 0
    articles = json.loads(output.read_text(encoding="utf-8"))
    assert [article["url"] for article in articles] == [ARTICLE_URL]
    assert articles[0]["title"] == "Council approves transit plan"


def test_missing_config_file_exits_with_error(tmp_path: Path) -> None:
    assert run_crawler.main(["--config", str(tmp_path / "missing.json"), "configured"]) == 1


def test_invalid_url_exits_with_error() -> None:
    assert run_crawler.main(["site", "not-a-url"]) == 1
