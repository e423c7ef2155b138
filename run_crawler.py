"""Command line entry point for extracting articles and crawling news sites."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Sequence

# Ensure the src directory is on the Python path so the newsharvest package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from newsharvest.config import AppConfig, HarvestConfig  # noqa: E402  (import after path setup)
from newsharvest.errors import NewsHarvestError  # noqa: E402
from newsharvest.models import ArticleResult  # noqa: E402
from newsharvest.services.crawler import ArticleStream, Site, stream_urls  # noqa: E402
from newsharvest.storage import ArticleStore  # noqa: E402

logger = logging.getLogger("newsharvest.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run_crawler.py", description="News article extraction and site crawling."
    )
    parser.add_argument("--config", type=Path, help="JSON file with sites and harvest settings")
    parser.add_argument("-o", "--output", type=Path, help="Write the articles as JSON to this file")
    parser.add_argument("--store", action="store_true", help="Also store every article in the blob store")
    parser.add_argument("--max-articles", type=int, help="Stop after this many article URLs per site")
    parser.add_argument("--language", help="Extraction language, e.g. 'en' or 'german'")
    parser.add_argument("--user-agent", help="User-Agent header sent with every request")
    parser.add_argument("--max-keywords", type=int, help="Maximum number of keywords per article")
    parser.add_argument("--max-authors", type=int, help="Maximum number of authors per article")
    parser.add_argument("--ordered", action="store_true", help="Emit articles in URL order")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")

    subcommands = parser.add_subparsers(dest="command", required=True)

    site = subcommands.add_parser("site", help="Extract all articles from a news site")
    site.add_argument("url", help="The homepage of the news outlet")

    article = subcommands.add_parser("article", help="Extract single articles")
    article.add_argument("urls", nargs="+", help="The article URLs to download")

    category = subcommands.add_parser("category", help="Extract every article linked from one page")
    category.add_argument("url", help="The category page to extract articles from")

    configured = subcommands.add_parser("configured", help="Crawl every site in the configuration file")
    configured.add_argument("names", nargs="*", help="Only crawl the sites with these names")

    return parser


def _harvest_config(args: argparse.Namespace, base: HarvestConfig) -> HarvestConfig:
    extraction_updates: dict[str, Any] = {}
    if args.language:
        extraction_updates["language"] = args.language
    if args.max_keywords is not None:
        extraction_updates["max_keywords"] = args.max_keywords
    if args.max_authors is not None:
        extraction_updates["max_authors"] = args.max_authors

    crawl_updates: dict[str, Any] = {}
    if args.user_agent:
        crawl_updates["user_agent"] = args.user_agent
    if args.max_articles is not None:
        crawl_updates["max_articles"] = args.max_articles
    if args.ordered:
        crawl_updates["ordered"] = True

    return base.model_copy(
        update={
            "extraction": base.extraction.model_copy(update=extraction_updates),
            "crawl": base.crawl.model_copy(update=crawl_updates),
        }
    )


async def _collect(stream: ArticleStream, store: ArticleStore | None) -> List[dict[str, Any]]:
    articles: List[dict[str, Any]] = []
    async with stream:
        async for result in stream:
            payload = _handle_result(result, store)
            if payload is not None:
                articles.append(payload)
    return articles


def _handle_result(result: ArticleResult, store: ArticleStore | None) -> dict[str, Any] | None:
    if not result.ok:
        logger.warning("Failed %s: %s", result.url, result.error_message)
        return None
    article = result.unwrap().drop_document()
    if store is not None:
        store.store(article)
    return {"url": article.url, **article.content.model_dump(mode="json")}


async def run(args: argparse.Namespace) -> List[dict[str, Any]]:
    if args.config is not None or args.command == "configured":
        app_config = AppConfig.from_file(args.config)
    else:
        app_config = AppConfig()
    config = _harvest_config(args, app_config.harvest)
    store = ArticleStore() if args.store else None

    if args.command == "article":
        return await _collect(stream_urls(args.urls, config=config), store)

    if args.command == "category":
        site = await Site.from_category(args.url, config=config)
        return await _collect(site.stream(), store)

    if args.command == "site":
        site = await Site.build(args.url, config=config)
        return await _collect(site.stream(), store)

    sites = list(app_config.iter_sites())
    if args.names:
        wanted = {name.lower() for name in args.names}
        sites = [site for site in sites if site.name.lower() in wanted]

    articles: List[dict[str, Any]] = []
    for site_config in sites:
        logger.info("Crawling %s (%s)", site_config.name, site_config.url)
        site_harvest = config.model_copy(update={"crawl": site_config.crawl_config(config.crawl)})
        if site_config.language and not args.language:
            extraction = site_harvest.extraction.model_copy(update={"language": site_config.language})
            site_harvest = site_harvest.model_copy(update={"extraction": extraction})
        try:
            site = await Site.build(str(site_config.url), config=site_harvest)
        except NewsHarvestError as exc:
            logger.error("Failed to crawl %s: %s", site_config.url, exc)
            continue
        found = await _collect(site.stream(), store)
        logger.info("Extracted %d articles from %s", len(found), site_config.name)
        articles.extend(found)
    return articles


def write(articles: Sequence[dict[str, Any]], output: Path | None) -> None:
    """Write ``articles`` as JSON to ``output``, or to stdout without one."""

    payload = json.dumps(list(articles), ensure_ascii=False, indent=2)
    if output is None:
        print(payload)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload, encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        articles = asyncio.run(run(args))
    except FileNotFoundError as exc:
        logging.error("Could not load site configuration: %s", exc)
        return 1
    except (NewsHarvestError, ValueError) as exc:
        logging.error("%s", exc)
        return 1

    write(articles, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
