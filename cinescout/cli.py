import argparse
import sys

import orjson

from cinescout.core.database import setup_database, teardown_database
from cinescout.core.exceptions import PersistenceFailure
from cinescout.core.logger import log_startup_info, logger, setupLogger
from cinescout.core.models import database, settings
from cinescout.crawler.classify import parse_episode_query
from cinescout.matching.engine import MatchingEngine
from cinescout.metadata.cache import TTLCache
from cinescout.metadata.tmdb import TMDBApi
from cinescout.providers.manager import ProviderManager, build_providers
from cinescout.providers.models import ScrapedListing
from cinescout.services.pipeline import ContentPipeline
from cinescout.store.gateway import DatabaseStore
from cinescout.utils.http_client import http_client_manager
from cinescout.utils.urls import canonicalize


def print_json(data):
    sys.stdout.write(
        orjson.dumps(data, option=orjson.OPT_INDENT_2, default=_default).decode("utf-8")
        + "\n"
    )


def _default(value):
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    raise TypeError


def build_parser():
    parser = argparse.ArgumentParser(
        description="CineScout - discover, resolve and match regional movie listings"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("latest", help="Process the latest listings of every provider")

    search_parser = subparsers.add_parser("search", help="Search every provider and match hits")
    search_parser.add_argument("query", help="Title to search for")

    resolve_parser = subparsers.add_parser("resolve", help="Crawl a detail page into files")
    resolve_parser.add_argument("url", help="Detail page URL")
    resolve_parser.add_argument(
        "--episode", help='Only keep one episode ("5", "E05", "Episode 5")'
    )

    match_parser = subparsers.add_parser("match", help="Resolve a detail page and match it")
    match_parser.add_argument("url", help="Detail page URL")
    match_parser.add_argument("--title", required=True, help="Listing title")
    match_parser.add_argument("--year", default="Unknown", help="Listing year")

    subparsers.add_parser("health", help="Check every provider")
    subparsers.add_parser("stats", help="Count stored entities")

    return parser


def episode_filter(value):
    if value is None:
        return None
    if value.isdigit():
        return int(value)
    return parse_episode_query(value)


async def store_stats(store):
    try:
        return {
            "entities": await store.exists_count(),
            "with_downloads": await store.exists_count(has_downloads=True),
            "tamil": await store.exists_count(language_type="tamil"),
            "tamil_dubbed": await store.exists_count(language_type="tamil_dubbed"),
        }
    except PersistenceFailure as e:
        logger.error(e.message)
        return None


async def run(args, pipeline: ContentPipeline, providers: ProviderManager, store):
    if args.command == "latest":
        return await pipeline.process_latest()

    if args.command == "search":
        return await pipeline.search(args.query)

    if args.command == "resolve":
        return await providers.details_from_provider(
            args.url, episode_filter=episode_filter(args.episode)
        )

    if args.command == "match":
        provider = providers.detect_provider_from_url(args.url)
        if provider is None:
            logger.error(f"No provider found for URL: {args.url}")
            return None
        listing = ScrapedListing(
            canonical_url=canonicalize(args.url),
            title=args.title,
            year=args.year,
            provider_id=provider.id,
        )
        return await pipeline.process_listing(listing)

    if args.command == "health":
        await providers.run_health_check()
        return providers.providers_health()

    if args.command == "stats":
        return await store_stats(store)


async def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setupLogger(settings.LOG_LEVEL)
    log_startup_info(settings)

    await setup_database()
    try:
        async with http_client_manager as session:
            store = DatabaseStore(database)
            providers = ProviderManager(build_providers(session))
            engine = MatchingEngine(
                TMDBApi(session, TTLCache(settings.TMDB_CACHE_TTL)), store
            )
            pipeline = ContentPipeline(providers, engine, store)

            print_json(await run(args, pipeline, providers, store))
    finally:
        await teardown_database()
