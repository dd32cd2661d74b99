import asyncio
import os
import tempfile

import pytest
from databases import Database

from cinescout.core.database import create_tables
from cinescout.matching.models import LinkEntry, UnifiedEntity
from cinescout.providers.models import LanguageType, ScrapedListing
from cinescout.store.gateway import DatabaseStore, InMemoryStore


def _entity(external_id, title, language_type=LanguageType.TAMIL, downloads=1, kind="movie"):
    return UnifiedEntity(
        external_id=external_id,
        kind=kind,
        title=title,
        year="2024",
        language_type=language_type,
        confidence_score=80,
        download_links=[
            LinkEntry(url=f"https://hotshare.link/f/{external_id}-{n}.mkv")
            for n in range(downloads)
        ],
    )


def _listing(url):
    return ScrapedListing(canonical_url=url, title="Leo", provider_id="moviesda")


async def _exercise(store):
    await store.upsert(_entity(1, "Leo"))
    await store.upsert(_entity(2, "Jailer", LanguageType.TAMIL_DUBBED, downloads=0))
    await store.upsert(_entity(1, "Leo (Updated)"))
    await store.upsert(_entity(1, "Suzhal", kind="tv"))
    await store.upsert_listing(_listing("https://site.test/leo/"), "movie:1")

    return {
        "leo": await store.get_by_external_id("movie:1"),
        "missing": await store.get_by_external_id("movie:404"),
        "by_listing": await store.get_by_listing_url("https://site.test/leo/"),
        "unknown_listing": await store.get_by_listing_url("https://site.test/none/"),
        "total": await store.exists_count(),
        "tamil": await store.exists_count(language_type=LanguageType.TAMIL),
        "dubbed": await store.exists_count(language_type="tamil_dubbed"),
        "with_downloads": await store.exists_count(has_downloads=True),
        "tv": await store.exists_count(kind="tv"),
    }


def _check(results):
    assert results["leo"].title == "Leo (Updated)"
    assert results["missing"] is None
    assert results["by_listing"].title == "Leo (Updated)"
    assert results["unknown_listing"] is None
    assert results["total"] == 3
    assert results["tamil"] == 2
    assert results["dubbed"] == 1
    assert results["with_downloads"] == 2
    assert results["tv"] == 1


def test_in_memory_store():
    _check(asyncio.run(_exercise(InMemoryStore())))


def test_unknown_count_criteria_are_rejected():
    with pytest.raises(ValueError):
        asyncio.run(InMemoryStore().exists_count(rating=7))


def test_database_store_round_trips_through_sqlite():
    async def scenario(path):
        database = Database(f"sqlite:///{path}")
        await database.connect()
        try:
            await create_tables(database)
            results = await _exercise(DatabaseStore(database))
            stored = results["leo"]
        finally:
            await database.disconnect()
        return results, stored

    with tempfile.TemporaryDirectory() as directory:
        results, stored = asyncio.run(scenario(os.path.join(directory, "cinescout.db")))

    _check(results)
    assert stored.language_type == LanguageType.TAMIL
    assert stored.download_links[0].url == "https://hotshare.link/f/1-0.mkv"
