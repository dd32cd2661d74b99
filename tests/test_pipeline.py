import asyncio
from dataclasses import replace

from fakes import TEST_PROFILE, FakeCatalog, FakeProvider, candidate

from cinescout.matching.engine import MatchingEngine
from cinescout.providers.manager import ProviderManager
from cinescout.providers.models import (
    ContentRecord,
    FileCandidate,
    LanguageType,
    ResolvedLink,
    ScrapedListing,
)
from cinescout.services.pipeline import ContentPipeline
from cinescout.store.gateway import InMemoryStore

DUB_PROFILE = replace(
    TEST_PROFILE, id="dubsite", name="DubSite", base_url="https://dub.test", languages=("ta_dubbed",)
)

LEO_URL = "https://site.test/movie/leo/"
JAILER_URL = "https://dub.test/movie/jailer/"


def _record(title, url):
    return ContentRecord(
        title=title,
        url=url,
        files=[
            FileCandidate(
                landing_url=f"{url}file/",
                raw_anchor_text=f"{title} 720p.mkv",
                quality="720p",
                link=ResolvedLink(direct_url=f"https://hotshare.link/f/{title.lower()}.mkv"),
            )
        ],
    )


def _pipeline(providers, catalog):
    store = InMemoryStore()
    engine = MatchingEngine(catalog, store, native_language="ta", current_year=2026)
    return ContentPipeline(ProviderManager(providers), engine, store, batch_size=2), store


def test_listing_is_resolved_matched_and_stored():
    leo = ScrapedListing(canonical_url=LEO_URL, title="Leo (2023)", provider_id="testsite")
    provider = FakeProvider(record=_record("Leo", LEO_URL))
    catalog = FakeCatalog({"movie": [candidate(5, "Leo", "ta", "2023", vote_count=900)]})
    pipeline, store = _pipeline([provider], catalog)

    entity = asyncio.run(pipeline.process_listing(leo))

    assert entity.catalog_key == "movie:5"
    assert entity.download_links[0].url == "https://hotshare.link/f/leo.mkv"
    assert store.listings[LEO_URL] == "movie:5"

    again = asyncio.run(pipeline.process_listing(leo))

    assert again == entity
    assert provider.calls["resolve_details"] == 1


def test_dubbed_provider_hints_language():
    jailer = ScrapedListing(canonical_url=JAILER_URL, title="Jailer (2023)", provider_id="dubsite")
    provider = FakeProvider(DUB_PROFILE, record=_record("Jailer", JAILER_URL))
    catalog = FakeCatalog({"movie": [candidate(2, "Jailer", "te", "2023")]})
    pipeline, _ = _pipeline([provider], catalog)

    entity = asyncio.run(pipeline.process_listing(jailer))

    assert entity.language_type == LanguageType.TAMIL_DUBBED
    assert entity.sources == ["dubsite"]


def test_listing_without_details_is_dropped():
    leo = ScrapedListing(canonical_url=LEO_URL, title="Leo (2023)", provider_id="testsite")
    catalog = FakeCatalog({"movie": [candidate(5, "Leo", "ta", "2023")]})
    pipeline, store = _pipeline([FakeProvider(record=None)], catalog)

    assert asyncio.run(pipeline.process_listing(leo)) is None
    assert catalog.search_calls == []
    assert store.listings == {}


def test_process_latest_summarizes_every_provider():
    leo = ScrapedListing(canonical_url=LEO_URL, title="Leo (2023)", provider_id="testsite")
    unmatched = ScrapedListing(
        canonical_url="https://site.test/movie/unknown/", title="Obscure Short Film", provider_id="testsite"
    )
    provider = FakeProvider(latest=[leo, unmatched], record=_record("Leo", LEO_URL))
    broken = FakeProvider(DUB_PROFILE, error=RuntimeError("site down"))
    catalog = FakeCatalog({"movie": [candidate(5, "Leo", "ta", "2023", vote_count=900)]})
    pipeline, _ = _pipeline([provider, broken], catalog)

    summary = asyncio.run(pipeline.process_latest())

    assert summary["total_input"] == 2
    assert summary["successful_matches"] == 1
    assert summary["match_rate"] == 50.0
    assert summary["entities"][0].title == "Leo"


def test_search_runs_listings_through_the_pipeline():
    leo = ScrapedListing(canonical_url=LEO_URL, title="Leo (2023)", provider_id="testsite")
    provider = FakeProvider(results=[leo], record=_record("Leo", LEO_URL))
    catalog = FakeCatalog({"movie": [candidate(5, "Leo", "ta", "2023")]})
    pipeline, _ = _pipeline([provider], catalog)

    summary = asyncio.run(pipeline.search("leo"))

    assert summary["successful_matches"] == 1
    assert provider.calls["search"] == 1
