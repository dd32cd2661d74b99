from typing import List, Optional

from cinescout.core.exceptions import PersistenceFailure
from cinescout.core.logger import logger
from cinescout.core.models import settings
from cinescout.matching.content_type import detect_content_type
from cinescout.matching.engine import MatchingEngine, match_summary
from cinescout.matching.models import UnifiedEntity
from cinescout.providers.manager import ProviderManager
from cinescout.providers.models import LanguageType, ScrapedListing
from cinescout.store.gateway import StoreGateway
from cinescout.utils.batching import gather_in_batches


class ContentPipeline:
    """Listing -> details -> classification -> catalog match -> store."""

    def __init__(
        self,
        providers: ProviderManager,
        engine: MatchingEngine,
        store: StoreGateway,
        batch_size: Optional[int] = None,
    ):
        self.providers = providers
        self.engine = engine
        self.store = store
        self.batch_size = batch_size or settings.MATCH_BATCH_SIZE

    async def _cached(self, listing: ScrapedListing) -> Optional[UnifiedEntity]:
        try:
            return await self.store.get_by_listing_url(listing.canonical_url)
        except PersistenceFailure as e:
            logger.error(e.message)
            return None

    def _language_hint(self, provider_id: str) -> Optional[LanguageType]:
        provider = self.providers.get_provider(provider_id)
        if provider and "ta_dubbed" in provider.languages:
            return LanguageType.TAMIL_DUBBED
        return None

    async def process_listing(
        self, listing: ScrapedListing, episode_filter: Optional[int] = None
    ) -> Optional[UnifiedEntity]:
        cached = await self._cached(listing)
        if cached and cached.download_links:
            logger.log("PIPELINE", f"Cache hit for {listing.canonical_url}")
            return cached

        record = await self.providers.details_from_provider(
            listing.canonical_url, listing.provider_id, episode_filter
        )
        if record is None:
            logger.log("PIPELINE", f"No details for {listing.canonical_url}")
            return None

        classification = detect_content_type(
            listing.title, listing.canonical_url, record.files
        )
        logger.log(
            "PIPELINE",
            f"{listing.title!r}: {classification.kind.value} ({classification.confidence}%), {len(record.files)} files",
        )

        entity = await self.engine.match(
            listing,
            record.files,
            content_kind=classification.kind,
            language_type=self._language_hint(listing.provider_id),
        )
        if entity is None:
            return None

        try:
            await self.store.upsert_listing(listing, entity.catalog_key)
        except PersistenceFailure as e:
            logger.error(e.message)

        return entity

    async def _process_all(self, listings: List[ScrapedListing]) -> dict:
        results = await gather_in_batches(
            listings,
            self.process_listing,
            batch_size=self.batch_size,
            label="Pipeline",
        )
        entities = [entity for entity in results if entity is not None]

        logger.log(
            "PIPELINE", f"Processed {len(listings)} listings, {len(entities)} matched"
        )
        return match_summary(len(listings), entities)

    async def process_latest(self) -> dict:
        latest = await self.providers.latest_from_all()
        listings = [listing for items in latest.values() for listing in items]
        return await self._process_all(listings)

    async def search(self, query: str) -> dict:
        return await self._process_all(await self.providers.search_all(query))
