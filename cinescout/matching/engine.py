import asyncio
from typing import Iterable, List, Optional, Sequence, Tuple

from cinescout.core.exceptions import PersistenceFailure
from cinescout.core.logger import logger
from cinescout.core.models import settings
from cinescout.matching.content_type import (
    detect_content_type,
    detect_language_type,
)
from cinescout.matching.models import (
    CatalogVideo,
    ExternalMatchCandidate,
    LinkEntry,
    UnifiedEntity,
)
from cinescout.matching.normalize import extract_year, search_query
from cinescout.matching.scoring import match_quality, select_best_match
from cinescout.providers.models import (
    ContentKind,
    FileCandidate,
    LanguageType,
    ScrapedListing,
)
from cinescout.store.gateway import StoreGateway
from cinescout.utils.batching import gather_in_batches

ENGLISH = "en"


def select_trailer(
    videos: Sequence[CatalogVideo], native_language: str = "ta"
) -> Optional[str]:
    trailers = [
        video for video in videos if video.type == "Trailer" and video.site == "YouTube"
    ]
    for language in (native_language, ENGLISH):
        for video in trailers:
            if video.language == language:
                return video.key
    return trailers[0].key if trailers else None


def listing_year(item: ScrapedListing) -> Optional[str]:
    if item.year and item.year != "Unknown" and extract_year(item.year):
        return extract_year(item.year)
    return extract_year(item.title)


def build_links(files: Iterable[FileCandidate]) -> Tuple[List[LinkEntry], List[LinkEntry]]:
    watch_links = []
    download_links = []

    for candidate in files:
        link = candidate.link
        common = {
            "quality": candidate.quality or "Unknown",
            "season": candidate.season,
            "episode": candidate.episode,
            "label": candidate.raw_anchor_text,
        }

        if link and link.watch_url:
            watch_links.append(LinkEntry(url=link.watch_url, **common))

        url = (link.direct_url if link else None) or candidate.landing_url
        if url:
            download_links.append(
                LinkEntry(url=url, size=candidate.size_label or "Unknown", **common)
            )

    return watch_links, download_links


def match_summary(total: int, entities: List[UnifiedEntity]) -> dict:
    return {
        "total_input": total,
        "successful_matches": len(entities),
        "match_rate": round(len(entities) / total * 100, 1) if total else 0.0,
        "entities": entities,
    }


class MatchingEngine:
    """Reconciles scraped listings against the external catalog."""

    def __init__(
        self,
        catalog,
        store: StoreGateway,
        native_language: Optional[str] = None,
        batch_size: Optional[int] = None,
        current_year: Optional[int] = None,
    ):
        self.catalog = catalog
        self.store = store
        self.native_language = native_language or settings.MATCH_NATIVE_LANGUAGE
        self.batch_size = batch_size or settings.MATCH_BATCH_SIZE
        self.current_year = current_year

    async def search_with_fallback(
        self, title: str, year: Optional[str], is_series: bool
    ) -> List[ExternalMatchCandidate]:
        query = search_query(title)
        if not query:
            logger.warning(f"Empty query after normalization of {title!r}")
            return []

        kind = "tv" if is_series else "movie"
        passes = [(year, ENGLISH)]
        if year:
            passes.append((None, ENGLISH))
        passes.append((year, self.native_language))
        if year:
            passes.append((None, self.native_language))

        results = await asyncio.gather(
            *(
                self.catalog.search(query, kind, pass_year, language)
                for pass_year, language in passes
            )
        )
        candidates = [candidate for result in results for candidate in result]

        if not candidates:
            fallback_kind = "movie" if is_series else "tv"
            logger.log(
                "MATCHER", f"No {kind} results for {query!r}, trying {fallback_kind}"
            )
            candidates = await self.catalog.search(query, fallback_kind, year, ENGLISH)

        unique = {}
        for candidate in candidates:
            unique.setdefault(candidate.external_id, candidate)
        return list(unique.values())

    async def match(
        self,
        item: ScrapedListing,
        files: Sequence[FileCandidate] = (),
        content_kind: Optional[ContentKind] = None,
        language_type: Optional[LanguageType] = None,
    ) -> Optional[UnifiedEntity]:
        if not item.title or not item.title.strip():
            logger.warning("Missing title, skipping match")
            return None

        if content_kind in (None, ContentKind.UNKNOWN):
            content_kind = detect_content_type(item.title, item.canonical_url, files).kind
        is_series = content_kind in (ContentKind.SERIES, ContentKind.WEBSERIES)

        language_type = language_type or detect_language_type(item.title)
        year = listing_year(item)

        logger.log(
            "MATCHER",
            f"Matching {item.title!r} ({year}) - {content_kind.value}, {language_type.value}",
        )

        candidates = await self.search_with_fallback(item.title, year, is_series)
        if not candidates:
            logger.log("MATCHER", f"No catalog results for {item.title!r}")
            return None

        best = select_best_match(
            candidates,
            item.title,
            year,
            language_type,
            native_language=self.native_language,
            current_year=self.current_year,
        )
        if best is None:
            return None

        candidate = best.candidate
        try:
            cached = await self.store.get_by_external_id(candidate.catalog_key)
        except PersistenceFailure as e:
            logger.error(e.message)
            cached = None
        if cached and cached.download_links:
            logger.log("MATCHER", f"Cache hit for {candidate.catalog_key}")
            return cached

        details = await self.catalog.details(
            candidate.external_id, candidate.kind, self.native_language
        )
        if details is None:
            logger.warning(f"Failed to fetch details for {candidate.catalog_key}")
            return None

        videos = details.videos
        if not videos:
            videos = [
                CatalogVideo(
                    key=video["key"],
                    site=video.get("site"),
                    type=video.get("type"),
                    language=video.get("iso_639_1"),
                )
                for video in await self.catalog.videos(
                    candidate.external_id, candidate.kind
                )
                if video.get("key")
            ]

        watch_links, download_links = build_links(files)
        entity = UnifiedEntity(
            external_id=candidate.external_id,
            kind=candidate.kind,
            title=details.title or candidate.title,
            year=details.year,
            language_type=detect_language_type(
                item.title, candidate.original_language, self.native_language
            )
            if language_type == LanguageType.UNKNOWN
            else language_type,
            rating=details.rating,
            runtime=details.runtime,
            poster_url=details.poster_url,
            backdrop_url=details.backdrop_url,
            overview=details.overview,
            genres=details.genres,
            cast=details.cast,
            director=details.director,
            trailer_key=select_trailer(videos, self.native_language),
            watch_links=watch_links,
            download_links=download_links,
            sources=[item.provider_id],
            confidence_score=best.score,
            match_quality=match_quality(best.score),
        )

        try:
            await self.store.upsert(entity, entity.catalog_key)
        except PersistenceFailure as e:
            logger.error(f"Failed to persist {entity.catalog_key}: {e.message}")

        return entity

    async def batch_match(
        self, items: Sequence[Tuple[ScrapedListing, Sequence[FileCandidate]]]
    ) -> dict:
        logger.log("MATCHER", f"Batch matching {len(items)} items")

        results = await gather_in_batches(
            items,
            lambda pair: self.match(pair[0], pair[1]),
            batch_size=self.batch_size,
            label="Match",
        )
        entities = [entity for entity in results if entity is not None]

        logger.log(
            "MATCHER", f"Batch matching complete: {len(entities)}/{len(items)} matched"
        )
        return match_summary(len(items), entities)
