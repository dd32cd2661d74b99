import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

import orjson

from cinescout.core.exceptions import PersistenceFailure
from cinescout.core.logger import logger
from cinescout.matching.models import UnifiedEntity
from cinescout.providers.models import ScrapedListing

COUNTABLE_COLUMNS = ("kind", "language_type", "title", "year")


class StoreGateway(ABC):
    """Key-value upsert store for matched entities and the listings that led to them."""

    @abstractmethod
    async def get_by_external_id(self, catalog_key: str) -> Optional[UnifiedEntity]:
        pass

    @abstractmethod
    async def upsert(self, entity: UnifiedEntity, conflict_key: Optional[str] = None):
        pass

    @abstractmethod
    async def exists_count(self, **criteria) -> int:
        pass

    @abstractmethod
    async def upsert_listing(self, listing: ScrapedListing, catalog_key: str):
        pass

    @abstractmethod
    async def get_by_listing_url(self, url: str) -> Optional[UnifiedEntity]:
        pass


def _matches(entity: UnifiedEntity, criteria: dict) -> bool:
    for field, expected in criteria.items():
        if field == "has_downloads":
            if bool(entity.download_links) != bool(expected):
                return False
            continue

        value = getattr(entity, field)
        if hasattr(value, "value"):
            value = value.value
        if hasattr(expected, "value"):
            expected = expected.value
        if value != expected:
            return False
    return True


def _check_criteria(criteria: dict):
    unknown = set(criteria) - set(COUNTABLE_COLUMNS) - {"has_downloads"}
    if unknown:
        raise ValueError(f"Unsupported count criteria: {', '.join(sorted(unknown))}")


class InMemoryStore(StoreGateway):
    def __init__(self):
        self.entities: Dict[str, UnifiedEntity] = {}
        self.listings: Dict[str, str] = {}

    async def get_by_external_id(self, catalog_key: str) -> Optional[UnifiedEntity]:
        return self.entities.get(catalog_key)

    async def upsert(self, entity: UnifiedEntity, conflict_key: Optional[str] = None):
        self.entities[conflict_key or entity.catalog_key] = entity

    async def exists_count(self, **criteria) -> int:
        _check_criteria(criteria)
        return sum(1 for entity in self.entities.values() if _matches(entity, criteria))

    async def upsert_listing(self, listing: ScrapedListing, catalog_key: str):
        self.listings[listing.canonical_url] = catalog_key

    async def get_by_listing_url(self, url: str) -> Optional[UnifiedEntity]:
        catalog_key = self.listings.get(url)
        if catalog_key is None:
            return None
        return self.entities.get(catalog_key)


class DatabaseStore(StoreGateway):
    def __init__(self, database):
        self.database = database

    async def get_by_external_id(self, catalog_key: str) -> Optional[UnifiedEntity]:
        try:
            payload = await self.database.fetch_val(
                "SELECT payload FROM unified_entities WHERE catalog_key = :catalog_key",
                {"catalog_key": catalog_key},
            )
        except Exception as e:
            raise PersistenceFailure(f"Failed to read {catalog_key}: {e}")

        return UnifiedEntity.model_validate(orjson.loads(payload)) if payload else None

    async def upsert(self, entity: UnifiedEntity, conflict_key: Optional[str] = None):
        params = {
            "catalog_key": conflict_key or entity.catalog_key,
            "external_id": entity.external_id,
            "kind": entity.kind,
            "title": entity.title,
            "year": entity.year,
            "language_type": entity.language_type.value,
            "confidence_score": entity.confidence_score,
            "download_count": len(entity.download_links),
            "payload": orjson.dumps(entity.model_dump(mode="json")).decode("utf-8"),
            "last_updated": entity.last_updated,
        }

        try:
            await self.database.execute(
                """
                    INSERT INTO unified_entities
                    VALUES (:catalog_key, :external_id, :kind, :title, :year, :language_type, :confidence_score, :download_count, :payload, :last_updated)
                    ON CONFLICT (catalog_key) DO UPDATE SET
                        title = :title,
                        year = :year,
                        language_type = :language_type,
                        confidence_score = :confidence_score,
                        download_count = :download_count,
                        payload = :payload,
                        last_updated = :last_updated
                """,
                params,
            )
        except Exception as e:
            raise PersistenceFailure(f"Failed to save {params['catalog_key']}: {e}")

        logger.log("DATABASE", f"Saved {params['catalog_key']} - {entity.title}")

    async def exists_count(self, **criteria) -> int:
        _check_criteria(criteria)

        clauses = []
        params = {}
        for field, expected in criteria.items():
            if field == "has_downloads":
                clauses.append(
                    "download_count > 0" if expected else "download_count = 0"
                )
                continue
            clauses.append(f"{field} = :{field}")
            params[field] = getattr(expected, "value", expected)

        query = "SELECT COUNT(*) FROM unified_entities"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)

        try:
            return await self.database.fetch_val(query, params) or 0
        except Exception as e:
            raise PersistenceFailure(f"Failed to count entities: {e}")

    async def upsert_listing(self, listing: ScrapedListing, catalog_key: str):
        params = {
            "canonical_url": listing.canonical_url,
            "provider_id": listing.provider_id,
            "title": listing.title,
            "catalog_key": catalog_key,
            "payload": orjson.dumps(listing.model_dump(mode="json")).decode("utf-8"),
            "timestamp": time.time(),
        }

        try:
            await self.database.execute(
                """
                    INSERT INTO listings
                    VALUES (:canonical_url, :provider_id, :title, :catalog_key, :payload, :timestamp)
                    ON CONFLICT (canonical_url) DO UPDATE SET
                        title = :title,
                        catalog_key = :catalog_key,
                        payload = :payload,
                        timestamp = :timestamp
                """,
                params,
            )
        except Exception as e:
            raise PersistenceFailure(f"Failed to save listing {listing.canonical_url}: {e}")

    async def get_by_listing_url(self, url: str) -> Optional[UnifiedEntity]:
        try:
            payload = await self.database.fetch_val(
                """
                    SELECT e.payload FROM listings l
                    JOIN unified_entities e ON e.catalog_key = l.catalog_key
                    WHERE l.canonical_url = :url
                """,
                {"url": url},
            )
        except Exception as e:
            raise PersistenceFailure(f"Failed to read listing {url}: {e}")

        return UnifiedEntity.model_validate(orjson.loads(payload)) if payload else None
