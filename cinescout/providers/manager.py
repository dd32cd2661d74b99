import asyncio
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

import aiohttp

from cinescout.core.logger import log_provider_error, logger
from cinescout.core.models import settings
from cinescout.providers.base import BaseProvider
from cinescout.providers.isaidub import IsaidubScraper
from cinescout.providers.models import ContentRecord, ScrapedListing
from cinescout.providers.moviesda import MoviesdaScraper


class ProviderStatus(str, Enum):
    ACTIVE = "active"
    DEGRADED = "degraded"
    DISABLED = "disabled"


@dataclass
class ProviderHealth:
    status: ProviderStatus = ProviderStatus.ACTIVE
    error_count: int = 0
    last_error: Optional[str] = None
    last_check: Optional[float] = None


class ProviderManager:
    def __init__(self, providers: Sequence[BaseProvider], max_errors: Optional[int] = None):
        self.providers: List[BaseProvider] = list(providers)
        self.max_errors = max_errors or settings.PROVIDER_MAX_ERRORS
        self.health: Dict[str, ProviderHealth] = {
            provider.id: ProviderHealth(last_check=time.time())
            for provider in self.providers
        }

    def active_providers(self) -> List[BaseProvider]:
        return [
            provider
            for provider in self.providers
            if self.health[provider.id].status == ProviderStatus.ACTIVE
        ]

    def get_provider(self, provider_id: str) -> Optional[BaseProvider]:
        return next((p for p in self.providers if p.id == provider_id), None)

    def providers_by_kind(self, kind: str) -> List[BaseProvider]:
        return [p for p in self.active_providers() if kind in p.supports]

    def providers_by_language(self, language: str) -> List[BaseProvider]:
        return [
            p
            for p in self.active_providers()
            if any(lang == language or lang.startswith(f"{language}_") for lang in p.languages)
        ]

    def enable_provider(self, provider_id: str):
        health = self.health.get(provider_id)
        if health:
            health.status = ProviderStatus.ACTIVE
            health.error_count = 0
            health.last_check = time.time()
            logger.log("PROVIDER", f"Provider {provider_id} enabled")

    def disable_provider(self, provider_id: str, reason: str = "manual"):
        health = self.health.get(provider_id)
        if health:
            health.status = ProviderStatus.DISABLED
            health.last_error = reason
            health.last_check = time.time()
            logger.warning(f"Provider {provider_id} disabled: {reason}")

    def record_error(self, provider_id: str, error: Exception):
        health = self.health.get(provider_id)
        if not health:
            return

        health.error_count += 1
        health.last_error = str(error)
        health.last_check = time.time()

        if health.error_count >= self.max_errors and health.status == ProviderStatus.ACTIVE:
            health.status = ProviderStatus.DEGRADED
            logger.warning(
                f"Provider {provider_id} degraded: too many errors ({health.error_count})"
            )

    def reset_errors(self, provider_id: str):
        health = self.health.get(provider_id)
        if not health:
            return

        health.error_count = 0
        if health.status == ProviderStatus.DEGRADED:
            health.status = ProviderStatus.ACTIVE
            logger.log("PROVIDER", f"Provider {provider_id} recovered")

    def detect_provider_from_url(self, url: str) -> Optional[BaseProvider]:
        host = urlparse(url).netloc.lower()
        for provider in self.providers:
            base_host = urlparse(provider.profile.base_url).netloc.lower()
            if host == base_host or provider.id in host:
                return provider
        return None

    async def _call(self, provider: BaseProvider, operation: str, *args):
        try:
            result = await getattr(provider, operation)(*args)
        except Exception as e:
            self.record_error(provider.id, e)
            log_provider_error(provider.name, provider.profile.base_url, e)
            return None

        self.reset_errors(provider.id)
        return result

    async def search_all(self, query: str) -> List[ScrapedListing]:
        providers = self.active_providers()
        logger.log(
            "PROVIDER", f"Searching {len(providers)} providers for {query!r}"
        )

        results = await asyncio.gather(
            *(self._call(provider, "search", query) for provider in providers)
        )

        unique = {}
        for items in results:
            for listing in items or []:
                unique[listing.canonical_url] = listing

        logger.log("PROVIDER", f"Found {len(unique)} unique results for {query!r}")
        return list(unique.values())

    async def latest_from_all(self) -> Dict[str, List[ScrapedListing]]:
        providers = self.active_providers()
        results = await asyncio.gather(
            *(self._call(provider, "list_latest") for provider in providers)
        )
        return {
            provider.id: items or [] for provider, items in zip(providers, results)
        }

    async def details_from_provider(
        self,
        url: str,
        provider_id: Optional[str] = None,
        episode_filter: Optional[int] = None,
    ) -> Optional[ContentRecord]:
        provider = (
            self.get_provider(provider_id)
            if provider_id
            else self.detect_provider_from_url(url)
        )
        if provider is None:
            logger.error(f"No provider found for URL: {url}")
            return None

        return await self._call(provider, "resolve_details", url, episode_filter)

    async def run_health_check(self) -> Dict[str, bool]:
        results = {}
        for provider in self.providers:
            try:
                healthy = await provider.is_healthy()
            except Exception as e:
                self.disable_provider(provider.id, str(e))
                results[provider.id] = False
                continue

            if healthy:
                self.enable_provider(provider.id)
            else:
                self.disable_provider(provider.id, "Health check failed")
            results[provider.id] = healthy

        logger.log("PROVIDER", f"Health check complete: {results}")
        return results

    def providers_health(self) -> Dict[str, dict]:
        report = {}
        for provider in self.providers:
            health = asdict(self.health[provider.id])
            health["status"] = health["status"].value
            report[provider.id] = {
                "name": provider.name,
                "supports": list(provider.supports),
                "languages": list(provider.languages),
                **health,
            }
        return report


def build_providers(session: aiohttp.ClientSession) -> List[BaseProvider]:
    providers = []
    if settings.SCRAPE_MOVIESDA:
        providers.append(MoviesdaScraper(session))
    if settings.SCRAPE_ISAIDUB:
        providers.append(IsaidubScraper(session))
    return providers
