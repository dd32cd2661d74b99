from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp

from cinescout.crawler.fetcher import PageFetcher
from cinescout.crawler.follower import DownloadLinkFollower
from cinescout.crawler.listing import ListingExtractor
from cinescout.crawler.resolver import DetailResolver
from cinescout.providers.models import ContentRecord, ScrapedListing
from cinescout.providers.profiles import SiteProfile


def fuzzy_match(title: str, query: str) -> bool:
    """Every word of the query (longer than one character) appears in the title."""
    title = "".join(c for c in (title or "").lower() if c.isalnum() or c.isspace())
    query = "".join(c for c in (query or "").lower() if c.isalnum() or c.isspace())
    if not query:
        return True
    return all(word in title for word in query.split() if len(word) > 1)


class BaseProvider(ABC):
    def __init__(
        self,
        session: aiohttp.ClientSession,
        profile: SiteProfile,
        fetcher: Optional[PageFetcher] = None,
    ):
        self.session = session
        self.profile = profile
        self.fetcher = fetcher or PageFetcher(
            session, profile.request_headers(), profile.request_timeout
        )
        self.listings = ListingExtractor(self.fetcher, profile)
        self.follower = DownloadLinkFollower(self.fetcher, profile)
        self.resolver = DetailResolver(self.fetcher, profile, self.follower)

    @property
    def id(self) -> str:
        return self.profile.id

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def supports(self):
        return self.profile.supports

    @property
    def languages(self):
        return self.profile.languages

    @abstractmethod
    async def list_latest(self) -> List[ScrapedListing]:
        pass

    @abstractmethod
    async def search(self, query: str) -> List[ScrapedListing]:
        pass

    async def resolve_details(
        self, url: str, episode_filter: Optional[int] = None
    ) -> Optional[ContentRecord]:
        return await self.resolver.resolve(url, episode_filter)

    async def is_healthy(self) -> bool:
        return await self.fetcher.fetch(self.profile.base_url) is not None
