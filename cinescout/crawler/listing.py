import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from cinescout.core.logger import logger
from cinescout.core.models import settings
from cinescout.crawler.fetcher import PageFetcher
from cinescout.providers.models import ContentKind, ScrapedListing
from cinescout.providers.profiles import SiteProfile
from cinescout.utils.batching import gather_in_batches
from cinescout.utils.urls import canonicalize, resolve_href

PAGE_NUMBER_PATTERN = re.compile(r"page=(\d+)")
WHITESPACE_PATTERN = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def guess_kind(url: str) -> ContentKind:
    lowered = url.lower()
    if "web-series" in lowered or "webseries" in lowered:
        return ContentKind.WEBSERIES
    return ContentKind.UNKNOWN


class ListingExtractor:
    def __init__(self, fetcher: PageFetcher, profile: SiteProfile):
        self.fetcher = fetcher
        self.profile = profile

    def block_title(self, block: Tag, link: Optional[Tag]) -> str:
        for selector in self.profile.listing_title_selectors:
            element = block.select_one(selector)
            if element:
                title = collapse_whitespace(element.get_text())
                if title:
                    return title
        return collapse_whitespace(link.get_text()) if link else ""

    def block_link(self, block: Tag) -> Optional[Tag]:
        for selector in self.profile.listing_link_selectors:
            link = block.select_one(f"{selector}[href]")
            if link:
                return link
        return None

    def block_poster(self, block: Tag, page_url: str) -> Optional[str]:
        image = block.select_one("img[src]")
        if not image:
            return None

        src = image.get("src")
        if any(marker in src for marker in self.profile.poster_exclusions):
            return None
        return resolve_href(page_url, src)

    def parse_listings(
        self, document: BeautifulSoup, page_url: str, year: str = "Unknown"
    ) -> List[ScrapedListing]:
        listings = []

        for block in document.select(self.profile.listing_block_selector):
            link = self.block_link(block)
            title = self.block_title(block, link)
            href = resolve_href(page_url, link.get("href")) if link else None

            if not title or not href:
                continue

            if any(pattern in title for pattern in self.profile.listing_exclusions):
                continue

            quality_element = block.select_one(self.profile.listing_quality_selector)
            quality = (
                collapse_whitespace(quality_element.get_text())
                if quality_element
                else ""
            )

            listings.append(
                ScrapedListing(
                    canonical_url=canonicalize(href),
                    title=title,
                    year=year,
                    poster_url=self.block_poster(block, page_url),
                    quality=quality or "DVD/HD",
                    provider_id=self.profile.id,
                    content_kind=guess_kind(href),
                )
            )

        return listings

    async def list_page(self, url: str, year: str = "Unknown") -> List[ScrapedListing]:
        document = await self.fetcher.fetch(url)
        if document is None:
            return []
        return self.parse_listings(document, url, year)

    @staticmethod
    def total_pages(document: BeautifulSoup) -> int:
        total = 1
        for anchor in document.select('a[href*="?page="]'):
            match = PAGE_NUMBER_PATTERN.search(anchor.get("href", ""))
            if match:
                total = max(total, int(match.group(1)))
        return total

    async def list_all(
        self,
        category_url: str,
        max_pages: Optional[int] = None,
        year: str = "Unknown",
    ) -> List[ScrapedListing]:
        """Every listing of a paginated category, up to ``max_pages`` pages.

        Pages after the first are fetched in concurrent batches, so their
        order in the result is not guaranteed.
        """
        first = await self.fetcher.fetch(category_url)
        if first is None:
            return []

        listings = self.parse_listings(first, category_url, year)

        max_pages = max_pages or self.profile.max_pages_per_category
        pages_to_scrape = min(self.total_pages(first), max_pages)
        if pages_to_scrape < 2:
            return listings

        separator = "&" if "?" in category_url else "?"
        page_urls = [
            f"{category_url}{separator}page={page}"
            for page in range(2, pages_to_scrape + 1)
        ]

        pages = await gather_in_batches(
            page_urls,
            lambda page_url: self.list_page(page_url, year),
            batch_size=settings.LISTING_BATCH_SIZE,
            label="Listing page",
        )
        for page in pages:
            listings.extend(page)

        logger.log(
            "CRAWLER",
            f"{self.profile.name}: {len(listings)} listings from {pages_to_scrape} pages of {category_url}",
        )
        return listings
