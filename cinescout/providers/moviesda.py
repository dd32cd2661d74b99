import datetime
import re
from typing import List

from cinescout.core.logger import logger
from cinescout.matching.normalize import clean_display_title
from cinescout.providers.base import BaseProvider, fuzzy_match
from cinescout.providers.models import ContentKind, ScrapedListing
from cinescout.providers.profiles import MOVIESDA
from cinescout.utils.urls import canonicalize, resolve_href

LATEST_LIMIT = 15
SEARCH_LIMIT = 10
WEB_SERIES_LIMIT = 20
LETTER_PAGES = 25
YEAR_PAGES = 15
WEB_SERIES_FOLDERS = 6
OTHER_LANGUAGES = ("telugu", "hindi", "malayalam", "kannada", "english")
YEAR_CATEGORY = re.compile(r"Tamil (20[2-3]\d) Movies")
LATEST_YEAR_PATTERNS = (
    re.compile(r"\((\d{4})\)"),
    re.compile(r"\s(\d{4})\s"),
)
URL_YEAR = re.compile(r"(\d{4})")
WEB_SERIES_YEAR = re.compile(r"202[3-7]")


class MoviesdaScraper(BaseProvider):
    def __init__(self, session, fetcher=None, profile=MOVIESDA):
        super().__init__(session, profile, fetcher)

    def recent_years(self):
        current = datetime.date.today().year
        return current - 2, current + 1

    async def list_latest(self) -> List[ScrapedListing]:
        url = self.profile.category_url("latest")
        document = await self.fetcher.fetch(url)
        if document is None:
            return []

        listings = []
        for block in document.select(self.profile.listing_block_selector):
            heading = block.select_one("b, strong")
            title = heading.get_text(strip=True) if heading else ""
            links = [
                (anchor.get_text(strip=True), resolve_href(url, anchor.get("href")))
                for anchor in block.select("a[href]")
            ]
            links = [(lang, href) for lang, href in links if href]

            if not links or not title:
                continue
            if "check out our" in title.lower() or len(title) < 3:
                continue

            image = block.select_one("img[src]")
            poster = resolve_href(url, image.get("src")) if image else None
            quality = block.select_one(self.profile.listing_quality_selector)

            for lang, href in links:
                suffix = f" [{lang}]" if len(links) > 1 else ""
                year_match = next(
                    (m for m in (p.search(title) for p in LATEST_YEAR_PATTERNS) if m),
                    None,
                ) or URL_YEAR.search(href)

                listings.append(
                    ScrapedListing(
                        canonical_url=canonicalize(href),
                        title=clean_display_title(title) + suffix,
                        year=year_match.group(1) if year_match else "Unknown",
                        poster_url=poster,
                        quality=(quality.get_text(strip=True) if quality else "")
                        or "DVD/HD",
                        provider_id=self.id,
                        content_kind=ContentKind.WEBSERIES
                        if "web-series" in href
                        else ContentKind.UNKNOWN,
                    )
                )

        oldest, newest = self.recent_years()
        recent = []
        for listing in listings:
            lowered = listing.title.lower()
            if "tamil" not in lowered and any(lang in lowered for lang in OTHER_LANGUAGES):
                continue
            if listing.year != "Unknown" and not oldest <= int(listing.year) <= newest:
                continue
            recent.append(listing)

        return recent[:LATEST_LIMIT]

    async def year_categories(self):
        document = await self.fetcher.fetch(self.profile.base_url)
        if document is None:
            return []

        oldest, _ = self.recent_years()
        categories = []
        for anchor in document.select(".f a[href]"):
            match = YEAR_CATEGORY.search(anchor.get_text())
            if match and int(match.group(1)) >= oldest:
                href = resolve_href(self.profile.base_url, anchor.get("href"))
                if href:
                    categories.append((href, match.group(1)))
        return categories

    async def search(self, query: str) -> List[ScrapedListing]:
        candidates = []

        first_char = query.strip().lower()[:1]
        if first_char.isascii() and first_char.isalpha():
            candidates.extend(
                await self.listings.list_all(
                    self.profile.category_url("letter", letter=first_char),
                    LETTER_PAGES,
                )
            )

        for category_url, year in await self.year_categories():
            candidates.extend(
                await self.listings.list_all(category_url, YEAR_PAGES, year)
            )

        unique = {}
        for listing in candidates:
            if fuzzy_match(listing.title, query):
                unique[listing.canonical_url] = listing

        logger.log(
            "PROVIDER",
            f"{self.name}: {len(unique)} matches for {query!r} among {len(candidates)} listings",
        )
        return list(unique.values())[:SEARCH_LIMIT]

    async def list_web_series(self, query: str = "") -> List[ScrapedListing]:
        url = self.profile.category_url("webseries")
        document = await self.fetcher.fetch(url)
        if document is None:
            return []

        folders = []
        for anchor in document.select(".f a[href]"):
            text = anchor.get_text()
            lowered = text.lower()
            if (
                WEB_SERIES_YEAR.search(text)
                or ("tamil" in lowered and "series" in lowered)
                or (query and fuzzy_match(text, query))
            ):
                href = resolve_href(url, anchor.get("href"))
                year = URL_YEAR.search(text)
                if href:
                    folders.append((href, year.group(1) if year else "Unknown"))

        results = {}
        for folder_url, year in folders[:WEB_SERIES_FOLDERS]:
            for listing in await self.listings.list_all(folder_url, 1, year):
                if query and not fuzzy_match(listing.title, query):
                    continue
                results[listing.canonical_url] = listing.model_copy(
                    update={
                        "title": clean_display_title(listing.title),
                        "content_kind": ContentKind.WEBSERIES,
                    }
                )

        return list(results.values())[:WEB_SERIES_LIMIT]
