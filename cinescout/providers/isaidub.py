import datetime
import re
from typing import List

from cinescout.matching.normalize import clean_display_title
from cinescout.providers.base import BaseProvider, fuzzy_match
from cinescout.providers.models import ScrapedListing
from cinescout.providers.profiles import ISAIDUB
from cinescout.utils.urls import canonicalize, resolve_href

CATEGORY_LIMIT = 2
YEAR_PATTERNS = (re.compile(r"\((\d{4})\)"), re.compile(r"\s(\d{4})\b"))
ANY_YEAR = re.compile(r"\d{4}")
EXCLUDED_TITLE_MARKERS = ("Collection", "Updates")


class IsaidubScraper(BaseProvider):
    def __init__(self, session, fetcher=None, profile=ISAIDUB):
        super().__init__(session, profile, fetcher)

    def target_years(self):
        current = datetime.date.today().year
        return [str(year) for year in range(current, current - 3, -1)]

    async def list_latest(self) -> List[ScrapedListing]:
        url = self.profile.base_url
        document = await self.fetcher.fetch(url)
        if document is None:
            return []

        heading = next(
            (
                line
                for line in document.select(".line")
                if "Latest Updates" in line.get_text()
            ),
            None,
        )
        blocks = (
            heading.find_all_next(class_="f")
            if heading
            else document.select(self.profile.listing_block_selector)
        )

        listings = []
        for block in blocks:
            link = block.select_one('a[href*="/movie/"]')
            if not link:
                continue
            href = resolve_href(url, link.get("href"))
            if not href:
                continue

            title_element = block.select_one("strong") or block.select_one("b")
            title = (title_element or link).get_text(strip=True)
            if "download now" in title.lower() or len(title) < 3:
                title = re.sub(r"Download Now", "", block.get_text("\n"), flags=re.I)
                title = title.strip().split("\n")[0].strip()

            is_tamil = "tamil" in title.lower() or "tamil" in href.lower()
            if (
                not title
                or not is_tamil
                or "download" in title.lower()
                or any(marker in title for marker in EXCLUDED_TITLE_MARKERS)
            ):
                continue

            image = block.select_one("img[src]")
            poster = None
            if image and not any(
                marker in image.get("src") for marker in self.profile.poster_exclusions
            ):
                poster = resolve_href(url, image.get("src"))

            year_match = next(
                (m for m in (p.search(title) for p in YEAR_PATTERNS) if m), None
            )
            listings.append(
                ScrapedListing(
                    canonical_url=canonicalize(href),
                    title=clean_display_title(title),
                    year=year_match.group(1) if year_match else "Unknown",
                    poster_url=poster,
                    provider_id=self.id,
                )
            )

        return listings

    async def search(self, query: str) -> List[ScrapedListing]:
        document = await self.fetcher.fetch(self.profile.base_url)
        if document is None:
            return []

        years = self.target_years()
        categories = []
        for anchor in document.select("a[href]"):
            text = anchor.get_text()
            href = anchor.get("href")
            lowered = f"{text} {href}".lower()
            if "tamil" not in lowered and "dubbed" not in lowered:
                continue
            if any(year in text for year in years) or fuzzy_match(text, query):
                category_url = resolve_href(self.profile.base_url, href)
                year = ANY_YEAR.search(text)
                if category_url:
                    categories.append((category_url, year.group(0) if year else "Unknown"))

        results = {}
        for category_url, year in categories[:CATEGORY_LIMIT]:
            for listing in await self.listings.list_all(category_url, 1, year):
                if fuzzy_match(listing.title, query):
                    results[listing.canonical_url] = listing.model_copy(
                        update={"title": clean_display_title(listing.title)}
                    )

        return list(results.values())
