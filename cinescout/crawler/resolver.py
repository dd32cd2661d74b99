import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from bs4 import BeautifulSoup

from cinescout.core.logger import logger
from cinescout.core.models import settings
from cinescout.crawler.classify import (
    classify_anchor,
    format_size,
    looks_like_series_file,
    natural_sort_key,
    next_quality,
    parse_episode,
    parse_season,
    parse_size_label,
    resolve_file_quality,
)
from cinescout.crawler.fetcher import PageFetcher
from cinescout.crawler.follower import DownloadLinkFollower
from cinescout.matching.normalize import clean_display_title
from cinescout.providers.models import ContentKind, ContentRecord, FileCandidate
from cinescout.providers.profiles import SiteProfile
from cinescout.utils.batching import gather_in_batches
from cinescout.utils.urls import canonicalize, resolve_href

INDEX_NOISE = re.compile(r"^[A-Z]$")
NAVIGATION_TEXTS = ("0-9", "Disclaimer", "Home")
TITLE_LABEL = re.compile(r"^(Movie|Series):", re.IGNORECASE)
MIN_SYNOPSIS_LENGTH = 10


@dataclass
class TraversalContext:
    """Mutable state of one resolve() call. Never shared between calls."""

    episode_filter: Optional[int] = None
    max_depth: int = 6
    visited: Set[str] = field(default_factory=set)
    discovered: Dict[str, FileCandidate] = field(default_factory=dict)


class DetailResolver:
    def __init__(
        self,
        fetcher: PageFetcher,
        profile: SiteProfile,
        follower: DownloadLinkFollower,
        max_depth: Optional[int] = None,
        max_files: Optional[int] = None,
        batch_size: Optional[int] = None,
    ):
        self.fetcher = fetcher
        self.profile = profile
        self.follower = follower
        self.max_depth = max_depth or settings.DETAIL_MAX_DEPTH
        self.max_files = max_files or settings.RESOLVE_MAX_FILES
        self.batch_size = batch_size or settings.RESOLVE_BATCH_SIZE

    async def resolve(
        self, detail_url: str, episode_filter: Optional[int] = None
    ) -> Optional[ContentRecord]:
        root = await self.fetcher.fetch(detail_url)
        if root is None:
            return None

        context = TraversalContext(
            episode_filter=episode_filter, max_depth=self.max_depth
        )
        title = self.page_title(root)

        await self._explore(context, detail_url, "Unknown", 0, document=root)

        files = sorted(
            context.discovered.values(),
            key=lambda candidate: natural_sort_key(candidate.raw_anchor_text),
            reverse=True,
        )
        content_kind = self.detect_kind(detail_url, title, files)

        await gather_in_batches(
            files[: self.max_files],
            self._resolve_file,
            batch_size=self.batch_size,
            label="File resolution",
        )

        if episode_filter is not None:
            files = [f for f in files if f.episode == episode_filter]

        logger.log(
            "CRAWLER",
            f"{self.profile.name}: {len(files)} files for {title!r} "
            f"({len(context.visited)} pages visited)",
        )

        return ContentRecord(
            title=title,
            url=detail_url,
            synopsis=self.page_synopsis(root, title),
            poster_url=self.page_poster(root, detail_url),
            content_kind=content_kind,
            files=files,
        )

    async def _explore(
        self,
        context: TraversalContext,
        url: str,
        quality: str,
        depth: int,
        document: Optional[BeautifulSoup] = None,
    ):
        key = canonicalize(url)
        if depth > context.max_depth or key in context.visited:
            return
        context.visited.add(key)

        if document is None:
            document = await self.fetcher.fetch(url)
            if document is None:
                return

        for text, link_url in self._content_links(document, url, depth, context):
            traits = classify_anchor(text, link_url, depth)

            if (
                context.episode_filter is not None
                and traits.is_episode
                and not traits.is_file
            ):
                episode = parse_episode(text)
                if episode is not None and episode != context.episode_filter:
                    continue

            if traits.is_file:
                landing_url = canonicalize(link_url)
                if landing_url not in context.discovered:
                    context.discovered[landing_url] = FileCandidate(
                        landing_url=landing_url,
                        raw_anchor_text=text,
                        quality=resolve_file_quality(quality, text),
                        season=parse_season(text, url),
                        episode=parse_episode(text),
                        size_label=parse_size_label(text),
                    )
            elif traits.should_follow:
                next_depth = depth if traits.is_pagination else depth + 1
                await self._explore(
                    context, link_url, next_quality(text, traits, quality), next_depth
                )

    def _content_links(
        self,
        document: BeautifulSoup,
        page_url: str,
        depth: int,
        context: TraversalContext,
    ):
        for anchor in document.select(self.profile.content_link_selector):
            raw_href = anchor.get("href")
            if not raw_href or "folder.svg" in raw_href or "index.html" in raw_href:
                continue

            text = anchor.get_text(strip=True)
            if len(text) <= 3 and depth == 0 and "?page=" not in raw_href:
                continue
            if INDEX_NOISE.match(text) or text in NAVIGATION_TEXTS:
                continue

            link_url = resolve_href(page_url, raw_href)
            if not link_url or canonicalize(link_url) in context.visited:
                continue

            yield text, link_url

    async def _resolve_file(self, candidate: FileCandidate):
        candidate.link = await self.follower.follow(candidate.landing_url)

        if candidate.size_label or not candidate.link.direct_url:
            return

        size = await self.fetcher.probe_size(candidate.link.direct_url)
        if size:
            candidate.size_label = format_size(size)

    @staticmethod
    def detect_kind(url: str, title: str, files) -> ContentKind:
        lowered_url = url.lower()
        lowered_title = title.lower()

        if "web-series" in lowered_url or "web series" in lowered_title:
            return ContentKind.WEBSERIES
        if "series" in lowered_url or "series" in lowered_title:
            return ContentKind.SERIES
        if any(looks_like_series_file(f.raw_anchor_text) for f in files):
            return ContentKind.SERIES
        return ContentKind.MOVIE

    def page_title(self, document: BeautifulSoup) -> str:
        for element in document.select(self.profile.title_label_selector):
            text = element.get_text(strip=True)
            if TITLE_LABEL.match(text):
                span = element.select_one("span")
                label = span.get_text(strip=True) if span else TITLE_LABEL.sub("", text)
                if label.strip():
                    return label.strip()

        heading = document.select_one("h1") or document.select_one("title")
        return clean_display_title(heading.get_text() if heading else "")

    def page_synopsis(self, document: BeautifulSoup, title: str) -> str:
        element = document.select_one(self.profile.synopsis_selector)
        synopsis = element.get_text(strip=True) if element else ""
        if len(synopsis) < MIN_SYNOPSIS_LENGTH:
            return f"Watch {title} online in high quality."
        return synopsis

    def page_poster(self, document: BeautifulSoup, page_url: str) -> Optional[str]:
        candidates = [
            meta.get("content")
            for meta in document.select(
                'meta[property="og:image"], meta[name="twitter:image"]'
            )
        ]
        for selector in self.profile.poster_selectors:
            for element in document.select(selector):
                candidates.append(element.get("src") or element.get("href"))

        for candidate in candidates:
            if not candidate:
                continue
            if any(marker in candidate for marker in self.profile.poster_rejections):
                continue
            return resolve_href(page_url, candidate)
        return None
