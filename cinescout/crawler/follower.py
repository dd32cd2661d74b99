import re
from typing import Iterator, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from cinescout.core.exceptions import FetchFailure
from cinescout.core.logger import logger
from cinescout.core.models import settings
from cinescout.crawler.fetcher import PageFetcher
from cinescout.providers.models import ResolvedLink
from cinescout.providers.profiles import SiteProfile
from cinescout.utils.urls import (
    host_matches,
    is_external,
    is_media_url,
    origin,
    resolve_href,
)

TERMINAL_TEXT_PATTERN = re.compile(r"Download Server|Go To", re.IGNORECASE)
WATCH_TEXT_PATTERN = re.compile(r"Watch Online", re.IGNORECASE)
NEXT_HOP_TEXTS = (
    "Download Server 1",
    "Download Server",
    "Download Now",
    "Go To Download Page",
)
STREAM_SCRIPT_PATTERNS = tuple(
    re.compile(rf"{key}:\s*[\"'](.+?)[\"']")
    for key in ("source", "file", "mp4", "url", "link")
)
REJECTED_STREAM_HOSTS = ("analytics", "ads", "doubleclick", "googletagmanager")
PIXELDRAIN_PAGE = "pixeldrain.com/u/"
PIXELDRAIN_API = "pixeldrain.com/api/file/"
ABSOLUTE_HREF = re.compile(r"^https?://", re.IGNORECASE)


def iter_anchors(document: BeautifulSoup, base_url: str) -> Iterator[Tuple[str, str]]:
    """(text, absolute href) for each usable anchor, in document order."""
    for anchor in document.select("a[href]"):
        href = resolve_href(base_url, anchor.get("href"))
        if href:
            yield anchor.get_text(strip=True), href


class DownloadLinkFollower:
    def __init__(
        self,
        fetcher: PageFetcher,
        profile: SiteProfile,
        max_hops: Optional[int] = None,
    ):
        self.fetcher = fetcher
        self.profile = profile
        self.max_hops = max_hops or settings.FOLLOW_MAX_HOPS

    def _is_external_server(self, text: str, raw_href: str) -> bool:
        # relative hrefs stay on the relay page's own host, so they are next hops
        return bool(
            TERMINAL_TEXT_PATTERN.search(text)
            and ABSOLUTE_HREF.match(raw_href.strip())
            and is_external(raw_href.strip(), self.profile.base_url)
        )

    def _find_terminal(self, document: BeautifulSoup, page_url: str) -> Optional[str]:
        for anchor in document.select("a[href]"):
            raw_href = anchor.get("href")
            href = resolve_href(page_url, raw_href)
            if not href:
                continue
            if (
                is_media_url(href)
                or host_matches(href, self.profile.relay_hosts)
                or self._is_external_server(anchor.get_text(strip=True), raw_href)
            ):
                return href
        return None

    def _find_watch(self, document: BeautifulSoup, page_url: str) -> Optional[str]:
        return next(
            (
                href
                for text, href in iter_anchors(document, page_url)
                if WATCH_TEXT_PATTERN.search(text)
                or host_matches(href, self.profile.watch_hosts)
            ),
            None,
        )

    def _find_next_hop(self, document: BeautifulSoup, page_url: str) -> Optional[str]:
        anchors = list(iter_anchors(document, page_url))

        for label in NEXT_HOP_TEXTS:
            for text, href in anchors:
                if label in text:
                    return href

        button = document.select_one("a.dwnLink[href]")
        if button:
            href = resolve_href(page_url, button.get("href"))
            if href:
                return href

        return next((href for text, href in anchors if "Download" in text), None)

    async def follow(self, landing_url: str) -> ResolvedLink:
        result = ResolvedLink()
        current_url = landing_url

        for _ in range(self.max_hops):
            document = await self.fetcher.fetch(current_url)
            if document is None:
                break

            terminal = self._find_terminal(document, current_url)
            if terminal:
                result.direct_url = terminal
                if host_matches(terminal, self.profile.watch_hosts):
                    result.watch_url = terminal
                else:
                    result.watch_url = self._find_watch(document, current_url)
                break

            next_url = self._find_next_hop(document, current_url)
            if not next_url or next_url == current_url:
                break

            logger.debug(f"Redirecting to: {next_url} (from {current_url})")
            current_url = next_url

        if result.watch_url:
            result.stream_url = await self.resolve_stream(result.watch_url)

        if not result.stream_url and result.direct_url:
            result.stream_url = await self.resolve_stream(result.direct_url)

        if result.stream_url and is_media_url(result.stream_url):
            result.direct_url = result.stream_url

        return result

    async def resolve_stream(self, watch_url: str) -> Optional[str]:
        """Find the media source behind a player page."""
        if is_media_url(watch_url):
            return watch_url

        if PIXELDRAIN_PAGE in watch_url:
            return watch_url.replace(PIXELDRAIN_PAGE, PIXELDRAIN_API)

        try:
            document = await self.fetcher.fetch_document(
                watch_url,
                timeout=settings.STREAM_FETCH_TIMEOUT,
                headers={"Referer": origin(watch_url)},
            )
        except FetchFailure as e:
            logger.warning(f"Failed to get stream source for {watch_url}: {e.reason}")
            return None

        source = self._extract_source(document)
        if not source or source.startswith("blob:"):
            return source

        return resolve_href(origin(watch_url) + "/", source)

    def _extract_source(self, document: BeautifulSoup) -> Optional[str]:
        for selector in ("video source[src]", "video[src]"):
            element = document.select_one(selector)
            if element:
                return element.get("src")

        for script in document.find_all("script"):
            body = script.string or script.get_text()
            if not body:
                continue
            for pattern in STREAM_SCRIPT_PATTERNS:
                match = pattern.search(body)
                if match and not self._is_rejected_stream(match.group(1)):
                    return match.group(1)

        for selector in ("iframe[src]", "embed[src]"):
            element = document.select_one(selector)
            if element:
                return element.get("src")

        return None

    @staticmethod
    def _is_rejected_stream(candidate: str) -> bool:
        netloc = urlparse(candidate).netloc.lower()
        return any(marker in netloc for marker in REJECTED_STREAM_HOSTS)
