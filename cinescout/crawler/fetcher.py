import asyncio
from typing import Dict, Optional

import aiohttp
from bs4 import BeautifulSoup

from cinescout.core.exceptions import AccessDenied, FetchFailure
from cinescout.core.logger import logger
from cinescout.core.models import settings

BLOCKED_BODY = "Not Allowed"


class PageFetcher:
    """GET a page with a fixed header profile and parse it into a document.

    No retries here. Callers treat every failure as "skip this node".
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ):
        self.session = session
        self.headers = headers or {}
        self.timeout = timeout or settings.PAGE_FETCH_TIMEOUT

    async def fetch_text(
        self,
        url: str,
        timeout: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> str:
        try:
            async with self.session.get(
                url,
                headers={**self.headers, **(headers or {})},
                timeout=aiohttp.ClientTimeout(total=timeout or self.timeout),
            ) as response:
                if response.status >= 400:
                    raise FetchFailure(url, f"HTTP {response.status}")
                return await response.text(errors="replace")
        except asyncio.TimeoutError:
            raise FetchFailure(url, "timeout")
        except aiohttp.ClientError as e:
            raise FetchFailure(url, str(e) or e.__class__.__name__)

    async def fetch_document(
        self,
        url: str,
        timeout: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> BeautifulSoup:
        text = await self.fetch_text(url, timeout=timeout, headers=headers)
        document = BeautifulSoup(text, "html.parser")

        if document.get_text().strip() == BLOCKED_BODY:
            raise AccessDenied(url)

        return document

    async def fetch(
        self,
        url: str,
        timeout: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[BeautifulSoup]:
        try:
            return await self.fetch_document(url, timeout=timeout, headers=headers)
        except AccessDenied as e:
            logger.warning(f"Access blocked for: {e.url}")
        except FetchFailure as e:
            logger.warning(e.message)
        return None

    async def probe_size(self, url: str) -> Optional[int]:
        """Content-Length from a HEAD request, or None."""
        try:
            async with self.session.head(
                url,
                headers=self.headers,
                allow_redirects=True,
                timeout=aiohttp.ClientTimeout(total=settings.SIZE_PROBE_TIMEOUT),
            ) as response:
                if response.status >= 400:
                    return None
                length = response.headers.get("Content-Length")
                return int(length) if length and length.isdigit() else None
        except (aiohttp.ClientError, asyncio.TimeoutError):
            return None
