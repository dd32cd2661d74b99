import asyncio
from typing import Optional

import aiohttp

from cinescout.core.logger import logger
from cinescout.core.models import settings

SESSION_HEADERS = {"Accept-Language": "en-US,en;q=0.5"}


def build_connector() -> aiohttp.TCPConnector:
    return aiohttp.TCPConnector(
        limit=settings.HTTP_CLIENT_LIMIT or 100,
        limit_per_host=settings.HTTP_CLIENT_LIMIT_PER_HOST or 20,
        enable_cleanup_closed=True,
    )


class HttpClientManager:
    """One aiohttp session shared by the providers and the catalog client.

    Providers override headers per request with their own profile, so the
    session only carries the User-Agent and a language preference.
    """

    def __init__(self):
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def get_session(self) -> aiohttp.ClientSession:
        if self.is_open:
            return self._session

        async with self._lock:
            if not self.is_open:
                self._session = aiohttp.ClientSession(
                    connector=build_connector(),
                    timeout=aiohttp.ClientTimeout(
                        total=settings.HTTP_CLIENT_TIMEOUT_TOTAL
                    ),
                    headers={"User-Agent": settings.USER_AGENT, **SESSION_HEADERS},
                )
                logger.debug("HTTP session opened")
            return self._session

    async def close(self) -> None:
        async with self._lock:
            if self.is_open:
                await self._session.close()
                logger.debug("HTTP session closed")
            self._session = None

    async def __aenter__(self) -> aiohttp.ClientSession:
        return await self.get_session()

    async def __aexit__(self, *exc_info):
        await self.close()


http_client_manager = HttpClientManager()
