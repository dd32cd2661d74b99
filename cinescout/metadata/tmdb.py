import asyncio
import random
import re
from typing import List, Optional

import aiohttp

from cinescout.core.exceptions import CatalogError, TransientNetworkError
from cinescout.core.logger import logger
from cinescout.core.models import settings
from cinescout.matching.models import CatalogDetails, ExternalMatchCandidate
from cinescout.metadata.cache import TTLCache

YEAR_PARAM = re.compile(r"^\d{4}$")


class TMDBApi:
    def __init__(
        self,
        session: aiohttp.ClientSession,
        cache: Optional[TTLCache] = None,
        api_key: Optional[str] = None,
        read_access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        image_url: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        self.session = session
        self.cache = cache if cache is not None else TTLCache(settings.TMDB_CACHE_TTL)
        self.api_key = api_key or settings.TMDB_API_KEY
        self.read_access_token = read_access_token or settings.TMDB_READ_ACCESS_TOKEN
        self.base_url = base_url or settings.TMDB_URL
        self.image_url = image_url or settings.TMDB_IMAGE_URL
        self.timeout = timeout or settings.TMDB_TIMEOUT
        self.max_retries = (
            max_retries if max_retries is not None else settings.TMDB_MAX_RETRIES
        )
        self.retry_base_delay = (
            retry_base_delay
            if retry_base_delay is not None
            else settings.TMDB_RETRY_BASE_DELAY
        )
        self.headers = {"Accept": "application/json"}
        if self.read_access_token:
            self.headers["Authorization"] = f"Bearer {self.read_access_token}"

    @property
    def configured(self) -> bool:
        return bool(self.api_key or self.read_access_token)

    async def _send(self, url: str, params: dict) -> dict:
        """One attempt. Transient failures raise TransientNetworkError."""
        if self.api_key and not self.read_access_token:
            params = {**params, "api_key": self.api_key}

        try:
            async with self.session.get(
                url,
                params=params,
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status >= 500:
                    raise TransientNetworkError(url, f"HTTP {response.status}")
                if response.status != 200:
                    raise CatalogError(url, response.status, await response.text())
                return await response.json()
        except asyncio.TimeoutError:
            raise TransientNetworkError(url, "timeout")
        except aiohttp.ClientConnectionError as e:
            raise TransientNetworkError(url, str(e) or e.__class__.__name__)
        except aiohttp.ClientError as e:
            raise CatalogError(url, 0, str(e))

    async def _request(self, path: str, params: dict) -> dict:
        url = f"{self.base_url}{path}"
        attempt = 0

        while True:
            try:
                return await self._send(url, params)
            except TransientNetworkError as e:
                if attempt >= self.max_retries:
                    raise
                attempt += 1
                delay = self.retry_base_delay * 2**attempt + random.uniform(
                    0, self.retry_base_delay
                )
                logger.warning(
                    f"TMDB: Request {path} failed ({e.reason}), retrying in {delay:.1f}s (attempt {attempt}/{self.max_retries})"
                )
                await asyncio.sleep(delay)

    async def search(
        self,
        query: str,
        kind: str = "movie",
        year: Optional[str] = None,
        language: str = "en-US",
    ) -> List[ExternalMatchCandidate]:
        if not self.configured:
            logger.warning("TMDB: API key not configured")
            return []

        cache_key = f"search:{kind}:{query}:{year}:{language}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        params = {"query": query, "language": language, "include_adult": "false"}
        if year and YEAR_PARAM.match(str(year)):
            params["year" if kind == "movie" else "first_air_date_year"] = str(year)

        try:
            data = await self._request(f"/search/{kind}", params)
        except (TransientNetworkError, CatalogError) as e:
            logger.error(f"TMDB: Search failed for {query!r} ({kind}, {language}): {e}")
            return []

        results = [
            ExternalMatchCandidate.from_tmdb(item, kind)
            for item in data.get("results", [])
            if item.get("id")
        ]
        self.cache.set(cache_key, results)
        return results

    async def details(
        self, external_id: int, kind: str = "movie", language: str = "ta"
    ) -> Optional[CatalogDetails]:
        if not self.configured:
            return None

        cache_key = f"details:{kind}:{external_id}:{language}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            data = await self._request(
                f"/{kind}/{external_id}",
                {
                    "language": language,
                    "append_to_response": "credits,videos",
                    "include_video_language": f"{language},en,null",
                },
            )
        except (TransientNetworkError, CatalogError) as e:
            logger.error(f"TMDB: Error getting details for {kind}:{external_id}: {e}")
            return None

        details = CatalogDetails.from_tmdb(data, kind, self.image_url)
        self.cache.set(cache_key, details)
        return details

    async def videos(self, external_id: int, kind: str = "movie") -> List[dict]:
        if not self.configured:
            return []

        try:
            data = await self._request(f"/{kind}/{external_id}/videos", {})
        except (TransientNetworkError, CatalogError) as e:
            logger.error(f"TMDB: Error getting videos for {kind}:{external_id}: {e}")
            return []

        return data.get("results", [])

    async def is_healthy(self) -> bool:
        if not self.configured:
            return False

        try:
            await self._request("/configuration", {})
            return True
        except (TransientNetworkError, CatalogError) as e:
            logger.warning(f"TMDB: Health check failed: {e}")
            return False
