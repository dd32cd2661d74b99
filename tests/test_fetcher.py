import asyncio

import pytest

from fakes import FakeFetcher

from cinescout.core.exceptions import AccessDenied, FetchFailure
from cinescout.crawler.fetcher import PageFetcher


class FakeResponse:
    def __init__(self, status, body="", headers=None):
        self.status = status
        self.body = body
        self.headers = headers or {}

    async def text(self, errors="strict"):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.requests = []

    def get(self, url, headers=None, timeout=None):
        self.requests.append(("GET", url, headers))
        return self.response

    def head(self, url, headers=None, allow_redirects=True, timeout=None):
        self.requests.append(("HEAD", url, headers))
        return self.response


def test_fetch_text_merges_profile_and_request_headers():
    session = FakeSession(FakeResponse(200, "<html>ok</html>"))
    fetcher = PageFetcher(session, headers={"User-Agent": "test", "Referer": "a"})

    body = asyncio.run(
        fetcher.fetch_text("https://site.test/", headers={"Referer": "b"})
    )

    assert body == "<html>ok</html>"
    assert session.requests == [
        ("GET", "https://site.test/", {"User-Agent": "test", "Referer": "b"})
    ]


def test_http_errors_raise_fetch_failure():
    fetcher = PageFetcher(FakeSession(FakeResponse(503)))

    with pytest.raises(FetchFailure) as excinfo:
        asyncio.run(fetcher.fetch_text("https://site.test/down/"))

    assert excinfo.value.reason == "HTTP 503"
    assert asyncio.run(fetcher.fetch("https://site.test/down/")) is None


def test_not_allowed_page_is_access_denied():
    fetcher = FakeFetcher({"https://site.test/": "<html><body> Not Allowed </body></html>"})

    with pytest.raises(AccessDenied):
        asyncio.run(fetcher.fetch_document("https://site.test/"))

    assert asyncio.run(fetcher.fetch("https://site.test/")) is None


def test_probe_size_reads_content_length():
    found = PageFetcher(FakeSession(FakeResponse(200, headers={"Content-Length": "2048"})))
    missing = PageFetcher(FakeSession(FakeResponse(404)))

    assert asyncio.run(found.probe_size("https://cdn.test/leo.mkv")) == 2048
    assert asyncio.run(missing.probe_size("https://cdn.test/gone.mkv")) is None
