"""
Detail page traversal against an in-memory site.

Every page lives in a FakeFetcher map, so the tests can assert how many
times each URL was fetched.
"""

import asyncio

from fakes import BASE_URL, TEST_PROFILE, FakeFetcher, page

from cinescout.crawler.follower import DownloadLinkFollower
from cinescout.crawler.resolver import DetailResolver
from cinescout.providers.models import ContentKind

DETAIL = f"{BASE_URL}/movie/leo/"
FOLDER_A = f"{BASE_URL}/folder/a/"
FOLDER_B = f"{BASE_URL}/folder/b/"
FOLDER_C = f"{BASE_URL}/folder/c/"
FILE_PAGE = f"{BASE_URL}/file/leo-720p/"
DIRECT = "https://hotshare.link/f/leo-720p.mkv"


def _resolver(fetcher):
    follower = DownloadLinkFollower(fetcher, TEST_PROFILE, max_hops=5)
    return DetailResolver(
        fetcher, TEST_PROFILE, follower, max_depth=6, max_files=100, batch_size=5
    )


def _resolve(pages, url, episode_filter=None, sizes=None):
    fetcher = FakeFetcher(pages, sizes)
    record = asyncio.run(_resolver(fetcher).resolve(url, episode_filter))
    return record, fetcher


def test_cyclic_folders_are_each_fetched_once():
    pages = {
        DETAIL: page(
            ("Season Folder One", FOLDER_A),
            body='<h1>Leo (2023) Tamil Movie</h1><center><img src="/posters/leo.jpg"></center>',
        ),
        FOLDER_A: page(("Quality Folder 720p", FOLDER_B)),
        FOLDER_B: page(("More Links Movie", FOLDER_C)),
        FOLDER_C: page(
            ("Season Folder One", FOLDER_A),
            ("Back", DETAIL),
            ("Leo 720p HD.mkv", FILE_PAGE),
        ),
        FILE_PAGE: page(("Leo 720p HD.mkv", DIRECT)),
    }

    record, fetcher = _resolve(pages, DETAIL, sizes={DIRECT: int(1.5 * 1024**3)})

    for url in (DETAIL, FOLDER_A, FOLDER_B, FOLDER_C):
        assert fetcher.fetch_counts[url] == 1

    assert record.title == "Leo"
    assert record.content_kind == ContentKind.MOVIE
    assert record.poster_url == f"{BASE_URL}/posters/leo.jpg"
    assert record.synopsis == "Watch Leo online in high quality."

    assert len(record.files) == 1
    leo = record.files[0]
    assert leo.landing_url == FILE_PAGE
    assert leo.quality == "720p"
    assert leo.link.direct_url == DIRECT
    assert leo.link.watch_url is None
    assert leo.size_label == "1.50 GB"


def test_same_file_reached_twice_is_one_candidate():
    pages = {
        DETAIL: page(
            ("Leo 720p HD.mkv", FILE_PAGE),
            ("Leo 720p HD Mirror.mkv", FILE_PAGE + "#mirror"),
        ),
    }

    record, _ = _resolve(pages, DETAIL)

    assert [f.landing_url for f in record.files] == [FILE_PAGE]
    assert record.files[0].raw_anchor_text == "Leo 720p HD.mkv"


def test_files_are_sorted_newest_first():
    series = f"{BASE_URL}/series/suzhal/"
    pages = {
        series: page(
            ("Suzhal S01E01 720p.mkv", f"{BASE_URL}/file/e01/"),
            ("Suzhal S01E10 720p.mkv", f"{BASE_URL}/file/e10/"),
            ("Suzhal S01E02 720p.mkv", f"{BASE_URL}/file/e02/"),
            body="<h1>Suzhal</h1>",
        ),
    }

    record, _ = _resolve(pages, series)

    assert [f.episode for f in record.files] == [10, 2, 1]
    assert record.content_kind == ContentKind.SERIES


def test_episode_filter_skips_other_episode_folders():
    detail = f"{BASE_URL}/web-series/vadhandhi/"
    folders = {n: f"{BASE_URL}/ep/{n}/" for n in range(1, 11)}
    pages = {
        detail: page(
            *((f"Episode {n}", url) for n, url in folders.items()),
            body="<h1>Vadhandhi</h1>",
        )
    }
    for n, url in folders.items():
        pages[url] = page((f"Vadhandhi E{n:02d} 720p.mkv", f"{BASE_URL}/file/ep-{n}/"))

    record, fetcher = _resolve(pages, detail, episode_filter=5)

    assert fetcher.fetch_counts[folders[5]] == 1
    assert all(fetcher.fetch_counts[folders[n]] == 0 for n in folders if n != 5)
    assert len(record.files) == 1
    assert record.files[0].episode == 5
    assert record.files[0].season == 1
    assert record.content_kind == ContentKind.WEBSERIES


def test_depth_limit_stops_traversal():
    chain = [f"{BASE_URL}/deep/{n}/" for n in range(5)]
    pages = {
        url: page((f"Folder Movie {n + 1}", chain[n + 1]))
        for n, url in enumerate(chain[:-1])
    }
    pages[chain[-1]] = page(("Leo.mkv", f"{BASE_URL}/file/leo/"))

    fetcher = FakeFetcher(pages)
    follower = DownloadLinkFollower(fetcher, TEST_PROFILE, max_hops=5)
    resolver = DetailResolver(fetcher, TEST_PROFILE, follower, max_depth=2)
    record = asyncio.run(resolver.resolve(chain[0]))

    assert fetcher.fetch_counts[chain[3]] == 0
    assert record.files == []


def test_unreachable_detail_page_resolves_to_nothing():
    record, _ = _resolve({}, DETAIL)
    assert record is None


def test_title_label_wins_over_heading():
    pages = {
        DETAIL: page(
            ("Leo 720p.mkv", FILE_PAGE),
            body=(
                '<div class="line">Movie: <span>Leo</span></div>'
                "<h1>Leo 2023 Tamil Movie Download</h1>"
                '<div class="movie-synopsis">A cafe owner is drawn back into his violent past.</div>'
            ),
        ),
    }

    record, _ = _resolve(pages, DETAIL)

    assert record.title == "Leo"
    assert record.synopsis == "A cafe owner is drawn back into his violent past."
