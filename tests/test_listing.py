import asyncio

from bs4 import BeautifulSoup
from fakes import BASE_URL, TEST_PROFILE, FakeFetcher

from cinescout.crawler.listing import ListingExtractor, guess_kind
from cinescout.providers.models import ContentKind

CATEGORY = f"{BASE_URL}/movies/"


def _block(title, href, poster=None, quality=None):
    image = f'<img src="{poster}">' if poster else ""
    badge = f'<font color="blue">{quality}</font>' if quality else ""
    return f'<div class="f">{image}<a href="{href}"><b>{title}</b></a>{badge}</div>'


def _category_page(*blocks, last_page=1):
    pagination = "".join(
        f'<a href="{CATEGORY}?page={n}">{n}</a>' for n in range(2, last_page + 1)
    )
    return f'<html><body>{"".join(blocks)}<div class="pagination">{pagination}</div></body></html>'


def test_parse_listings_reads_title_link_poster_and_quality():
    document = BeautifulSoup(
        _category_page(
            _block("Leo (2023)", "/leo-2023-movie/", poster="/p/leo.jpg", quality="HD"),
            _block("Amaran (2024)", "/amaran-2024-movie/#top", poster="/img/folder.png"),
            _block("Tamil 2024 Movies", "/tamil-2024-movies/"),
        ),
        "html.parser",
    )

    listings = ListingExtractor(FakeFetcher(), TEST_PROFILE).parse_listings(
        document, CATEGORY, "2023"
    )

    assert [listing.title for listing in listings] == ["Leo (2023)", "Amaran (2024)"]
    leo, amaran = listings
    assert leo.canonical_url == f"{BASE_URL}/leo-2023-movie/"
    assert leo.poster_url == f"{BASE_URL}/p/leo.jpg"
    assert leo.quality == "HD"
    assert leo.year == "2023"
    assert leo.provider_id == "testsite"
    assert amaran.canonical_url == f"{BASE_URL}/amaran-2024-movie/"
    assert amaran.poster_url is None
    assert amaran.quality == "DVD/HD"


def test_list_all_follows_pagination_up_to_the_page_limit():
    fetcher = FakeFetcher(
        {
            CATEGORY: _category_page(_block("Leo (2023)", "/leo/"), last_page=3),
            f"{CATEGORY}?page=2": _category_page(_block("Jailer (2023)", "/jailer/")),
            f"{CATEGORY}?page=3": _category_page(_block("Kanguva (2024)", "/kanguva/")),
        }
    )
    extractor = ListingExtractor(fetcher, TEST_PROFILE)

    everything = asyncio.run(extractor.list_all(CATEGORY))
    assert sorted(listing.title for listing in everything) == [
        "Jailer (2023)",
        "Kanguva (2024)",
        "Leo (2023)",
    ]

    fetcher.fetch_counts.clear()
    limited = asyncio.run(extractor.list_all(CATEGORY, max_pages=2))
    assert len(limited) == 2
    assert fetcher.fetch_counts[f"{CATEGORY}?page=3"] == 0


def test_failed_pages_do_not_sink_the_category():
    fetcher = FakeFetcher(
        {CATEGORY: _category_page(_block("Leo (2023)", "/leo/"), last_page=3)}
    )

    listings = asyncio.run(ListingExtractor(fetcher, TEST_PROFILE).list_all(CATEGORY))

    assert [listing.title for listing in listings] == ["Leo (2023)"]


def test_unreachable_category_is_empty():
    assert asyncio.run(ListingExtractor(FakeFetcher(), TEST_PROFILE).list_all(CATEGORY)) == []


def test_guess_kind():
    assert guess_kind(f"{BASE_URL}/tamil-web-series-download/vadhandhi/") == ContentKind.WEBSERIES
    assert guess_kind(f"{BASE_URL}/leo-2023-movie/") == ContentKind.UNKNOWN
