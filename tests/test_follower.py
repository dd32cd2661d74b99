import asyncio

from fakes import BASE_URL, TEST_PROFILE, FakeFetcher, page

from cinescout.crawler.follower import DownloadLinkFollower


def _follow(pages, url, max_hops=5):
    fetcher = FakeFetcher(pages)
    follower = DownloadLinkFollower(fetcher, TEST_PROFILE, max_hops=max_hops)
    return asyncio.run(follower.follow(url)), fetcher


def test_media_link_is_terminal():
    landing = f"{BASE_URL}/file/leo/"
    pages = {landing: page(("Leo 720p.mp4", "https://cdn.test/leo.mp4"))}

    link, _ = _follow(pages, landing)

    assert link.direct_url == "https://cdn.test/leo.mp4"
    assert link.watch_url is None
    assert link.stream_url == "https://cdn.test/leo.mp4"


def test_relay_hop_then_stream_source_replaces_direct_url():
    landing = f"{BASE_URL}/file/jailer/"
    download = f"{BASE_URL}/download/jailer/"
    player = "https://onestream.watch/e/jailer"
    pages = {
        landing: page(("Download Now", download)),
        download: page(
            ("Download Server 1", "https://hotshare.link/f/jailer"),
            ("Watch Online", player),
        ),
        player: '<html><body><video><source src="/media/abc.mp4"></video></body></html>',
    }

    link, fetcher = _follow(pages, landing)

    assert fetcher.fetch_counts[download] == 1
    assert link.watch_url == player
    assert link.stream_url == "https://onestream.watch/media/abc.mp4"
    assert link.direct_url == "https://onestream.watch/media/abc.mp4"


def test_external_download_server_link_is_terminal():
    landing = f"{BASE_URL}/file/maaveeran/"
    pages = {landing: page(("Download Server 2", "https://files.example/maaveeran"))}

    link, _ = _follow(pages, landing)

    assert link.direct_url == "https://files.example/maaveeran"
    assert link.stream_url is None


def test_hop_limit():
    hops = [f"{BASE_URL}/hop/{n}/" for n in range(6)]
    pages = {
        url: page(("Download Now", hops[n + 1])) for n, url in enumerate(hops[:-1])
    }

    link, fetcher = _follow(pages, hops[0], max_hops=3)

    assert link.direct_url is None
    assert fetcher.fetch_counts[hops[2]] == 1
    assert fetcher.fetch_counts[hops[3]] == 0


def test_dead_landing_page_gives_empty_link():
    link, _ = _follow({}, f"{BASE_URL}/file/gone/")
    assert link.direct_url is None
    assert link.watch_url is None


def test_pixeldrain_page_is_rewritten_to_api():
    follower = DownloadLinkFollower(FakeFetcher(), TEST_PROFILE)
    stream = asyncio.run(follower.resolve_stream("https://pixeldrain.com/u/abc123"))
    assert stream == "https://pixeldrain.com/api/file/abc123"


def test_script_sources_from_analytics_hosts_are_ignored():
    player = "https://player.test/e/kanguva"
    pages = {
        player: (
            "<html><body>"
            '<script>track({url: "https://www.google-analytics.com/collect"});</script>'
            "<script>player.setup({file: 'https://cdn.test/kanguva.m3u8'});</script>"
            "</body></html>"
        )
    }
    follower = DownloadLinkFollower(FakeFetcher(pages), TEST_PROFILE)

    assert asyncio.run(follower.resolve_stream(player)) == "https://cdn.test/kanguva.m3u8"


def test_iframe_fallback_and_unreachable_player():
    player = "https://player.test/e/amaran"
    pages = {player: '<html><body><iframe src="/embed/amaran"></iframe></body></html>'}
    follower = DownloadLinkFollower(FakeFetcher(pages), TEST_PROFILE)

    assert asyncio.run(follower.resolve_stream(player)) == "https://player.test/embed/amaran"
    assert asyncio.run(follower.resolve_stream("https://player.test/e/missing")) is None


def test_relative_download_server_on_relay_page_is_followed():
    landing = f"{BASE_URL}/file/leo/"
    step_one = "https://relay.example/step/1"
    step_two = "https://relay.example/step/2"
    pages = {
        landing: page(("Download Now", step_one)),
        step_one: page(("Download Server 1", "/step/2")),
        step_two: page(("Leo.mkv", "https://cdn.example/leo.mkv")),
    }

    link, fetcher = _follow(pages, landing)

    assert fetcher.fetch_counts[step_two] == 1
    assert link.direct_url == "https://cdn.example/leo.mkv"


def test_direct_link_without_watch_page_fills_stream():
    landing = f"{BASE_URL}/file/amaran/"
    pages = {landing: page(("Amaran 1080p.mkv", "https://cdn.test/amaran.mkv"))}

    link, fetcher = _follow(pages, landing)

    assert link.watch_url is None
    assert link.stream_url == "https://cdn.test/amaran.mkv"
    assert fetcher.fetch_counts["https://cdn.test/amaran.mkv"] == 0


def test_direct_pixeldrain_link_streams_from_api():
    landing = f"{BASE_URL}/file/kanguva/"
    pages = {landing: page(("Download Server 1", "https://pixeldrain.com/u/kng42"))}

    link, _ = _follow(pages, landing)

    assert link.direct_url == "https://pixeldrain.com/u/kng42"
    assert link.stream_url == "https://pixeldrain.com/api/file/kng42"
