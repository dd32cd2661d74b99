from dataclasses import dataclass, field
from typing import Dict, Tuple

from cinescout.core.models import DEFAULT_USER_AGENT, settings

DEFAULT_HEADERS = {
    "User-Agent": DEFAULT_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "max-age=0",
}

# Hosts whose links are final file or player pages.
RELAY_HOSTS = (
    "hotshare.link",
    "uptobox.com",
    "1fichier.com",
    "pixeldrain.com",
    "biggshare.xyz",
    "cdnserver",
    "onestream.watch",
    "gofile.io",
    "drive.google.com",
    "mega.nz",
    "mediafire.com",
    "vidfiles.",
)

WATCH_HOSTS = ("onestream.watch",)


@dataclass(frozen=True)
class SiteProfile:
    """Declarative description of one scraped site: URLs, headers and selectors."""

    id: str
    name: str
    base_url: str
    categories: Dict[str, str]
    supports: Tuple[str, ...] = ("movie",)
    languages: Tuple[str, ...] = ("ta",)
    headers: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    request_timeout: int = 10
    max_pages_per_category: int = 15

    listing_block_selector: str = ".f"
    listing_title_selectors: Tuple[str, ...] = ("b", "strong")
    listing_link_selectors: Tuple[str, ...] = ("a",)
    listing_quality_selector: str = 'font[color="blue"]'
    listing_exclusions: Tuple[str, ...] = ("Tamil 20", "Subtitles", "Page", "தமிழ்")
    poster_exclusions: Tuple[str, ...] = ("folder", "dir.gif")

    content_link_selector: str = ".f a, .folder a, a.coral, .line a, .pagination a"
    title_label_selector: str = ".line, b, strong"
    synopsis_selector: str = ".movie-synopsis"
    poster_selectors: Tuple[str, ...] = (
        'link[rel="image_src"]',
        "center img",
        ".line img",
        ".f img",
        'img[src*=".jp"]',
    )
    poster_rejections: Tuple[str, ...] = (
        "folder.svg",
        "folder.png",
        "loader",
        "icon",
        "logo",
    )

    relay_hosts: Tuple[str, ...] = RELAY_HOSTS
    watch_hosts: Tuple[str, ...] = WATCH_HOSTS

    def category_url(self, name: str, **params) -> str:
        return f"{self.base_url}{self.categories[name].format(**params)}"

    def request_headers(self) -> Dict[str, str]:
        return {**self.headers, "Referer": self.base_url}


MOVIESDA = SiteProfile(
    id="moviesda",
    name="Moviesda",
    base_url=settings.MOVIESDA_URL,
    categories={
        "movie": "/tamil-movies/",
        "webseries": "/tamil-web-series-download/",
        "latest": "/tamil-latest-updates/",
        "year": "/tamil-{year}-movies/",
        "letter": "/tamil-movies/{letter}/",
    },
    supports=("movie", "tv", "webseries"),
    languages=("ta",),
    max_pages_per_category=15,
    poster_selectors=(
        'link[rel="image_src"]',
        ".movie-info-container img",
        ".header-poster img",
        "center img",
        ".line img",
        ".f img",
        'img[src*=".jp"]',
    ),
)

ISAIDUB = SiteProfile(
    id="isaidub",
    name="isaiDub",
    base_url=settings.ISAIDUB_URL,
    categories={
        "movie": "/movie/",
        "dubbed": "/tamil-dubbed-movies/",
        "latest": "/",
        "year": "/tamil-dubbed-{year}/",
    },
    supports=("movie", "tv"),
    languages=("ta_dubbed",),
    max_pages_per_category=10,
    listing_title_selectors=("strong", "b"),
    listing_link_selectors=('a[href*="/movie/"]', "a"),
    title_label_selector=".line, b, strong, .movie-info li",
)
