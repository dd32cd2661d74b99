from urllib.parse import urldefrag, urljoin, urlparse

MEDIA_EXTENSIONS = (".mp4", ".mkv", ".avi", ".webm")
_REJECTED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")


def resolve_href(base_url: str, href: str | None) -> str | None:
    if not href:
        return None

    href = href.strip()
    if not href or href == "#" or href.lower().startswith(_REJECTED_SCHEMES):
        return None

    resolved = urljoin(base_url, href)
    if urlparse(resolved).scheme not in ("http", "https"):
        return None
    return resolved


def canonicalize(url: str) -> str:
    return urldefrag(url)[0]


def origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def is_media_url(url: str | None) -> bool:
    if not url:
        return False
    return urlparse(url).path.lower().endswith(MEDIA_EXTENSIONS)


def host_matches(url: str, markers) -> bool:
    netloc = urlparse(url).netloc.lower()
    return any(marker in netloc for marker in markers)


def is_external(url: str, base_url: str) -> bool:
    return urlparse(url).netloc.lower() != urlparse(base_url).netloc.lower()
