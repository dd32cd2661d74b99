import re
from typing import Optional, Tuple

DISPLAY_REMOVALS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"Tamil Movie Download",
        r"Tamil Movie",
        r"Tamil Dubbed",
        r"Tamil Web Series",
        r"Web Series",
        r"\bLatest\b",
        r"\bDownload\b",
        r"\(\s*(?:19|20)\d{2}\s*\)",
        r"\b(?:19|20)\d{2}\b",
    )
)

COMPARISON_REMOVALS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\(.*?\)",
        r"\[.*?\]",
        r"isaidub|moviesda|isaimini|tamilgun|tamilrockers",
        r"\b(?:tamil|telugu|hindi|malayalam|kannada|english)\b",
        r"\b(?:movie|movies|hdrip|webrip|web-?dl|bluray|dvdrip|hdtv|web|series|webseries)\b",
        r"\b\d{3,4}p\b",
        r"\b(?:hd|uhd|4k)\b",
        r"\bpart\s*\d+\b",
        r"\bseason\s*\d+\b",
        r"\bs\d+\s*e\d+\b",
        r"original\s*content",
    )
)

DUB_MARKER = re.compile(r"\bdub(?:bed)?\b", re.IGNORECASE)
NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")
WHITESPACE = re.compile(r"\s+")
YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")
TITLE_YEAR_PATTERNS = (
    re.compile(r"\((\d{4})\)"),
    re.compile(r"\[(\d{4})\]"),
    re.compile(r"\s(\d{4})$"),
)


def _collapse(text: str) -> str:
    return WHITESPACE.sub(" ", text).strip()


def clean_display_title(title: Optional[str]) -> str:
    """Strip site boilerplate from a scraped title, keeping case and spacing."""
    if not title:
        return ""

    for pattern in DISPLAY_REMOVALS:
        title = pattern.sub("", title)
    return _collapse(title).strip(" -:|")


def canonical_title(title: Optional[str]) -> str:
    """Alphanumeric-only form used for comparisons, never for display.

    Dub markers survive so that a dubbed listing never looks identical to
    the original-language title.
    """
    if not title:
        return ""

    normalized = title.lower()
    for pattern in COMPARISON_REMOVALS:
        normalized = pattern.sub(" ", normalized)
    normalized = NON_ALPHANUMERIC.sub("", normalized)
    return _collapse(normalized)


def search_query(title: Optional[str]) -> str:
    return _collapse(DUB_MARKER.sub(" ", canonical_title(title)))


def extract_year(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    match = YEAR_PATTERN.search(text)
    return match.group(0) if match else None


def extract_year_from_title(title: str) -> Tuple[str, Optional[str]]:
    for pattern in TITLE_YEAR_PATTERNS:
        match = pattern.search(title)
        if match and 1900 <= int(match.group(1)) <= 2099:
            return title.replace(match.group(0), "").strip(), match.group(1)
    return title, None
