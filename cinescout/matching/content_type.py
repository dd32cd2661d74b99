import re
from dataclasses import dataclass
from typing import Iterable, Optional

from cinescout.providers.models import ContentKind, LanguageType

SERIES_TITLE_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"web[\s-]?series",
        r"season\s*\d",
        r"s\d{1,2}\s?e\d{1,2}",
        r"\bS\d{1,2}\b",
        r"episode\s*\d",
        r"epi?\s*\d+",
        r"day\s*\d+",
        r"week\s*\d+",
        r"part\s*\d+\s*of\s*\d+",
        r"chapter\s*\d+",
        r"\bE\d{1,3}\b",
        r"\bep\d{1,3}\b",
    )
)
SERIES_URL_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"/web-series",
        r"/webseries",
        r"/tv-show",
        r"/series/",
        r"/45/",
    )
)
MOVIE_TITLE_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r"\bpart\s*[12]\b", r"\bmovie\b")
)
EPISODE_FILE_PATTERN = re.compile(r"epi|episode|day|s\d+e\d+|e\d+", re.IGNORECASE)

MIN_SERIES_SCORE = 25


@dataclass(frozen=True)
class ContentClassification:
    kind: ContentKind
    confidence: int

    @property
    def is_series(self) -> bool:
        return self.kind in (ContentKind.SERIES, ContentKind.WEBSERIES)


def _file_name(item) -> str:
    if isinstance(item, str):
        return item
    return getattr(item, "raw_anchor_text", "") or ""


def detect_content_type(
    title: Optional[str], url: Optional[str] = None, files: Iterable = ()
) -> ContentClassification:
    title = (title or "").lower()
    url = (url or "").lower()

    series_score = 30 * sum(1 for p in SERIES_TITLE_PATTERNS if p.search(title))
    series_score += 25 * sum(1 for p in SERIES_URL_PATTERNS if p.search(url))

    episode_count = sum(
        1 for item in files if EPISODE_FILE_PATTERN.search(_file_name(item))
    )
    if episode_count >= 3:
        series_score += 40
    elif episode_count >= 1:
        series_score += 20

    movie_score = 15 * sum(1 for p in MOVIE_TITLE_PATTERNS if p.search(title))

    if series_score > movie_score and series_score >= MIN_SERIES_SCORE:
        is_web = "web-series" in url or "webseries" in url or "web series" in title
        return ContentClassification(
            kind=ContentKind.WEBSERIES if is_web else ContentKind.SERIES,
            confidence=min(100, series_score),
        )

    return ContentClassification(
        kind=ContentKind.MOVIE, confidence=min(100, 60 + movie_score)
    )


def is_series(title: Optional[str], url: Optional[str] = None, files: Iterable = ()) -> bool:
    return detect_content_type(title, url, files).is_series


def catalog_kind(kind: ContentKind) -> str:
    return "tv" if kind in (ContentKind.SERIES, ContentKind.WEBSERIES) else "movie"


DUB_PATTERN = re.compile(r"dub|dubbed|tamil\s*dub", re.IGNORECASE)


def detect_language_type(
    title: Optional[str],
    original_language: Optional[str] = None,
    native_language: str = "ta",
) -> LanguageType:
    if original_language == native_language:
        return LanguageType.TAMIL
    if DUB_PATTERN.search(title or ""):
        return LanguageType.TAMIL_DUBBED
    return LanguageType.UNKNOWN
