import re
from dataclasses import dataclass
from typing import Optional

# Season numbers at or above this are taken to be a year caught by the season pattern.
SEASON_YEAR_CUTOFF = 50

FILE_PATTERN = re.compile(r"\.(mp4|mkv|avi|webm)$", re.IGNORECASE)
EPISODE_PATTERN = re.compile(
    r"Epi|Episode|Day|Part|Season|[.\s_-]E[Pp]?\d+", re.IGNORECASE
)
QUALITY_PATTERN = re.compile(
    r"HD|Original|720p|1080p|DVD|HDRip|BDRip|Tamil|480p|360p", re.IGNORECASE
)
GENERIC_PATTERN = re.compile(r"Movie|Full|Series|Season", re.IGNORECASE)
BARE_NUMBER_PATTERN = re.compile(r"^\d{1,3}$")
SERIES_FILE_PATTERN = re.compile(
    r"Epi|Episode|Day|Part|Season|S\d+E\d+", re.IGNORECASE
)

SEASON_TEXT_PATTERN = re.compile(r"\bS(?:eason)?[\s._-]?(\d{1,4})(?!\d)", re.IGNORECASE)
SEASON_URL_PATTERN = re.compile(r"Season-(\d+)", re.IGNORECASE)
EPISODE_NUMBER_PATTERNS = (
    re.compile(r"(?:^|[^a-z])E(?:pisode|pi|p)?[\s._-]?(\d+)", re.IGNORECASE),
    re.compile(r"\bDay[\s._-]?(\d+)", re.IGNORECASE),
    re.compile(r"\bPart[\s._-]?(\d+)", re.IGNORECASE),
)
EPISODE_QUERY_PATTERNS = (
    EPISODE_NUMBER_PATTERNS[0],
    re.compile(r"(\d+)(?:st|nd|rd|th)?\s?Episode", re.IGNORECASE),
)
FILE_QUALITY_PATTERN = re.compile(
    r"1080p|720p|480p|360p|1920x1080|1280x720", re.IGNORECASE
)
SIZE_LABEL_PATTERN = re.compile(r"\(([\d.]+\s*(?:MB|GB|KB))\)", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"\d+")

UNRESOLVED_QUALITIES = ("Unknown", "Episode")


@dataclass(frozen=True)
class AnchorTraits:
    is_file: bool
    is_episode: bool
    is_quality: bool
    is_pagination: bool
    is_generic: bool

    @property
    def should_follow(self) -> bool:
        return not self.is_file and (
            self.is_pagination or self.is_quality or self.is_episode or self.is_generic
        )


def classify_anchor(text: str, url: str, depth: int) -> AnchorTraits:
    return AnchorTraits(
        is_file=bool(FILE_PATTERN.search(text)) or "Sample" in text,
        is_episode=bool(EPISODE_PATTERN.search(text)),
        is_quality=bool(QUALITY_PATTERN.search(text)),
        is_pagination="?page=" in url
        or (depth < 2 and bool(BARE_NUMBER_PATTERN.match(text))),
        is_generic=bool(GENERIC_PATTERN.search(text)) or depth < 4,
    )


def parse_season(text: str, url: str = "") -> int:
    match = SEASON_TEXT_PATTERN.search(text) or SEASON_URL_PATTERN.search(url)
    if match:
        value = int(match.group(1))
        if value < SEASON_YEAR_CUTOFF:
            return value
    return 1


def parse_episode(text: str) -> Optional[int]:
    for pattern in EPISODE_NUMBER_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def parse_episode_query(query: Optional[str]) -> Optional[int]:
    """Turn "E05", "Episode 5" or "5th Episode" into an episode number."""
    if not query:
        return None

    for pattern in EPISODE_QUERY_PATTERNS:
        match = pattern.search(query)
        if match:
            return int(match.group(1))
    return None


def next_quality(text: str, traits: AnchorTraits, current: str) -> str:
    if traits.is_quality and not traits.is_episode:
        lowered = text.lower()
        suffix = " Original" if "original" in lowered else ""
        for resolution in ("1080", "720", "480", "360"):
            if resolution in lowered:
                return f"{resolution}p{suffix}"
        if "hd" in lowered:
            return "HD"
        return text

    if traits.is_episode and current == "Unknown":
        return "Episode"

    return current


def resolve_file_quality(current: str, text: str) -> str:
    if current not in UNRESOLVED_QUALITIES:
        return current

    match = FILE_QUALITY_PATTERN.search(text)
    if not match:
        return current

    value = match.group(0).lower()
    for resolution in ("1080", "720", "480", "360"):
        if resolution in value:
            return f"{resolution}p"
    return current


def parse_size_label(text: str) -> Optional[str]:
    match = SIZE_LABEL_PATTERN.search(text)
    return match.group(1) if match else None


def format_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.2f} {unit}" if unit != "B" else f"{int(size)} B"
        size /= 1024


def natural_sort_key(text: str):
    """Newest first when used with reverse=True: largest number, then text."""
    numbers = [int(n) for n in NUMBER_PATTERN.findall(text)]
    if numbers:
        return (1, max(numbers), text)
    return (0, 0, text)


def looks_like_series_file(text: str) -> bool:
    return bool(SERIES_FILE_PATTERN.search(text))
