from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ContentKind(str, Enum):
    MOVIE = "movie"
    SERIES = "series"
    WEBSERIES = "webseries"
    UNKNOWN = "unknown"


class LanguageType(str, Enum):
    TAMIL = "tamil"
    TAMIL_DUBBED = "tamil_dubbed"
    UNKNOWN = "unknown"


class ScrapedListing(BaseModel):
    model_config = ConfigDict(frozen=True)

    canonical_url: str
    title: str
    year: str = "Unknown"
    poster_url: Optional[str] = None
    quality: str = "DVD/HD"
    provider_id: str
    content_kind: ContentKind = ContentKind.UNKNOWN


class ResolvedLink(BaseModel):
    direct_url: Optional[str] = None
    watch_url: Optional[str] = None
    stream_url: Optional[str] = None


class FileCandidate(BaseModel):
    landing_url: str
    raw_anchor_text: str
    quality: str = "Unknown"
    season: int = 1
    episode: Optional[int] = None
    size_label: Optional[str] = None
    link: Optional[ResolvedLink] = None


class ContentRecord(BaseModel):
    title: str
    url: str
    synopsis: Optional[str] = None
    poster_url: Optional[str] = None
    content_kind: ContentKind = ContentKind.MOVIE
    files: List[FileCandidate] = []
