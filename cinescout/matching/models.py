import time
from typing import List, Optional

from pydantic import BaseModel, Field

from cinescout.providers.models import LanguageType


def release_year(data: dict) -> Optional[str]:
    date = data.get("release_date") or data.get("first_air_date")
    if not date:
        return None
    return date.split("-")[0] or None


class ExternalMatchCandidate(BaseModel):
    external_id: int
    kind: str = "movie"  # "movie" or "tv"
    title: str = ""
    original_title: Optional[str] = None
    original_language: Optional[str] = None
    release_year: Optional[str] = None
    popularity: float = 0.0
    vote_count: int = 0
    vote_average: float = 0.0

    @property
    def catalog_key(self) -> str:
        return f"{self.kind}:{self.external_id}"

    @classmethod
    def from_tmdb(cls, data: dict, kind: str = "movie"):
        return cls(
            external_id=data["id"],
            kind=kind,
            title=data.get("title") or data.get("name") or "",
            original_title=data.get("original_title") or data.get("original_name"),
            original_language=data.get("original_language"),
            release_year=release_year(data),
            popularity=data.get("popularity") or 0.0,
            vote_count=data.get("vote_count") or 0,
            vote_average=data.get("vote_average") or 0.0,
        )


class CastMember(BaseModel):
    name: str
    character: Optional[str] = None
    image: Optional[str] = None


class CatalogVideo(BaseModel):
    key: str
    site: Optional[str] = None
    type: Optional[str] = None
    language: Optional[str] = None


class CatalogDetails(BaseModel):
    external_id: int
    kind: str = "movie"
    title: str = ""
    year: str = "Unknown"
    original_language: Optional[str] = None
    rating: Optional[float] = None
    runtime: Optional[int] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    overview: str = "No description available"
    genres: List[str] = []
    director: Optional[str] = None
    cast: List[CastMember] = []
    videos: List[CatalogVideo] = []

    @classmethod
    def from_tmdb(cls, data: dict, kind: str, image_url: str):
        credits = data.get("credits") or {}
        director = next(
            (
                member.get("name")
                for member in credits.get("crew", [])
                if member.get("job") == "Director"
            ),
            None,
        )
        if not director and data.get("created_by"):
            director = data["created_by"][0].get("name")

        return cls(
            external_id=data["id"],
            kind=kind,
            title=data.get("title") or data.get("name") or "",
            year=release_year(data) or "Unknown",
            original_language=data.get("original_language"),
            rating=round(data["vote_average"], 1) if data.get("vote_average") else None,
            runtime=data.get("runtime")
            or next(iter(data.get("episode_run_time") or []), None),
            poster_url=f"{image_url}/w500{data['poster_path']}"
            if data.get("poster_path")
            else None,
            backdrop_url=f"{image_url}/original{data['backdrop_path']}"
            if data.get("backdrop_path")
            else None,
            overview=data.get("overview") or "No description available",
            genres=[genre["name"] for genre in data.get("genres", []) if genre.get("name")],
            director=director,
            cast=[
                CastMember(
                    name=member.get("name", ""),
                    character=member.get("character"),
                    image=f"{image_url}/w200{member['profile_path']}"
                    if member.get("profile_path")
                    else None,
                )
                for member in credits.get("cast", [])[:10]
            ],
            videos=[
                CatalogVideo(
                    key=video["key"],
                    site=video.get("site"),
                    type=video.get("type"),
                    language=video.get("iso_639_1"),
                )
                for video in (data.get("videos") or {}).get("results", [])
                if video.get("key")
            ],
        )


class LinkEntry(BaseModel):
    quality: str = "Unknown"
    url: str
    size: str = "Unknown"
    season: Optional[int] = None
    episode: Optional[int] = None
    label: Optional[str] = None


class UnifiedEntity(BaseModel):
    external_id: int
    kind: str = "movie"
    title: str
    year: str = "Unknown"
    language_type: LanguageType = LanguageType.UNKNOWN
    rating: Optional[float] = None
    runtime: Optional[int] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    overview: Optional[str] = None
    genres: List[str] = []
    cast: List[CastMember] = []
    director: Optional[str] = None
    trailer_key: Optional[str] = None
    watch_links: List[LinkEntry] = []
    download_links: List[LinkEntry] = []
    sources: List[str] = []
    confidence_score: int
    match_quality: str = "fair"
    last_updated: float = Field(default_factory=time.time)

    @property
    def catalog_key(self) -> str:
        return f"{self.kind}:{self.external_id}"
