from typing import Optional

from databases import Database
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    LOG_LEVEL: Optional[str] = "DEBUG"
    DATABASE_TYPE: Optional[str] = "sqlite"
    DATABASE_URL: Optional[str] = "username:password@hostname:port"
    DATABASE_PATH: Optional[str] = "data/cinescout.db"

    USER_AGENT: Optional[str] = DEFAULT_USER_AGENT
    HTTP_CLIENT_LIMIT: Optional[int] = 100
    HTTP_CLIENT_LIMIT_PER_HOST: Optional[int] = 20
    HTTP_CLIENT_TIMEOUT_TOTAL: Optional[int] = 60

    PAGE_FETCH_TIMEOUT: Optional[int] = 10
    STREAM_FETCH_TIMEOUT: Optional[int] = 10
    SIZE_PROBE_TIMEOUT: Optional[int] = 5
    DETAIL_MAX_DEPTH: Optional[int] = 6
    FOLLOW_MAX_HOPS: Optional[int] = 5
    LISTING_BATCH_SIZE: Optional[int] = 5
    RESOLVE_BATCH_SIZE: Optional[int] = 5
    RESOLVE_MAX_FILES: Optional[int] = 100

    SCRAPE_MOVIESDA: Optional[bool] = True
    MOVIESDA_URL: Optional[str] = "https://moviesda15.com"
    SCRAPE_ISAIDUB: Optional[bool] = True
    ISAIDUB_URL: Optional[str] = "https://isaidub.love"
    PROVIDER_MAX_ERRORS: Optional[int] = 5

    TMDB_API_KEY: Optional[str] = None
    TMDB_READ_ACCESS_TOKEN: Optional[str] = None
    TMDB_URL: Optional[str] = "https://api.themoviedb.org/3"
    TMDB_IMAGE_URL: Optional[str] = "https://image.tmdb.org/t/p"
    TMDB_TIMEOUT: Optional[int] = 20
    TMDB_MAX_RETRIES: Optional[int] = 3
    TMDB_RETRY_BASE_DELAY: Optional[float] = 1.0
    TMDB_CACHE_TTL: Optional[int] = 3600  # 1 hour

    MATCH_NATIVE_LANGUAGE: Optional[str] = "ta"
    MATCH_BATCH_SIZE: Optional[int] = 3

    @field_validator(
        "MOVIESDA_URL",
        "ISAIDUB_URL",
        "TMDB_URL",
        "TMDB_IMAGE_URL",
    )
    def remove_trailing_slash(cls, v):
        if v and v.endswith("/"):
            return v[:-1]
        return v

    @field_validator("DATABASE_TYPE")
    def normalize_database_type(cls, v):
        if v is None:
            return "sqlite"
        return v.lower()


settings = AppSettings()

database_url = (
    settings.DATABASE_PATH
    if settings.DATABASE_TYPE == "sqlite"
    else settings.DATABASE_URL
)
database = Database(
    f"{'sqlite' if settings.DATABASE_TYPE == 'sqlite' else 'postgresql+asyncpg'}://{'/' if settings.DATABASE_TYPE == 'sqlite' else ''}{database_url}"
)
