import sys

from loguru import logger

from cinescout.core.log_levels import (
    CUSTOM_LOG_LEVELS,
    STANDARD_LOG_LEVELS,
    loguru_color,
)

SECRET_SETTINGS = ("TMDB_API_KEY", "TMDB_READ_ACCESS_TOKEN", "DATABASE_URL")

LOG_FORMAT = (
    "<white>{time:YYYY-MM-DD}</white> <magenta>{time:HH:mm:ss}</magenta> | "
    "<level>{level.icon}</level> <level>{level}</level> | "
    "<cyan>{module}</cyan>.<cyan>{function}</cyan> - <level>{message}</level>"
)


def register_levels():
    for name, (number, icon, color) in CUSTOM_LOG_LEVELS.items():
        try:
            logger.level(name)
        except ValueError:
            logger.level(name, no=number, icon=icon, color=loguru_color(color))

    for name, (icon, color) in STANDARD_LOG_LEVELS.items():
        logger.level(name, icon=icon, color=loguru_color(color))


def setupLogger(level: str, sink=sys.stderr):
    register_levels()

    # Only the stderr sink is queued; other sinks (tests) receive records synchronously.
    logger.configure(
        handlers=[
            {
                "sink": sink,
                "level": level,
                "format": LOG_FORMAT,
                "backtrace": False,
                "diagnose": False,
                "enqueue": sink is sys.stderr,
            }
        ]
    )


setupLogger("DEBUG")


def log_provider_error(provider_name: str, provider_url: str, error: Exception):
    logger.warning(
        f"Exception while scraping {provider_url} with {provider_name}, the site is most likely blocking or down: {error}"
    )


def mask_secret(value):
    if not value:
        return value
    value = str(value)
    if len(value) <= 6:
        return "*" * len(value)
    return f"{value[:3]}{'*' * (len(value) - 6)}{value[-3:]}"


def log_startup_info(settings):
    logger.log("CINESCOUT", f"Log Level: {settings.LOG_LEVEL}")

    database_display = (
        settings.DATABASE_PATH
        if settings.DATABASE_TYPE == "sqlite"
        else mask_secret(settings.DATABASE_URL)
    )
    logger.log(
        "CINESCOUT", f"Database ({settings.DATABASE_TYPE}): {database_display}"
    )

    moviesda_url = f" - {settings.MOVIESDA_URL}" if settings.SCRAPE_MOVIESDA else ""
    logger.log(
        "CINESCOUT", f"Moviesda Provider: {bool(settings.SCRAPE_MOVIESDA)}{moviesda_url}"
    )

    isaidub_url = f" - {settings.ISAIDUB_URL}" if settings.SCRAPE_ISAIDUB else ""
    logger.log(
        "CINESCOUT", f"isaiDub Provider: {bool(settings.SCRAPE_ISAIDUB)}{isaidub_url}"
    )

    logger.log(
        "CINESCOUT",
        f"Crawler: Max Depth {settings.DETAIL_MAX_DEPTH} - Max Hops {settings.FOLLOW_MAX_HOPS} - Batch Size {settings.RESOLVE_BATCH_SIZE} - Max Files {settings.RESOLVE_MAX_FILES} - Page Timeout {settings.PAGE_FETCH_TIMEOUT}s",
    )

    tmdb_credentials = [
        f"{key}: {mask_secret(getattr(settings, key))}"
        for key in SECRET_SETTINGS[:2]
        if getattr(settings, key)
    ]
    tmdb_display = f" - {', '.join(tmdb_credentials)}" if tmdb_credentials else " - no credentials"
    logger.log(
        "CINESCOUT",
        f"TMDB: {settings.TMDB_URL}{tmdb_display} - Retries: {settings.TMDB_MAX_RETRIES} - Cache TTL: {settings.TMDB_CACHE_TTL}s",
    )

    logger.log(
        "CINESCOUT",
        f"Matching: Native Language '{settings.MATCH_NATIVE_LANGUAGE}' - Batch Size {settings.MATCH_BATCH_SIZE}",
    )
