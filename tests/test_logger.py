from cinescout.core.exceptions import FetchFailure
from cinescout.core.logger import (
    log_provider_error,
    log_startup_info,
    logger,
    mask_secret,
    setupLogger,
)
from cinescout.core.models import AppSettings


def _capture(action):
    messages = []
    setupLogger("DEBUG", sink=messages.append)
    try:
        action()
    finally:
        setupLogger("DEBUG")
    return [str(message) for message in messages]


def test_custom_levels_are_registered():
    messages = _capture(lambda: logger.log("MATCHER", "Selected 'Leo' (movie:5)"))

    assert len(messages) == 1
    assert "MATCHER" in messages[0]
    assert "Selected 'Leo' (movie:5)" in messages[0]


def test_provider_errors_are_logged_as_warnings():
    error = FetchFailure("https://site.test/", "HTTP 503")

    messages = _capture(lambda: log_provider_error("Moviesda", "https://site.test", error))

    assert "WARNING" in messages[0]
    assert "Moviesda" in messages[0]
    assert "HTTP 503" in messages[0]


def test_mask_secret():
    assert mask_secret("abcdef123456") == "abc******456"
    assert mask_secret("short") == "*****"
    assert mask_secret(None) is None


def test_startup_info_masks_credentials():
    app_settings = AppSettings(TMDB_API_KEY="abcdef123456", TMDB_READ_ACCESS_TOKEN=None)

    messages = _capture(lambda: log_startup_info(app_settings))

    text = "\n".join(messages)
    assert "abc******456" in text
    assert "abcdef123456" not in text


def test_modules_log_through_the_configured_logger():
    from cinescout.crawler import follower, resolver
    from cinescout.services import pipeline

    assert follower.logger is logger
    assert resolver.logger is logger
    assert pipeline.logger is logger
    assert logger.level("CRAWLER").name == "CRAWLER"
