class CinescoutError(Exception):
    """Base exception for crawler, catalog and store errors."""

    def __init__(self, message: str, display_message: str = None):
        self.message = message
        self.display_message = display_message or message
        super().__init__(self.message)


class FetchFailure(CinescoutError):
    """Raised when a page could not be fetched or parsed."""

    def __init__(self, url: str, reason: str = None):
        self.url = url
        self.reason = reason or "unknown error"
        super().__init__(f"Failed to fetch {url}: {self.reason}")


class AccessDenied(FetchFailure):
    """Raised when a site answers with its "Not Allowed" block page."""

    def __init__(self, url: str):
        super().__init__(url, "access blocked (Not Allowed)")


class TransientNetworkError(CinescoutError):
    """Timeouts, connection resets and 5xx answers. Only the catalog client retries these."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Transient error for {url}: {reason}")


class CatalogError(CinescoutError):
    def __init__(self, url: str, status: int, message: str = None):
        self.url = url
        self.status = status
        super().__init__(
            f"Catalog request {url} failed with HTTP {status}",
            message,
        )


class PersistenceFailure(CinescoutError):
    pass
