"""Custom exception classes for the application.

Every error carries an HTTP ``status_code`` so the API layer and the
per-source error annotations can report it without a lookup table.
"""


class PriceDropException(Exception):
    """Base exception for all PriceDrop errors."""

    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(PriceDropException):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class InvalidSearchTermError(PriceDropException):
    """Raised when the search term is missing or blank."""

    status_code = 400

    def __init__(self, message: str = "Search term is required"):
        super().__init__(message)


class UnsupportedSourceError(PriceDropException):
    """Raised for a source code with no registered adapter."""

    status_code = 400

    def __init__(self, source: str, supported: list[str] | None = None):
        self.source = source
        message = f"Unsupported source: {source}"
        if supported:
            message += f". Use {', '.join(supported)}."
        super().__init__(message)


class SourceInactiveError(PriceDropException):
    """Raised when scraping a source that has been deactivated."""

    status_code = 409

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"Source is inactive: {source}")


class FetchError(PriceDropException):
    """Raised by an adapter on a network or parse failure."""

    status_code = 502

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Failed to fetch data from {source}: {message}")


class NoDataError(PriceDropException):
    """Raised when an adapter returns zero listings."""

    status_code = 404

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No data scraped from {source}")


class NoRelevantDataError(PriceDropException):
    """Raised when filtering leaves no usable listings."""

    status_code = 404

    def __init__(self, source: str, search_term: str):
        self.source = source
        super().__init__(f"No relevant products for '{search_term}' from {source}")


class PersistenceConflictError(PriceDropException):
    """Raised when a concurrent upsert still conflicts after one retry."""

    status_code = 409

    def __init__(self, source: str, url: str):
        super().__init__(f"Concurrent write conflict for {source} product {url}")
