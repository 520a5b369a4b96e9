"""Exception types raised by the Proof360 test support package."""

from __future__ import annotations


class Proof360Error(Exception):
    """Base class for all suite errors."""


class ConfigurationError(Proof360Error):
    """A required environment setting is missing or invalid."""


class RetryExhaustedError(Proof360Error):
    """An operation kept failing after every retry attempt."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} failed after {attempts} attempts. "
            f"Last error: {last_error}"
        )


class SopError(Proof360Error):
    """The standard operating procedure could not be opened or completed."""


class CleanupError(Proof360Error):
    """Alerts are still present on a stack after cleanup finished."""

    def __init__(
        self,
        stack: str,
        site_name: str,
        alert_cards: int,
        site_cards: int,
        screenshot: str | None = None,
    ):
        self.stack = stack
        self.site_name = site_name
        self.alert_cards = alert_cards
        self.site_cards = site_cards
        self.screenshot = screenshot
        super().__init__(
            f"Cleanup failed on {stack} stack for site \"{site_name}\". "
            f"Remaining alert cards={alert_cards}, site cards={site_cards}. "
            f"Screenshot: {screenshot}"
        )


class PublishError(Proof360Error):
    """An event could not be delivered to the ingestion endpoint."""


class SearchError(Proof360Error):
    """An Elasticsearch request failed."""


class ReportDownloadError(Proof360Error):
    """A downloaded report did not carry the expected file name."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected report file {expected!r}, browser offered {actual!r}")
