"""
Catalog exceptions.

Errors raised by the feed registry, classification, and parsing layers.
Batch operations catch these per item and record them; only registry
read and write failures are meant to reach the caller of a batch.
"""


class CadenceError(Exception):
    """Base class for catalog errors."""


class DuplicateFeedError(CadenceError):
    """A feed with the same URL (or a colliding id) is already registered."""

    def __init__(self, url: str, reason: str = "Feed already exists") -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason


class NotFoundError(CadenceError):
    """An update or removal targeted a feed id that is not registered."""

    def __init__(self, feed_id: str) -> None:
        super().__init__(f"Feed not found: {feed_id}")
        self.feed_id = feed_id


class ClassificationError(CadenceError):
    """Feed type detection failed; the existing classification must be kept."""

    def __init__(self, url: str, cause: BaseException | str) -> None:
        super().__init__(f"Failed to classify {url}: {cause}")
        self.url = url
        self.cause = cause


class PerFeedParseError(CadenceError):
    """Fetching or parsing a single feed failed."""

    def __init__(self, feed_id: str, message: str) -> None:
        super().__init__(message)
        self.feed_id = feed_id
        self.message = message


class FeedTimeoutError(PerFeedParseError):
    """A single feed parse exceeded its allotted time."""

    def __init__(self, feed_id: str, timeout_seconds: float) -> None:
        super().__init__(feed_id, f"RSS parsing timeout after {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds


class RegistryWriteError(CadenceError):
    """Writing the feed registry back to storage failed."""


class RegistryReadError(CadenceError):
    """The feed registry exists but cannot be read or decoded; it must not be overwritten."""
