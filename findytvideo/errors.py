# errors.py
from typing import Optional


class FindYTVideoError(Exception):
    """Base class for all errors raised by findytvideo."""


class FetchError(FindYTVideoError):
    """A search fetch did not produce results."""


class ProviderError(FetchError):
    """The search provider call failed (network, HTTP or a malformed response)."""
    def __init__(self, query: str, cause: Optional[BaseException] = None) -> None:
        self.query = query
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Search for '{query}' failed{detail}")


class FetchCancelled(FetchError):
    """The fetch was superseded before the provider answered."""
    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"Search for '{query}' was cancelled")


class ThumbnailError(FindYTVideoError):
    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Could not load thumbnail {url}: {cause}")


class PlayerLaunchError(FindYTVideoError):
    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Could not launch '{command}': {reason}")
