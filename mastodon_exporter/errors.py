"""
Error types raised while scraping a Mastodon instance.

Every failure inside a scrape is an ExporterError, so the collector can
turn it into ``mastodon_up 0`` without crashing the process.
"""
from typing import Optional, Sequence, Union

PathElement = Union[str, int]


class ExporterError(Exception):
    """Base class for recoverable scrape failures."""


class ConfigError(ValueError):
    """Invalid exporter configuration."""


class FetchError(ExporterError):
    """Transport failure or unexpected HTTP status."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"GET {url} failed: {reason}")


class DeadlineExceeded(FetchError):
    """The per-scrape deadline expired before the request could be made."""

    def __init__(self, url: str, deadline: float):
        self.deadline = deadline
        super().__init__(url, f"scrape deadline of {deadline:g}s exceeded")


class ParseError(ExporterError):
    """The response body is not valid JSON."""


class ExtractError(ExporterError):
    """Well-formed JSON that is missing a key or shaped unexpectedly."""

    def __init__(self, path: Sequence[PathElement], expected: str, actual: str):
        self.path = tuple(path)
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"expected {expected} at {format_path(self.path)}, got {actual}"
        )


def format_path(path: Sequence[PathElement]) -> str:
    """Render a path like ``usage.users.active_month`` or ``[0].week``."""
    rendered = ""
    for element in path:
        if isinstance(element, int):
            rendered += f"[{element}]"
        elif rendered:
            rendered += f".{element}"
        else:
            rendered = str(element)
    return rendered or "<root>"
