"""
Error types shared by the crawl components
"""

from typing import Optional

# Substrings Playwright uses when the driver, browser or target is gone.
FATAL_BROWSER_MARKERS = (
    "target page, context or browser has been closed",
    "browser has been closed",
    "browser has disconnected",
    "connection closed",
    "playwright connection closed",
)


class BrowserUnavailable(RuntimeError):
    """Raised when the browser capability itself can no longer be used."""


class ConfigValidationError(ValueError):
    """Raised when configuration fails invariant validation."""
    pass


def is_fatal_browser_error(exc: BaseException) -> bool:
    if isinstance(exc, BrowserUnavailable):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in FATAL_BROWSER_MARKERS)


def raise_if_fatal(exc: BaseException, context: Optional[str] = None) -> None:
    """Re-raise driver-level failures as BrowserUnavailable; let everything else through."""
    if isinstance(exc, BrowserUnavailable):
        raise exc
    if is_fatal_browser_error(exc):
        label = f" during {context}" if context else ""
        raise BrowserUnavailable(f"Browser unavailable{label}: {exc}") from exc
