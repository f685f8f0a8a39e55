"""
Browser Session - Playwright lifecycle and isolated detail pages
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from playwright.sync_api import sync_playwright, Browser, BrowserContext, Page, Playwright

from jobcrawl.errors import BrowserUnavailable

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 800}


class BrowserSession:
    """Owns the Playwright driver, the search page and throwaway detail contexts"""

    def __init__(
        self,
        headless: bool = True,
        page_timeout_ms: int = 30000,
        navigation_timeout_ms: int = 45000,
        channel: str = "",
        args: Optional[List[str]] = None,
    ) -> None:
        self.headless = headless
        self.page_timeout_ms = page_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self.channel = channel or None
        self.args = args or []
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    @classmethod
    def from_config(cls, config) -> "BrowserSession":
        return cls(
            headless=config.is_headless(),
            page_timeout_ms=config.get_page_timeout(),
            navigation_timeout_ms=config.get_navigation_timeout(),
            channel=config.get_browser_channel(),
            args=config.get_launch_args(),
        )

    def start(self) -> None:
        """Launch Chromium and open the search page"""
        logger.info("Starting browser...")
        try:
            self.playwright = sync_playwright().start()
            self.browser = self.playwright.chromium.launch(
                headless=self.headless,
                channel=self.channel,
                args=self.args,
            )
            self.context = self.browser.new_context(viewport=VIEWPORT)
            self.page = self.context.new_page()
        except Exception as exc:
            self.stop()
            raise BrowserUnavailable(f"Browser failed to start: {exc}") from exc

        self.page.set_default_timeout(self.page_timeout_ms)
        self.page.set_default_navigation_timeout(self.navigation_timeout_ms)
        logger.info("Browser started successfully")

    def is_connected(self) -> bool:
        """True while the browser process is up and the driver still talks to it"""
        if self.browser is None:
            return False
        try:
            return self.browser.is_connected()
        except Exception:
            logger.debug("Browser connection check failed", exc_info=True)
            return False

    @contextmanager
    def isolated_page(self, timeout_ms: Optional[int] = None) -> Iterator[Page]:
        """Fresh context + page; closed on every exit path"""
        if self.browser is None:
            raise BrowserUnavailable("Browser is not running")
        context = self.browser.new_context(viewport=VIEWPORT)
        try:
            page = context.new_page()
            if timeout_ms:
                page.set_default_timeout(timeout_ms)
                page.set_default_navigation_timeout(timeout_ms)
            yield page
        finally:
            try:
                context.close()
            except Exception:
                logger.debug("Detail context close failed", exc_info=True)

    def stop(self) -> None:
        """Clean up browser resources"""
        try:
            if self.context:
                self.context.close()
        except Exception:
            logger.debug("Browser context close failed", exc_info=True)
        try:
            if self.browser:
                self.browser.close()
        except Exception:
            logger.debug("Browser close failed", exc_info=True)
        try:
            if self.playwright:
                self.playwright.stop()
        except Exception:
            logger.debug("Playwright stop failed", exc_info=True)
        self.context = None
        self.browser = None
        self.playwright = None
        self.page = None
        logger.info("Browser closed")
