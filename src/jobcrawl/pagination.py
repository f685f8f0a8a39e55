"""
Pagination Controller - walks search result pages up to the session cap.

Two ways to advance:
  url   navigate to the search URL with a page-number parameter
  next  click the "next" control and wait for the navigation it triggers

A missing page indicator, a listing wait that times out, or a missing/disabled
next control never abort the crawl. Only BrowserUnavailable propagates.
"""

import logging
import re
import time
from typing import Callable, Optional
from urllib.parse import urlencode

from jobcrawl.errors import raise_if_fatal
from jobcrawl.models import SearchSession
from jobcrawl.run_metrics import RunMetrics
from jobcrawl.site_selectors import SiteSelectors

logger = logging.getLogger(__name__)

STRATEGY_URL = "url"
STRATEGY_NEXT = "next"


def build_search_url(base_url: str, session: SearchSession, page_number: int = 1,
                     page_param: str = "page") -> str:
    """Build search URL for the job board"""
    params = {"q": session.keyword, "location": session.location}
    if page_number > 1:
        params[page_param] = page_number
    return f"{base_url}?{urlencode(params)}"


class PaginationController:
    """Drives a single results page object across pages, strictly in order"""

    def __init__(
        self,
        page,
        base_url: str = "https://www.dice.com/jobs",
        strategy: str = STRATEGY_URL,
        selectors: Optional[SiteSelectors] = None,
        listing_timeout_ms: int = 20000,
        wait_until: str = "domcontentloaded",
        page_delay: float = 0.0,
        page_param: str = "page",
        metrics: Optional[RunMetrics] = None,
    ) -> None:
        if strategy not in (STRATEGY_URL, STRATEGY_NEXT):
            raise ValueError(f"Unknown pagination strategy: {strategy}")
        self.page = page
        self.base_url = base_url
        self.strategy = strategy
        self.selectors = selectors or SiteSelectors()
        self.listing_timeout_ms = listing_timeout_ms
        self.wait_until = wait_until
        self.page_delay = page_delay
        self.page_param = page_param
        self.metrics = metrics or RunMetrics(board="search")

    def run(self, session: SearchSession, on_page: Callable[[int], object]) -> int:
        """Visit pages 1..min(max_pages, total_pages); return pages handed to on_page"""
        if session.max_pages <= 0:
            logger.info("max_pages is %s; nothing to crawl", session.max_pages)
            return 0

        self._goto(build_search_url(self.base_url, session, 1, self.page_param))
        total_pages = self.read_total_pages()
        bound = min(session.max_pages, total_pages)
        logger.info("Pages available: %s, crawling up to %s", total_pages, bound)

        pages_visited = 0
        for page_index in range(1, bound + 1):
            print(f"📄 Scraping page {page_index}/{bound}...")
            if self._wait_for_listings(page_index):
                on_page(page_index)
                pages_visited += 1
                self.metrics.inc("pages_visited")
            else:
                self.metrics.inc("pages_skipped")
                self.metrics.record_event("page_skipped", page=page_index)

            if page_index >= bound:
                break
            if not self._advance(session, page_index + 1):
                self.metrics.record_event("pagination_stopped", page=page_index)
                break
            if self.page_delay > 0:
                time.sleep(self.page_delay)

        return pages_visited

    def read_total_pages(self) -> int:
        """Parse 'Page N of M' from the indicator; 1 when absent or unreadable"""
        try:
            section = self.page.query_selector(self.selectors.page_indicator)
            label = section.get_attribute("aria-label") if section else None
        except Exception as exc:
            raise_if_fatal(exc, "page indicator")
            logger.warning("Could not read page indicator, defaulting to 1: %s", exc)
            return 1
        if not label:
            return 1
        match = re.search(self.selectors.page_indicator_pattern, label)
        if not match:
            logger.warning("Unparsable page indicator %r, defaulting to 1", label)
            return 1
        try:
            return max(int(match.group(1)), 1)
        except (IndexError, ValueError):
            return 1

    def _goto(self, url: str) -> bool:
        logger.info("Navigating to: %s", url)
        try:
            self.page.goto(url, wait_until=self.wait_until)
            return True
        except Exception as exc:
            raise_if_fatal(exc, "search navigation")
            logger.warning("Navigation failed for %s: %s", url, exc)
            return False

    def _wait_for_listings(self, page_index: int) -> bool:
        try:
            self.page.wait_for_selector(self.selectors.card, timeout=self.listing_timeout_ms)
            return True
        except Exception as exc:
            raise_if_fatal(exc, "listing wait")
            logger.warning("No job cards detected on page %s; skipping (%s)", page_index, exc)
            print(f"   ⚠️  No job cards on page {page_index} - skipped")
            return False

    def _advance(self, session: SearchSession, next_index: int) -> bool:
        if self.strategy == STRATEGY_URL:
            # A failed goto is left to the listing wait, which skips the page
            self._goto(build_search_url(self.base_url, session, next_index, self.page_param))
            return True
        return self._click_next()

    def _find_next_control(self):
        for selector in self.selectors.next_control:
            try:
                element = self.page.query_selector(selector)
            except Exception as exc:
                raise_if_fatal(exc, "next control lookup")
                continue
            if element:
                return element
        return None

    def _click_next(self) -> bool:
        element = self._find_next_control()
        if not element:
            logger.info("Next control not found; stopping pagination")
            print("⛔ Next button not found, stopping.")
            return False
        try:
            aria_disabled = (element.get_attribute("aria-disabled") or "").lower()
            disabled_attr = element.get_attribute("disabled")
        except Exception as exc:
            raise_if_fatal(exc, "next control state")
            logger.info("Next control unreadable; stopping pagination (%s)", exc)
            return False
        if aria_disabled in ("true", "disabled") or disabled_attr is not None:
            logger.info("Next control disabled; stopping pagination")
            print("⛔ Next button disabled, stopping.")
            return False

        try:
            with self.page.expect_navigation(wait_until=self.wait_until):
                element.click()
        except Exception as exc:
            raise_if_fatal(exc, "next navigation")
            # The listing wait on the next index decides whether the page loaded
            logger.warning("Navigation after next click did not complete: %s", exc)
        return True
