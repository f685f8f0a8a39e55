"""
Detail Visitor - opens each job's detail page in its own browser context and
turns a RawRecord into an EnrichedRecord.

Every step (consent, description, posting age, apply probe, gate probe,
screenshot) is attempted on its own; a failing step leaves its field empty.
Navigation failures are recorded on the record as visit_error. Nothing but
BrowserUnavailable leaves visit().
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, ContextManager, Dict, Optional, Sequence

from jobcrawl.errors import BrowserUnavailable, is_fatal_browser_error
from jobcrawl.extractor import first_text
from jobcrawl.models import ApplicationSignal, EnrichedRecord, RawRecord
from jobcrawl.site_selectors import SiteSelectors

logger = logging.getLogger(__name__)

# (timeout_ms) -> context manager yielding a fresh page
PageOpener = Callable[[Optional[int]], ContextManager[Any]]


class DetailVisitor:
    """Single-attempt, fault-contained detail visits"""

    def __init__(
        self,
        open_page: PageOpener,
        selectors: Optional[SiteSelectors] = None,
        artifact_dir: Optional[Path] = None,
        timeout_ms: int = 60000,
        wait_until: str = "domcontentloaded",
        is_alive: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.open_page = open_page
        self.selectors = selectors or SiteSelectors()
        self.artifact_dir = Path(artifact_dir) if artifact_dir else None
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until
        # Without a liveness check every "closed" error is taken as the browser's
        self.is_alive = is_alive

    def _raise_if_browser_gone(self, exc: BaseException, context: str) -> None:
        """Re-raise closed-target errors only once the browser itself is gone.

        Playwright uses one message whether the target page or the whole
        browser went away. A detail page closing itself (window.close()) stays
        an item failure while the browser is still connected.
        """
        if not is_fatal_browser_error(exc):
            return
        if self.is_alive is not None and self.is_alive():
            logger.debug("Closed-target error during %s with browser still connected: %s", context, exc)
            return
        if isinstance(exc, BrowserUnavailable):
            raise exc
        raise BrowserUnavailable(f"Browser unavailable ({context}): {exc}") from exc

    def visit(self, raw: RawRecord, page_index: Optional[int] = None,
              item_index: Optional[int] = None) -> EnrichedRecord:
        if not raw.link:
            return EnrichedRecord.from_raw(raw, visit_error="missing link")

        outcome: Dict[str, Any] = {}
        try:
            with self.open_page(self.timeout_ms) as page:
                self._visit_page(page, raw, outcome, page_index, item_index)
        except Exception as exc:
            self._raise_if_browser_gone(exc, "detail visit")
            logger.warning("Detail visit failed for %s: %s", raw.link, exc)
            outcome.setdefault("visit_error", str(exc) or exc.__class__.__name__)

        return EnrichedRecord.from_raw(raw, **outcome)

    def _visit_page(self, page, raw: RawRecord, outcome: Dict[str, Any],
                    page_index: Optional[int], item_index: Optional[int]) -> None:
        s = self.selectors
        try:
            logger.info("Visiting (page %s): %s", page_index, raw.link)
            navigated = self._navigate(page, raw.link, outcome)

            self._attempt("consent", raw.link, lambda: self._click_first(page, s.consent))
            description = self._attempt("description", raw.link, lambda: first_text(page, s.description))
            posted_at = self._attempt("posted_at", raw.link, lambda: first_text(page, s.posted_at))
            apply_found = bool(self._attempt("apply", raw.link, lambda: self._probe(page, s.apply)))
            gated = False
            if not description:
                gated = bool(self._attempt("gate", raw.link, lambda: self._probe(page, s.gate)))

            for field, chain in (("title", s.detail_title), ("company", s.detail_company),
                                 ("location", s.detail_location)):
                if getattr(raw, field) is None:
                    outcome[field] = self._attempt(field, raw.link, lambda chain=chain: first_text(page, chain))

            outcome["description"] = description
            outcome["posted_at"] = posted_at
            if apply_found:
                signal = ApplicationSignal.EASY_APPLY
            elif gated:
                signal = ApplicationSignal.GATED
            elif not navigated:
                signal = ApplicationSignal.UNVISITED
            else:
                signal = ApplicationSignal.NO_EASY_APPLY
            outcome["application_signal"] = signal
            logger.debug("Detail result for %s: %s", raw.link, signal.value)
        finally:
            outcome["artifact_path"] = self._capture(page, page_index, item_index)

    def _navigate(self, page, link: str, outcome: Dict[str, Any]) -> bool:
        try:
            page.goto(link, wait_until=self.wait_until, timeout=self.timeout_ms)
            return True
        except Exception as exc:
            self._raise_if_browser_gone(exc, "detail navigation")
            logger.warning("Navigation to %s failed: %s", link, exc)
            outcome["visit_error"] = str(exc) or exc.__class__.__name__
            return False

    def _attempt(self, label: str, link: str, func: Callable[[], Any]) -> Any:
        try:
            return func()
        except Exception as exc:
            self._raise_if_browser_gone(exc, f"detail {label}")
            logger.debug("Detail step %s failed for %s: %s", label, link, exc)
            return None

    def _probe(self, page, selectors: Sequence[str]) -> bool:
        for selector in selectors:
            try:
                if page.query_selector(selector):
                    return True
            except Exception as exc:
                self._raise_if_browser_gone(exc, f"probe {selector}")
                continue
        return False

    def _click_first(self, page, selectors: Sequence[str]) -> bool:
        for selector in selectors:
            element = page.query_selector(selector)
            if element:
                element.click()
                return True
        return False

    def _capture(self, page, page_index: Optional[int], item_index: Optional[int]) -> Optional[str]:
        if self.artifact_dir is None:
            return None
        ts = int(time.time() * 1000)
        name = f"screenshot_page{page_index or 0}_job{(item_index or 0) + 1}_{ts}.png"
        path = self.artifact_dir / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=str(path), full_page=True)
        except Exception as exc:
            logger.debug("Screenshot failed for %s: %s", path, exc)
            return None
        return str(path)
