"""
Job Crawler - runs one or more search sessions end to end.

pages (PaginationController) -> cards (RecordExtractor) -> Deduplicator ->
optional DetailVisitor -> Aggregator (Categorizer). A fatal browser error
ends the run but whatever was collected is still aggregated and returned
as a partial report.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from jobcrawl.aggregator import Aggregator
from jobcrawl.browser import BrowserSession
from jobcrawl.categorizer import Categorizer
from jobcrawl.dedup import Deduplicator
from jobcrawl.detail_visitor import DetailVisitor
from jobcrawl.errors import BrowserUnavailable
from jobcrawl.extractor import RecordExtractor
from jobcrawl.models import AggregateReport, EnrichedRecord, RawRecord, SearchSession
from jobcrawl.pagination import PaginationController
from jobcrawl.run_metrics import RunMetrics

logger = logging.getLogger(__name__)


@dataclass
class CrawlState:
    """Mutable state for one run; discarded when the run ends.

    The visited-link set is shared by every session of the run, so a listing
    found by two queries is kept once.
    """

    dedup: Deduplicator = field(default_factory=Deduplicator)
    records: List[EnrichedRecord] = field(default_factory=list)
    pages_visited: int = 0
    # pages handed to the extractor by the session in progress
    session_pages: int = 0
    detail_visits: int = 0


class JobCrawler:
    """Collects, enriches and categorizes job listings for one or more SearchSessions"""

    def __init__(self, config, browser=None, metrics: Optional[RunMetrics] = None):
        self.config = config
        self.browser = browser
        self._owns_browser = browser is None
        self.selectors = config.get_selectors()
        self.extractor = RecordExtractor(self.selectors, config.get_max_records_per_page())
        self.aggregator = Aggregator(Categorizer(config.get_category_rules()))
        self.metrics = metrics or RunMetrics(board="dice")
        self.state: Optional[CrawlState] = None

    def crawl(self, session: SearchSession, detail_enabled: Optional[bool] = None) -> AggregateReport:
        """Crawl a session; never raises for page/item failures"""
        return self.crawl_all([session], detail_enabled=detail_enabled)

    def crawl_all(self, sessions: Sequence[SearchSession],
                  detail_enabled: Optional[bool] = None) -> AggregateReport:
        """Crawl sessions in order with one browser, one visited-link set and one report"""
        if detail_enabled is None:
            detail_enabled = self.config.is_detail_enabled()
        sessions = list(sessions)
        state = CrawlState()
        self.state = state
        partial = False

        print("\n" + "="*60)
        print(f"🤖 STARTING JOB CRAWL ({len(sessions)} search{'es' if len(sessions) != 1 else ''})")
        print("="*60)

        try:
            if self._owns_browser:
                self.browser = BrowserSession.from_config(self.config)
                self.browser.start()

            controller = PaginationController(
                self.browser.page,
                base_url=self.config.get_base_url(),
                strategy=self.config.get_pagination_strategy(),
                selectors=self.selectors,
                listing_timeout_ms=self.config.get_listing_timeout(),
                wait_until=self.config.get_wait_until(),
                page_delay=self.config.get_page_delay(),
                page_param=self.config.get_page_param(),
                metrics=self.metrics,
            )
            visitor = self._build_visitor() if detail_enabled else None

            for session in sessions:
                print(f"\n🔍 Searching: {session}")
                try:
                    self._crawl_session(controller, session, state, visitor)
                except BrowserUnavailable:
                    raise
                except Exception as exc:
                    partial = True
                    logger.exception("Session %s failed; continuing with the next search", session)
                    self.metrics.record_event("session_failed", session=str(session), error=str(exc))
                    print(f"   ✗ Error: {exc}")

        except BrowserUnavailable as exc:
            partial = True
            logger.error("Browser unavailable; returning partial results: %s", exc)
            self.metrics.record_event("fatal", error=str(exc))
            print(f"   ✗ Browser unavailable: {exc}")
        except KeyboardInterrupt:
            partial = True
            logger.warning("Interrupted during crawl; returning partial results")
            print("\n⚠️  Interrupted - returning partial results")
        except Exception as exc:
            partial = True
            logger.exception("Crawl aborted; returning partial results")
            self.metrics.record_event("fatal", error=str(exc))
            print(f"   ✗ Error: {exc}")
        finally:
            if self._owns_browser and self.browser is not None:
                self.browser.stop()

        self.metrics.finish()
        report = self.aggregator.aggregate(
            state.records,
            partial=partial,
            pages_visited=state.pages_visited,
            sessions=sessions,
        )

        print(f"\n📊 Total: {report.total_collected} unique jobs across {report.pages_visited} pages")
        print("="*60 + "\n")
        logger.info(
            f"Crawl complete: {report.total_collected} jobs, {len(state.dedup)} unique links, "
            f"partial={partial}"
        )
        return report

    def _crawl_session(self, controller: PaginationController, session: SearchSession,
                       state: CrawlState, visitor: Optional[DetailVisitor]) -> None:
        state.session_pages = 0
        try:
            visited = controller.run(
                session, lambda page_index: self._process_page(page_index, state, visitor)
            )
        except BaseException:
            # run() never returned its count; fall back to pages already processed
            state.pages_visited += state.session_pages
            raise
        state.pages_visited += visited

    def _build_visitor(self) -> DetailVisitor:
        return DetailVisitor(
            self.browser.isolated_page,
            selectors=self.selectors,
            artifact_dir=self.config.get_artifact_dir(),
            timeout_ms=self.config.get_detail_timeout(),
            wait_until=self.config.get_detail_wait_until(),
            is_alive=self.browser.is_connected,
        )

    def _process_page(self, page_index: int, state: CrawlState, visitor: Optional[DetailVisitor]) -> None:
        records = self.extractor.extract(self.browser.page, page_index)
        state.session_pages += 1
        self.metrics.inc("cards_seen", len(records))
        print(f"✅ Found {len(records)} jobs on page {page_index}")

        for item_index, raw in enumerate(records):
            if not state.dedup.admit(raw.link):
                self.metrics.inc("duplicates_skipped")
                continue
            state.records.append(self._enrich(raw, visitor, state, page_index, item_index))

        print(f"   ✓ Collected {len(state.records)} jobs")

    def _enrich(self, raw: RawRecord, visitor: Optional[DetailVisitor], state: CrawlState,
                page_index: int, item_index: int) -> EnrichedRecord:
        max_visits = self.config.get_detail_max_visits()
        if visitor is None or not raw.link or (max_visits > 0 and state.detail_visits >= max_visits):
            return EnrichedRecord.from_raw(raw)

        state.detail_visits += 1
        visit_label = f"{state.detail_visits}/{max_visits}" if max_visits > 0 else f"{state.detail_visits}/∞"
        print(f"\r   Detail visit: {visit_label}", end="", flush=True)
        record = visitor.visit(raw, page_index=page_index, item_index=item_index)
        print("")

        self.metrics.inc("detail_visits")
        if record.visit_error:
            self.metrics.inc("visit_errors")
        if record.artifact_path:
            self.metrics.inc("artifacts_saved")

        delay = self.config.get_detail_delay()
        if delay > 0:
            time.sleep(delay)
        return record
