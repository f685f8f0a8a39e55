# tests/conftest.py
"""
Fake Playwright objects: just enough of Page / ElementHandle / BrowserSession
for the crawl components, no real browser.
"""
from contextlib import contextmanager
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import pytest
import yaml
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from jobcrawl.config_loader import ConfigLoader
from jobcrawl.site_selectors import SiteSelectors

SELECTORS = SiteSelectors()
BASE_URL = "https://www.dice.com/jobs"


class FakeElement:
    def __init__(self, text: str = "", attrs: Optional[Dict[str, str]] = None,
                 children: Optional[Dict[str, object]] = None, on_click=None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.on_click = on_click
        self.clicks = 0

    def inner_text(self) -> str:
        return self.text

    def text_content(self) -> str:
        return self.text

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    def query_selector(self, selector: str):
        found = self.children.get(selector)
        if isinstance(found, list):
            return found[0] if found else None
        return found

    def query_selector_all(self, selector: str):
        found = self.children.get(selector)
        if found is None:
            return []
        return found if isinstance(found, list) else [found]

    def click(self, **kwargs) -> None:
        self.clicks += 1
        if self.on_click:
            self.on_click()


def make_card(title: Optional[str] = "Data Analyst", company: Optional[str] = "Acme",
              location: Optional[str] = "Boston, MA", link: Optional[str] = "/job-detail/1",
              extra_text: str = "") -> FakeElement:
    children = {}
    if title is not None or link is not None:
        attrs = {"href": link} if link is not None else {}
        anchor = FakeElement(text=title or "", attrs=attrs)
        children[SELECTORS.card_title[0]] = anchor
        children[SELECTORS.card_link[0]] = anchor
    if company is not None:
        children[SELECTORS.card_company[0]] = FakeElement(text=company)
    if location is not None:
        children[SELECTORS.card_location[0]] = FakeElement(text=location)
    body = "\n".join(p for p in (title, company, location, extra_text) if p)
    return FakeElement(text=body, children=children)


def make_cards(page: int, count: int, prefix: str = "job") -> List[FakeElement]:
    return [
        make_card(title=f"Analyst {page}-{i}", link=f"/job-detail/{prefix}-{page}-{i}")
        for i in range(count)
    ]


class FakeSearchPage:
    """Results pages keyed by page number, with indicator and next control"""

    def __init__(self, pages: Dict[int, List[FakeElement]], total_pages: Optional[int] = None,
                 next_disabled_on: Optional[set] = None, next_missing_on: Optional[set] = None,
                 indicator_label: Optional[str] = None,
                 pages_by_keyword: Optional[Dict[str, Dict[int, List[FakeElement]]]] = None):
        self.pages = pages
        # per-search results; a goto with a known q= switches to them
        self.pages_by_keyword = pages_by_keyword or {}
        self.total_pages = total_pages
        self.indicator_label = indicator_label
        self.next_disabled_on = next_disabled_on or set()
        self.next_missing_on = next_missing_on or set()
        self.current = 0
        self.url = ""
        self.visited_urls: List[str] = []
        self.navigation_waits = 0
        self._pending_page: Optional[int] = None

    def goto(self, url: str, **kwargs) -> None:
        self.visited_urls.append(url)
        query = parse_qs(urlparse(url).query)
        keyword = query.get("q", [""])[0]
        if keyword in self.pages_by_keyword:
            self.pages = self.pages_by_keyword[keyword]
        self.current = int(query.get("page", ["1"])[0])
        self.url = url

    def wait_for_selector(self, selector: str, timeout: Optional[int] = None):
        cards = self.pages.get(self.current) or []
        if selector == SELECTORS.card and cards:
            return cards[0]
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    def query_selector_all(self, selector: str):
        if selector == SELECTORS.card:
            return list(self.pages.get(self.current) or [])
        return []

    def query_selector(self, selector: str):
        if selector == SELECTORS.page_indicator:
            if self.indicator_label is not None:
                return FakeElement(attrs={"aria-label": self.indicator_label})
            if self.total_pages is None:
                return None
            return FakeElement(attrs={"aria-label": f"Page {self.current} of {self.total_pages}"})
        if selector == SELECTORS.next_control[0]:
            if self.current in self.next_missing_on:
                return None
            attrs = {"aria-disabled": "true" if self.current in self.next_disabled_on else "false"}
            return FakeElement(attrs=attrs, on_click=self._click_next)
        return None

    def _click_next(self) -> None:
        self._pending_page = self.current + 1

    @contextmanager
    def expect_navigation(self, **kwargs):
        yield
        self.navigation_waits += 1
        if self._pending_page is not None:
            self.current = self._pending_page
            self.url = f"{BASE_URL}?page={self.current}"
            self._pending_page = None


class DetailSpec:
    def __init__(self, elements: Optional[Dict[str, FakeElement]] = None,
                 nav_error: Optional[Exception] = None, screenshot_error: Optional[Exception] = None,
                 kills_browser: bool = False):
        self.elements = elements or {}
        self.nav_error = nav_error
        self.screenshot_error = screenshot_error
        # nav_error comes from the whole browser going away, not just this page
        self.kills_browser = kills_browser


class FakeDetailPage:
    def __init__(self, details: Dict[str, DetailSpec], browser: Optional["FakeBrowser"] = None):
        self.details = details
        self.browser = browser
        self.spec = DetailSpec()
        self.url = ""
        self.screenshots: List[str] = []

    def goto(self, url: str, **kwargs) -> None:
        self.url = url
        self.spec = self.details.get(url, DetailSpec())
        if self.spec.kills_browser and self.browser is not None:
            self.browser.connected = False
        if self.spec.nav_error is not None:
            raise self.spec.nav_error

    def query_selector(self, selector: str):
        return self.spec.elements.get(selector)

    def screenshot(self, path: str, full_page: bool = False) -> None:
        if self.spec.screenshot_error is not None:
            raise self.spec.screenshot_error
        self.screenshots.append(path)


class FakeBrowser:
    """Stands in for BrowserSession: a search page plus isolated detail pages"""

    def __init__(self, page: FakeSearchPage, details: Optional[Dict[str, DetailSpec]] = None):
        self.page = page
        self.details = details or {}
        self.connected = True
        self.opened = 0
        self.closed = 0
        self.visited_links: List[str] = []

    def is_connected(self) -> bool:
        return self.connected

    @contextmanager
    def isolated_page(self, timeout_ms: Optional[int] = None):
        self.opened += 1
        detail_page = FakeDetailPage(self.details, self)
        try:
            yield detail_page
        finally:
            if detail_page.url:
                self.visited_links.append(detail_page.url)
            self.closed += 1


def write_config(tmp_path, overrides: Optional[dict] = None) -> ConfigLoader:
    data = {
        "search": {
            "keyword": "Data Analyst",
            "location": "Boston, MA",
            "max_pages": 3,
            "base_url": BASE_URL,
            "pagination_strategy": "url",
            "page_delay_seconds": 0,
        },
        "detail": {
            "enabled": True,
            "delay_seconds": 0,
            "artifact_dir": str(tmp_path / "shots"),
        },
        "output": {
            "json_file": str(tmp_path / "out" / "jobs_{timestamp}.json"),
            "csv_file": str(tmp_path / "out" / "jobs_{timestamp}.csv"),
            "metrics_file": str(tmp_path / "out" / "metrics_{timestamp}.json"),
        },
        "logging": {"level": "DEBUG", "log_file": str(tmp_path / "logs" / "jobcrawl.log")},
    }
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(data.get(section), dict):
            data[section].update(values)
        else:
            data[section] = values
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return ConfigLoader(str(path))


@pytest.fixture
def config(tmp_path):
    return write_config(tmp_path)
