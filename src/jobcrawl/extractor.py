"""
Record Extractor - turns listing cards on a loaded results page into RawRecords
"""

import logging
from typing import List, Optional, Sequence
from urllib.parse import urljoin

from jobcrawl.errors import raise_if_fatal
from jobcrawl.models import RawRecord
from jobcrawl.site_selectors import SiteSelectors

logger = logging.getLogger(__name__)


def extract_text(element) -> str:
    """inner_text with a text_content fallback; never raises for a flaky element"""
    if not element:
        return ""
    try:
        text = (element.inner_text() or "").strip()
    except Exception as exc:
        raise_if_fatal(exc, "text read")
        text = ""
    if not text:
        try:
            text = (element.text_content() or "").strip()
        except Exception as exc:
            raise_if_fatal(exc, "text read")
            text = ""
    return text


def first_text(root, selectors: Sequence[str]) -> Optional[str]:
    """Text of the first selector that resolves to a non-empty element"""
    for selector in selectors:
        try:
            element = root.query_selector(selector)
        except Exception as exc:
            raise_if_fatal(exc, f"query {selector}")
            logger.debug("Selector failed: %s (%s)", selector, exc)
            continue
        text = extract_text(element)
        if text:
            return text
    return None


def first_attribute(root, selectors: Sequence[str], name: str) -> Optional[str]:
    for selector in selectors:
        try:
            element = root.query_selector(selector)
            value = element.get_attribute(name) if element else None
        except Exception as exc:
            raise_if_fatal(exc, f"attribute {name} on {selector}")
            logger.debug("Attribute lookup failed: %s[%s] (%s)", selector, name, exc)
            continue
        if value and value.strip():
            return value.strip()
    return None


class RecordExtractor:
    """Reads listing cards in DOM order using the configured selector chains"""

    def __init__(self, selectors: Optional[SiteSelectors] = None, max_per_page: int = 0) -> None:
        self.selectors = selectors or SiteSelectors()
        self.max_per_page = max_per_page

    def extract(self, page, page_index: Optional[int] = None) -> List[RawRecord]:
        try:
            cards = page.query_selector_all(self.selectors.card)
        except Exception as exc:
            raise_if_fatal(exc, "card query")
            logger.warning("Card query failed on page %s: %s", page_index, exc)
            return []

        if self.max_per_page > 0:
            cards = cards[: self.max_per_page]

        base_url = getattr(page, "url", "") or ""
        records = []
        for card in cards:
            records.append(self._extract_card(card, base_url, page_index))

        logger.info("Extracted %s records from page %s", len(records), page_index)
        return records

    def _extract_card(self, card, base_url: str, page_index: Optional[int]) -> RawRecord:
        s = self.selectors
        href = first_attribute(card, s.card_link, "href")
        link = urljoin(base_url, href) if href else None
        return RawRecord(
            title=first_text(card, s.card_title),
            company=first_text(card, s.card_company),
            location=first_text(card, s.card_location),
            link=link,
            body_text=extract_text(card),
            page_index=page_index,
        )
