"""
Data models for jobcrawl
Defines search sessions, raw/enriched job records, and the aggregate report
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SearchSession(BaseModel):
    """One crawl invocation: what to search for and how many pages to walk"""

    model_config = ConfigDict(frozen=True)

    keyword: str
    location: str
    max_pages: int = Field(default=1, ge=0)

    def __str__(self) -> str:
        return f"'{self.keyword}' in {self.location} (max {self.max_pages} pages)"


class RawRecord(BaseModel):
    """A listing card as it appeared on a results page"""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    link: Optional[str] = None
    body_text: str = ""
    page_index: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.title or 'Unknown Title'} at {self.company or 'Unknown Company'} ({self.location or '-'})"


class ApplicationSignal(str, Enum):
    EASY_APPLY = "EasyApply"
    NO_EASY_APPLY = "NoEasyApply"
    GATED = "Gated"
    UNVISITED = "Unvisited"


class EnrichedRecord(RawRecord):
    """Raw record plus whatever the detail visit managed to resolve"""

    description: Optional[str] = None
    posted_at: Optional[str] = None
    application_signal: ApplicationSignal = ApplicationSignal.UNVISITED
    artifact_path: Optional[str] = None
    visit_error: Optional[str] = None
    categories: List[str] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: RawRecord, **enrichment: Any) -> "EnrichedRecord":
        """Build a new enriched value; the raw record is left untouched."""
        payload = raw.model_dump()
        # Detail-page fallbacks only fill fields the card left empty
        for key in ("title", "company", "location"):
            if payload.get(key) is None and enrichment.get(key) is not None:
                payload[key] = enrichment[key]
            enrichment.pop(key, None)
        payload.update(enrichment)
        return cls(**payload)

    def to_row(self) -> Dict[str, Any]:
        """Flatten to scalar fields for tabular export"""
        row = self.model_dump(mode="json")
        row["categories"] = "; ".join(self.categories)
        return row


class AggregateReport(BaseModel):
    """Final (or partial) result of one crawl"""

    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=datetime.now)
    total_collected: int = 0
    per_category: Dict[str, List[EnrichedRecord]] = Field(default_factory=dict)
    all_records: List[EnrichedRecord] = Field(default_factory=list)
    partial: bool = False
    pages_visited: int = 0
    sessions: List[SearchSession] = Field(default_factory=list)

    def category_counts(self) -> Dict[str, int]:
        return {label: len(records) for label, records in self.per_category.items()}
