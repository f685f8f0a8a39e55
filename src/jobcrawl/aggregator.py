"""
Aggregator - folds processed records into category buckets
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from jobcrawl.categorizer import Categorizer
from jobcrawl.models import AggregateReport, EnrichedRecord, SearchSession

logger = logging.getLogger(__name__)


class Aggregator:
    def __init__(self, categorizer: Optional[Categorizer] = None) -> None:
        self.categorizer = categorizer or Categorizer()

    def aggregate(
        self,
        records: Iterable[EnrichedRecord],
        partial: bool = False,
        pages_visited: int = 0,
        generated_at: Optional[datetime] = None,
        sessions: Optional[Sequence[SearchSession]] = None,
    ) -> AggregateReport:
        """One pass: label each record, bucket it, keep input order"""
        per_category: Dict[str, List[EnrichedRecord]] = {label: [] for label in self.categorizer.labels}
        all_records: List[EnrichedRecord] = []

        for record in records:
            labels = self.categorizer.classify(record)
            labelled = record.model_copy(update={"categories": labels})
            all_records.append(labelled)
            for label in labels:
                per_category.setdefault(label, []).append(labelled)

        report = AggregateReport(
            generated_at=generated_at or datetime.now(),
            total_collected=len(all_records),
            per_category=per_category,
            all_records=all_records,
            partial=partial,
            pages_visited=pages_visited,
            sessions=list(sessions or []),
        )
        logger.info("Aggregated %s records: %s", report.total_collected, report.category_counts())
        return report
