"""
Output Writer - Exports the aggregate report to JSON and CSV
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List

from jobcrawl.models import AggregateReport, EnrichedRecord

logger = logging.getLogger(__name__)

CSV_COLUMNS = list(EnrichedRecord.model_fields.keys())


class OutputWriter:
    """Handles exporting crawl results to various formats"""

    def __init__(self, config):
        self.config = config

    def _ensure_output_dir(self, path: Path) -> None:
        """Create output directory if it doesn't exist"""
        path.parent.mkdir(parents=True, exist_ok=True)

    def write_json(self, report: AggregateReport) -> Path:
        """Export the categorized report to a JSON file"""
        output_path = self.config.get_output_path('json')
        self._ensure_output_dir(output_path)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(report.model_dump(mode="json"), f, indent=2)

        logger.info(f"JSON written: {output_path}")
        print(f"💾 JSON saved: {output_path}")
        return output_path

    def write_csv(self, records: List[EnrichedRecord]) -> Path:
        """Export one flat row per record"""
        output_path = self.config.get_output_path('csv')
        self._ensure_output_dir(output_path)

        with open(output_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, extrasaction='ignore')
            writer.writeheader()
            for record in records:
                writer.writerow(record.to_row())

        logger.info(f"CSV written: {output_path}")
        print(f"📝 CSV saved: {output_path}")
        return output_path

    def write_all(self, report: AggregateReport) -> Dict[str, Path]:
        """Write all output formats"""
        return {
            'json': self.write_json(report),
            'csv': self.write_csv(report.all_records),
        }
