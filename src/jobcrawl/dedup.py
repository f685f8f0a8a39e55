"""
Deduplicator - in-run de-duplication of job records by link
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class Deduplicator:
    """Owns the visited-link set for a single crawl run.

    The set only grows. Records without a link have no identity and are
    always admitted.
    """

    def __init__(self) -> None:
        self._visited: set[str] = set()
        self._lock = threading.Lock()
        self.duplicates = 0

    def admit(self, link: Optional[str]) -> bool:
        key = (link or "").strip()
        if not key:
            return True
        with self._lock:
            if key in self._visited:
                self.duplicates += 1
                logger.debug("Duplicate link skipped: %s", key)
                return False
            self._visited.add(key)
            return True

    def __len__(self) -> int:
        return len(self._visited)
