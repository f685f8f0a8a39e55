"""

Configuration loader for jobcrawl
Reads and validates settings.yaml
"""

import yaml
import os
from pathlib import Path
from typing import Dict, Any, List, Optional
from datetime import datetime
import logging

from pydantic import ValidationError

from jobcrawl.categorizer import CategoryRule, default_rules
from jobcrawl.errors import ConfigValidationError
from jobcrawl.models import SearchSession
from jobcrawl.site_selectors import SiteSelectors

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"
PAGINATION_STRATEGIES = ("url", "next")


def _validate_non_negative(value: Any, field: str) -> None:
    """Validate that a numeric value is non-negative."""
    if value is not None and float(value) < 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be non-negative, got {value}"
        )


def _validate_positive(value: Any, field: str) -> None:
    """Validate that a numeric value is positive (> 0)."""
    if value is not None and float(value) <= 0:
        raise ConfigValidationError(
            f"Invalid config: '{field}' must be positive (> 0), got {value}"
        )


def _env_flag(name: str) -> Optional[bool]:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return None
    return raw in ("1", "true", "yes", "on")


class ConfigLoader:
    """Loads and validates configuration from YAML file"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load config from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"✓ Config loaded from {self.config_path}")
        except yaml.YAMLError as e:
            logger.error(f"Error parsing config file: {e}")
            raise

        self._validate_invariants()

    def _validate_invariants(self) -> None:
        """Validate configuration invariants. Raises ConfigValidationError on failure."""
        _validate_non_negative(self.get('search.max_pages'), 'search.max_pages')
        _validate_non_negative(self.get('search.page_delay_seconds'), 'search.page_delay_seconds')
        _validate_non_negative(self.get('search.max_records_per_page'), 'search.max_records_per_page')

        strategy = self.get('search.pagination_strategy')
        if strategy is not None and strategy not in PAGINATION_STRATEGIES:
            raise ConfigValidationError(
                f"Invalid config: 'search.pagination_strategy' must be one of "
                f"{', '.join(PAGINATION_STRATEGIES)}, got {strategy}"
            )

        _validate_positive(self.get('browser.page_timeout'), 'browser.page_timeout')
        _validate_positive(self.get('browser.navigation_timeout'), 'browser.navigation_timeout')
        _validate_positive(self.get('browser.listing_timeout'), 'browser.listing_timeout')

        _validate_non_negative(self.get('detail.max_visits'), 'detail.max_visits')
        _validate_non_negative(self.get('detail.delay_seconds'), 'detail.delay_seconds')
        _validate_positive(self.get('detail.timeout'), 'detail.timeout')

        # Parse once so bad selectors, rules or search lists fail at load time
        self.get_search_sessions()
        self.get_selectors()
        self.get_category_rules()

        logger.debug("✓ Config invariants validated")

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value by dot notation (e.g., 'search.keyword')"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k, default)
            else:
                return default

        return value

    # === Search Config ===

    def get_keyword(self) -> str:
        """Get job search keyword"""
        return self.get('search.keyword', 'Data Analyst')

    def get_location(self) -> str:
        """Get job search location"""
        return self.get('search.location', 'Boston, MA')

    def get_max_pages(self) -> int:
        """Get max pages to paginate per search"""
        return int(self.get('search.max_pages', 5))

    def get_keywords(self) -> List[str]:
        """Get list of job search keywords (falls back to search.keyword)"""
        return self._string_list('search.keywords') or [self.get_keyword()]

    def get_locations(self) -> List[str]:
        """Get list of search locations (falls back to search.location)"""
        return self._string_list('search.locations') or [self.get_location()]

    def get_search_sessions(self) -> List[SearchSession]:
        """One session per keyword/location pair, keywords outermost"""
        max_pages = self.get_max_pages()
        return [
            SearchSession(keyword=keyword, location=location, max_pages=max_pages)
            for keyword in self.get_keywords()
            for location in self.get_locations()
        ]

    def _string_list(self, key: str) -> List[str]:
        value = self.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
            raise ConfigValidationError(
                f"Invalid config: '{key}' must be a list of non-empty strings, got {value!r}"
            )
        return [v.strip() for v in value]

    def get_base_url(self) -> str:
        """Get search results base URL"""
        return self.get('search.base_url', 'https://www.dice.com/jobs')

    def get_pagination_strategy(self) -> str:
        """Get page advance strategy ('url' or 'next')"""
        return self.get('search.pagination_strategy', 'url')

    def get_page_param(self) -> str:
        return self.get('search.page_param', 'page')

    def get_page_delay(self) -> float:
        """Get delay between result pages in seconds"""
        return float(self.get('search.page_delay_seconds', 0.5))

    def get_max_records_per_page(self) -> int:
        """Get cap on cards read per page (0 = all)"""
        return int(self.get('search.max_records_per_page', 0))

    # === Browser Config ===

    def is_headless(self) -> bool:
        """Check if browser should run in headless mode"""
        override = _env_flag('JOBCRAWL_HEADLESS')
        if override is not None:
            return override
        return bool(self.get('browser.headless', True))

    def get_page_timeout(self) -> int:
        """Get page load timeout in milliseconds"""
        return int(self.get('browser.page_timeout', 30) * 1000)

    def get_navigation_timeout(self) -> int:
        """Get navigation timeout in milliseconds"""
        return int(self.get('browser.navigation_timeout', 45) * 1000)

    def get_listing_timeout(self) -> int:
        """Get wait for listing cards in milliseconds"""
        return int(self.get('browser.listing_timeout', 20) * 1000)

    def get_wait_until(self) -> str:
        return self.get('browser.wait_until', 'domcontentloaded')

    def get_browser_channel(self) -> str:
        """Get Playwright browser channel override"""
        return self.get('browser.channel', '')

    def get_launch_args(self) -> List[str]:
        return list(self.get('browser.args', ["--disable-blink-features=AutomationControlled"]))

    # === Detail Visit Config ===

    def is_detail_enabled(self) -> bool:
        """Check if per-record detail visits are enabled"""
        return bool(self.get('detail.enabled', True))

    def get_detail_max_visits(self) -> int:
        """Get max detail visits per run (0 = unlimited)"""
        return int(self.get('detail.max_visits', 0))

    def get_detail_delay(self) -> float:
        """Get delay between detail visits in seconds"""
        return float(self.get('detail.delay_seconds', 0.3))

    def get_detail_timeout(self) -> int:
        """Get detail page navigation timeout in milliseconds"""
        return int(self.get('detail.timeout', 60) * 1000)

    def get_detail_wait_until(self) -> str:
        return self.get('detail.wait_until', 'domcontentloaded')

    def get_artifact_dir(self) -> Path:
        """Get directory for detail-page screenshots"""
        return Path(self.get('detail.artifact_dir', 'output/screenshots'))

    # === Selectors / Categories ===

    def get_selectors(self) -> SiteSelectors:
        try:
            return SiteSelectors.model_validate(self.get('selectors', None) or {})
        except ValidationError as exc:
            raise ConfigValidationError(f"Invalid config: 'selectors': {exc}") from exc

    def get_category_rules(self) -> List[CategoryRule]:
        """Get categorization rules (defaults when none configured)"""
        raw_rules = self.get('categories', None)
        if not raw_rules:
            return default_rules()
        try:
            return [CategoryRule.model_validate(rule) for rule in raw_rules]
        except ValidationError as exc:
            raise ConfigValidationError(f"Invalid config: 'categories': {exc}") from exc

    # === Output Config ===

    def get_output_path(self, file_type: str = 'json') -> Path:
        """Get output file path with timestamp if enabled"""
        use_timestamp = self.get('output.use_timestamp', True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S') if use_timestamp else ''

        template = self.get(f'output.{file_type}_file', f'output/jobs_{{timestamp}}.{file_type}')
        filename = template.replace('{timestamp}', timestamp)

        return Path(filename)

    def get_metrics_template(self) -> str:
        return self.get('output.metrics_file', 'output/run_metrics_{timestamp}.json')

    # === Logging Config ===

    def get_log_level(self) -> str:
        """Get logging level"""
        return self.get('logging.level', 'INFO')

    def get_log_file(self) -> Path:
        """Get log file path with timestamp"""
        template = self.get('logging.log_file', 'logs/jobcrawl.log')
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = template.replace('{timestamp}', timestamp)
        return Path(filename)

    def __repr__(self) -> str:
        return f"<Config: keyword={self.get_keyword()}, location={self.get_location()}>"


# Convenience function
def load_config(config_path: Optional[str] = None) -> ConfigLoader:
    """Load configuration from file ($JOBCRAWL_CONFIG when no path is given)"""
    path = config_path or os.getenv('JOBCRAWL_CONFIG') or DEFAULT_CONFIG_PATH
    return ConfigLoader(path)
