"""jobcrawl - paginated job-board crawler with detail visits and rule-based categories"""

__version__ = "0.1.0"
