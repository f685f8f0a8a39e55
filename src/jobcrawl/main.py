#!/usr/bin/env python3

"""
jobcrawl - Main Entry Point
Crawl a job board search, visit details, categorize, and save a report
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from jobcrawl.config_loader import load_config
from jobcrawl.crawler import JobCrawler
from jobcrawl.errors import ConfigValidationError
from jobcrawl.models import SearchSession
from jobcrawl.output_writer import OutputWriter


def setup_logging(config) -> None:
    """Configure logging for the application"""
    log_file = config.get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, config.get_log_level(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_file}")


def display_config(config, sessions: List[SearchSession], detail_enabled: bool) -> None:
    """Display loaded configuration"""
    print("\n" + "="*60)
    print("🤖 JOBCRAWL v0.1")
    print("="*60)

    print(f"\n📋 SEARCHES ({len(sessions)}):")
    for i, session in enumerate(sessions, 1):
        print(f"  {i}. {session}")
    print(f"➡️  Pagination: {config.get_pagination_strategy()}")

    print(f"\n⚙️  BROWSER SETTINGS:")
    print(f"  Headless mode: {config.is_headless()}")
    print(f"  Page timeout: {config.get_page_timeout()/1000}s")
    print(f"  Detail visits: {detail_enabled}")
    if detail_enabled:
        max_visits = config.get_detail_max_visits()
        print(f"  Max detail visits: {max_visits if max_visits > 0 else 'unlimited'}")
        print(f"  Screenshots: {config.get_artifact_dir()}")

    labels = [rule.label for rule in config.get_category_rules()]
    print(f"\n🏷️  Categories: {', '.join(labels)}")
    print("\n" + "="*60 + "\n")


def apply_cli_overrides(config, args: argparse.Namespace) -> None:
    """Write CLI settings that other components read from config"""
    if args.strategy:
        search = config.get('search') or {}
        config.config['search'] = {**search, 'pagination_strategy': args.strategy}


def build_sessions(config, args: argparse.Namespace) -> List[SearchSession]:
    """Config searches, or a single search when --keyword/--location is given"""
    max_pages = args.max_pages if args.max_pages is not None else config.get_max_pages()
    if args.keyword or args.location:
        return [SearchSession(
            keyword=args.keyword or config.get_keyword(),
            location=args.location or config.get_location(),
            max_pages=max_pages,
        )]
    return [
        SearchSession(keyword=session.keyword, location=session.location, max_pages=max_pages)
        for session in config.get_search_sessions()
    ]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Job board crawler")
    parser.add_argument("--config", default=None, help="Path to config YAML")
    parser.add_argument("--keyword", help="Search keyword")
    parser.add_argument("--location", help="Search location")
    parser.add_argument("--max-pages", type=int, default=None, help="Max result pages")
    parser.add_argument("--strategy", choices=["url", "next"], help="Pagination strategy")
    parser.add_argument("--no-detail", action="store_true", help="Skip detail page visits")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function"""
    print("\n🚀 Starting jobcrawl...")
    load_dotenv(override=False)
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        apply_cli_overrides(config, args)
        sessions = build_sessions(config, args)
    except FileNotFoundError as e:
        print(f"❌ Error: {e}")
        print("Make sure config/settings.yaml exists!")
        return 1
    except (ConfigValidationError, ValueError) as e:
        print(f"❌ Error loading config: {e}")
        return 1

    setup_logging(config)
    logger = logging.getLogger(__name__)

    detail_enabled = config.is_detail_enabled() and not args.no_detail
    display_config(config, sessions, detail_enabled)

    crawler = JobCrawler(config)
    report = crawler.crawl_all(sessions, detail_enabled=detail_enabled)
    if report.partial:
        print("⚠️  Crawl ended early; saving partial results.")

    writer = OutputWriter(config)
    output_files = writer.write_all(report)
    metrics_path = crawler.metrics.write_json(
        template=config.get_metrics_template(),
        extra={"sessions": [s.model_dump() for s in sessions], "partial": report.partial},
    )

    print("\n" + "="*60)
    print("✅ JOB CRAWL COMPLETE" if not report.partial else "⚠️  JOB CRAWL PARTIAL")
    print("="*60)
    print(f"\n📊 Results: {report.total_collected} jobs collected")
    for label, count in report.category_counts().items():
        print(f"   - {label}: {count}")
    print(f"\n📈 Run:")
    for line in crawler.metrics.summary():
        print(f"   - {line}")
    print(f"📁 Files:")
    print(f"   JSON: {output_files['json']}")
    print(f"   CSV: {output_files['csv']}")
    print(f"   Metrics: {metrics_path}")
    print("\n" + "="*60 + "\n")

    logger.info(f"Job crawl complete: {report.total_collected} jobs saved")
    return 0


if __name__ == "__main__":
    sys.exit(main())
