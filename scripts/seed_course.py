#!/usr/bin/env python3
"""
seed_course.py - Build a course database from YAML course fixtures.

Loads one or more course fixtures, writes them into a single SQLite
database and runs integrity checks.

Usage:
  python scripts/seed_course.py data/sample_course.yaml
  python scripts/seed_course.py data/*.yaml --output data/courselearn.db --overwrite
"""

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from courselearn.config import DEFAULT_DB_PATH, configure_logging
from courselearn.utils import (
    compute_stats,
    create_database,
    load_course_fixture,
    populate_course,
    run_integrity_checks,
)

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Build a course database from YAML course fixtures",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "fixtures",
        type=Path,
        nargs="+",
        help="YAML course fixture files"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_DB_PATH,
        help="Output database path"
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Delete an existing database first"
    )
    parser.add_argument(
        "--stats-output",
        type=Path,
        default=None,
        help="Output path for stats JSON (default: alongside database)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: COURSELEARN_LOG_LEVEL or INFO)"
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    logger.info("Loading fixtures...")
    fixtures = [load_course_fixture(path) for path in args.fixtures]
    logger.info(f"  Loaded {len(fixtures)} course fixtures")

    logger.info("Creating database...")
    conn = create_database(args.output, overwrite=args.overwrite)

    try:
        logger.info("Populating tables...")
        for fixture in fixtures:
            populate_course(conn, fixture)

        logger.info("Running integrity checks...")
        issues = run_integrity_checks(conn)
        if issues:
            logger.warning(f"Found {len(issues)} integrity issues:")
            for issue in issues[:10]:
                logger.warning(f"  - {issue}")
            if len(issues) > 10:
                logger.warning(f"  ... and {len(issues) - 10} more")
        else:
            logger.info("  All integrity checks passed!")

        stats = compute_stats(conn)
    finally:
        conn.close()

    stats_path = args.stats_output or args.output.with_suffix(".stats.json")
    with open(stats_path, "w", encoding="utf-8") as f:
        json.dump(stats, f, indent=2, ensure_ascii=False)
    logger.info(f"Saved stats to: {stats_path}")

    logger.info("=" * 50)
    logger.info("SEEDING COMPLETE")
    logger.info("=" * 50)
    logger.info(f"Database: {args.output}")
    logger.info(f"Courses: {stats['total_courses']}")
    logger.info(f"Sections: {stats['total_sections']}")
    logger.info(f"Lessons: {stats['total_lessons']}")
    logger.info(f"Quizzes: {stats['total_quizzes']}, assignments: {stats['total_assignments']}")
    if issues:
        logger.warning(f"Integrity issues: {len(issues)}")


if __name__ == "__main__":
    main()
