"""
CLI interface for the site audit engine.

Usage:
    python -m siteaudit.main example.com --all                 # All checks
    python -m siteaudit.main example.com --checks robots,ssl   # Topology + selected checks
    python -m siteaudit.main example.com --output-format json  # JSON report
    python -m siteaudit.main example.com --concurrent          # Run checkers concurrently
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from siteaudit.config import AuditConfig
from siteaudit.core.checklist import ProgressEvent
from siteaudit.core.errors import TargetResolutionError
from siteaudit.core.models import CheckStatus
from siteaudit.orchestrator import CHECK_ORDER, AuditOrchestrator, parse_check_ids
from siteaudit.reports.generator import STATUS_GLYPHS, ReportGenerator

EXIT_OK = 0
EXIT_AUDIT_ERRORS = 1
EXIT_BAD_TARGET = 2


def setup_logging(verbose: bool = False):
    """Настроить логирование."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Парсинг аргументов командной строки."""
    known = ", ".join(c.value for c in CHECK_ORDER)
    parser = argparse.ArgumentParser(
        description='Site Audit Tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Checks: {known}
(topology always runs)

Examples:
  # Run every check
  python -m siteaudit.main example.com --all

  # Run robots.txt and SSL checks
  python -m siteaudit.main example.com --checks robots,ssl

  # Generate JSON report
  python -m siteaudit.main example.com --all --output-format json
        """
    )

    parser.add_argument('domain', help='Domain or URL to audit')

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        '--all',
        action='store_true',
        help='Run all checks (default)'
    )
    selection.add_argument(
        '--checks',
        type=str,
        help='Comma-separated list of checks to run in addition to topology'
    )

    parser.add_argument(
        '--output-format',
        choices=['markdown', 'json'],
        default='markdown',
        help='Output format (default: markdown)'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        help='Output directory (default: audit_reports/)'
    )
    parser.add_argument(
        '--concurrent',
        action='store_true',
        help='Run checkers concurrently (progress is still reported in order)'
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '--no-summary',
        action='store_true',
        help='Skip printing summary to console'
    )

    args = parser.parse_args(argv)

    if args.checks:
        try:
            args.enabled_checks = parse_check_ids(c for c in args.checks.split(",") if c.strip())
        except ValueError as e:
            parser.error(str(e))
    else:
        args.enabled_checks = None

    return args


def log_progress(event: ProgressEvent):
    glyph = STATUS_GLYPHS[event.status]
    logger.info(f"{glyph} {event.label}: {event.status.value}")


async def main(argv: Optional[List[str]] = None) -> int:
    """Главная функция. Возвращает код выхода."""
    env_path = Path.cwd() / '.env'
    if env_path.exists():
        load_dotenv(env_path)

    args = parse_args(argv)
    setup_logging(args.verbose)

    config = AuditConfig()
    if args.concurrent:
        config.concurrent = True
    if args.output_dir:
        config.report_output_dir = Path(args.output_dir)

    orchestrator = AuditOrchestrator(config)

    try:
        report = await orchestrator.run_audit(args.domain, args.enabled_checks, listener=log_progress)
    except TargetResolutionError as e:
        logger.error(f"❌ Cannot audit '{args.domain}': {e}")
        return EXIT_BAD_TARGET

    generator = ReportGenerator(output_dir=config.report_output_dir)
    report_path = generator.generate_report(report, format=args.output_format)

    logger.info("✅ Audit complete!")
    logger.info(f"   Duration: {report.duration_seconds:.2f}s")
    logger.info(f"   Report: {report_path}")

    if not args.no_summary:
        generator.print_summary(report)

    if report.overall_status is CheckStatus.ERROR:
        return EXIT_AUDIT_ERRORS
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
