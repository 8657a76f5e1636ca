#!/usr/bin/env python3
"""
Send personalized posters to members from the command line.

Usage:
    python send_posters.py --template poster.jpg                       # All Health + Wealth members
    python send_posters.py --template poster.jpg --designation wealth  # Only Wealth Managers
    python send_posters.py --template poster.jpg --dry-run             # Compose only, keep files in output/
    python send_posters.py --template poster.jpg --member <id>         # A single member
    python send_posters.py --check-email                               # Verify SMTP login only
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import LOGS_DIR, OUTPUT_DIR, POSTER_WORKERS
from posterkit import member_store
from posterkit.batch import run_batch, select_recipients
from posterkit.mailer import Mailer
from posterkit.members import Member

logger = logging.getLogger("send_posters")


def setup_logging(verbose: bool = False):
    """Configure logging to both console and file."""
    level = logging.DEBUG if verbose else logging.INFO
    log_file = LOGS_DIR / f"send_posters_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    from config.settings import LOG_DATE_FORMAT, LOG_FORMAT

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file),
        ],
    )
    logger.info(f"Log file: {log_file}")


def _recipients(designation: str, member_id: str | None) -> list[Member]:
    if member_id:
        row = member_store.get_member(member_id)
        if not row:
            raise SystemExit(f"member not found: {member_id}")
        return [Member.from_record(row)]
    return select_recipients(designation)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Generate personalized posters and email them to members",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--template", help="Poster template image (JPEG/PNG)")
    parser.add_argument("--designation", default="both", help="both | health | wealth | partner | <custom>")
    parser.add_argument("--member", help="Send to a single member id instead of a designation")
    parser.add_argument("--dry-run", action="store_true", help="Compose posters without emailing; keep files")
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR, help="Where posters are written")
    parser.add_argument("--workers", type=int, default=POSTER_WORKERS, help="Concurrent compositions")
    parser.add_argument("--check-email", action="store_true", help="Verify SMTP credentials and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    if args.check_email:
        ok = Mailer().verify()
        logger.info("SMTP login OK" if ok else "SMTP check failed")
        return 0 if ok else 1
    if not args.template:
        parser.error("--template is required unless --check-email is given")

    template = Path(args.template)
    if not template.is_file():
        logger.error(f"Template not found: {template}")
        return 1

    recipients = _recipients(args.designation, args.member)
    if not recipients:
        logger.error(f"No recipients found for designation: {args.designation}")
        return 1

    try:
        report = run_batch(
            template,
            recipients,
            output_dir=args.output_dir,
            workers=args.workers,
            send_email=not args.dry_run,
            keep_output=args.dry_run,
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1

    print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
