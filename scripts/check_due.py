#!/usr/bin/env python3
"""
Report which of a user's medication schedules are due.

Usage:
    python scripts/check_due.py --user-id 7
    python scripts/check_due.py --user-id 7 --at 2024-01-15T08:15

Evaluates against the configured database using the same rules as
GET /api/v1/schedules/due.
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.core.errors import MedInfoError
from app.core.logging import get_logger, setup_logging
from app.db.session import close_db, get_session_factory, init_db
from app.services.schedule_service import ScheduleService

setup_logging()
logger = get_logger(__name__)


def resolve_instant(value: str | None) -> datetime:
    """Parse --at in the schedule timezone, defaulting to now."""
    tz = ZoneInfo(get_settings().SCHEDULE_TIMEZONE)
    if value is None:
        return datetime.now(timezone.utc).astimezone(tz)

    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def report_due(user_id: int, now: datetime) -> int:
    """Log the due schedules and return how many there are."""
    session = get_session_factory()()
    try:
        due = ScheduleService(session).get_due_schedules(user_id, now)
    finally:
        session.close()

    logger.info(f"Due schedules for user {user_id} at {now.isoformat()}: {len(due)}")
    for item in due:
        times = ", ".join(r.time for r in item.reminder_times)
        logger.info(
            f"  schedule {item.schedule.id}: medicine {item.schedule.medicine_id}, "
            f"{item.schedule.dosage_amount:g} {item.schedule.dosage_unit} "
            f"({item.frequency.frequency_type}; reminders {times})"
        )
    return len(due)


def main():
    parser = argparse.ArgumentParser(description="Report due medication schedules")
    parser.add_argument(
        "--user-id",
        type=int,
        required=True,
        help="Owner whose schedules to evaluate"
    )
    parser.add_argument(
        "--at",
        default=None,
        help="ISO instant to evaluate at (default: now)"
    )

    args = parser.parse_args()

    try:
        now = resolve_instant(args.at)
    except ValueError as e:
        parser.error(f"--at: {e}")

    init_db()
    try:
        report_due(args.user_id, now)
    except MedInfoError as e:
        logger.error(f"Due check failed: {e.message}")
        sys.exit(1)
    finally:
        close_db()


if __name__ == "__main__":
    main()
