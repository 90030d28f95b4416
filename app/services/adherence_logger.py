"""
Adherence logging: an append-only record of doses taken, skipped or late.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import DependencyError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.models import MedicationLog, MedicationSchedule, ReminderTime
from app.schemas.schedule import LogCreate, LogNotesUpdate
from app.services.schedule_service import ScheduleService

logger = get_logger(__name__)


class AdherenceLogger:
    """
    Records and reads medication logs for schedules a user owns.
    """

    def __init__(self, db: Session, schedules: Optional[ScheduleService] = None):
        self._db = db
        self._schedules = schedules or ScheduleService(db)

    def log_event(
        self,
        owner_id: int,
        schedule_id: int,
        data: LogCreate,
        now: Optional[datetime] = None
    ) -> MedicationLog:
        """
        Append a log entry stamped with the current time.

        Raises:
            NotFoundError: Unknown schedule.
            AuthorizationError: Schedule owned by someone else.
            ValidationError: Reminder time belongs to a different schedule.
        """
        self._schedules.get_schedule(owner_id, schedule_id)

        if data.reminder_time_id is not None:
            reminder = self._find_reminder(data.reminder_time_id)
            if reminder is None or reminder.schedule_id != schedule_id:
                raise ValidationError("Reminder time does not belong to this schedule")

        entry = MedicationLog(
            schedule_id=schedule_id,
            reminder_time_id=data.reminder_time_id,
            taken_at=now or datetime.now(timezone.utc),
            scheduled=data.scheduled,
            status=data.status.value,
            notes=data.notes,
        )
        self._db.add(entry)
        self._commit("Failed to record medication log")
        self._db.refresh(entry)

        logger.info(
            "Medication log recorded",
            extra={"schedule_id": schedule_id, "status": entry.status}
        )
        return entry

    def get_logs_for_schedule(
        self,
        owner_id: int,
        schedule_id: int,
        limit: Optional[int] = None
    ) -> list[MedicationLog]:
        """Most recent logs of one schedule, newest first."""
        self._schedules.get_schedule(owner_id, schedule_id)
        limit = limit or get_settings().DEFAULT_SCHEDULE_LOG_LIMIT

        stmt = (
            select(MedicationLog)
            .where(MedicationLog.schedule_id == schedule_id)
            .order_by(MedicationLog.taken_at.desc(), MedicationLog.id.desc())
            .limit(limit)
        )
        return self._fetch(stmt)

    def get_logs_for_user(self, owner_id: int, limit: Optional[int] = None) -> list[MedicationLog]:
        """Most recent logs across all of a user's schedules, newest first."""
        limit = limit or get_settings().DEFAULT_USER_LOG_LIMIT

        try:
            schedule_ids = list(self._db.scalars(
                select(MedicationSchedule.id).where(MedicationSchedule.owner_user_id == owner_id)
            ).all())
        except SQLAlchemyError as e:
            logger.error(f"Schedule id lookup failed: {e}", extra={"owner_id": owner_id})
            raise DependencyError("Failed to retrieve medication logs") from e

        if not schedule_ids:
            return []

        stmt = (
            select(MedicationLog)
            .where(MedicationLog.schedule_id.in_(schedule_ids))
            .order_by(MedicationLog.taken_at.desc(), MedicationLog.id.desc())
            .limit(limit)
        )
        return self._fetch(stmt)

    def update_notes(self, owner_id: int, log_id: int, patch: LogNotesUpdate) -> MedicationLog:
        """Correct a log's notes. Every other field is immutable."""
        try:
            entry = self._db.get(MedicationLog, log_id)
        except SQLAlchemyError as e:
            raise DependencyError("Failed to retrieve medication log") from e

        if entry is None:
            raise NotFoundError("Medication log not found")
        self._schedules.get_schedule(owner_id, entry.schedule_id)

        entry.notes = patch.notes
        self._commit("Failed to update medication log")
        self._db.refresh(entry)
        return entry

    def _find_reminder(self, reminder_id: int) -> Optional[ReminderTime]:
        try:
            return self._db.get(ReminderTime, reminder_id)
        except SQLAlchemyError as e:
            raise DependencyError("Failed to retrieve reminder time") from e

    def _fetch(self, stmt) -> list[MedicationLog]:
        try:
            return list(self._db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Medication log query failed: {e}")
            raise DependencyError("Failed to retrieve medication logs") from e

    def _commit(self, failure_message: str) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"{failure_message}: {e}")
            raise DependencyError(failure_message) from e
