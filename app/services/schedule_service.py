"""
Medication schedule aggregate: schedules, their frequency and reminder times.

Every owner-scoped operation loads the schedule first and checks that the
caller owns it. Deleting a schedule removes its children in one transaction.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import (
    AuthorizationError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger
from app.db.models import (
    MedicationLog,
    MedicationSchedule,
    ReminderTime,
    ScheduleFrequency,
)
from app.schemas.schedule import (
    DueSchedule,
    FrequencyCreate,
    FrequencyOut,
    FrequencyType,
    FrequencyUpdate,
    ReminderTimeCreate,
    ReminderTimeOut,
    ReminderTimeUpdate,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)
from app.services.due_engine import is_due
from app.services.medicine_directory import MedicineDirectory

logger = get_logger(__name__)

# Schedule columns a partial update may set to null
_NULLABLE_SCHEDULE_FIELDS = {"instructions", "end_date"}


def normalize_frequency(
    frequency_type: FrequencyType,
    days_of_week: Optional[list[int]],
    day_of_month: Optional[int]
) -> dict:
    """
    Validate a frequency and clear the fields its type does not use.

    Raises:
        ValidationError: Weekly without valid days, or monthly without a day.
    """
    if frequency_type == FrequencyType.WEEKLY:
        if not days_of_week:
            raise ValidationError("daysOfWeek is required for weekly schedules")
        invalid = [day for day in days_of_week if not 0 <= day <= 6]
        if invalid:
            raise ValidationError(
                "daysOfWeek values must be between 0 (Sunday) and 6 (Saturday)",
                errors=[{"field": "daysOfWeek", "invalid": invalid}]
            )
        return {
            "frequency_type": frequency_type.value,
            "days_of_week": sorted(set(days_of_week)),
            "day_of_month": None,
        }

    if frequency_type == FrequencyType.MONTHLY:
        if day_of_month is None:
            raise ValidationError("dayOfMonth is required for monthly schedules")
        if not 1 <= day_of_month <= 31:
            raise ValidationError("dayOfMonth must be between 1 and 31")
        return {
            "frequency_type": frequency_type.value,
            "days_of_week": None,
            "day_of_month": day_of_month,
        }

    return {
        "frequency_type": frequency_type.value,
        "days_of_week": None,
        "day_of_month": None,
    }


class ScheduleService:
    """
    Owner-scoped operations on medication schedules.
    """

    def __init__(self, db: Session):
        self._db = db

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def create_schedule(self, owner_id: int, data: ScheduleCreate) -> MedicationSchedule:
        MedicineDirectory(self._db).get(data.medicine_id)

        schedule = MedicationSchedule(
            owner_user_id=owner_id,
            **data.model_dump()
        )
        self._db.add(schedule)
        self._commit("Failed to create medication schedule")
        self._db.refresh(schedule)

        logger.info(
            "Schedule created",
            extra={"schedule_id": schedule.id, "owner_id": owner_id}
        )
        return schedule

    def get_schedule(self, owner_id: int, schedule_id: int) -> MedicationSchedule:
        """
        Load a schedule the caller owns.

        Raises:
            NotFoundError: No schedule has this id.
            AuthorizationError: The schedule belongs to another user.
        """
        try:
            schedule = self._db.get(MedicationSchedule, schedule_id)
        except SQLAlchemyError as e:
            logger.error(f"Schedule lookup failed: {e}", extra={"schedule_id": schedule_id})
            raise DependencyError("Failed to retrieve medication schedule") from e

        if schedule is None:
            raise NotFoundError("Medication schedule not found")
        if schedule.owner_user_id != owner_id:
            raise AuthorizationError("You do not have access to this medication schedule")
        return schedule

    def list_for_user(self, owner_id: int) -> list[MedicationSchedule]:
        """Schedules owned by a user, most recently updated first."""
        stmt = (
            select(MedicationSchedule)
            .where(MedicationSchedule.owner_user_id == owner_id)
            .order_by(MedicationSchedule.updated_at.desc(), MedicationSchedule.id.desc())
        )
        return self._fetch(stmt, "Failed to retrieve medication schedules")

    def list_for_medicine(
        self,
        medicine_id: int,
        owner_id: Optional[int] = None
    ) -> list[MedicationSchedule]:
        """Schedules for a medicine, optionally restricted to one owner."""
        stmt = select(MedicationSchedule).where(MedicationSchedule.medicine_id == medicine_id)
        if owner_id is not None:
            stmt = stmt.where(MedicationSchedule.owner_user_id == owner_id)
        stmt = stmt.order_by(MedicationSchedule.id)
        return self._fetch(stmt, "Failed to retrieve medication schedules")

    def update_schedule(
        self,
        owner_id: int,
        schedule_id: int,
        patch: ScheduleUpdate
    ) -> MedicationSchedule:
        schedule = self.get_schedule(owner_id, schedule_id)
        changes = {
            field: value
            for field, value in patch.model_dump(exclude_unset=True).items()
            if value is not None or field in _NULLABLE_SCHEDULE_FIELDS
        }

        start_date = changes.get("start_date", schedule.start_date)
        end_date = changes.get("end_date", schedule.end_date)
        if end_date is not None and end_date < start_date:
            raise ValidationError("endDate must not be before startDate")

        if "medicine_id" in changes:
            MedicineDirectory(self._db).get(changes["medicine_id"])

        for field, value in changes.items():
            setattr(schedule, field, value)

        self._commit("Failed to update medication schedule")
        self._db.refresh(schedule)
        return schedule

    def delete_schedule(self, owner_id: int, schedule_id: int) -> None:
        """
        Delete a schedule and everything hanging off it.

        Reminder times, the frequency, logs and finally the schedule row are
        removed in that order inside one transaction. Children that are
        already gone are simply not matched.

        Raises:
            DependencyError: Any step failed; nothing was deleted.
        """
        self.get_schedule(owner_id, schedule_id)

        try:
            self._db.execute(delete(ReminderTime).where(ReminderTime.schedule_id == schedule_id))
            self._db.execute(delete(ScheduleFrequency).where(ScheduleFrequency.schedule_id == schedule_id))
            self._db.execute(delete(MedicationLog).where(MedicationLog.schedule_id == schedule_id))
            self._db.execute(delete(MedicationSchedule).where(MedicationSchedule.id == schedule_id))
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(
                f"Schedule cascade delete failed: {e}",
                extra={"schedule_id": schedule_id}
            )
            raise DependencyError("Failed to delete medication schedule") from e

        # Drop the identity-map copy so later lookups hit the database
        self._db.expire_all()
        logger.info("Schedule deleted", extra={"schedule_id": schedule_id, "owner_id": owner_id})

    # ------------------------------------------------------------------
    # Frequency (1:1)
    # ------------------------------------------------------------------

    def set_frequency(
        self,
        owner_id: int,
        schedule_id: int,
        data: FrequencyCreate
    ) -> ScheduleFrequency:
        """Create the schedule's frequency, replacing any existing one."""
        self.get_schedule(owner_id, schedule_id)
        values = normalize_frequency(data.frequency_type, data.days_of_week, data.day_of_month)

        frequency = self._find_frequency(schedule_id)
        if frequency is None:
            frequency = ScheduleFrequency(schedule_id=schedule_id, **values)
            self._db.add(frequency)
        else:
            for field, value in values.items():
                setattr(frequency, field, value)

        self._commit("Failed to save schedule frequency")
        self._db.refresh(frequency)
        return frequency

    def get_frequency(self, owner_id: int, schedule_id: int) -> ScheduleFrequency:
        self.get_schedule(owner_id, schedule_id)
        frequency = self._find_frequency(schedule_id)
        if frequency is None:
            raise NotFoundError("Schedule frequency not found")
        return frequency

    def update_frequency(
        self,
        owner_id: int,
        schedule_id: int,
        patch: FrequencyUpdate
    ) -> ScheduleFrequency:
        frequency = self.get_frequency(owner_id, schedule_id)
        changes = patch.model_dump(exclude_unset=True)

        raw_type = changes.get("frequency_type") or frequency.frequency_type
        try:
            frequency_type = FrequencyType(raw_type)
        except ValueError as e:
            raise ValidationError(f"Unknown frequency type: {raw_type}") from e

        values = normalize_frequency(
            frequency_type,
            changes.get("days_of_week", frequency.days_of_week),
            changes.get("day_of_month", frequency.day_of_month),
        )
        for field, value in values.items():
            setattr(frequency, field, value)

        self._commit("Failed to update schedule frequency")
        self._db.refresh(frequency)
        return frequency

    # ------------------------------------------------------------------
    # Reminder times
    # ------------------------------------------------------------------

    def add_reminder_time(
        self,
        owner_id: int,
        schedule_id: int,
        data: ReminderTimeCreate
    ) -> ReminderTime:
        self.get_schedule(owner_id, schedule_id)

        reminder = ReminderTime(schedule_id=schedule_id, **data.model_dump())
        self._db.add(reminder)
        self._commit("Failed to create reminder time")
        self._db.refresh(reminder)
        return reminder

    def list_reminder_times(self, owner_id: int, schedule_id: int) -> list[ReminderTime]:
        self.get_schedule(owner_id, schedule_id)
        return self._reminders_for(schedule_id)

    def get_reminder_time(self, owner_id: int, reminder_id: int) -> ReminderTime:
        try:
            reminder = self._db.get(ReminderTime, reminder_id)
        except SQLAlchemyError as e:
            raise DependencyError("Failed to retrieve reminder time") from e

        if reminder is None:
            raise NotFoundError("Reminder time not found")
        # Ownership flows from the parent schedule
        self.get_schedule(owner_id, reminder.schedule_id)
        return reminder

    def update_reminder_time(
        self,
        owner_id: int,
        reminder_id: int,
        patch: ReminderTimeUpdate
    ) -> ReminderTime:
        reminder = self.get_reminder_time(owner_id, reminder_id)
        for field, value in patch.model_dump(exclude_unset=True).items():
            if value is None and field != "label":
                continue
            setattr(reminder, field, value)

        self._commit("Failed to update reminder time")
        self._db.refresh(reminder)
        return reminder

    def delete_reminder_time(self, owner_id: int, reminder_id: int) -> None:
        """Delete a reminder time; logs that referenced it keep their history."""
        reminder = self.get_reminder_time(owner_id, reminder_id)

        try:
            self._db.execute(
                update(MedicationLog)
                .where(MedicationLog.reminder_time_id == reminder.id)
                .values(reminder_time_id=None)
            )
            self._db.delete(reminder)
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            raise DependencyError("Failed to delete reminder time") from e

    # ------------------------------------------------------------------
    # Due view
    # ------------------------------------------------------------------

    def get_due_schedules(self, owner_id: int, now: datetime) -> list[DueSchedule]:
        """
        Evaluate every active schedule of a user against ``now``.

        Returns:
            The schedules that are due, with their frequency and reminders.
        """
        window = get_settings().DUE_WINDOW_MINUTES
        due = []

        for schedule in self.list_for_user(owner_id):
            if not schedule.active:
                continue

            frequency = self._find_frequency(schedule.id)
            reminders = self._reminders_for(schedule.id)
            if not is_due(schedule, frequency, reminders, now, window=timedelta(minutes=window)):
                continue

            due.append(DueSchedule(
                schedule=ScheduleOut.model_validate(schedule),
                frequency=FrequencyOut.model_validate(frequency),
                reminder_times=[ReminderTimeOut.model_validate(r) for r in reminders],
            ))

        logger.debug(
            f"Due evaluation: {len(due)} schedules due",
            extra={"owner_id": owner_id, "evaluated_at": now.isoformat()}
        )
        return due

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find_frequency(self, schedule_id: int) -> Optional[ScheduleFrequency]:
        stmt = select(ScheduleFrequency).where(ScheduleFrequency.schedule_id == schedule_id)
        try:
            return self._db.scalar(stmt)
        except SQLAlchemyError as e:
            raise DependencyError("Failed to retrieve schedule frequency") from e

    def _reminders_for(self, schedule_id: int) -> list[ReminderTime]:
        stmt = (
            select(ReminderTime)
            .where(ReminderTime.schedule_id == schedule_id)
            .order_by(ReminderTime.hour, ReminderTime.minute, ReminderTime.id)
        )
        return self._fetch(stmt, "Failed to retrieve reminder times")

    def _fetch(self, stmt, failure_message: str) -> list:
        try:
            return list(self._db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"{failure_message}: {e}")
            raise DependencyError(failure_message) from e

    def _commit(self, failure_message: str) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"{failure_message}: {e}")
            raise DependencyError(failure_message) from e
