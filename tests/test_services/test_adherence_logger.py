"""
Tests for adherence logging.
"""

from datetime import datetime, timedelta

import pytest

from app.core.errors import AuthorizationError, NotFoundError, ValidationError
from app.schemas.schedule import LogCreate, LogNotesUpdate, ReminderTimeCreate
from app.services.adherence_logger import AdherenceLogger
from app.services.schedule_service import ScheduleService

OWNER = 1
OTHER = 2
START = datetime(2024, 1, 15, 8, 5)


@pytest.fixture
def schedules(db_session):
    """Schedule service on the in-memory database."""
    return ScheduleService(db_session)


@pytest.fixture
def adherence(db_session, schedules):
    """Adherence logger sharing the schedule service."""
    return AdherenceLogger(db_session, schedules)


@pytest.fixture
def schedule(schedules, schedule_payload):
    """Schedule owned by user 1."""
    return schedules.create_schedule(OWNER, schedule_payload)


def test_log_event_stamps_time(adherence, schedule):
    """Logs take their time from the server clock."""
    entry = adherence.log_event(
        OWNER, schedule.id, LogCreate(status="taken", notes="With breakfast"), now=START
    )

    assert entry.taken_at.replace(tzinfo=None) == START
    assert entry.status == "taken"
    assert entry.notes == "With breakfast"
    assert entry.reminder_time_id is None


def test_log_event_with_reminder(adherence, schedules, schedule):
    """A log may reference a reminder of its schedule."""
    reminder = schedules.add_reminder_time(OWNER, schedule.id, ReminderTimeCreate(hour=8, minute=0))

    entry = adherence.log_event(
        OWNER, schedule.id, LogCreate(status="late", reminder_time_id=reminder.id)
    )

    assert entry.reminder_time_id == reminder.id


def test_reminder_from_another_schedule_rejected(adherence, schedules, schedule, schedule_payload):
    """A reminder belonging to another schedule is rejected."""
    other = schedules.create_schedule(OWNER, schedule_payload)
    reminder = schedules.add_reminder_time(OWNER, other.id, ReminderTimeCreate(hour=8, minute=0))

    with pytest.raises(ValidationError):
        adherence.log_event(
            OWNER, schedule.id, LogCreate(status="taken", reminder_time_id=reminder.id)
        )


def test_log_on_foreign_schedule(adherence, schedule):
    """Only the owner can log against a schedule."""
    with pytest.raises(AuthorizationError):
        adherence.log_event(OTHER, schedule.id, LogCreate(status="taken"))


def test_schedule_logs_newest_first(adherence, schedule):
    """Schedule logs are newest first and honor the limit."""
    for offset, status in enumerate(["taken", "skipped", "late"]):
        adherence.log_event(
            OWNER, schedule.id, LogCreate(status=status), now=START + timedelta(days=offset)
        )

    logs = adherence.get_logs_for_schedule(OWNER, schedule.id)
    assert [log.status for log in logs] == ["late", "skipped", "taken"]

    limited = adherence.get_logs_for_schedule(OWNER, schedule.id, limit=2)
    assert [log.status for log in limited] == ["late", "skipped"]


def test_user_logs_span_schedules(adherence, schedules, schedule, schedule_payload):
    """User logs cover all of the user's schedules and nobody else's."""
    second = schedules.create_schedule(OWNER, schedule_payload)
    foreign = schedules.create_schedule(OTHER, schedule_payload)

    adherence.log_event(OWNER, schedule.id, LogCreate(status="taken"), now=START)
    adherence.log_event(OWNER, second.id, LogCreate(status="skipped"), now=START + timedelta(hours=1))
    adherence.log_event(OTHER, foreign.id, LogCreate(status="taken"), now=START + timedelta(hours=2))

    logs = adherence.get_logs_for_user(OWNER)

    assert [log.schedule_id for log in logs] == [second.id, schedule.id]


def test_user_without_schedules_has_no_logs(adherence):
    """A user with no schedules has no logs."""
    assert adherence.get_logs_for_user(42) == []


def test_update_notes(adherence, schedule):
    """Only the notes change when a log is edited."""
    entry = adherence.log_event(OWNER, schedule.id, LogCreate(status="taken"), now=START)

    updated = adherence.update_notes(OWNER, entry.id, LogNotesUpdate(notes="Felt dizzy"))

    assert updated.notes == "Felt dizzy"
    assert updated.status == "taken"
    assert updated.taken_at.replace(tzinfo=None) == START


def test_update_notes_of_foreign_log(adherence, schedule):
    """Another user's log cannot be edited."""
    entry = adherence.log_event(OWNER, schedule.id, LogCreate(status="taken"))

    with pytest.raises(AuthorizationError):
        adherence.update_notes(OTHER, entry.id, LogNotesUpdate(notes="Not mine"))


def test_update_notes_of_unknown_log(adherence):
    """Editing an unknown log is not found."""
    with pytest.raises(NotFoundError):
        adherence.update_notes(OWNER, 404, LogNotesUpdate(notes="Missing"))
