"""
Medication schedule, reminder and adherence log endpoints.

All routes act on behalf of the user named by the X-User-Id header and only
ever touch that user's schedules.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Response, status
from starlette.requests import Request

from app.config import get_settings
from app.core.auth import get_current_user_id
from app.core.metrics import MEDICATION_LOGS
from app.core.rate_limit import limiter
from app.dependencies import get_adherence_logger, get_schedule_service
from app.schemas.schedule import (
    DueSchedulesResponse,
    FrequencyCreate,
    FrequencyOut,
    FrequencyUpdate,
    LogCreate,
    LogNotesUpdate,
    LogOut,
    ReminderTimeCreate,
    ReminderTimeOut,
    ReminderTimeUpdate,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)
from app.services.adherence_logger import AdherenceLogger
from app.services.schedule_service import ScheduleService

router = APIRouter()


# ============================================================================
# SCHEDULES
# ============================================================================

@router.post("/schedules", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def create_schedule(
    request: Request,
    body: ScheduleCreate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Create a medication schedule for the caller."""
    return service.create_schedule(user_id, body)


@router.get("/schedules", response_model=list[ScheduleOut])
def list_schedules(
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """List the caller's schedules, most recently updated first."""
    return service.list_for_user(user_id)


@router.get("/schedules/due", response_model=DueSchedulesResponse)
def get_due_schedules(
    at: Optional[datetime] = Query(None, description="Evaluate at this instant instead of now"),
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """
    Schedules with a dose due around the given instant.

    Reminder times are wall-clock times in the configured schedule timezone.
    A naive ``at`` is taken as already being in that timezone.
    """
    tz = ZoneInfo(get_settings().SCHEDULE_TIMEZONE)
    if at is None:
        now = datetime.now(timezone.utc).astimezone(tz)
    elif at.tzinfo is None:
        now = at.replace(tzinfo=tz)
    else:
        now = at.astimezone(tz)

    return DueSchedulesResponse(
        evaluated_at=now,
        schedules=service.get_due_schedules(user_id, now)
    )


@router.get("/schedules/{schedule_id}", response_model=ScheduleOut)
def get_schedule(
    schedule_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    return service.get_schedule(user_id, schedule_id)


@router.patch("/schedules/{schedule_id}", response_model=ScheduleOut)
@limiter.limit("60/minute")
def update_schedule(
    request: Request,
    schedule_id: int,
    body: ScheduleUpdate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    return service.update_schedule(user_id, schedule_id, body)


@router.delete("/schedules/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_schedule(
    request: Request,
    schedule_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Delete a schedule together with its frequency, reminders and logs."""
    service.delete_schedule(user_id, schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/medicines/{medicine_id}/schedules", response_model=list[ScheduleOut])
def list_medicine_schedules(
    medicine_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """The caller's schedules for one medicine."""
    return service.list_for_medicine(medicine_id, owner_id=user_id)


# ============================================================================
# FREQUENCY
# ============================================================================

@router.post(
    "/schedules/{schedule_id}/frequency",
    response_model=FrequencyOut,
    status_code=status.HTTP_201_CREATED
)
def set_frequency(
    schedule_id: int,
    body: FrequencyCreate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Set the schedule's frequency, replacing any existing one."""
    return service.set_frequency(user_id, schedule_id, body)


@router.get("/schedules/{schedule_id}/frequency", response_model=FrequencyOut)
def get_frequency(
    schedule_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    return service.get_frequency(user_id, schedule_id)


@router.patch("/schedules/{schedule_id}/frequency", response_model=FrequencyOut)
def update_frequency(
    schedule_id: int,
    body: FrequencyUpdate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    return service.update_frequency(user_id, schedule_id, body)


# ============================================================================
# REMINDER TIMES
# ============================================================================

@router.post(
    "/schedules/{schedule_id}/reminders",
    response_model=ReminderTimeOut,
    status_code=status.HTTP_201_CREATED
)
def add_reminder_time(
    schedule_id: int,
    body: ReminderTimeCreate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    return service.add_reminder_time(user_id, schedule_id, body)


@router.get("/schedules/{schedule_id}/reminders", response_model=list[ReminderTimeOut])
def list_reminder_times(
    schedule_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Reminder times in time-of-day order."""
    return service.list_reminder_times(user_id, schedule_id)


@router.patch("/reminders/{reminder_id}", response_model=ReminderTimeOut)
def update_reminder_time(
    reminder_id: int,
    body: ReminderTimeUpdate,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    return service.update_reminder_time(user_id, reminder_id, body)


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder_time(
    reminder_id: int,
    user_id: int = Depends(get_current_user_id),
    service: ScheduleService = Depends(get_schedule_service)
):
    service.delete_reminder_time(user_id, reminder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# ADHERENCE LOGS
# ============================================================================

@router.post(
    "/schedules/{schedule_id}/logs",
    response_model=LogOut,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("120/minute")
def log_medication(
    request: Request,
    schedule_id: int,
    body: LogCreate,
    user_id: int = Depends(get_current_user_id),
    adherence: AdherenceLogger = Depends(get_adherence_logger)
):
    """Record that a dose was taken, skipped or taken late."""
    entry = adherence.log_event(user_id, schedule_id, body)
    MEDICATION_LOGS.labels(status=entry.status).inc()
    return entry


@router.get("/schedules/{schedule_id}/logs", response_model=list[LogOut])
def get_schedule_logs(
    schedule_id: int,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: int = Depends(get_current_user_id),
    adherence: AdherenceLogger = Depends(get_adherence_logger)
):
    """Recent logs for one schedule, newest first."""
    return adherence.get_logs_for_schedule(user_id, schedule_id, limit=limit)


@router.get("/logs", response_model=list[LogOut])
def get_user_logs(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user_id: int = Depends(get_current_user_id),
    adherence: AdherenceLogger = Depends(get_adherence_logger)
):
    """Recent logs across all of the caller's schedules, newest first."""
    return adherence.get_logs_for_user(user_id, limit=limit)


@router.patch("/logs/{log_id}", response_model=LogOut)
def update_log_notes(
    log_id: int,
    body: LogNotesUpdate,
    user_id: int = Depends(get_current_user_id),
    adherence: AdherenceLogger = Depends(get_adherence_logger)
):
    """Correct a log's notes. Other fields cannot be changed."""
    return adherence.update_notes(user_id, log_id, body)
