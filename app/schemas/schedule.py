"""
Medication schedule, frequency, reminder and adherence log schemas.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, computed_field, model_validator

from app.schemas.common import CamelModel


class FrequencyType(str, Enum):
    """Recurrence shape of a schedule."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    AS_NEEDED = "as_needed"


class LogStatus(str, Enum):
    """Outcome recorded against a dose."""
    TAKEN = "taken"
    SKIPPED = "skipped"
    LATE = "late"


# ============================================================================
# SCHEDULE
# ============================================================================

class ScheduleCreate(CamelModel):
    medicine_id: int = Field(..., gt=0)
    dosage_amount: float = Field(..., gt=0, description="Amount per dose")
    dosage_unit: str = Field(..., min_length=1, max_length=30, description="e.g. mg, tablet")
    instructions: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    active: bool = True

    @model_validator(mode="after")
    def check_date_range(self) -> "ScheduleCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "medicineId": 1,
                "dosageAmount": 400,
                "dosageUnit": "mg",
                "instructions": "Take with food",
                "startDate": "2024-01-15",
                "endDate": None,
                "active": True
            }
        }
    )


class ScheduleUpdate(CamelModel):
    """Partial update; the date range is re-checked against stored values."""

    medicine_id: Optional[int] = Field(None, gt=0)
    dosage_amount: Optional[float] = Field(None, gt=0)
    dosage_unit: Optional[str] = Field(None, min_length=1, max_length=30)
    instructions: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active: Optional[bool] = None


class ScheduleOut(CamelModel):
    id: int
    owner_user_id: int
    medicine_id: int
    dosage_amount: float
    dosage_unit: str
    instructions: Optional[str] = None
    start_date: date
    end_date: Optional[date] = None
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# FREQUENCY
# ============================================================================

class FrequencyCreate(CamelModel):
    frequency_type: FrequencyType
    days_of_week: Optional[list[int]] = Field(
        None, description="Weekly only: 0 = Sunday ... 6 = Saturday"
    )
    day_of_month: Optional[int] = Field(None, ge=1, le=31, description="Monthly only")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"frequencyType": "weekly", "daysOfWeek": [1, 2, 3, 4, 5]}
        }
    )


class FrequencyUpdate(CamelModel):
    frequency_type: Optional[FrequencyType] = None
    days_of_week: Optional[list[int]] = None
    day_of_month: Optional[int] = Field(None, ge=1, le=31)


class FrequencyOut(CamelModel):
    id: int
    schedule_id: int
    frequency_type: str
    days_of_week: Optional[list[int]] = None
    day_of_month: Optional[int] = None


# ============================================================================
# REMINDER TIMES
# ============================================================================

class ReminderTimeCreate(CamelModel):
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    label: Optional[str] = Field(None, max_length=120)


class ReminderTimeUpdate(CamelModel):
    hour: Optional[int] = Field(None, ge=0, le=23)
    minute: Optional[int] = Field(None, ge=0, le=59)
    label: Optional[str] = Field(None, max_length=120)


class ReminderTimeOut(CamelModel):
    id: int
    schedule_id: int
    hour: int
    minute: int
    label: Optional[str] = None

    @computed_field
    @property
    def time(self) -> str:
        """Wall-clock time as HH:MM."""
        return f"{self.hour:02d}:{self.minute:02d}"


# ============================================================================
# ADHERENCE LOGS
# ============================================================================

class LogCreate(CamelModel):
    status: LogStatus
    reminder_time_id: Optional[int] = Field(None, gt=0)
    scheduled: Optional[datetime] = Field(None, description="When the dose was nominally due")
    notes: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"status": "taken", "reminderTimeId": 3, "notes": "After breakfast"}
        }
    )


class LogNotesUpdate(CamelModel):
    notes: Optional[str] = None


class LogOut(CamelModel):
    id: int
    schedule_id: int
    reminder_time_id: Optional[int] = None
    taken_at: datetime
    scheduled: Optional[datetime] = None
    status: LogStatus
    notes: Optional[str] = None


# ============================================================================
# DUE VIEW
# ============================================================================

class DueSchedule(CamelModel):
    schedule: ScheduleOut
    frequency: FrequencyOut
    reminder_times: list[ReminderTimeOut]


class DueSchedulesResponse(CamelModel):
    evaluated_at: datetime
    schedules: list[DueSchedule]
