"""Pydantic schemas for request/response validation."""

from app.schemas.common import (
    CamelModel,
    ErrorResponse,
    HealthResponse,
)
from app.schemas.medicine import (
    CategoryOut,
    MedicineOut,
)
from app.schemas.interaction import (
    ErrorMessage,
    InteractionCheckRequest,
    InteractionCreate,
    InteractionOut,
    InteractionResult,
    InteractionsResultMessage,
    InteractionSeverity,
    InteractionUpdate,
)
from app.schemas.schedule import (
    DueSchedule,
    DueSchedulesResponse,
    FrequencyCreate,
    FrequencyOut,
    FrequencyType,
    FrequencyUpdate,
    LogCreate,
    LogNotesUpdate,
    LogOut,
    LogStatus,
    ReminderTimeCreate,
    ReminderTimeOut,
    ReminderTimeUpdate,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
)

__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    "HealthResponse",
    # Medicines
    "CategoryOut",
    "MedicineOut",
    # Interactions
    "ErrorMessage",
    "InteractionCheckRequest",
    "InteractionCreate",
    "InteractionOut",
    "InteractionResult",
    "InteractionsResultMessage",
    "InteractionSeverity",
    "InteractionUpdate",
    # Schedules
    "DueSchedule",
    "DueSchedulesResponse",
    "FrequencyCreate",
    "FrequencyOut",
    "FrequencyType",
    "FrequencyUpdate",
    "LogCreate",
    "LogNotesUpdate",
    "LogOut",
    "LogStatus",
    "ReminderTimeCreate",
    "ReminderTimeOut",
    "ReminderTimeUpdate",
    "ScheduleCreate",
    "ScheduleOut",
    "ScheduleUpdate",
]
