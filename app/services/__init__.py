"""Services for the MedInfo Service."""

from app.services.adherence_logger import AdherenceLogger
from app.services.interaction_resolver import InteractionResolver, canonicalize
from app.services.medicine_directory import MedicineDirectory
from app.services.schedule_service import ScheduleService

__all__ = [
    "AdherenceLogger",
    "InteractionResolver",
    "MedicineDirectory",
    "ScheduleService",
    "canonicalize",
]
