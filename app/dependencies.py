"""
FastAPI dependency injection utilities.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_id, verify_api_key
from app.core.cache import get_cache_service
from app.db.session import get_db
from app.services.adherence_logger import AdherenceLogger
from app.services.interaction_resolver import InteractionResolver
from app.services.medicine_directory import MedicineDirectory
from app.services.schedule_service import ScheduleService


def get_medicine_directory(db: Session = Depends(get_db)) -> MedicineDirectory:
    """Get medicine directory bound to the request session."""
    return MedicineDirectory(db)


def get_interaction_resolver(db: Session = Depends(get_db)) -> InteractionResolver:
    """Get interaction resolver bound to the request session."""
    return InteractionResolver(db)


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """Get schedule service bound to the request session."""
    return ScheduleService(db)


def get_adherence_logger(db: Session = Depends(get_db)) -> AdherenceLogger:
    """Get adherence logger bound to the request session."""
    return AdherenceLogger(db)


# Re-export for convenience
__all__ = [
    "verify_api_key",
    "get_current_user_id",
    "get_cache_service",
    "get_db",
    "get_medicine_directory",
    "get_interaction_resolver",
    "get_schedule_service",
    "get_adherence_logger",
]
