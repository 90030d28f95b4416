"""
Read-only access to medicine and category records.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import DependencyError, NotFoundError
from app.core.logging import get_logger
from app.db.models import Category, Medicine

logger = get_logger(__name__)


class MedicineDirectory:
    """Resolves medicine ids to display records."""

    def __init__(self, db: Session):
        self._db = db

    def find(self, medicine_id: int) -> Optional[Medicine]:
        try:
            return self._db.get(Medicine, medicine_id)
        except SQLAlchemyError as e:
            logger.error(f"Medicine lookup failed: {e}", extra={"medicine_id": medicine_id})
            raise DependencyError("Failed to retrieve medicine") from e

    def get(self, medicine_id: int) -> Medicine:
        medicine = self.find(medicine_id)
        if medicine is None:
            raise NotFoundError("Medicine not found")
        return medicine

    def get_many(self, medicine_ids: Iterable[int]) -> dict[int, Medicine]:
        """Fetch several medicines in one query; missing ids are simply absent."""
        ids = set(medicine_ids)
        if not ids:
            return {}

        try:
            rows = self._db.scalars(select(Medicine).where(Medicine.id.in_(ids))).all()
        except SQLAlchemyError as e:
            logger.error(f"Medicine batch lookup failed: {e}", extra={"count": len(ids)})
            raise DependencyError("Failed to retrieve medicines") from e

        return {medicine.id: medicine for medicine in rows}

    def list_medicines(self, limit: int = 10, offset: int = 0) -> list[Medicine]:
        try:
            stmt = select(Medicine).order_by(Medicine.id).limit(limit).offset(offset)
            return list(self._db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Medicine listing failed: {e}")
            raise DependencyError("Failed to retrieve medicines") from e

    def list_categories(self) -> list[Category]:
        try:
            return list(self._db.scalars(select(Category).order_by(Category.name)).all())
        except SQLAlchemyError as e:
            logger.error(f"Category listing failed: {e}")
            raise DependencyError("Failed to retrieve categories") from e
