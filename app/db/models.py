"""
SQLAlchemy ORM models for medicines, interactions and medication schedules.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)


class Medicine(Base):
    """A medicine record; read-only to the interaction and schedule services."""

    __tablename__ = "medicines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    aliases: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Comma-joined category tags
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    uses: Mapped[Optional[str]] = mapped_column(Text)
    side_effects: Mapped[Optional[str]] = mapped_column(Text)
    dosage: Mapped[Optional[str]] = mapped_column(Text)
    forms: Mapped[Optional[str]] = mapped_column(Text)
    warnings: Mapped[Optional[str]] = mapped_column(Text)
    otc_rx: Mapped[Optional[str]] = mapped_column(String(20))
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self):
        return f"<Medicine(id={self.id}, name='{self.name}')>"


class DrugInteraction(Base):
    """
    A known interaction between two distinct medicines.

    Stored in canonical order: medicine1_id is always the lower id, so each
    unordered pair has at most one row.
    """

    __tablename__ = "drug_interactions"
    __table_args__ = (
        UniqueConstraint("medicine1_id", "medicine2_id", name="uq_drug_interaction_pair"),
        CheckConstraint("medicine1_id < medicine2_id", name="ck_drug_interaction_order"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    medicine1_id: Mapped[int] = mapped_column(ForeignKey("medicines.id"), nullable=False, index=True)
    medicine2_id: Mapped[int] = mapped_column(ForeignKey("medicines.id"), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    effects: Mapped[str] = mapped_column(Text, nullable=False)
    management: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self):
        return (
            f"<DrugInteraction(id={self.id}, pair=({self.medicine1_id}, {self.medicine2_id}), "
            f"severity='{self.severity}')>"
        )


class MedicationSchedule(Base):
    """A user's recurring intent to take a medicine; root of its aggregate."""

    __tablename__ = "medication_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    medicine_id: Mapped[int] = mapped_column(ForeignKey("medicines.id"), nullable=False, index=True)
    dosage_amount: Mapped[float] = mapped_column(Float, nullable=False)
    dosage_unit: Mapped[str] = mapped_column(String(30), nullable=False)
    instructions: Mapped[Optional[str]] = mapped_column(Text)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self):
        return f"<MedicationSchedule(id={self.id}, owner={self.owner_user_id}, medicine={self.medicine_id})>"


class ScheduleFrequency(Base):
    __tablename__ = "schedule_frequencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("medication_schedules.id"), nullable=False, unique=True
    )
    frequency_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # 0 = Sunday ... 6 = Saturday; weekly schedules only
    days_of_week: Mapped[Optional[list]] = mapped_column(JSON)
    # monthly schedules only
    day_of_month: Mapped[Optional[int]] = mapped_column(Integer)


class ReminderTime(Base):
    __tablename__ = "reminder_times"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("medication_schedules.id"), nullable=False, index=True
    )
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    minute: Mapped[int] = mapped_column(Integer, nullable=False)
    label: Mapped[Optional[str]] = mapped_column(String(120))


class MedicationLog(Base):
    """Append-only adherence record; only ``notes`` may be corrected."""

    __tablename__ = "medication_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("medication_schedules.id"), nullable=False, index=True
    )
    reminder_time_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("reminder_times.id", ondelete="SET NULL")
    )
    taken_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    scheduled: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
