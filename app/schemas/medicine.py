"""
Medicine directory schemas.
"""

from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel


class MedicineOut(CamelModel):
    """Medicine record as embedded in interaction results."""

    id: int
    name: str
    aliases: Optional[str] = None
    description: str = ""
    category: str = ""
    uses: Optional[str] = None
    side_effects: Optional[str] = None
    dosage: Optional[str] = None
    forms: Optional[str] = None
    warnings: Optional[str] = None
    otc_rx: Optional[str] = None
    last_updated: Optional[datetime] = None


class CategoryOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
