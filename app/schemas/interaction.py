"""
Drug interaction schemas for the HTTP and realtime surfaces.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import ConfigDict, Field, StrictInt

from app.schemas.common import CamelModel
from app.schemas.medicine import MedicineOut


class InteractionSeverity(str, Enum):
    """Clinical severity of a known interaction."""
    MINOR = "Minor"
    MODERATE = "Moderate"
    MAJOR = "Major"


class InteractionCreate(CamelModel):
    """Administrative payload for a new interaction; ids may be in any order."""

    medicine1_id: int = Field(..., gt=0, description="First medicine id")
    medicine2_id: int = Field(..., gt=0, description="Second medicine id")
    severity: InteractionSeverity
    description: str = Field(..., min_length=1)
    effects: str = Field(..., min_length=1)
    management: Optional[str] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "medicine1Id": 4,
                "medicine2Id": 1,
                "severity": "Major",
                "description": "Increased risk of gastrointestinal bleeding",
                "effects": "Combined antiplatelet and NSAID effects",
                "management": "Avoid concurrent use where possible"
            }
        }
    )


class InteractionUpdate(CamelModel):
    """Partial update; omitted fields are left unchanged."""

    medicine1_id: Optional[int] = Field(None, gt=0)
    medicine2_id: Optional[int] = Field(None, gt=0)
    severity: Optional[InteractionSeverity] = None
    description: Optional[str] = Field(None, min_length=1)
    effects: Optional[str] = Field(None, min_length=1)
    management: Optional[str] = None


class InteractionOut(CamelModel):
    """A stored interaction pair, always in canonical order."""

    id: int
    medicine1_id: int
    medicine2_id: int
    severity: InteractionSeverity
    description: str
    effects: str
    management: Optional[str] = None
    created_at: Optional[datetime] = None


class InteractionResult(InteractionOut):
    """An interaction pair joined with both medicine records."""

    medicine1: MedicineOut
    medicine2: MedicineOut


class InteractionCheckRequest(CamelModel):
    medicine_ids: list[StrictInt] = Field(..., description="Medicines to check pairwise")

    model_config = ConfigDict(
        json_schema_extra={"example": {"medicineIds": [1, 4, 7]}}
    )


# ============================================================================
# REALTIME CHANNEL MESSAGES
# ============================================================================

class InteractionsResultMessage(CamelModel):
    type: Literal["interactions_result"] = "interactions_result"
    interactions: list[InteractionResult]


class ErrorMessage(CamelModel):
    type: Literal["error"] = "error"
    message: str
