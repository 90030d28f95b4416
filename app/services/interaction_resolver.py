"""
Drug Interaction Resolver

Canonicalizes medicine pairs, looks up stored interactions for one medicine
or for every pair in a combination, and applies administrative changes.
Pairs are always stored low id first, so an unordered pair maps to exactly
one row and one lookup key.
"""

from itertools import combinations
from typing import Iterable, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.core.errors import (
    DependencyError,
    DuplicateInteractionError,
    InsufficientInputError,
    InvalidPairError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger
from app.db.models import DrugInteraction, Medicine
from app.schemas.interaction import (
    InteractionCreate,
    InteractionResult,
    InteractionUpdate,
)
from app.schemas.medicine import MedicineOut
from app.services.medicine_directory import MedicineDirectory

logger = get_logger(__name__)

# Columns that may not be cleared by a partial update
_REQUIRED_FIELDS = {"severity", "description", "effects"}


def canonicalize(a: int, b: int) -> tuple[int, int]:
    """
    Order a medicine pair as (low, high).

    Raises:
        InvalidPairError: If both ids are the same medicine.
    """
    if a == b:
        raise InvalidPairError("A medicine cannot interact with itself")
    return (a, b) if a < b else (b, a)


def to_result(
    interaction: DrugInteraction,
    medicine1: Medicine,
    medicine2: Medicine
) -> InteractionResult:
    """Join a stored pair with both medicine records."""
    return InteractionResult(
        id=interaction.id,
        medicine1_id=interaction.medicine1_id,
        medicine2_id=interaction.medicine2_id,
        severity=interaction.severity,
        description=interaction.description,
        effects=interaction.effects,
        management=interaction.management,
        created_at=interaction.created_at,
        medicine1=MedicineOut.model_validate(medicine1),
        medicine2=MedicineOut.model_validate(medicine2),
    )


class InteractionResolver:
    """
    Resolves known interactions between medicines.
    """

    def __init__(
        self,
        db: Session,
        directory: Optional[MedicineDirectory] = None,
        max_medicines: Optional[int] = None
    ):
        self._db = db
        self._directory = directory or MedicineDirectory(db)
        self._max_medicines = max_medicines or get_settings().MAX_CHECK_MEDICINES

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_interactions_for(self, medicine_id: int) -> list[InteractionResult]:
        """
        Get every known interaction involving a medicine.

        Args:
            medicine_id: Medicine on either side of the pair.

        Returns:
            Enriched interactions; empty when none are known.
        """
        stmt = (
            select(DrugInteraction)
            .where(or_(
                DrugInteraction.medicine1_id == medicine_id,
                DrugInteraction.medicine2_id == medicine_id,
            ))
            .order_by(DrugInteraction.id)
        )
        pairs = self._fetch(stmt, "Failed to retrieve drug interactions")
        return self._enrich(pairs)

    def check_combination(self, medicine_ids: Iterable[int]) -> list[InteractionResult]:
        """
        Check every unordered pair in a set of medicines.

        Interactions are pairwise, so n medicines mean C(n, 2) independent
        lookups. Duplicate ids collapse to one.

        Args:
            medicine_ids: Medicines to check.

        Returns:
            Enriched interactions for the pairs that are stored. Pairs whose
            medicine record is missing are omitted.

        Raises:
            InsufficientInputError: Fewer than two distinct medicines.
            ValidationError: More medicines than a single check allows.
        """
        ids = sorted(set(medicine_ids))

        if len(ids) < 2:
            raise InsufficientInputError(
                "At least two medicines must be provided to check for interactions"
            )
        if len(ids) > self._max_medicines:
            raise ValidationError(
                f"A maximum of {self._max_medicines} medicines can be checked at once"
            )

        keys = [canonicalize(a, b) for a, b in combinations(ids, 2)]
        stmt = (
            select(DrugInteraction)
            .where(or_(*(
                and_(DrugInteraction.medicine1_id == low, DrugInteraction.medicine2_id == high)
                for low, high in keys
            )))
            .order_by(DrugInteraction.id)
        )
        pairs = self._fetch(stmt, "Failed to check drug interactions")

        results = self._enrich(pairs)
        logger.info(
            f"Interaction check complete: {len(results)} of {len(keys)} pairs interact",
            extra={"medicine_count": len(ids)}
        )
        return results

    def get_interaction(self, interaction_id: int) -> DrugInteraction:
        try:
            interaction = self._db.get(DrugInteraction, interaction_id)
        except SQLAlchemyError as e:
            logger.error(f"Interaction lookup failed: {e}", extra={"interaction_id": interaction_id})
            raise DependencyError("Failed to retrieve drug interaction") from e

        if interaction is None:
            raise NotFoundError("Interaction not found")
        return interaction

    # ------------------------------------------------------------------
    # Administrative mutations
    # ------------------------------------------------------------------

    def add_interaction(self, data: InteractionCreate) -> DrugInteraction:
        """
        Store a new interaction in canonical order.

        Raises:
            InvalidPairError: Both ids name the same medicine.
            NotFoundError: Either medicine does not exist.
            DuplicateInteractionError: The pair already has an interaction.
        """
        low, high = canonicalize(data.medicine1_id, data.medicine2_id)
        self._require_medicines(low, high)
        self._reject_duplicate(low, high)

        interaction = DrugInteraction(
            medicine1_id=low,
            medicine2_id=high,
            severity=data.severity.value,
            description=data.description,
            effects=data.effects,
            management=data.management,
        )
        self._db.add(interaction)
        self._commit("Failed to add drug interaction")
        self._db.refresh(interaction)

        logger.info(
            "Interaction added",
            extra={"interaction_id": interaction.id, "pair": [low, high]}
        )
        return interaction

    def update_interaction(self, interaction_id: int, patch: InteractionUpdate) -> DrugInteraction:
        """
        Apply a partial update.

        When the patch names either medicine, the resulting pair (merged with
        the stored one) is re-canonicalized before writing.
        """
        interaction = self.get_interaction(interaction_id)
        changes = patch.model_dump(exclude_unset=True)

        new_first = changes.pop("medicine1_id", None)
        new_second = changes.pop("medicine2_id", None)
        if new_first is not None or new_second is not None:
            low, high = canonicalize(
                new_first if new_first is not None else interaction.medicine1_id,
                new_second if new_second is not None else interaction.medicine2_id,
            )
            if (low, high) != (interaction.medicine1_id, interaction.medicine2_id):
                self._require_medicines(low, high)
                self._reject_duplicate(low, high)
                interaction.medicine1_id = low
                interaction.medicine2_id = high

        for field, value in changes.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            if field == "severity":
                value = value.value
            setattr(interaction, field, value)

        self._commit("Failed to update drug interaction")
        self._db.refresh(interaction)

        logger.info("Interaction updated", extra={"interaction_id": interaction_id})
        return interaction

    def delete_interaction(self, interaction_id: int) -> bool:
        """
        Delete an interaction.

        Returns:
            False when no interaction had that id.
        """
        try:
            result = self._db.execute(
                delete(DrugInteraction).where(DrugInteraction.id == interaction_id)
            )
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"Interaction delete failed: {e}", extra={"interaction_id": interaction_id})
            raise DependencyError("Failed to delete drug interaction") from e

        deleted = result.rowcount > 0
        if deleted:
            logger.info("Interaction deleted", extra={"interaction_id": interaction_id})
        return deleted

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch(self, stmt, failure_message: str) -> list[DrugInteraction]:
        try:
            return list(self._db.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"{failure_message}: {e}")
            raise DependencyError(failure_message) from e

    def _enrich(self, pairs: list[DrugInteraction]) -> list[InteractionResult]:
        medicine_ids = {p.medicine1_id for p in pairs} | {p.medicine2_id for p in pairs}
        medicines = self._directory.get_many(medicine_ids)

        results = []
        for pair in pairs:
            medicine1 = medicines.get(pair.medicine1_id)
            medicine2 = medicines.get(pair.medicine2_id)
            if medicine1 is None or medicine2 is None:
                logger.warning(
                    "Dropping interaction that references a missing medicine",
                    extra={
                        "interaction_id": pair.id,
                        "pair": [pair.medicine1_id, pair.medicine2_id]
                    }
                )
                continue
            results.append(to_result(pair, medicine1, medicine2))
        return results

    def _require_medicines(self, *medicine_ids: int) -> None:
        found = self._directory.get_many(medicine_ids)
        missing = sorted(set(medicine_ids) - found.keys())
        if missing:
            raise NotFoundError(f"Medicine not found: {', '.join(map(str, missing))}")

    def _reject_duplicate(self, low: int, high: int) -> None:
        stmt = select(DrugInteraction.id).where(
            DrugInteraction.medicine1_id == low,
            DrugInteraction.medicine2_id == high,
        )
        try:
            existing = self._db.scalar(stmt)
        except SQLAlchemyError as e:
            raise DependencyError("Failed to check for existing interaction") from e

        if existing is not None:
            raise DuplicateInteractionError(
                "An interaction between these medicines already exists"
            )

    def _commit(self, failure_message: str) -> None:
        try:
            self._db.commit()
        except IntegrityError as e:
            # Lost a race on the canonical pair's unique constraint
            self._db.rollback()
            raise DuplicateInteractionError(
                "An interaction between these medicines already exists"
            ) from e
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"{failure_message}: {e}")
            raise DependencyError(failure_message) from e
