"""
Drug interaction endpoints.
"""

from fastapi import APIRouter, Depends, Response, status
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from app.core.auth import verify_api_key
from app.core.cache import get_cache_service
from app.core.errors import NotFoundError
from app.core.logging import get_logger
from app.core.metrics import record_check
from app.core.rate_limit import limiter
from app.dependencies import get_interaction_resolver
from app.schemas.interaction import (
    InteractionCheckRequest,
    InteractionCreate,
    InteractionOut,
    InteractionResult,
    InteractionUpdate,
)
from app.services.interaction_resolver import InteractionResolver

logger = get_logger(__name__)
router = APIRouter()


@router.get(
    "/interactions/medicine/{medicine_id}",
    response_model=list[InteractionResult]
)
@limiter.limit("100/minute")
def get_medicine_interactions(
    request: Request,
    medicine_id: int,
    resolver: InteractionResolver = Depends(get_interaction_resolver)
):
    """
    Get every known interaction involving a medicine.

    An empty list means no interactions are on record.
    """
    return resolver.get_interactions_for(medicine_id)


@router.post("/interactions/check", response_model=list[InteractionResult])
@limiter.limit("60/minute")
async def check_interactions(
    request: Request,
    body: InteractionCheckRequest,
    resolver: InteractionResolver = Depends(get_interaction_resolver)
):
    """
    Check a combination of medicines for pairwise interactions.

    Results are cached by the set of medicine ids and the current
    generation of the interaction data.
    """
    cache = await get_cache_service()
    generation = await cache.get_interaction_generation()

    cached = await cache.get_interaction_check(body.medicine_ids, generation)
    if cached is not None:
        logger.debug("Interaction check served from cache")
        record_check("http", cached, cached=True)
        return cached

    results = await run_in_threadpool(resolver.check_combination, body.medicine_ids)

    payload = [r.model_dump(mode="json", by_alias=True) for r in results]
    await cache.set_interaction_check(body.medicine_ids, payload, generation)
    record_check("http", results)
    return results


@router.get("/interactions/{interaction_id}", response_model=InteractionOut)
def get_interaction(
    interaction_id: int,
    resolver: InteractionResolver = Depends(get_interaction_resolver)
):
    return resolver.get_interaction(interaction_id)


@router.post(
    "/interactions",
    response_model=InteractionOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)]
)
@limiter.limit("30/minute")
async def create_interaction(
    request: Request,
    body: InteractionCreate,
    resolver: InteractionResolver = Depends(get_interaction_resolver)
):
    """
    Record a new interaction. Requires the admin API key.

    The pair is stored low id first whatever order it was given in.
    """
    interaction = await run_in_threadpool(resolver.add_interaction, body)
    await _invalidate_checks()
    return interaction


@router.patch(
    "/interactions/{interaction_id}",
    response_model=InteractionOut,
    dependencies=[Depends(verify_api_key)]
)
@limiter.limit("30/minute")
async def update_interaction(
    request: Request,
    interaction_id: int,
    body: InteractionUpdate,
    resolver: InteractionResolver = Depends(get_interaction_resolver)
):
    """Partially update an interaction. Requires the admin API key."""
    interaction = await run_in_threadpool(resolver.update_interaction, interaction_id, body)
    await _invalidate_checks()
    return interaction


@router.delete(
    "/interactions/{interaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(verify_api_key)]
)
@limiter.limit("30/minute")
async def delete_interaction(
    request: Request,
    interaction_id: int,
    resolver: InteractionResolver = Depends(get_interaction_resolver)
):
    """Delete an interaction. Requires the admin API key."""
    deleted = await run_in_threadpool(resolver.delete_interaction, interaction_id)
    if not deleted:
        raise NotFoundError("Interaction not found")

    await _invalidate_checks()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _invalidate_checks() -> None:
    cache = await get_cache_service()
    removed = await cache.invalidate_interactions()
    if removed:
        logger.info(f"Invalidated {removed} cached interaction checks")
