"""
Entity rating API endpoints
Thin HTTP adapter over the aggregation engine and query service
"""

from typing import List

from fastapi import APIRouter, Depends

from rating_service.core.errors import ErrorResponseModel
from rating_service.dependencies.ratings import get_aggregation_engine, get_query_service
from rating_service.schemas.rating import EntityResponse, MutationAck, RatingResponse, RatingSubmit
from rating_service.services.aggregation import AggregationEngine
from rating_service.services.query import QueryService

router = APIRouter()


@router.get(
    "",
    response_model=List[EntityResponse],
    responses={500: {"model": ErrorResponseModel}, 503: {"model": ErrorResponseModel}},
)
async def list_entities(
    service: QueryService = Depends(get_query_service),
):
    """
    List every registered entity with its average rating.
    average_rating is null for entities without ratings.
    """
    return await service.list_entities()


@router.get(
    "/{entity_id}",
    response_model=EntityResponse,
    responses={404: {"model": ErrorResponseModel}},
)
async def get_entity(
    entity_id: str,
    service: QueryService = Depends(get_query_service),
):
    """Get one entity with its average rating"""
    return await service.get_entity(entity_id)


@router.get(
    "/{entity_id}/ratings",
    response_model=List[RatingResponse],
)
async def list_ratings(
    entity_id: str,
    service: QueryService = Depends(get_query_service),
):
    """List the raw ratings of one entity"""
    return await service.list_ratings(entity_id)


@router.post(
    "/{entity_id}/ratings",
    response_model=MutationAck,
    responses={
        404: {"model": ErrorResponseModel},
        422: {"model": ErrorResponseModel},
        503: {"model": ErrorResponseModel},
    },
)
async def submit_rating(
    entity_id: str,
    payload: RatingSubmit,
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    """
    Submit a rating. A later submission by the same rater replaces the
    earlier one.
    """
    await engine.submit_rating(entity_id, payload.rater_id, payload.rating)
    return MutationAck()


@router.delete(
    "/{entity_id}/ratings/{rater_id}",
    response_model=MutationAck,
    responses={404: {"model": ErrorResponseModel}, 503: {"model": ErrorResponseModel}},
)
async def remove_rating(
    entity_id: str,
    rater_id: str,
    engine: AggregationEngine = Depends(get_aggregation_engine),
):
    """Remove a rater's rating of an entity"""
    await engine.remove_rating(entity_id, rater_id)
    return MutationAck()
