"""Recommendation endpoints: per user and by item."""

import logging

from fastapi import APIRouter, HTTPException, Query

from recommender.errors import ConfigurationError, UnknownContentType
from recommender.models import DEFAULT_CONFIG, RecommendationResult

from ..models import MAX_TOP_K, RecommendForUsersRequest
from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _orchestrator():
    try:
        return get_state().orchestrator
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))


async def _for_users(user_ids, top_k) -> RecommendationResult:
    orchestrator = _orchestrator()
    try:
        return await orchestrator.recommend_for_user(user_ids, top_k)
    except UnknownContentType as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/users/{user_id}", response_model=RecommendationResult)
async def recommend_for_user(
    user_id: str,
    top_k: int = Query(DEFAULT_CONFIG.default_top_k, ge=1, le=MAX_TOP_K),
):
    """Up to top_k recommendations per content type for one user."""
    return await _for_users([user_id], top_k)


@router.post("/users", response_model=RecommendationResult)
async def recommend_for_users(request: RecommendForUsersRequest):
    """List form; only the first user id is used."""
    if len(request.user_ids) > 1:
        logger.info("[recommendations] %d user ids given, using %s", len(request.user_ids), request.user_ids[0])
    return await _for_users(request.user_ids, request.top_k)


@router.get("/items/{item_id}", response_model=RecommendationResult)
async def recommend_by_id(
    item_id: str,
    top_k: int = Query(DEFAULT_CONFIG.default_top_k, ge=1, le=MAX_TOP_K),
):
    """Items similar to item_id, bucketed by content type."""
    orchestrator = _orchestrator()
    try:
        return await orchestrator.recommend_by_id(item_id, top_k)
    except UnknownContentType as e:
        raise HTTPException(status_code=400, detail=str(e))
