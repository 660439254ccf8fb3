"""Recommendation request models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from recommender.models import DEFAULT_CONFIG

MAX_TOP_K = DEFAULT_CONFIG.max_top_k


class RecommendForUsersRequest(BaseModel):
    user_ids: List[str] = []
    top_k: Optional[int] = Field(default=None, ge=1, le=MAX_TOP_K)
