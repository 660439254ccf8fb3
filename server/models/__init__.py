"""Pydantic request models for the API."""

from .recommendations import MAX_TOP_K, RecommendForUsersRequest

__all__ = [
    "MAX_TOP_K",
    "RecommendForUsersRequest",
]
