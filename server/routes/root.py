"""Root and health endpoints."""

from typing import Tuple

from fastapi import APIRouter

from ..config import ServerConfig
from ..services import check_openai_available
from ..state import get_state

router = APIRouter()

SERVICE_NAME = "Content Recommendation API"
SERVICE_VERSION = "1.0.0"


def _pinecone_available(config: ServerConfig) -> Tuple[bool, str]:
    """Return (available, message) for the Pinecone vector index."""
    if not config.pinecone_api_key:
        return False, "PINECONE_API_KEY not set"
    return True, f"index {config.pinecone_index!r}"


@router.get("/")
def root():
    return {
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "endpoints": {
            "health": ["/api/health"],
            "recommendations": [
                "/api/recommendations/users/{user_id}",
                "/api/recommendations/users",
                "/api/recommendations/items/{item_id}",
            ],
        },
    }


@router.get("/api/health")
def health():
    config = get_state().config
    openai_ok, openai_msg = check_openai_available(config.openai_api_key)
    pinecone_ok, pinecone_msg = _pinecone_available(config)
    return {
        "status": "healthy",
        "data_source": config.data_source,
        "openai": {"available": openai_ok, "message": openai_msg},
        "pinecone": {"available": pinecone_ok, "message": pinecone_msg},
    }
