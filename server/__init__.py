"""
Content Recommendation API Server

Usage: uvicorn server:app --reload --port 8000
"""

from .app import app
from .config import ServerConfig, configure_logging, get_config, reload_config
from .services import (
    EmbeddingGenerator,
    FirestoreContentRepository,
    JsonContentRepository,
    PineconeVectorIndex,
)

__all__ = [
    "app",
    "ServerConfig",
    "configure_logging",
    "get_config",
    "reload_config",
    "EmbeddingGenerator",
    "FirestoreContentRepository",
    "JsonContentRepository",
    "PineconeVectorIndex",
]
