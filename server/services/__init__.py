"""Backing adapters: content repositories, vector index, embedding generator."""

from .json_repository import InMemoryContentRepository, JsonContentRepository
from .firestore_repository import FirestoreContentRepository
from .pinecone_index import PineconeVectorIndex
from .embedding_generator import EmbeddingGenerator, check_openai_available

__all__ = [
    "InMemoryContentRepository",
    "JsonContentRepository",
    "FirestoreContentRepository",
    "PineconeVectorIndex",
    "EmbeddingGenerator",
    "check_openai_available",
]
