"""Application state: repository, vector index, embedder and orchestrator, built lazily once per process."""

import logging
from typing import Optional

from recommender import RecommendationOrchestrator
from recommender.errors import ConfigurationError
from recommender.models import IngestionConfig, resolve_ingestion_config
from recommender.ports import ContentRepository, EmbeddingService, VectorIndex

from .config import ServerConfig, get_config
from .services import (
    EmbeddingGenerator,
    FirestoreContentRepository,
    JsonContentRepository,
    PineconeVectorIndex,
)

logger = logging.getLogger(__name__)


def create_repository(config: ServerConfig) -> ContentRepository:
    """Content repository for config.data_source (firebase or json)."""
    if config.data_source == "firebase":
        cred_path = config.firebase_credentials_path
        if cred_path is not None and not cred_path.is_file():
            raise ConfigurationError(f"Firebase credentials file not found: {cred_path}")
        logger.info("[startup] Content repository: Firestore")
        return FirestoreContentRepository(
            project_id=config.firebase_project_id,
            credentials_path=cred_path,
        )
    logger.info("[startup] Content repository: JSON (%s)", config.content_json_dir)
    try:
        return JsonContentRepository(config.content_json_dir)
    except FileNotFoundError as e:
        raise ConfigurationError(str(e)) from e


def create_vector_index(config: ServerConfig, ingestion: Optional[IngestionConfig] = None) -> PineconeVectorIndex:
    if not config.pinecone_api_key:
        raise ConfigurationError("PINECONE_API_KEY is required. Set it in .env for the vector index (Pinecone).")
    logger.info("[startup] Vector index: Pinecone (%s)", config.pinecone_index)
    return PineconeVectorIndex(
        api_key=config.pinecone_api_key,
        index_name=config.pinecone_index,
        dimension=resolve_ingestion_config(ingestion).embedding_dimensions,
        cloud=config.pinecone_cloud,
        region=config.pinecone_region,
        namespace=config.pinecone_namespace,
    )


def create_embedder(config: ServerConfig, ingestion: Optional[IngestionConfig] = None) -> EmbeddingGenerator:
    """OpenAI embedder using the ingestion config's model and dimensions."""
    ingestion = resolve_ingestion_config(ingestion)
    return EmbeddingGenerator(
        api_key=config.openai_api_key,
        model=ingestion.embedding_model,
        dimensions=ingestion.embedding_dimensions,
    )


class AppState:
    """
    Global application state.

    Collaborators may be passed in (tests); otherwise each is created from config
    on first access.
    """

    def __init__(
        self,
        config: ServerConfig,
        repository: Optional[ContentRepository] = None,
        vector_index: Optional[VectorIndex] = None,
        embedder: Optional[EmbeddingService] = None,
        ingestion_config: Optional[IngestionConfig] = None,
    ):
        self.config = config
        self.ingestion_config = resolve_ingestion_config(ingestion_config)
        self._repository = repository
        self._vector_index = vector_index
        self._embedder = embedder
        self._orchestrator: Optional[RecommendationOrchestrator] = None

    @property
    def repository(self) -> ContentRepository:
        if self._repository is None:
            self._repository = create_repository(self.config)
        return self._repository

    @property
    def vector_index(self) -> VectorIndex:
        if self._vector_index is None:
            self._vector_index = create_vector_index(self.config, self.ingestion_config)
        return self._vector_index

    @property
    def embedder(self) -> EmbeddingService:
        if self._embedder is None:
            self._embedder = create_embedder(self.config, self.ingestion_config)
        return self._embedder

    @property
    def orchestrator(self) -> RecommendationOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = RecommendationOrchestrator(self.repository, self.vector_index)
        return self._orchestrator


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState(get_config())
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace (or clear, with None) the process state."""
    global _state
    _state = state
