"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Single .env at project root for the API server and the ingestion script
root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)

DATA_SOURCES = ("firebase", "json")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class ServerConfig:
    """Server configuration."""

    # API Keys
    openai_api_key: Optional[str] = None
    pinecone_api_key: Optional[str] = None

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Pinecone index
    pinecone_index: str = "content-recommendations"
    pinecone_cloud: str = "aws"
    pinecone_region: str = "us-east-1"
    pinecone_namespace: Optional[str] = None

    # Data source: "firebase" | "json"
    data_source: str = "json"
    # When data_source=json: directory holding one <collection>.json per collection
    content_json_dir: Path = Path(__file__).parent.parent / "data"
    # When data_source=firebase: path to service account JSON and optional project id
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent
        data_source = os.getenv("DATA_SOURCE", "").strip().lower()
        if data_source not in DATA_SOURCES:
            data_source = "json"

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            pinecone_api_key=(os.getenv("PINECONE_API_KEY") or "").strip() or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            pinecone_index=os.getenv("PINECONE_INDEX") or os.getenv("PINECONE_INDEX_NAME") or cls.pinecone_index,
            pinecone_cloud=os.getenv("PINECONE_CLOUD", "aws"),
            pinecone_region=os.getenv("PINECONE_REGION", "us-east-1"),
            pinecone_namespace=os.getenv("PINECONE_NAMESPACE") or None,
            data_source=data_source,
            content_json_dir=_path_env("CONTENT_JSON_DIR", base_dir / "data"),
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.data_source == "json" and not self.content_json_dir.is_dir():
            errors.append(f"Content JSON directory not found: {self.content_json_dir}")

        if self.data_source == "firebase":
            if self.firebase_credentials_path is None and not self.firebase_project_id:
                errors.append("DATA_SOURCE=firebase requires FIREBASE_CREDENTIALS_PATH or FIREBASE_PROJECT_ID")
            elif self.firebase_credentials_path is not None and not self.firebase_credentials_path.is_file():
                errors.append(f"Firebase credentials file not found: {self.firebase_credentials_path}")

        if not self.pinecone_api_key:
            errors.append("PINECONE_API_KEY is not set")

        return len(errors) == 0, errors


def configure_logging(level: Optional[str] = None) -> None:
    """Apply LOG_LEVEL (or level) to the root logger."""
    name = (level or get_config().log_level or "INFO").upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, name, logging.INFO))


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
