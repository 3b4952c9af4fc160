"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ranking.models.config import DEFAULT_CONFIG, RankingConfig

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

# Single .env at the project root
_root_env = BASE_DIR / ".env"
if _root_env.exists():
    load_dotenv(_root_env)

DATA_SOURCES = ("memory", "firebase")


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Data source: "memory" (catalog JSON + in-process stores) | "firebase"
    data_source: str = "memory"
    # Seed catalog for the in-memory content index: {topics, sources, articles, stats?}
    catalog_json_path: Optional[Path] = None
    # Optional JSON overrides for RankingConfig (grouped keys, see RankingConfig.from_dict)
    ranking_config_path: Optional[Path] = None

    # When data_source=firebase: path to service account JSON and optional project id
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None

    # Vector index and embeddings
    pinecone_api_key: Optional[str] = None
    pinecone_index_name: Optional[str] = None
    openai_api_key: Optional[str] = None

    # Materialized feeds kept for cursor pagination
    feed_cache_ttl_seconds: int = 1800
    feed_cache_max_entries: int = 10000

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        data_source = os.getenv("DATA_SOURCE", "").strip().lower() or "memory"
        if data_source not in DATA_SOURCES:
            logger.warning("[config] unknown DATA_SOURCE=%r, using memory", data_source)
            data_source = "memory"

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (BASE_DIR / p).resolve()

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            data_source=data_source,
            catalog_json_path=_path_env("CATALOG_JSON_PATH"),
            ranking_config_path=_path_env("RANKING_CONFIG_PATH"),
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            pinecone_api_key=(os.getenv("PINECONE_API_KEY") or "").strip() or None,
            pinecone_index_name=os.getenv("PINECONE_INDEX_NAME") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            feed_cache_ttl_seconds=int(os.getenv("FEED_CACHE_TTL_SECONDS", "1800")),
            feed_cache_max_entries=int(os.getenv("FEED_CACHE_MAX_ENTRIES", "10000")),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.catalog_json_path and not self.catalog_json_path.is_file():
            errors.append(f"Catalog file not found: {self.catalog_json_path}")
        if self.ranking_config_path and not self.ranking_config_path.is_file():
            errors.append(f"Ranking config file not found: {self.ranking_config_path}")
        if self.data_source == "firebase" and not self.firebase_credentials_path:
            errors.append("DATA_SOURCE=firebase requires FIREBASE_CREDENTIALS_PATH")
        if self.feed_cache_ttl_seconds <= 0:
            errors.append("FEED_CACHE_TTL_SECONDS must be positive")
        return len(errors) == 0, errors

    def load_ranking_config(self) -> RankingConfig:
        """RankingConfig from RANKING_CONFIG_PATH, or the defaults."""
        if not self.ranking_config_path:
            return DEFAULT_CONFIG
        with open(self.ranking_config_path) as f:
            return RankingConfig.from_dict(json.load(f))


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
