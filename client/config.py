"""Configuration management for the file client."""

import json
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from common.constants import (
    CHUNK_SIZE_BYTES,
    DEFAULT_MASTER_SERVER_URL,
    DEFAULT_REPLICATION_LEVEL,
    MAX_CONCURRENT_REQUESTS,
    MAX_RETRIES,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BACKOFF_SECONDS,
)
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable settings consumed by the file client.

    Attributes:
        master_server_url: Base URL of the metadata service
        replication_level: Number of placement rounds (target replicas per chunk)
        chunk_size: Chunk size in bytes
        request_timeout: Deadline in seconds for every outbound call
        max_retries: Retry attempts for idempotent metadata calls
        retry_backoff_seconds: First retry delay, doubled on every further attempt
        max_concurrency: Upper bound on in-flight requests per operation
    """
    master_server_url: str = DEFAULT_MASTER_SERVER_URL
    replication_level: int = DEFAULT_REPLICATION_LEVEL
    chunk_size: int = CHUNK_SIZE_BYTES
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    max_retries: int = MAX_RETRIES
    retry_backoff_seconds: float = RETRY_BACKOFF_SECONDS
    max_concurrency: int = MAX_CONCURRENT_REQUESTS

    def __post_init__(self):
        if not self.master_server_url:
            raise ValueError("master_server_url must not be empty")
        if self.replication_level < 1:
            raise ValueError(f"replication_level must be >= 1, got {self.replication_level}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_backoff_seconds < 0:
            raise ValueError(f"retry_backoff_seconds must be >= 0, got {self.retry_backoff_seconds}")
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")

    def get_base_url(self) -> str:
        """
        Get metadata service base URL without a trailing slash.

        Returns:
            Base URL string (e.g., "http://localhost:5000")
        """
        return self.master_server_url.rstrip('/')

    def to_dict(self) -> dict:
        return asdict(self)


def _default_settings() -> dict:
    return {
        "master_server_url": os.environ.get("DFS_MASTER_SERVER_URL", DEFAULT_MASTER_SERVER_URL),
        "replication_level": int(os.environ.get("DFS_REPLICATION_LEVEL", DEFAULT_REPLICATION_LEVEL)),
        "chunk_size": int(os.environ.get("DFS_CHUNK_SIZE", CHUNK_SIZE_BYTES)),
        "request_timeout": float(os.environ.get("DFS_REQUEST_TIMEOUT", REQUEST_TIMEOUT_SECONDS)),
        "max_retries": int(os.environ.get("DFS_MAX_RETRIES", MAX_RETRIES)),
        "retry_backoff_seconds": float(os.environ.get("DFS_RETRY_BACKOFF_SECONDS", RETRY_BACKOFF_SECONDS)),
        "max_concurrency": int(os.environ.get("DFS_MAX_CONCURRENCY", MAX_CONCURRENT_REQUESTS)),
    }


def load_config(config_path: Optional[Path] = None) -> ClientConfig:
    """
    Build a ClientConfig from environment defaults and an optional JSON file.

    Values from the file override the environment. Unknown keys are ignored.

    Args:
        config_path: Optional path to a JSON config file. Falls back to the
            DFS_CONFIG_PATH environment variable when omitted.

    Returns:
        Validated ClientConfig

    Raises:
        ValueError: If the file is not valid JSON or a value is out of range
    """
    settings = _default_settings()

    if config_path is None and os.environ.get("DFS_CONFIG_PATH"):
        config_path = Path(os.environ["DFS_CONFIG_PATH"])

    if config_path is not None and config_path.exists():
        try:
            with open(config_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

        unknown = set(data) - set(settings)
        if unknown:
            logger.warning(f"Ignoring unknown config keys in {config_path}: {sorted(unknown)}")
        settings.update({k: v for k, v in data.items() if k in settings})

    config = ClientConfig(**settings)
    logger.debug(f"Loaded client config: {config.to_dict()}")
    return config
