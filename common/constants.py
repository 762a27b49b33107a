"""Project-wide constants (chunk size, timeouts, retry defaults)."""

CHUNK_SIZE_BYTES: int = 1024  # 1 KiB default chunk size

DEFAULT_REPLICATION_LEVEL: int = 1

REQUEST_TIMEOUT_SECONDS: float = 30.0

MAX_RETRIES: int = 3

RETRY_BACKOFF_SECONDS: float = 0.5

MAX_CONCURRENT_REQUESTS: int = 16

DEFAULT_MASTER_SERVER_URL: str = "http://localhost:5000"
