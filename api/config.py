"""Configuration settings for the REST façade."""

import os


API_HOST = os.environ.get("DFS_API_HOST", "0.0.0.0")

API_PORT = int(os.environ.get("DFS_API_PORT", "8080"))

API_RELOAD = os.environ.get("DFS_API_RELOAD", "false").lower() in ("1", "true", "yes")
