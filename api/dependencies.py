"""FastAPI dependencies shared by the routes."""

from typing import Optional

from client.config import load_config
from client.services.file_service import FileService

_file_service: Optional[FileService] = None


def get_file_service() -> FileService:
    """
    Return the process-wide FileService, creating it from the loaded config on first use.
    """
    global _file_service
    if _file_service is None:
        _file_service = FileService(load_config())
    return _file_service


async def close_file_service() -> None:
    """Close the process-wide FileService, if one was created."""
    global _file_service
    if _file_service is not None:
        await _file_service.close()
        _file_service = None
