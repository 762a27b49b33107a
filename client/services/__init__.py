"""Service layer for file operations."""

from client.services.file_service import FileService

__all__ = [
    "FileService",
]
