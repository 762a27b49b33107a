"""Pydantic schemas for the file endpoints."""

from typing import List
from pydantic import BaseModel


class CreateFileResponse(BaseModel):
    """Response model for file creation."""
    file_id: int
    name: str
    size: int
    number_of_chunks: int
    replicas_stored: int
    replicas_failed: int


class DeleteFileResponse(BaseModel):
    """Response model for file deletion."""
    name: str
    replicas_deleted: int


class FileSizeResponse(BaseModel):
    """Response model for the size query."""
    name: str
    size: int


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str


class CorruptFileErrorResponse(ErrorResponse):
    """Error body for a file whose chunk records do not cover every chunk number."""
    expected_chunks: int
    found_chunks: int


class UnreadableFileErrorResponse(ErrorResponse):
    """Error body naming the chunk with no readable replica."""
    chunk_number: int


class PartialWriteErrorResponse(ErrorResponse):
    """Error body listing chunk numbers without a stored replica."""
    missing_chunks: List[int]


class PartialDeleteErrorResponse(ErrorResponse):
    """Error body listing replicas that could not be deleted."""
    failed_replicas: List[int]
    replicas_deleted: int
