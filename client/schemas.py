"""Pydantic schemas for the metadata service and storage node wire formats."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base model accepting both camelCase wire names and snake_case attributes."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StorageNode(WireModel):
    """A storage node as listed by the metadata service."""
    host: str


class FileRecord(WireModel):
    """File metadata owned by the metadata service."""
    id: int
    name: Optional[str] = None
    size: int
    number_of_chunks: int = Field(alias="numberOfChunks")


class ChunkReplica(WireModel):
    """One physical copy of a chunk."""
    id: int
    file_id: int = Field(alias="fileId")
    chunk_number: int = Field(alias="chunkNumber")
    chunk_server_url: str = Field(alias="chunkServerUrl")


class CreateFileRequest(WireModel):
    """Request body for registering file metadata."""
    name: str
    size: int
    number_of_chunks: int = Field(alias="numberOfChunks")


class CreateChunkRequest(WireModel):
    """Request body for registering a chunk replica record."""
    file_id: int = Field(alias="fileId")
    chunk_server_url: str = Field(alias="chunkServerUrl")
    chunk_number: int = Field(alias="chunkNumber")


class CreatedResponse(WireModel):
    """Response carrying the identifier assigned by the metadata service."""
    id: int


class StoreChunkRequest(WireModel):
    """Request body for pushing chunk bytes to a storage node; data is base64."""
    data: str
    id: int
