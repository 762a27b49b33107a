"""Shared data type definitions (Placement, WriteReport, DeleteReport)."""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Placement:
    """
    One planned replica: chunk number `chunk_number` goes to storage node `host`.
    """
    round_index: int
    chunk_number: int
    host: str


@dataclass(frozen=True)
class WriteReport:
    """
    Outcome of a successful file creation.
    """
    file_id: int
    name: str
    size: int
    number_of_chunks: int
    replicas_stored: int
    replicas_failed: int


@dataclass(frozen=True)
class DeleteReport:
    """
    Outcome of a fully successful file deletion.
    """
    name: str
    replicas_deleted: int
    replica_ids: List[int]
