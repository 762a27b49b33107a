"""Custom exception classes for the file client."""

from typing import List, Optional


class DFSException(Exception):
    """
    Base exception class for all DFS-related errors.
    """
    pass


class ValidationError(DFSException):
    """
    Raised when caller input is rejected before any network call (e.g. empty content).
    """
    pass


class FileNotFoundError(DFSException):
    """
    Raised when the metadata service has no record for the requested file.
    """
    pass


class CorruptFileError(DFSException):
    """
    Raised when the recovered chunk groups do not match the recorded chunk count.
    """

    def __init__(self, message: str, expected_chunks: int, found_chunks: int):
        super().__init__(message)
        self.expected_chunks = expected_chunks
        self.found_chunks = found_chunks


class UnreachableError(DFSException):
    """
    Raised when a call to the metadata service or a storage node fails.
    """
    pass


class MetadataServiceError(UnreachableError):
    """
    Raised when the metadata service is unreachable or answers with an unexpected status.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChunkserverUnavailableError(UnreachableError):
    """
    Raised when a storage node is unreachable or unavailable.
    """
    pass


class ChunkNotFoundError(ChunkserverUnavailableError):
    """
    Raised when a storage node does not hold the requested replica.
    """
    pass


class NoChunkserversError(DFSException):
    """
    Raised when the metadata service reports no registered storage nodes.
    """
    pass


class UnrecoverableReadError(DFSException):
    """
    Raised when every replica of a chunk number failed to be read.
    """

    def __init__(self, message: str, chunk_number: int):
        super().__init__(message)
        self.chunk_number = chunk_number


class PartialWriteError(DFSException):
    """
    Raised when at least one chunk number has no successfully stored replica.

    Metadata registered before the failure is left in place.
    """

    def __init__(self, message: str, file_id: int, missing_chunks: List[int]):
        super().__init__(message)
        self.file_id = file_id
        self.missing_chunks = missing_chunks


class PartialDeleteError(DFSException):
    """
    Raised when at least one replica could not be deleted from its storage node.
    """

    def __init__(self, message: str, failed_replicas: List[int], deleted_replicas: int):
        super().__init__(message)
        self.failed_replicas = failed_replicas
        self.deleted_replicas = deleted_replicas
