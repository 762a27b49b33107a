"""Splitting file content into fixed-size chunks."""

from typing import List

from common.constants import CHUNK_SIZE_BYTES
from client.exceptions import ValidationError


def count_chunks(size: int, chunk_size: int = CHUNK_SIZE_BYTES) -> int:
    """
    Number of chunks needed to hold `size` bytes.

    Args:
        size: Content length in bytes
        chunk_size: Chunk size in bytes

    Returns:
        ceil(size / chunk_size)
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return (size + chunk_size - 1) // chunk_size


def split_into_chunks(content: bytes, chunk_size: int = CHUNK_SIZE_BYTES) -> List[bytes]:
    """
    Split content into ordered chunks of `chunk_size` bytes.

    Every chunk has exactly `chunk_size` bytes except possibly the last one,
    which holds the remainder. Joining the result gives back `content`.

    Args:
        content: Raw file bytes
        chunk_size: Chunk size in bytes

    Returns:
        List of byte chunks indexed by chunk number

    Raises:
        ValidationError: If content is empty
        ValueError: If chunk_size is not positive
    """
    if not content:
        raise ValidationError("File is empty")

    total = count_chunks(len(content), chunk_size)
    view = bytes(content)

    return [view[i * chunk_size:(i + 1) * chunk_size] for i in range(total)]
