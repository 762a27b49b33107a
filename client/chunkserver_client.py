"""HTTP client abstraction for sending chunk store/fetch/delete requests to storage nodes."""

import base64
from typing import Optional

import httpx

from common.logging_config import get_logger
from client.config import ClientConfig
from client.exceptions import ChunkNotFoundError, ChunkserverUnavailableError
from client.schemas import StoreChunkRequest

logger = get_logger(__name__)


class ChunkserverClient:
    """
    Async HTTP client for storage node operations.

    One session is shared by every node; requests carry absolute URLs built
    from the node host. Each request is bounded by the configured timeout.

    Chunk bytes are sent base64-encoded in the JSON store body. The node is
    expected to decode them on store and to answer reads with the raw bytes.
    """

    def __init__(self, config: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.session = httpx.AsyncClient(timeout=config.request_timeout, transport=transport)

    @staticmethod
    def _url(host: str, path: str) -> str:
        return f"{host.rstrip('/')}{path}"

    async def store_chunk(self, host: str, replica_id: int, data: bytes) -> bool:
        """
        Push chunk bytes to a storage node.

        Args:
            host: Storage node base URL
            replica_id: Replica identifier assigned by the metadata service
            data: Raw chunk bytes

        Returns:
            True if the node confirmed the store, False if it answered with an error status

        Raises:
            ChunkserverUnavailableError: If the node is unreachable or times out
        """
        body = StoreChunkRequest(data=base64.b64encode(data).decode('ascii'), id=replica_id)

        try:
            response = await self.session.post(
                self._url(host, '/api/Chunk/storeChunk'),
                json=body.model_dump(by_alias=True)
            )
        except httpx.TimeoutException as e:
            raise ChunkserverUnavailableError(f"Storage node {host} timed out storing replica {replica_id}") from e
        except httpx.TransportError as e:
            raise ChunkserverUnavailableError(f"Storage node {host} unreachable: {e!r}") from e

        if not response.is_success:
            logger.warning(f"Failed to store replica {replica_id} at {host}: status={response.status_code}")
            return False

        logger.debug(f"Stored replica {replica_id} ({len(data)} bytes) at {host}")
        return True

    async def read_chunk(self, host: str, replica_id: int) -> bytes:
        """
        Fetch chunk bytes from a storage node.

        Args:
            host: Storage node base URL
            replica_id: Replica identifier

        Returns:
            Raw chunk bytes

        Raises:
            ChunkNotFoundError: If the node does not hold the replica
            ChunkserverUnavailableError: If the node is unreachable or answers with an error
        """
        try:
            response = await self.session.get(self._url(host, f'/api/Chunk/getChunk/{replica_id}'))
        except httpx.TimeoutException as e:
            raise ChunkserverUnavailableError(f"Storage node {host} timed out reading replica {replica_id}") from e
        except httpx.TransportError as e:
            raise ChunkserverUnavailableError(f"Storage node {host} unreachable: {e!r}") from e

        if response.status_code == 404:
            raise ChunkNotFoundError(f"Replica {replica_id} not found on {host}")
        if not response.is_success:
            raise ChunkserverUnavailableError(
                f"Storage node {host} failed to read replica {replica_id}: status={response.status_code}"
            )

        return response.content

    async def delete_chunk(self, host: str, replica_id: int) -> bool:
        """
        Delete a replica from a storage node.

        Returns:
            True if the node confirmed the deletion, False otherwise

        Raises:
            ChunkserverUnavailableError: If the node is unreachable or times out
        """
        try:
            response = await self.session.delete(self._url(host, f'/api/Chunk/deleteChunk/{replica_id}'))
        except httpx.TimeoutException as e:
            raise ChunkserverUnavailableError(f"Storage node {host} timed out deleting replica {replica_id}") from e
        except httpx.TransportError as e:
            raise ChunkserverUnavailableError(f"Storage node {host} unreachable: {e!r}") from e

        if response.is_success:
            logger.info(f"Deleted replica {replica_id} from {host}")
            return True

        logger.warning(f"Failed to delete replica {replica_id} from {host}: status={response.status_code}")
        return False

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
