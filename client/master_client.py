"""HTTP client for communicating with the metadata (master) service."""

import asyncio
import uuid
from typing import List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as SchemaValidationError

from common.logging_config import get_logger
from client.config import ClientConfig
from client.exceptions import MetadataServiceError
from client.schemas import (
    ChunkReplica,
    CreateChunkRequest,
    CreateFileRequest,
    CreatedResponse,
    FileRecord,
    StorageNode,
)

logger = get_logger(__name__)


class MasterClient:
    """Async HTTP client for the metadata service with retry logic and error handling."""

    def __init__(self, config: ClientConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize metadata service client.

        Args:
            config: Client configuration
            transport: Optional httpx transport (used by tests to mock the service)
        """
        self.config = config
        self.session = httpx.AsyncClient(
            base_url=config.get_base_url(),
            timeout=config.request_timeout,
            transport=transport
        )
        logger.info(f"Initialized MasterClient [base_url={config.get_base_url()}]")

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object (4xx responses are returned, not raised)

        Raises:
            MetadataServiceError: If the service stays unreachable or keeps failing
        """
        max_retries = max_retries if max_retries is not None else self.config.max_retries
        backoff = self.config.retry_backoff_seconds

        request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={request_id}]")

        last_error = None
        for attempt in range(max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, **kwargs)
            except httpx.TransportError as e:
                last_error = e
                if attempt < max_retries:
                    delay = backoff * (2 ** attempt)
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(
                    f"Network error (max retries exceeded): {method} {endpoint} error={e!r} [request_id={request_id}]"
                )
                break

            logger.debug(
                f"Response received: {method} {endpoint} status={response.status_code} [request_id={request_id}]"
            )

            if response.status_code >= 500 and attempt < max_retries:
                delay = backoff * (2 ** attempt)
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={request_id}]"
                )
                await asyncio.sleep(delay)
                continue

            return response

        if isinstance(last_error, httpx.TimeoutException):
            raise MetadataServiceError(f"Metadata service timed out on {method} {endpoint}") from last_error
        raise MetadataServiceError(
            f"Cannot connect to metadata service at {self.config.get_base_url()}"
        ) from last_error

    @staticmethod
    def _check(response: httpx.Response, action: str) -> None:
        if not response.is_success:
            raise MetadataServiceError(
                f"Metadata service failed to {action}: status={response.status_code}",
                status_code=response.status_code
            )

    @staticmethod
    def _parse(model, payload, action: str):
        try:
            if isinstance(payload, list):
                return [model.model_validate(item) for item in payload]
            return model.model_validate(payload)
        except (SchemaValidationError, TypeError) as e:
            raise MetadataServiceError(f"Malformed metadata response while trying to {action}: {e}") from e

    @staticmethod
    def _json(response: httpx.Response, action: str):
        try:
            return response.json()
        except ValueError as e:
            raise MetadataServiceError(f"Metadata service returned invalid JSON while trying to {action}") from e

    async def get_chunk_servers(self) -> List[StorageNode]:
        """
        Fetch the current list of storage nodes.

        Returns:
            Storage nodes in the order returned by the service
        """
        response = await self._request_with_retry('GET', '/api/ChunkServers')
        self._check(response, "list chunk servers")
        return self._parse(StorageNode, self._json(response, "list chunk servers"), "list chunk servers")

    async def create_file(self, name: str, size: int, number_of_chunks: int) -> int:
        """
        Register file metadata.

        Args:
            name: File name
            size: File size in bytes
            number_of_chunks: Chunk count of the file

        Returns:
            File identifier assigned by the service
        """
        body = CreateFileRequest(name=name, size=size, number_of_chunks=number_of_chunks)
        response = await self._request_with_retry(
            'POST',
            '/api/Files/',
            max_retries=0,
            json=body.model_dump(by_alias=True)
        )
        self._check(response, f"register file {name}")
        created = self._parse(CreatedResponse, self._json(response, "register file"), "register file")
        logger.info(f"Registered file {name} [file_id={created.id}, size={size}, chunks={number_of_chunks}]")
        return created.id

    async def create_chunk_record(self, file_id: int, chunk_server_url: str, chunk_number: int) -> int:
        """
        Register one chunk replica record.

        Returns:
            Replica identifier assigned by the service
        """
        body = CreateChunkRequest(file_id=file_id, chunk_server_url=chunk_server_url, chunk_number=chunk_number)
        response = await self._request_with_retry(
            'POST',
            '/api/chunks',
            max_retries=0,
            json=body.model_dump(by_alias=True)
        )
        self._check(response, f"register chunk {chunk_number} of file {file_id}")
        created = self._parse(CreatedResponse, self._json(response, "register chunk"), "register chunk")
        return created.id

    async def get_chunk_records(self, file_name: str) -> List[ChunkReplica]:
        """
        Fetch every chunk replica record of a file.

        Returns:
            Replica records (empty list if the file has none)
        """
        response = await self._request_with_retry('GET', f'/api/Chunks/GetChunks/{quote(file_name, safe="")}')
        if response.status_code == 404:
            return []
        self._check(response, f"list chunks of {file_name}")
        return self._parse(ChunkReplica, self._json(response, "list chunks"), "list chunks")

    async def get_file_by_name(self, file_name: str) -> Optional[FileRecord]:
        """
        Fetch file metadata by name.

        Returns:
            FileRecord, or None if the service reports 404
        """
        response = await self._request_with_retry('GET', f'/api/Files/GetByName/{quote(file_name, safe="")}')
        if response.status_code == 404:
            return None
        self._check(response, f"get file {file_name}")
        return self._parse(FileRecord, self._json(response, "get file"), "get file")

    async def delete_file(self, file_name: str) -> bool:
        """
        Delete file metadata by name.

        Returns:
            True if deleted, False if the service reports 404
        """
        response = await self._request_with_retry('DELETE', f'/api/Files/{quote(file_name, safe="")}')
        if response.status_code == 404:
            return False
        self._check(response, f"delete file {file_name}")
        logger.info(f"Deleted metadata of file {file_name}")
        return True

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
