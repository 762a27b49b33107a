"""File service: create, read, delete and size operations over the chunk store."""

import asyncio
from typing import Dict, List, Optional

from common.logging_config import get_logger
from common.types import DeleteReport, Placement, WriteReport
from client.chunking import split_into_chunks
from client.chunkserver_client import ChunkserverClient
from client.chunkserver_registry import ChunkserverRegistry
from client.config import ClientConfig
from client.exceptions import (
    CorruptFileError,
    FileNotFoundError,
    PartialDeleteError,
    PartialWriteError,
    UnreachableError,
    UnrecoverableReadError,
    ValidationError,
)
from client.master_client import MasterClient
from client.placement import ReplicaPlacementPlanner
from client.schemas import ChunkReplica

logger = get_logger(__name__)


class FileService:
    """
    Coordinates the metadata service and the storage nodes for whole-file operations.

    Storage node failures are absorbed per replica and only become an error
    once aggregation shows a chunk number without any success. Metadata
    service failures on the critical path propagate immediately.
    """

    def __init__(
        self,
        config: ClientConfig,
        master: Optional[MasterClient] = None,
        chunkserver_client: Optional[ChunkserverClient] = None,
        planner: Optional[ReplicaPlacementPlanner] = None,
    ):
        self.config = config
        self.master = master or MasterClient(config)
        self.chunkserver_client = chunkserver_client or ChunkserverClient(config)
        self.registry = ChunkserverRegistry(self.master)
        self.planner = planner or ReplicaPlacementPlanner()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self) -> None:
        await self.master.close()
        await self.chunkserver_client.close()

    async def create_file(self, content: bytes, name: str) -> WriteReport:
        """
        Split content into chunks and store `replication_level` replicas of each.

        Args:
            content: Raw file bytes
            name: File name

        Returns:
            WriteReport describing the stored file

        Raises:
            ValidationError: If content is empty or name is blank
            NoChunkserversError: If no storage node is registered
            MetadataServiceError: If node lookup or file registration fails
            PartialWriteError: If some chunk number has no stored replica
        """
        if not name or not name.strip():
            raise ValidationError("File name must not be empty")

        chunks = split_into_chunks(content, self.config.chunk_size)
        hosts = await self.registry.get_hosts()

        file_id = await self.master.create_file(name, len(content), len(chunks))
        plan = self.planner.plan(len(chunks), hosts, self.config.replication_level)

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        stored: Dict[int, int] = {}
        failed = 0

        for round_plan in plan:
            outcomes = await asyncio.gather(*(
                self._place_replica(file_id, placement, chunks[placement.chunk_number], semaphore)
                for placement in round_plan
            ))

            for placement, ok in zip(round_plan, outcomes):
                if ok:
                    stored[placement.chunk_number] = stored.get(placement.chunk_number, 0) + 1
                else:
                    failed += 1

        missing = [n for n in range(len(chunks)) if stored.get(n, 0) == 0]
        if missing:
            logger.error(
                f"Write of {name} incomplete: chunks {missing} have no stored replica "
                f"[file_id={file_id}]; registered metadata is left in place"
            )
            raise PartialWriteError(
                f"File {name} was not stored: {len(missing)} of {len(chunks)} chunks have no replica",
                file_id=file_id,
                missing_chunks=missing
            )

        replicas_stored = sum(stored.values())
        logger.info(
            f"Created file {name} [file_id={file_id}, size={len(content)}, chunks={len(chunks)}, "
            f"replicas_stored={replicas_stored}, replicas_failed={failed}]"
        )
        return WriteReport(
            file_id=file_id,
            name=name,
            size=len(content),
            number_of_chunks=len(chunks),
            replicas_stored=replicas_stored,
            replicas_failed=failed,
        )

    async def _place_replica(
        self,
        file_id: int,
        placement: Placement,
        data: bytes,
        semaphore: asyncio.Semaphore
    ) -> bool:
        """Register one replica record and push its bytes; True only on a confirmed store."""
        async with semaphore:
            try:
                replica_id = await self.master.create_chunk_record(
                    file_id, placement.host, placement.chunk_number
                )
                ok = await self.chunkserver_client.store_chunk(placement.host, replica_id, data)
            except UnreachableError as e:
                logger.warning(
                    f"Failed to store chunk {placement.chunk_number} at chunk server {placement.host} "
                    f"(round {placement.round_index}): {e}"
                )
                return False

        if not ok:
            logger.warning(
                f"Failed to store chunk {placement.chunk_number} at chunk server {placement.host} "
                f"(round {placement.round_index})"
            )
        return ok

    @staticmethod
    def _group_by_chunk_number(records: List[ChunkReplica]) -> Dict[int, List[ChunkReplica]]:
        """Group replica records by chunk number, ascending, keeping service order inside a group."""
        groups: Dict[int, List[ChunkReplica]] = {}
        for record in records:
            groups.setdefault(record.chunk_number, []).append(record)
        return {number: groups[number] for number in sorted(groups)}

    async def read_file(self, name: str) -> bytes:
        """
        Reassemble a file from any surviving replica of each chunk.

        Args:
            name: File name

        Returns:
            File content

        Raises:
            FileNotFoundError: If the file has no metadata
            CorruptFileError: If the replica records do not cover every chunk number
            UnrecoverableReadError: If every replica of some chunk failed
            MetadataServiceError: If a metadata service call fails
        """
        records = await self.master.get_chunk_records(name)
        groups = self._group_by_chunk_number(records)

        file = await self.master.get_file_by_name(name)
        if file is None:
            raise FileNotFoundError(f"File {name} was not found")

        if list(groups) != list(range(file.number_of_chunks)):
            logger.error(
                f"File {name} is corrupt: expected {file.number_of_chunks} chunks, "
                f"found chunk numbers {list(groups)}"
            )
            raise CorruptFileError(
                f"File {name} was not saved correctly: expected {file.number_of_chunks} chunks, found {len(groups)}",
                expected_chunks=file.number_of_chunks,
                found_chunks=len(groups)
            )

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        contents = await asyncio.gather(*(
            self._read_chunk_group(number, replicas, semaphore)
            for number, replicas in groups.items()
        ))

        for number, data in zip(groups, contents):
            if data is None:
                raise UnrecoverableReadError(
                    f"File {name} is impossible to read: no replica of chunk {number} is available",
                    chunk_number=number
                )

        content = b"".join(contents)
        logger.info(f"Read file {name} [chunks={len(groups)}, size={len(content)}]")
        return content

    async def _read_chunk_group(
        self,
        chunk_number: int,
        replicas: List[ChunkReplica],
        semaphore: asyncio.Semaphore
    ) -> Optional[bytes]:
        """Try replicas in order; return the first successful read or None."""
        for replica in replicas:
            try:
                async with semaphore:
                    return await self.chunkserver_client.read_chunk(replica.chunk_server_url, replica.id)
            except UnreachableError as e:
                logger.warning(
                    f"Replica {replica.id} of chunk {chunk_number} unavailable at "
                    f"{replica.chunk_server_url}, trying next: {e}"
                )

        logger.error(f"All {len(replicas)} replicas of chunk {chunk_number} failed")
        return None

    async def delete_file(self, name: str) -> DeleteReport:
        """
        Delete file metadata and, best-effort, every known replica.

        Each replica deletion is attempted once; a failure does not stop the others.

        Args:
            name: File name

        Returns:
            DeleteReport when every replica was deleted

        Raises:
            FileNotFoundError: If neither metadata nor replica records exist
            PartialDeleteError: If at least one replica deletion failed
            MetadataServiceError: If a metadata service call fails
        """
        records = await self.master.get_chunk_records(name)

        metadata_deleted = await self.master.delete_file(name)
        if not metadata_deleted:
            if not records:
                raise FileNotFoundError(f"File {name} was not found")
            logger.warning(f"Metadata of {name} already gone; deleting {len(records)} orphaned replicas")

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        outcomes = await asyncio.gather(*(
            self._delete_replica(record, semaphore) for record in records
        ))

        failed = [record.id for record, ok in zip(records, outcomes) if not ok]
        deleted = len(records) - len(failed)

        if failed:
            logger.error(f"Deleted file {name} but {len(failed)} of {len(records)} replicas remain: {failed}")
            raise PartialDeleteError(
                f"File {name} deleted, but {len(failed)} replicas could not be removed",
                failed_replicas=failed,
                deleted_replicas=deleted
            )

        logger.info(f"Deleted file {name} [replicas_deleted={deleted}]")
        return DeleteReport(name=name, replicas_deleted=deleted, replica_ids=[r.id for r in records])

    async def _delete_replica(self, record: ChunkReplica, semaphore: asyncio.Semaphore) -> bool:
        async with semaphore:
            try:
                return await self.chunkserver_client.delete_chunk(record.chunk_server_url, record.id)
            except UnreachableError as e:
                logger.warning(f"Failed to delete replica {record.id} from {record.chunk_server_url}: {e}")
                return False

    async def get_size(self, name: str) -> int:
        """
        Get file size from metadata.

        Raises:
            FileNotFoundError: If the file has no metadata
            MetadataServiceError: If the metadata service call fails
        """
        file = await self.master.get_file_by_name(name)
        if file is None:
            raise FileNotFoundError(f"File {name} was not found")
        return file.size
