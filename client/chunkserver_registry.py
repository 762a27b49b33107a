"""Lookup of the storage nodes currently registered with the metadata service."""

from typing import List

from common.logging_config import get_logger
from client.exceptions import NoChunkserversError
from client.master_client import MasterClient
from client.schemas import StorageNode

logger = get_logger(__name__)


class ChunkserverRegistry:
    """Fetches the storage node list fresh on every call; nothing is cached."""

    def __init__(self, master: MasterClient):
        self.master = master

    async def get_storage_nodes(self) -> List[StorageNode]:
        """
        Get the current storage nodes, without duplicate hosts, in service order.

        Raises:
            MetadataServiceError: If the metadata service call fails
            NoChunkserversError: If no storage node is registered
        """
        nodes = await self.master.get_chunk_servers()

        seen = set()
        unique = []
        for node in nodes:
            if node.host in seen:
                continue
            seen.add(node.host)
            unique.append(node)

        if not unique:
            raise NoChunkserversError("No storage nodes are registered with the metadata service")

        logger.info(f"Fetched {len(unique)} storage nodes")
        return unique

    async def get_hosts(self) -> List[str]:
        """Get the hosts of the current storage nodes."""
        return [node.host for node in await self.get_storage_nodes()]
