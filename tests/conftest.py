"""Shared pytest fixtures for all tests."""

import base64
import json
import random
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio

from client.chunkserver_client import ChunkserverClient
from client.config import ClientConfig
from client.master_client import MasterClient
from client.placement import ReplicaPlacementPlanner
from client.services.file_service import FileService

MASTER_URL = "http://master"
NODE_HOSTS = ["http://node-a", "http://node-b", "http://node-c"]


class FakeCluster:
    """
    In-memory metadata service plus storage nodes, served through httpx.MockTransport.

    Failure knobs:
        failing_hosts: storage nodes answering 500
        down_hosts: storage nodes refusing connections
        master_status: forced status code for every metadata service call
        master_down: metadata service refusing connections
        failing_master_calls: {(method, path): count} answering 500 for the next `count`
            matching calls, or for every call when count is None
    """

    def __init__(self, hosts):
        self.nodes = {host: {} for host in hosts}
        self.files = {}
        self.chunks = []
        self.failing_hosts = set()
        self.down_hosts = set()
        self.master_status = None
        self.master_down = False
        self.failing_master_calls = {}
        self.requests = []
        self._next_file_id = 1
        self._next_chunk_id = 1
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, str(request.url)))
        origin = f"{request.url.scheme}://{request.url.host}"
        if origin == MASTER_URL:
            return self._handle_master(request)
        return self._handle_node(origin, request)

    def _handle_master(self, request):
        if self.master_down:
            raise httpx.ConnectError("Connection refused", request=request)
        if self.master_status is not None:
            return httpx.Response(self.master_status)
        key = (request.method, request.url.path)
        if key in self.failing_master_calls:
            remaining = self.failing_master_calls[key]
            if remaining is None:
                return httpx.Response(500)
            if remaining > 0:
                self.failing_master_calls[key] = remaining - 1
                return httpx.Response(500)

        path = unquote(request.url.path)
        method = request.method

        if method == 'GET' and path == '/api/ChunkServers':
            return httpx.Response(200, json=[{"host": host} for host in self.nodes])

        if method == 'POST' and path == '/api/Files/':
            data = json.loads(request.content)
            record = {
                "id": self._next_file_id,
                "name": data["name"],
                "size": data["size"],
                "numberOfChunks": data["numberOfChunks"],
            }
            self._next_file_id += 1
            self.files[data["name"]] = record
            return httpx.Response(200, json=record)

        if method == 'POST' and path == '/api/chunks':
            data = json.loads(request.content)
            record = {
                "id": self._next_chunk_id,
                "fileId": data["fileId"],
                "chunkNumber": data["chunkNumber"],
                "chunkServerUrl": data["chunkServerUrl"],
            }
            self._next_chunk_id += 1
            self.chunks.append(record)
            return httpx.Response(200, json={"id": record["id"]})

        if method == 'GET' and path.startswith('/api/Chunks/GetChunks/'):
            name = path[len('/api/Chunks/GetChunks/'):]
            return httpx.Response(200, json=self.chunk_records(name))

        if method == 'GET' and path.startswith('/api/Files/GetByName/'):
            name = path[len('/api/Files/GetByName/'):]
            if name not in self.files:
                return httpx.Response(404)
            return httpx.Response(200, json=self.files[name])

        if method == 'DELETE' and path.startswith('/api/Files/'):
            name = path[len('/api/Files/'):]
            record = self.files.pop(name, None)
            if record is None:
                return httpx.Response(404)
            self.chunks = [c for c in self.chunks if c["fileId"] != record["id"]]
            return httpx.Response(200)

        return httpx.Response(404)

    def _handle_node(self, origin, request):
        if origin in self.down_hosts or origin not in self.nodes:
            raise httpx.ConnectError("Connection refused", request=request)
        if origin in self.failing_hosts:
            return httpx.Response(500, text="Internal Server Error")

        store = self.nodes[origin]
        path = request.url.path

        if request.method == 'POST' and path == '/api/Chunk/storeChunk':
            data = json.loads(request.content)
            store[data["id"]] = base64.b64decode(data["data"])
            return httpx.Response(200)

        if request.method == 'GET' and path.startswith('/api/Chunk/getChunk/'):
            replica_id = int(path.rsplit('/', 1)[1])
            if replica_id not in store:
                return httpx.Response(404)
            return httpx.Response(200, content=store[replica_id])

        if request.method == 'DELETE' and path.startswith('/api/Chunk/deleteChunk/'):
            replica_id = int(path.rsplit('/', 1)[1])
            if store.pop(replica_id, None) is None:
                return httpx.Response(404)
            return httpx.Response(200)

        return httpx.Response(404)

    def chunk_records(self, name):
        file = self.files.get(name)
        if file is None:
            return []
        return [c for c in self.chunks if c["fileId"] == file["id"]]

    def add_file(self, name, size, number_of_chunks):
        """Register file metadata directly, bypassing the client."""
        record = {"id": self._next_file_id, "name": name, "size": size, "numberOfChunks": number_of_chunks}
        self._next_file_id += 1
        self.files[name] = record
        return record

    def add_replica(self, name, chunk_number, host, data=None):
        """Register a replica record, and store its bytes on `host` when data is given."""
        record = {
            "id": self._next_chunk_id,
            "fileId": self.files[name]["id"],
            "chunkNumber": chunk_number,
            "chunkServerUrl": host,
        }
        self._next_chunk_id += 1
        self.chunks.append(record)
        if data is not None:
            self.nodes[host][record["id"]] = data
        return record

    def node_requests(self, method, host):
        return [url for m, url in self.requests if m == method and url.startswith(host)]


@pytest.fixture
def cluster():
    """
    Create a fake cluster with three storage nodes.

    Returns:
        FakeCluster instance
    """
    return FakeCluster(NODE_HOSTS)


@pytest.fixture
def client_config():
    """
    Client config pointing at the fake cluster: 4-byte chunks, 2 replicas, no retries.
    """
    return ClientConfig(
        master_server_url=MASTER_URL,
        replication_level=2,
        chunk_size=4,
        request_timeout=5,
        max_retries=0,
        retry_backoff_seconds=0,
        max_concurrency=4,
    )


def build_file_service(config, cluster, seed=7):
    """Create a FileService wired to the fake cluster with a seeded planner."""
    return FileService(
        config,
        master=MasterClient(config, transport=cluster.transport),
        chunkserver_client=ChunkserverClient(config, transport=cluster.transport),
        planner=ReplicaPlacementPlanner(random.Random(seed)),
    )


@pytest_asyncio.fixture
async def file_service(client_config, cluster):
    """
    FileService wired to the fake cluster.

    Yields:
        FileService, closed after the test
    """
    service = build_file_service(client_config, cluster)
    yield service
    await service.close()


@pytest.fixture
def service_factory(cluster):
    """
    Factory for FileServices with a custom config or planner seed.

    Returns:
        Callable (config, seed=7) -> FileService
    """
    def factory(config, seed=7):
        return build_file_service(config, cluster, seed=seed)
    return factory
