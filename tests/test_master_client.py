"""Unit tests for MasterClient and ChunkserverRegistry."""

import json
from dataclasses import replace

import httpx
import pytest

from client.chunkserver_registry import ChunkserverRegistry
from client.exceptions import MetadataServiceError, NoChunkserversError
from client.master_client import MasterClient


def _client(config, handler):
    return MasterClient(config, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_create_file_sends_camel_case_body(client_config):
    """Test file registration body and returned id."""
    seen = {}

    def handler(request):
        seen['path'] = request.url.path
        seen['body'] = request.content
        return httpx.Response(201, json={'id': 17, 'name': 'a.txt', 'size': 5, 'numberOfChunks': 2})

    client = _client(client_config, handler)
    file_id = await client.create_file('a.txt', 5, 2)

    assert file_id == 17
    assert seen['path'] == '/api/Files/'
    assert json.loads(seen["body"]) == {'name': 'a.txt', 'size': 5, 'numberOfChunks': 2}
    await client.close()


@pytest.mark.asyncio
async def test_create_chunk_record(client_config):
    """Test replica record registration body."""
    seen = {}

    def handler(request):
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'id': 99})

    client = _client(client_config, handler)
    replica_id = await client.create_chunk_record(3, 'http://node-a', 4)

    assert replica_id == 99
    assert seen['body'] == {'fileId': 3, 'chunkServerUrl': 'http://node-a', 'chunkNumber': 4}
    await client.close()


@pytest.mark.asyncio
async def test_get_chunk_records_parses_wire_names(client_config):
    """Test replica records are parsed from camelCase JSON."""
    def handler(request):
        assert request.url.path == '/api/Chunks/GetChunks/report.pdf'
        return httpx.Response(200, json=[
            {'id': 1, 'fileId': 7, 'chunkNumber': 0, 'chunkServerUrl': 'http://node-a'},
            {'id': 2, 'fileId': 7, 'chunkNumber': 1, 'chunkServerUrl': 'http://node-b'},
        ])

    client = _client(client_config, handler)
    records = await client.get_chunk_records('report.pdf')

    assert [(r.id, r.chunk_number, r.chunk_server_url) for r in records] == [
        (1, 0, 'http://node-a'),
        (2, 1, 'http://node-b'),
    ]
    await client.close()


@pytest.mark.asyncio
async def test_get_file_by_name_not_found(client_config):
    """Test 404 maps to None rather than an error."""
    client = _client(client_config, lambda request: httpx.Response(404))

    assert await client.get_file_by_name('nope.txt') is None
    await client.close()


@pytest.mark.asyncio
async def test_get_file_by_name(client_config):
    """Test file metadata parsing."""
    def handler(request):
        return httpx.Response(200, json={'id': 4, 'name': 'x.bin', 'size': 2048, 'numberOfChunks': 2})

    client = _client(client_config, handler)
    file = await client.get_file_by_name('x.bin')

    assert file.id == 4
    assert file.size == 2048
    assert file.number_of_chunks == 2
    await client.close()


@pytest.mark.asyncio
async def test_delete_file(client_config):
    """Test delete returns True on success and False on 404."""
    statuses = iter([200, 404])
    client = _client(client_config, lambda request: httpx.Response(next(statuses)))

    assert await client.delete_file('a.txt') is True
    assert await client.delete_file('a.txt') is False
    await client.close()


@pytest.mark.asyncio
async def test_file_name_is_url_encoded(client_config):
    """Test names with spaces and slashes stay a single path segment."""
    seen = {}

    def handler(request):
        seen['raw_path'] = request.url.raw_path
        return httpx.Response(404)

    client = _client(client_config, handler)
    await client.get_file_by_name('dir/my file.txt')

    assert seen['raw_path'] == b'/api/Files/GetByName/dir%2Fmy%20file.txt'
    await client.close()


@pytest.mark.asyncio
async def test_retry_on_server_error(client_config):
    """Test GET retries on 500 errors."""
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            return httpx.Response(500)
        return httpx.Response(200, json=[{'host': 'http://node-a'}])

    client = _client(replace(client_config, max_retries=3), handler)
    nodes = await client.get_chunk_servers()

    assert call_count == 3
    assert [n.host for n in nodes] == ['http://node-a']
    await client.close()


@pytest.mark.asyncio
async def test_no_retry_on_post(client_config):
    """Test registration POSTs are sent exactly once."""
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        return httpx.Response(503)

    client = _client(replace(client_config, max_retries=3), handler)

    with pytest.raises(MetadataServiceError) as exc_info:
        await client.create_file('a.txt', 1, 1)

    assert call_count == 1
    assert exc_info.value.status_code == 503
    await client.close()


@pytest.mark.asyncio
async def test_no_retry_on_client_error(client_config):
    """Test 4xx responses are not retried."""
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        return httpx.Response(400)

    client = _client(replace(client_config, max_retries=3), handler)

    with pytest.raises(MetadataServiceError):
        await client.get_chunk_servers()

    assert call_count == 1
    await client.close()


@pytest.mark.asyncio
async def test_connection_error_after_retries(client_config):
    """Test connection failures raise MetadataServiceError once retries run out."""
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        raise httpx.ConnectError("Connection refused", request=request)

    client = _client(replace(client_config, max_retries=2), handler)

    with pytest.raises(MetadataServiceError, match="Cannot connect"):
        await client.get_file_by_name('a.txt')

    assert call_count == 3
    await client.close()


@pytest.mark.asyncio
async def test_timeout_reported(client_config):
    """Test a timeout is reported as a metadata service error."""
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = _client(client_config, handler)

    with pytest.raises(MetadataServiceError, match="timed out"):
        await client.get_chunk_records('a.txt')
    await client.close()


@pytest.mark.asyncio
async def test_malformed_response(client_config):
    """Test a response missing fields raises MetadataServiceError."""
    client = _client(client_config, lambda request: httpx.Response(200, json={'size': 3}))

    with pytest.raises(MetadataServiceError, match="Malformed"):
        await client.get_file_by_name('a.txt')
    await client.close()


@pytest.mark.asyncio
async def test_registry_fetches_fresh_and_deduplicates(client_config):
    """Test the registry calls the service every time and drops duplicate hosts."""
    call_count = 0

    def handler(request):
        nonlocal call_count
        call_count += 1
        return httpx.Response(200, json=[
            {'host': 'http://node-b'},
            {'host': 'http://node-a'},
            {'host': 'http://node-b'},
        ])

    client = _client(client_config, handler)
    registry = ChunkserverRegistry(client)

    assert await registry.get_hosts() == ['http://node-b', 'http://node-a']
    await registry.get_hosts()

    assert call_count == 2
    await client.close()


@pytest.mark.asyncio
async def test_registry_empty(client_config):
    """Test an empty node list raises NoChunkserversError."""
    client = _client(client_config, lambda request: httpx.Response(200, json=[]))

    with pytest.raises(NoChunkserversError):
        await ChunkserverRegistry(client).get_storage_nodes()
    await client.close()
