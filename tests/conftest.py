"""Shared fixtures: an in-process streaming server and fake transport pieces."""

import asyncio
import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from v20client.config import Settings
from v20client.connection import Connection


def to_line(record) -> bytes:
    """Encode a record the way the service does: one compact JSON object per line."""
    if isinstance(record, (bytes, str)):
        data = record.encode() if isinstance(record, str) else record
    else:
        data = json.dumps(record).encode()
    return data + b"\n"


class FakeContent:
    """Response body that hands out pre-split chunks, then EOF (or hangs)."""

    def __init__(self, chunks, hang=False, error=None):
        self.chunks = list(chunks)
        self.hang = hang
        self.error = error
        self.reads = 0

    async def readany(self):
        if self.chunks:
            self.reads += 1
            return self.chunks.pop(0)
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()
        return b""


class FakeResponse:
    def __init__(self, content, status=200, body=b""):
        self.content = content
        self.status = status
        self.body = body
        self.closed = False

    async def read(self):
        return self.body

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for aiohttp.ClientSession.get() on the streaming path."""

    closed = False

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": str(url), "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def make_settings(base_url: str, **overrides) -> Settings:
    values = {
        "api_token": "test-token",
        "account_id": "test-account",
        "hostname": base_url,
        "stream_url": base_url,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def fake_connection():
    """Build a Connection whose session is a FakeSession serving the given lines."""
    def build(records, hang=False, error=None, status=200, body=b""):
        content = FakeContent([to_line(r) for r in records], hang=hang, error=error)
        response = FakeResponse(content, status=status, body=body)
        session = FakeSession(response)
        conn = Connection(
            "test-account",
            "test-token",
            settings=make_settings("https://stream.test/v3"),
            session=session,
        )
        return conn, session, response
    return build


@pytest_asyncio.fixture
async def stream_server():
    """
    Start in-process HTTP servers that answer every GET with a fixed body.

    Yields a factory: start(records, status=200) -> (base_url, seen_requests).
    """
    servers = []

    async def start(records, status=200):
        seen = []

        async def handle(request: web.Request) -> web.StreamResponse:
            seen.append({
                "path": request.path,
                "raw_path": request.raw_path,
                "query": dict(request.query),
                "headers": dict(request.headers),
                "method": request.method,
            })
            response = web.StreamResponse(status=status)
            response.content_type = "application/octet-stream"
            await response.prepare(request)
            for record in records:
                await response.write(to_line(record))
            await response.write_eof()
            return response

        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", handle)
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return f"http://{server.host}:{server.port}", seen

    yield start

    for server in servers:
        await server.close()


@pytest_asyncio.fixture
async def server_connection(stream_server):
    """Factory for a real Connection pointed at a fresh stream_server."""
    connections = []

    async def build(records, status=200):
        base_url, seen = await stream_server(records, status=status)
        conn = Connection("test-account", "test-token", settings=make_settings(base_url))
        connections.append(conn)
        return conn, seen

    yield build

    for conn in connections:
        await conn.close()


@pytest_asyncio.fixture
async def rest_server():
    """
    Start an in-process JSON API.

    Yields a factory: start(routes) -> (base_url, seen_requests), where routes
    maps "METHOD /path" to (status, payload).
    """
    servers = []

    async def start(routes):
        seen = []

        async def handle(request: web.Request) -> web.Response:
            body = await request.read()
            seen.append({
                "method": request.method,
                "path": request.path,
                "headers": dict(request.headers),
                "body": body,
            })
            status, payload = routes.get(f"{request.method} {request.path}", (404, {"errorMessage": "Not found"}))
            return web.json_response(payload, status=status)

        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", handle)
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return f"http://{server.host}:{server.port}/v3", seen

    yield start

    for server in servers:
        await server.close()
