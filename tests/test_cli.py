"""Tests for the command-line interface."""

import argparse
import json
import logging
from unittest.mock import patch

import httpx
import pytest

from postboard import __main__ as cli
from postboard.api import create_app
from postboard.client import PostsClient
from postboard.service import CollectionService
from postboard.store import PostStore


@pytest.fixture
def store():
    store = PostStore(":memory:")
    store.connect()
    yield store
    store.close()


@pytest.fixture
def service(store):
    return CollectionService(store)


@pytest.fixture
def backend(service):
    """Route every PostsClient the CLI builds to the in-process app."""
    app = create_app(service)

    def make_client(base_url, timeout=5.0):
        return PostsClient(base_url, timeout=timeout, transport=httpx.ASGITransport(app=app))

    with patch.object(cli, "PostsClient", side_effect=make_client):
        yield


class FailingTransport(httpx.AsyncBaseTransport):
    """Pass requests to the app, answering the ones ``fails`` picks with an error."""

    def __init__(self, app, fails, status=503):
        self.inner = httpx.ASGITransport(app=app)
        self.fails = fails
        self.status = status

    async def handle_async_request(self, request):
        if self.fails(request):
            return httpx.Response(self.status, json={"message": "Unavailable"})
        return await self.inner.handle_async_request(request)


def _backend_failing(service, fails, status=503):
    transport = FailingTransport(create_app(service), fails, status)

    def make_client(base_url, timeout=5.0):
        return PostsClient(base_url, timeout=timeout, transport=transport)

    return patch.object(cli, "PostsClient", side_effect=make_client)


def _args(**kwargs):
    defaults = {"config": None, "url": "http://backend.test/posts", "json": False}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestJSONFormatter:
    """Tests for structured log output."""

    def test_format(self):
        record = logging.LogRecord(
            "postboard.service", logging.INFO, __file__, 1, "Created post %s", ("abc",), None
        )

        data = json.loads(cli.JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["component"] == "postboard.service"
        assert data["message"] == "Created post abc"


class TestCommands:
    """Tests for client commands."""

    @pytest.mark.asyncio
    async def test_add_and_list(self, backend, service, capsys):
        assert await cli.cmd_add(_args(author="Alice", body="Hello")) == 0
        created = service.list()[0]
        assert f"Created post {created.id}" in capsys.readouterr().out

        assert await cli.cmd_list(_args(json=True)) == 0
        listed = json.loads(capsys.readouterr().out)
        assert listed == [created.to_dict()]

    @pytest.mark.asyncio
    async def test_add_blank_fails(self, backend, service):
        assert await cli.cmd_add(_args(author=" ", body="Hello")) == 1
        assert service.list() == []

    @pytest.mark.asyncio
    async def test_show(self, backend, service, capsys):
        post = service.create({"author": "A", "body": "b"})

        assert await cli.cmd_show(_args(id=post.id)) == 0
        assert json.loads(capsys.readouterr().out) == post.to_dict()

        assert await cli.cmd_show(_args(id="missing")) == 1

    @pytest.mark.asyncio
    async def test_edit(self, backend, service):
        post = service.create({"author": "A", "body": "b"})

        assert await cli.cmd_edit(_args(id=post.id, author=None, body="new")) == 0
        assert service.get(post.id).body == "new"

    @pytest.mark.asyncio
    async def test_edit_unknown(self, backend):
        assert await cli.cmd_edit(_args(id="nope", author="A", body=None)) == 1

    @pytest.mark.asyncio
    async def test_delete(self, backend, service):
        post = service.create({"author": "A", "body": "b"})

        assert await cli.cmd_delete(_args(id=post.id)) == 0
        assert service.list() == []

    @pytest.mark.asyncio
    async def test_move(self, backend, service, capsys):
        a = service.create({"author": "A", "body": "1"})
        b = service.create({"author": "B", "body": "2"})
        c = service.create({"author": "C", "body": "3"})

        assert await cli.cmd_move(_args(from_index=2, to_index=0)) == 0
        assert [p.id for p in service.list()] == [a.id, c.id, b.id]
        assert "Posts" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_move_out_of_range(self, backend, service):
        service.create({"author": "A", "body": "1"})

        assert await cli.cmd_move(_args(from_index=0, to_index=5)) == 1

    @pytest.mark.asyncio
    async def test_list_unreachable(self, capsys):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        def make_client(base_url, timeout=5.0):
            return PostsClient(base_url, timeout=timeout, transport=httpx.MockTransport(refuse))

        with patch.object(cli, "PostsClient", side_effect=make_client):
            assert await cli.cmd_list(_args()) == 1

        err = capsys.readouterr().err
        assert "Error: Connection failed" in err
        assert "Make sure the backend is running on http://backend.test/posts" in err


class TestPartialFailure:
    """Tests for commands whose write or follow-up request fails."""

    @pytest.mark.asyncio
    async def test_add_when_refetch_fails(self, service, capsys):
        gets = []

        def second_list_fails(request):
            if request.method == "GET":
                gets.append(request)
                return len(gets) > 1
            return False

        with _backend_failing(service, second_list_fails):
            assert await cli.cmd_add(_args(author="Alice", body="Hello")) == 1

        created = service.list()
        assert len(created) == 1
        out, err = capsys.readouterr()
        assert f"Created post {created[0].id}" in out
        assert "HTTP 503" in err

    @pytest.mark.asyncio
    async def test_move_when_push_fails(self, service, capsys):
        a = service.create({"author": "A", "body": "1"})
        b = service.create({"author": "B", "body": "2"})

        def reorder_fails(request):
            return request.method == "PUT" and request.url.path == "/posts"

        with _backend_failing(service, reorder_fails, status=500):
            assert await cli.cmd_move(_args(from_index=1, to_index=0)) == 1

        assert [p.id for p in service.list()] == [b.id, a.id]
        assert "order not saved: HTTP 500" in capsys.readouterr().err
