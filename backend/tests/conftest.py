"""
Test configuration and fixtures.

Environment variables are set before any notestore module is imported so
that settings pick up the test values.
"""

import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("NODE_ID", "owner.os")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="notestore-test-"))
os.environ.setdefault("PUBLIC_RATE_LIMIT", "1000/minute")

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from notestore.main import app
from notestore.services.auth import create_access_token
from notestore.services.dispatcher import Dispatcher
from notestore.services.notes_tree import NoteTree

OWNER = "owner.os"
PEER = "peer.os"
STRANGER = "stranger.os"


def auth_headers(node_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(node_id)}"}


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "notes"


@pytest.fixture
def tree(data_dir) -> NoteTree:
    return NoteTree(data_dir, OWNER)


@pytest.fixture
def dispatcher(tree) -> Dispatcher:
    return Dispatcher(tree)


@pytest.fixture
def app_tree(tree):
    """Attach the test tree to the app in place of the one loaded at startup."""
    app.state.tree = tree
    yield tree


@pytest_asyncio.fixture
async def client(app_tree) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return auth_headers(OWNER)


@pytest.fixture
def peer_headers() -> dict[str, str]:
    return auth_headers(PEER)
