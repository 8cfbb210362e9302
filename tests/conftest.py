"""Shared test fixtures backed by the in-memory pixeldrain fake."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pixelfs._api import FilesystemAPI
from pixelfs._store import Store
from pixelfs.backends._pixeldrain import PixeldrainBackend
from tests.backends.fake_server import API_KEY, API_URL, FakePixeldrain

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _no_env_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's PIXELDRAIN_API_KEY out of the tests."""
    monkeypatch.delenv("PIXELDRAIN_API_KEY", raising=False)


@pytest.fixture
def server() -> FakePixeldrain:
    return FakePixeldrain()


@pytest.fixture
def api(server: FakePixeldrain) -> Iterator[FilesystemAPI]:
    client = FilesystemAPI(API_URL, api_key=API_KEY, path_prefix="/me", transport=server.transport)
    yield client
    client.close()


@pytest.fixture
def backend(server: FakePixeldrain) -> Iterator[PixeldrainBackend]:
    b = PixeldrainBackend(API_KEY, api_url=API_URL, transport=server.transport)
    yield b
    b.close()


@pytest.fixture
def store(backend: PixeldrainBackend) -> Store:
    return Store(backend=backend)
