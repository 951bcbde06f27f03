import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from api_inspector.core.config import InspectorSettings
from api_inspector.core.observers import LoadTestObserver


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")


class RecordingObserver(LoadTestObserver):
    """Collects every event the runner emits."""

    def __init__(self) -> None:
        self.starts: List[Dict[str, Any]] = []
        self.progress: List[Dict[str, Any]] = []
        self.results: List[Dict[str, Any]] = []
        self.errors: List[str] = []

    def on_run_start(self, config, batch_sizes):
        self.starts.append({"config": config, "batch_sizes": batch_sizes})

    def on_batch_complete(self, batch_index, progress):
        self.progress.append(progress)

    def on_run_complete(self, result):
        self.results.append(result)

    def on_run_error(self, error):
        self.errors.append(error)


@pytest.fixture
def settings():
    return InspectorSettings(
        _env_file=None,
        base_url="http://testserver",
        batch_pause=0,
        llm_api_key="",
    )


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_client():
    """Build an ``httpx.AsyncClient`` backed by a handler function."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def ok_handler():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True})

    return handler


@pytest.fixture
def refused_handler():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.002)
        raise httpx.ConnectError("Connection refused", request=request)

    return handler
