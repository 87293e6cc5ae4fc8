"""Shared fixtures for building throwaway site trees and fake HTTP clients."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import httpx
import pytest


@pytest.fixture
def make_site(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: content}`` under a fresh root and return it."""

    def _make(files: Dict[str, str]) -> Path:
        root = tmp_path / "site"
        root.mkdir(exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every requested URL."""

    def __init__(self, handler):
        self.requests = []

        def _recording(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_recording)


@pytest.fixture
def status_client():
    """Build an AsyncClient answering each URL with a fixed status (default 200)."""

    def _build(statuses: Dict[str, int] = None, default: int = 200):
        statuses = statuses or {}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(statuses.get(str(request.url), default))

        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return _build


@pytest.fixture
def recording_client():
    """Build an AsyncClient over *handler* that records every request."""

    def _build(handler):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport

    return _build
