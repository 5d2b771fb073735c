"""Shared fixtures for seoeco tests."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from seoeco.core.session import SessionController


class FakeStream:
    """Scripted analysis stream.

    ``attempts`` holds one list per connection. Items are data payloads or
    exceptions to raise. After the last scripted connection the stream stays
    open until closed.
    """

    def __init__(self, params: dict[str, str], attempts=None):
        self.params = params
        self.attempts = [list(a) for a in (attempts or [[]])]
        self.closed = False
        self.connects = 0
        self._closed_event = asyncio.Event()

    async def events(self):
        self.connects += 1
        batch = self.attempts.pop(0) if self.attempts else []
        for item in batch:
            await asyncio.sleep(0)
            if self.closed:
                return
            if isinstance(item, BaseException):
                raise item
            yield item
        if not self.attempts:
            await self._closed_event.wait()

    def close(self) -> None:
        self.closed = True
        self._closed_event.set()


class StreamRecorder:
    """Stream factory that records every stream the controller opens."""

    def __init__(self):
        self.streams: list[FakeStream] = []
        self.scripts: list[list] = []

    def script(self, *attempts) -> None:
        self.scripts.append(list(attempts))

    def __call__(self, params: dict[str, str]) -> FakeStream:
        attempts = self.scripts.pop(0) if self.scripts else None
        stream = FakeStream(params, attempts)
        self.streams.append(stream)
        return stream


@pytest.fixture
def make_event():
    """Serialize one stream event the way the backend sends it."""

    def make(type_: str, **fields) -> str:
        return json.dumps({"type": type_, **fields})

    return make


@pytest.fixture
def fixed_clock():
    return lambda: "12:00:00"


@pytest.fixture
def recorder() -> StreamRecorder:
    return StreamRecorder()


@pytest.fixture
def controller(recorder: StreamRecorder, fixed_clock) -> SessionController:
    return SessionController(
        "http://backend.test/api",
        token="tok-123",
        stream_factory=recorder,
        retry_attempts=2,
        retry_delay_seconds=0,
        clock=fixed_clock,
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "api:\n  url: http://file.test/api/\nstream:\n  retry_attempts: 5\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def sample_results() -> dict:
    """A url -> agent -> result set as produced by a finished run."""
    return {
        "https://example.com": {
            "crawl": {
                "url": "https://example.com",
                "title": "Example",
                "headings": {"h1": ["Welcome"]},
                "meta": {"viewport": "width=device-width", "description": "An example site"},
                "formatted": {
                    "title": "Crawl Results",
                    "status": "good",
                    "issues": [],
                    "recommendations": ["Add more internal links"],
                },
            },
            "meta": {
                "formatted": {
                    "title": "Meta Tags",
                    "status": "needs_attention",
                    "issues": ["Title too short", "Missing og:image"],
                    "recommendations": ["Lengthen title"],
                },
            },
        }
    }
