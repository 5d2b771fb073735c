"""Server-sent-events transport for the analysis stream.

Opens ``GET {api_url}/analyze-stream`` with httpx and yields the ``data``
payload of each event. Parsing of the payload itself lives in
``models.event``.
"""

from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Optional, Protocol

import httpx

STREAM_PATH = "/analyze-stream"


class StreamClosedError(Exception):
    """The server ended the stream before sending a terminal event."""


class StreamRejectedError(Exception):
    """The backend refused the stream request with a 4xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


def _rejection_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"{response.status_code} {response.reason_phrase}".strip()


class AnalysisStream(Protocol):
    """What the session controller needs from a transport."""

    closed: bool

    def events(self) -> AsyncIterator[str]: ...

    def close(self) -> None: ...


def build_stream_params(
    target: str,
    agents: list[str],
    is_sitemap: bool,
    token: Optional[str] = None,
) -> dict[str, str]:
    """Query parameters for the analysis stream.

    EventSource-style transports cannot set headers, so the backend also
    accepts the bearer token as a ``token`` query parameter.
    """
    params = {
        "url": target,
        "agents": ",".join(agents),
        "isSitemap": "true" if is_sitemap else "false",
    }
    if token:
        params["token"] = token
    return params


async def iter_sse_data(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Frame SSE lines into event data payloads.

    Multi-line ``data:`` fields are joined with newlines; an event is
    dispatched on a blank line. Comments and the ``event``/``id``/``retry``
    fields are ignored since the payload carries its own ``type``.
    """
    data_lines: list[str] = []
    async for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
    if data_lines:
        yield "\n".join(data_lines)


class EventStream:
    """One subscription to the analysis SSE feed."""

    def __init__(
        self,
        api_url: str,
        params: dict[str, str],
        connect_timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = api_url.rstrip("/") + STREAM_PATH
        self.params = params
        self.connect_timeout = connect_timeout
        self.transport = transport
        self.closed = False

    async def events(self) -> AsyncIterator[str]:
        """Connect and yield event data payloads until closed or EOF.

        Raises httpx errors on connect/read failure or a 5xx status,
        StreamRejectedError on a 4xx status, and StreamClosedError when the
        server hangs up.
        """
        # No read timeout: analysis runs can go quiet for minutes
        timeout = httpx.Timeout(None, connect=self.connect_timeout)
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            async with client.stream("GET", self.url, params=self.params, headers=headers) as response:
                if response.is_client_error:
                    await response.aread()
                    raise StreamRejectedError(_rejection_message(response), response.status_code)
                response.raise_for_status()
                async for data in iter_sse_data(response.aiter_lines()):
                    if self.closed:
                        return
                    yield data
        if not self.closed:
            raise StreamClosedError("Server closed the analysis stream")

    def close(self) -> None:
        self.closed = True


def open_event_stream(
    api_url: str,
    params: dict[str, str],
    connect_timeout: float = 10,
) -> EventStream:
    return EventStream(api_url, params, connect_timeout=connect_timeout)
