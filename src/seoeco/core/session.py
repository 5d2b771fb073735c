"""Live analysis session controller.

Owns the lifecycle of one streamed analysis run: opens the SSE stream,
feeds each event through ``apply_event``, and closes the stream on terminal
events, on a new run, or on teardown. All work happens on the asyncio loop
that called ``start_analysis``; events are applied one at a time in arrival
order, so no locking is needed.
"""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from typing import Callable, Iterable, Optional

import httpx

from ..logging_config import get_logger
from ..models.event import EventParseError, StreamEvent, parse_event
from ..models.session import LogKind, SessionStatus
from ..utils.sanitize import sanitize_error
from .agents import normalize_agents
from .events import apply_event
from .state import SessionState
from .stream import (
    AnalysisStream,
    StreamClosedError,
    StreamRejectedError,
    build_stream_params,
    open_event_stream,
)

logger = get_logger(__name__)

Listener = Callable[[SessionState], None]
StreamFactory = Callable[[dict[str, str]], AnalysisStream]


def is_sitemap_url(target: str) -> bool:
    """Heuristic the backend relies on to expand a target into many URLs."""
    lowered = target.lower()
    return "sitemap" in lowered or lowered.endswith(".xml") or "/sitemap" in lowered


class SessionController:
    """Starts, streams and terminates analysis runs. One stream at a time."""

    def __init__(
        self,
        api_url: str,
        token: Optional[str] = None,
        stream_factory: Optional[StreamFactory] = None,
        retry_attempts: int = 3,
        retry_delay_seconds: float = 2,
        connect_timeout: float = 10,
        clock: Optional[Callable[[], str]] = None,
    ):
        self.api_url = api_url
        self.token = token
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay_seconds
        self.state = SessionState.with_clock(clock)

        if stream_factory is None:
            def stream_factory(params: dict[str, str]) -> AnalysisStream:
                return open_event_stream(api_url, params, connect_timeout=connect_timeout)
        self._stream_factory = stream_factory

        self._stream: Optional[AnalysisStream] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: list[Listener] = []

    @property
    def active_stream(self) -> Optional[AnalysisStream]:
        return self._stream

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def dismiss_banner(self) -> None:
        if self.state.banner is not None:
            self.state.banner = None
            self._notify()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_analysis(self, target: str, agent_ids: Iterable[str]) -> None:
        """Begin a run. Returns immediately; progress arrives via listeners.

        Must be called from inside a running event loop.
        """
        target = (target or "").strip()
        if not target:
            raise ValueError("Please enter a URL or sitemap URL")
        agents = normalize_agents(agent_ids)
        loop = asyncio.get_running_loop()

        # Previous stream is closed before any state is reset
        self.close()
        self.state.reset()

        sitemap = is_sitemap_url(target)
        self.state.target = target
        self.state.agents = agents
        self.state.is_sitemap = sitemap
        self.state.status = SessionStatus.RUNNING
        self.state.progress_message = "Initializing..."

        params = build_stream_params(target, agents, sitemap, self.token)
        stream = self._stream_factory(params)
        self._stream = stream
        self._task = loop.create_task(self._consume(stream))
        logger.info("Started analysis of %s with agents %s (sitemap=%s)", target, ",".join(agents), sitemap)
        self._notify()

    def close(self) -> None:
        """Release the active stream. Client-side only; nothing is sent to the server."""
        stream, task = self._stream, self._task
        self._stream = None
        self._task = None
        if stream is not None:
            stream.close()
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()

    async def wait(self) -> SessionState:
        """Wait for the current run's consumer task to finish."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.state

    async def __aenter__(self) -> "SessionController":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Event intake
    # ------------------------------------------------------------------

    def _accepts(self, stream: Optional[AnalysisStream]) -> bool:
        if stream is not None and stream is not self._stream:
            return False
        return self.state.status is SessionStatus.RUNNING

    def handle_raw(self, data: str, stream: Optional[AnalysisStream] = None) -> bool:
        """Parse and apply one SSE data payload. Malformed payloads are dropped."""
        if not self._accepts(stream):
            return False
        try:
            event = parse_event(data)
        except EventParseError as e:
            logger.warning("Discarding malformed stream event: %s", sanitize_error(str(e)))
            return False
        return self.handle_event(event, stream)

    def handle_event(self, event: StreamEvent, stream: Optional[AnalysisStream] = None) -> bool:
        """Apply one event. Returns False when the event was discarded."""
        if not self._accepts(stream):
            return False
        if apply_event(self.state, event):
            self.close()
        self._notify()
        return True

    async def _consume(self, stream: AnalysisStream) -> None:
        failures = 0
        while stream is self._stream:
            try:
                async with aclosing(stream.events()) as events:
                    async for data in events:
                        self.handle_raw(data, stream)
                        if stream is not self._stream:
                            return
                if stream is self._stream:
                    raise StreamClosedError("Server closed the analysis stream")
            except StreamRejectedError as e:
                # Client errors will not fix themselves on reconnect
                if stream is not self._stream:
                    return
                reason = sanitize_error(e.message)
                logger.warning("Analysis stream rejected (%d): %s", e.status_code, reason)
                if e.is_unauthorized:
                    reason += ". Run: seo login"
                self._fail_transport(reason)
                return
            except (httpx.HTTPError, StreamClosedError, OSError) as e:
                if stream is not self._stream:
                    return
                failures += 1
                reason = sanitize_error(str(e) or e.__class__.__name__)
                logger.warning(
                    "Analysis stream error (%d/%d): %s", failures, self.retry_attempts, reason
                )
                if failures > self.retry_attempts:
                    self._fail_transport(reason)
                    return
                self.state.log.append(
                    LogKind.ERROR,
                    f"Connection error. Retrying ({failures}/{self.retry_attempts})...",
                )
                self._notify()
                await asyncio.sleep(self.retry_delay * min(failures, 3))

    def _fail_transport(self, reason: str) -> None:
        self.state.log.append(LogKind.ERROR, f"Connection lost: {reason}")
        self.state.status = SessionStatus.FAILED
        self.close()
        self._notify()
