"""Stream event dispatch.

``apply_event`` is the single reducer for the analysis stream: one handler
per event type, each mutating progress, the log, the result set, or the
credential banner. Closing the transport on terminal events is the caller's
job.
"""

from __future__ import annotations

from typing import Callable

from ..models.event import (
    AgentCompleteEvent,
    AgentErrorEvent,
    AgentStartEvent,
    CompleteEvent,
    ErrorEvent,
    ProgressEvent,
    SitemapParsedEvent,
    StreamEvent,
    UrlProcessingEvent,
)
from ..models.session import LogKind, SessionStatus
from .results import resolve_url_key
from .state import SessionState

CREDENTIAL_MARKERS = ("openai", "openrouter", "api key", "required")

CREDENTIAL_ENV_VAR = "OPENAI_API_KEY"

CREDENTIAL_BANNER = (
    "The analysis server is missing its AI provider credentials. "
    f"Set {CREDENTIAL_ENV_VAR} in the backend environment (server .env) "
    "and restart the backend, then run the analysis again."
)


def is_credential_error(message: object) -> bool:
    """True when a backend error points at a missing API key or setting."""
    text = str(message or "").lower()
    return any(marker in text for marker in CREDENTIAL_MARKERS)


def _clamp_percent(value: float | None) -> int:
    if value is None:
        return 0
    return max(0, min(100, int(round(value))))


def _on_progress(state: SessionState, event: ProgressEvent) -> None:
    state.progress_percent = _clamp_percent(event.progress)
    state.progress_message = event.message
    state.log.append(LogKind.INFO, event.message)


def _on_agent_start(state: SessionState, event: AgentStartEvent) -> None:
    state.log.append(LogKind.INFO, f"Starting {event.agent}...")


def _on_agent_complete(state: SessionState, event: AgentCompleteEvent) -> None:
    state.log.append(LogKind.SUCCESS, f"{event.agent} completed")
    if event.result is None and event.formatted is None:
        return
    partial = dict(event.result or {})
    if event.formatted is not None:
        partial["formatted"] = event.formatted
    # A single-URL run can only be reporting on its target
    fallback = None if state.is_sitemap else state.target
    url_key = resolve_url_key(event.url, event.result, fallback)
    state.results.merge_agent_result(url_key, event.agent, partial)


def _on_agent_error(state: SessionState, event: AgentErrorEvent) -> None:
    state.log.append(LogKind.ERROR, f"{event.agent} failed: {event.message}")
    if is_credential_error(event.message):
        state.banner = event.message


def _on_url_processing(state: SessionState, event: UrlProcessingEvent) -> None:
    state.log.append(LogKind.INFO, f"Processing URL: {event.message}")


def _on_sitemap_parsed(state: SessionState, event: SitemapParsedEvent) -> None:
    state.log.append(
        LogKind.SUCCESS, f"Sitemap parsed: Found {event.message} URL(s) to analyze"
    )


def _on_complete(state: SessionState, event: CompleteEvent) -> None:
    state.progress_percent = 100
    state.progress_message = "Analysis complete"
    state.status = SessionStatus.COMPLETED
    state.log.append(LogKind.SUCCESS, "Analysis complete!")


def _on_error(state: SessionState, event: ErrorEvent) -> None:
    if is_credential_error(event.message):
        state.banner = CREDENTIAL_BANNER
        state.log.append(LogKind.ERROR, f"Configuration error: {event.message}")
    else:
        state.log.append(LogKind.ERROR, f"Error: {event.message}")
    state.status = SessionStatus.FAILED


HANDLERS: dict[str, Callable[[SessionState, StreamEvent], None]] = {
    "progress": _on_progress,
    "agent_start": _on_agent_start,
    "agent_complete": _on_agent_complete,
    "agent_error": _on_agent_error,
    "url_processing": _on_url_processing,
    "sitemap_parsed": _on_sitemap_parsed,
    "complete": _on_complete,
    "error": _on_error,
}


def apply_event(state: SessionState, event: StreamEvent) -> bool:
    """Apply one event to the session state. Returns True for terminal events."""
    HANDLERS[event.type](state, event)
    return event.type in ("complete", "error")
