"""Live analysis session data models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.FAILED})


class LogKind(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: LogKind
    message: str
    timestamp: str
