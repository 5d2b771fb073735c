"""Session state owned by the session controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from ..models.session import TERMINAL_STATUSES, SessionStatus
from .log import LogAccumulator
from .results import ResultAggregator


@dataclass
class SessionState:
    status: SessionStatus = SessionStatus.IDLE
    progress_percent: int = 0
    progress_message: str = ""
    banner: Optional[str] = None
    target: str = ""
    agents: list[str] = field(default_factory=list)
    is_sitemap: bool = False
    log: LogAccumulator = field(default_factory=LogAccumulator)
    results: ResultAggregator = field(default_factory=ResultAggregator)

    @classmethod
    def with_clock(cls, clock: Optional[Callable[[], str]]) -> "SessionState":
        return cls(log=LogAccumulator(clock=clock))

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def reset(self) -> None:
        self.status = SessionStatus.IDLE
        self.progress_percent = 0
        self.progress_message = ""
        self.banner = None
        self.target = ""
        self.agents = []
        self.is_sitemap = False
        self.log.clear()
        self.results.clear()
