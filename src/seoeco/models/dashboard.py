"""Dashboard data models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class LighthouseScores(BaseModel):
    performance: float = 0
    accessibility: float = 0
    best_practices: float = 0
    seo: float = 0

    @property
    def is_empty(self) -> bool:
        return not (self.performance or self.accessibility or self.best_practices or self.seo)


class PriorityBreakdown(BaseModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class AgentCard(BaseModel):
    id: str
    url: str
    name: str
    title: str
    description: Optional[str] = None
    status: str = "unknown"
    summary: Any = None
    issues: list[Any] = []
    recommendations: list[Any] = []
    content_examples: list[Any] = []
    score: int = 100


class DashboardData(BaseModel):
    overall_score: float = 0
    lighthouse: LighthouseScores = LighthouseScores()
    agents: list[AgentCard] = []
    total_issues: int = 0
    total_recommendations: int = 0
    all_recommendations: list[Any] = []
    priority_breakdown: PriorityBreakdown = PriorityBreakdown()
