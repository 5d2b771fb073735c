"""Agent catalogue and selection.

Defines the 9 analysis agents the backend can run. The crawl agent feeds
every other agent and can never be deselected.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..models.agent import AgentCategory, AgentDescriptor

REQUIRED_AGENT = "crawl"

AGENT_DEFS: dict[str, dict] = {
    "crawl": {
        "name": "Crawl Agent",
        "description": "Extracts HTML, metadata, headings, links",
        "category": "core",
    },
    "keyword": {
        "name": "Keyword Intelligence",
        "description": "Detects missing keywords and suggests terms",
        "category": "core",
    },
    "content": {
        "name": "Content Optimization",
        "description": "Analyzes readability and structure",
        "category": "optimization",
    },
    "schema": {
        "name": "Schema Agent",
        "description": "Generates and validates structured data",
        "category": "technical",
    },
    "technical": {
        "name": "Technical SEO",
        "description": "Checks Core Web Vitals and performance",
        "category": "technical",
    },
    "meta": {
        "name": "Meta Tags",
        "description": "Generates optimized meta titles and descriptions",
        "category": "optimization",
    },
    "image": {
        "name": "Image Intelligence",
        "description": "Analyzes alt text and image optimization",
        "category": "optimization",
    },
    "validation": {
        "name": "Validation",
        "description": "Ensures output quality and SEO compliance",
        "category": "core",
    },
    "report": {
        "name": "Report Generation",
        "description": "Generates comprehensive HTML reports",
        "category": "core",
    },
}

AGENT_CATEGORIES: dict[str, AgentCategory] = {
    "core": AgentCategory(key="core", name="Core Analysis", color="cyan"),
    "research": AgentCategory(key="research", name="Keyword Research", color="blue"),
    "optimization": AgentCategory(key="optimization", name="Optimization", color="magenta"),
    "technical": AgentCategory(key="technical", name="Technical SEO", color="blue"),
}

ALL_AGENT_KEYS = list(AGENT_DEFS.keys())

AGENTS: list[AgentDescriptor] = [
    AgentDescriptor(id=key, required=(key == REQUIRED_AGENT), **defn)
    for key, defn in AGENT_DEFS.items()
]


def get_agent(agent_id: str) -> Optional[AgentDescriptor]:
    for agent in AGENTS:
        if agent.id == agent_id:
            return agent
    return None


def agent_name(agent_id: str) -> str:
    agent = get_agent(agent_id)
    return agent.name if agent else agent_id


def normalize_agents(agent_ids: Iterable[str]) -> list[str]:
    """Dedupe, validate, and put the required crawl agent first."""
    result = [REQUIRED_AGENT]
    for raw in agent_ids:
        agent_id = (raw or "").strip().lower()
        if not agent_id or agent_id in result:
            continue
        if agent_id not in AGENT_DEFS:
            raise ValueError(f"Unknown agent: {agent_id}")
        result.append(agent_id)
    return result


def parse_agent_list(value: Optional[str]) -> list[str]:
    """Parse a comma-separated agent list. Empty means all agents."""
    if not value or not value.strip():
        return list(ALL_AGENT_KEYS)
    return normalize_agents(value.split(","))


class AgentSelection:
    """Mutable set of selected agents that always contains crawl."""

    def __init__(self, agent_ids: Optional[Iterable[str]] = None):
        self._selected: list[str] = normalize_agents(
            ALL_AGENT_KEYS if agent_ids is None else agent_ids
        )

    @property
    def selected(self) -> list[str]:
        # Catalogue order, not click order
        return [key for key in ALL_AGENT_KEYS if key in self._selected]

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    def select(self, agent_id: str) -> None:
        if agent_id not in AGENT_DEFS:
            raise ValueError(f"Unknown agent: {agent_id}")
        if agent_id not in self._selected:
            self._selected.append(agent_id)

    def deselect(self, agent_id: str) -> None:
        if agent_id == REQUIRED_AGENT:
            return
        if agent_id in self._selected:
            self._selected.remove(agent_id)

    def toggle(self, agent_id: str) -> None:
        if agent_id in self._selected:
            self.deselect(agent_id)
        else:
            self.select(agent_id)

    def select_all(self) -> None:
        self._selected = list(ALL_AGENT_KEYS)

    def deselect_all(self) -> None:
        self._selected = [REQUIRED_AGENT]

    def set(self, agent_ids: Iterable[str]) -> None:
        self._selected = normalize_agents(agent_ids)

    def summary(self) -> str:
        return f"{len(self._selected)} of {len(ALL_AGENT_KEYS)} agents selected"
