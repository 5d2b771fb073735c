"""Per-URL, per-agent result aggregation.

Results arrive piecemeal: an agent may report its structured result and its
pre-rendered ``formatted`` view in separate events. Each (url, agent) entry
is shallow-merged so neither half erases the other.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

DEFAULT_URL_KEY = "default"


def resolve_url_key(
    url: Optional[str],
    result: Optional[dict] = None,
    fallback: Optional[str] = None,
) -> str:
    """Pick the ResultSet key: event url, then result url, then ``fallback``, then "default"."""
    if url:
        return url
    if result and result.get("url"):
        return str(result["url"])
    return fallback or DEFAULT_URL_KEY


class ResultAggregator:
    """Nested mapping url -> agent -> merged result payload."""

    def __init__(self) -> None:
        self._results: dict[str, dict[str, dict[str, Any]]] = {}

    def merge_agent_result(self, url_key: str, agent_id: str, partial: dict[str, Any]) -> dict[str, Any]:
        """Shallow-merge ``partial`` into the entry at [url_key][agent_id]."""
        by_agent = self._results.setdefault(url_key, {})
        existing = by_agent.get(agent_id, {})
        merged = {**existing, **partial}
        by_agent[agent_id] = merged
        return merged

    def get(self, url_key: str, agent_id: str) -> Optional[dict[str, Any]]:
        return self._results.get(url_key, {}).get(agent_id)

    def urls(self) -> list[str]:
        return list(self._results.keys())

    def as_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Deep copy for display code."""
        return copy.deepcopy(self._results)

    def clear(self) -> None:
        self._results = {}

    def __len__(self) -> int:
        return len(self._results)

    def __bool__(self) -> bool:
        return bool(self._results)
