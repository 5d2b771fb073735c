"""Dashboard scoring for a result set.

Turns url -> agent -> result data into per-agent cards, issue and
recommendation totals, Lighthouse-style category scores and an overall
score. When the report agent did not supply Lighthouse scores they are
estimated from the other agents' findings.
"""

from __future__ import annotations

import math
from typing import Any

from ..models.dashboard import AgentCard, DashboardData, LighthouseScores, PriorityBreakdown
from .agents import agent_name


def _round(value: float) -> int:
    """Round half up."""
    return int(math.floor(value + 0.5))


def _clamp(value: float) -> int:
    return max(0, min(100, _round(value)))


def agent_view(result: Any) -> dict:
    """The pre-rendered view of a result if present, else the raw result."""
    if not isinstance(result, dict):
        return {}
    formatted = result.get("formatted")
    if isinstance(formatted, dict) and formatted:
        return formatted
    return result


def calculate_agent_score(formatted: dict) -> int:
    """100, minus 10 per issue, minus 20 when the agent flags attention."""
    score = 100
    issues = formatted.get("issues") or []
    score -= len(issues) * 10
    if formatted.get("status") == "needs_attention":
        score -= 20
    return max(0, min(100, score))


def calculate_lighthouse_scores(results: dict[str, dict[str, Any]]) -> LighthouseScores:
    """Estimate Lighthouse categories from agent findings."""
    performance = 100.0
    accessibility = 100.0
    best_practices = 100.0
    seo = 100.0

    for agent_results in results.values():
        if agent_results.get("technical"):
            tech = agent_view(agent_results["technical"])
            if not (tech.get("mobile") or {}).get("hasViewport"):
                performance -= 10
            if not (tech.get("security") or {}).get("isHTTPS"):
                performance -= 10
                best_practices -= 20
            missing_alt = (tech.get("accessibility") or {}).get("imagesWithoutAlt") or 0
            if missing_alt > 0:
                accessibility -= min(20, missing_alt * 5)

        if agent_results.get("crawl"):
            crawl = agent_view(agent_results["crawl"])
            h1 = (crawl.get("headings") or {}).get("h1") or []
            meta = crawl.get("meta") or {}
            if not crawl.get("title"):
                seo -= 15
            if len(h1) == 0:
                seo -= 15
                accessibility -= 10
            if len(h1) > 1:
                seo -= 10
            if not meta.get("viewport"):
                seo -= 10
                accessibility -= 10
            if not meta.get("description"):
                seo -= 8

        if agent_results.get("meta"):
            meta_view = agent_view(agent_results["meta"])
            title = meta_view.get("title")
            if isinstance(title, str) and title and not 30 <= len(title) <= 60:
                seo -= 5
            description = meta_view.get("metaDescription")
            if isinstance(description, str) and description and not 120 <= len(description) <= 160:
                seo -= 5

        if agent_results.get("schema"):
            schema = agent_view(agent_results["schema"])
            if not schema.get("detected"):
                seo -= 5

        if agent_results.get("image"):
            image = agent_view(agent_results["image"])
            images = image.get("images") or []
            without_alt = sum(1 for img in images if not img.get("hasAlt"))
            if images and without_alt:
                coverage = (len(images) - without_alt) / len(images) * 100
                if coverage < 80:
                    seo -= 2
                    accessibility -= min(20, without_alt * 5)

    return LighthouseScores(
        performance=_clamp(performance),
        accessibility=_clamp(accessibility),
        best_practices=_clamp(best_practices),
        seo=_clamp(seo),
    )


def _report_lighthouse(report: dict) -> LighthouseScores | None:
    summary = report.get("summary")
    if isinstance(summary, dict) and isinstance(summary.get("lighthouse"), dict):
        lh = summary["lighthouse"]
        return LighthouseScores(
            performance=lh.get("performance") or 0,
            accessibility=lh.get("accessibility") or 0,
            best_practices=lh.get("bestPractices") or 0,
            seo=lh.get("seo") or 0,
        )
    lighthouse = report.get("lighthouse")
    if isinstance(lighthouse, dict):
        def score(key: str) -> float:
            return (lighthouse.get(key) or {}).get("score") or 0

        return LighthouseScores(
            performance=score("performance"),
            accessibility=score("accessibility"),
            best_practices=score("bestPractices"),
            seo=score("seo"),
        )
    return None


def build_dashboard(results: dict[str, dict[str, Any]]) -> DashboardData:
    """Aggregate a result set into dashboard data."""
    data = DashboardData()
    priorities = PriorityBreakdown()
    lighthouse = LighthouseScores()

    for url_key, agent_results in results.items():
        report = agent_results.get("report")
        if isinstance(report, dict):
            for rec in report.get("recommendations") or []:
                data.all_recommendations.append(rec)
                priority = rec.get("priority") if isinstance(rec, dict) else None
                if priority in ("critical", "high", "medium", "low"):
                    setattr(priorities, priority, getattr(priorities, priority) + 1)
            if report.get("score"):
                data.overall_score = report["score"]
            reported = _report_lighthouse(report)
            if reported is not None:
                lighthouse = reported

        for agent_id, result in agent_results.items():
            if agent_id == "report":
                continue
            view = agent_view(result)
            if not view.get("title"):
                continue
            card = AgentCard(
                id=agent_id,
                url=url_key,
                name=agent_name(agent_id),
                title=str(view["title"]),
                description=view.get("description"),
                status=view.get("status") or "unknown",
                summary=view.get("summary"),
                issues=view.get("issues") or [],
                recommendations=view.get("recommendations") or [],
                content_examples=view.get("contentExamples") or [],
                score=calculate_agent_score(view),
            )
            data.agents.append(card)
            data.total_issues += len(card.issues)
            data.total_recommendations += len(card.recommendations)

            if card.status == "needs_attention":
                if len(card.issues) > 3:
                    priorities.critical += 1
                elif len(card.issues) > 1:
                    priorities.high += 1
                else:
                    priorities.medium += 1

    if lighthouse.is_empty:
        lighthouse = calculate_lighthouse_scores(results)

    if not lighthouse.is_empty:
        data.overall_score = _round(
            (lighthouse.performance + lighthouse.accessibility + lighthouse.best_practices + lighthouse.seo) / 4
        )
    elif data.agents:
        data.overall_score = _round(sum(a.score for a in data.agents) / len(data.agents))

    data.lighthouse = lighthouse
    data.priority_breakdown = priorities
    return data
