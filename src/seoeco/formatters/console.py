"""Rich console rendering for sessions, dashboards and tool results."""

from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..core.agents import AGENT_CATEGORIES, AGENTS
from ..models.dashboard import DashboardData
from ..models.session import LogEntry, LogKind, SessionStatus

KIND_STYLES: dict[LogKind, tuple[str, str]] = {
    LogKind.INFO: ("cyan", "INFO"),
    LogKind.SUCCESS: ("green", "OK"),
    LogKind.WARNING: ("yellow", "WARN"),
    LogKind.ERROR: ("red", "ERROR"),
}

STATUS_COLORS = {
    SessionStatus.IDLE: "white",
    SessionStatus.RUNNING: "cyan",
    SessionStatus.COMPLETED: "green",
    SessionStatus.FAILED: "red",
}


def format_log_entry(entry: LogEntry) -> str:
    color, label = KIND_STYLES.get(entry.kind, ("white", entry.kind.value.upper()))
    return f"  [dim]{entry.timestamp}[/dim] [{color}]{label}[/{color}] {escape(entry.message)}"


def score_color(score: float) -> str:
    if score >= 90:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def print_banner(console: Console, text: str) -> None:
    console.print(
        Panel(
            escape(text),
            title="[bold red]Configuration required[/bold red]",
            border_style="red",
        )
    )


def print_agents(console: Console, selected: Optional[list[str]] = None) -> None:
    table = Table(title="Analysis agents", show_lines=False)
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Description")
    table.add_column("Selected", justify="center")
    for agent in AGENTS:
        category = AGENT_CATEGORIES.get(agent.category)
        cat_name = category.name if category else agent.category
        color = category.color if category else "white"
        if agent.required:
            mark = "[cyan]required[/cyan]"
        elif selected is None or agent.id in selected:
            mark = "[green]yes[/green]"
        else:
            mark = "[dim]no[/dim]"
        table.add_row(agent.id, agent.name, f"[{color}]{cat_name}[/{color}]", agent.description, mark)
    console.print(table)


def print_dashboard(console: Console, dashboard: DashboardData) -> None:
    overall = dashboard.overall_score
    color = score_color(overall)
    console.print()
    console.print(f"  [bold]Overall score:[/bold] [{color}]{round(overall)}[/{color}]/100")

    lh = dashboard.lighthouse
    scores = Table(title="Lighthouse", show_header=True)
    for name in ("Performance", "Accessibility", "Best Practices", "SEO"):
        scores.add_column(name, justify="center")
    values = [lh.performance, lh.accessibility, lh.best_practices, lh.seo]
    scores.add_row(*[f"[{score_color(v)}]{round(v)}[/{score_color(v)}]" for v in values])
    console.print(scores)

    if dashboard.agents:
        table = Table(title="Agent findings")
        table.add_column("Agent", style="bold")
        table.add_column("URL")
        table.add_column("Status")
        table.add_column("Issues", justify="right")
        table.add_column("Recs", justify="right")
        table.add_column("Score", justify="right")
        for card in dashboard.agents:
            status_color = "green" if card.status == "good" else "yellow"
            table.add_row(
                escape(card.name),
                escape(card.url),
                f"[{status_color}]{escape(card.status)}[/{status_color}]",
                str(len(card.issues)),
                str(len(card.recommendations)),
                f"[{score_color(card.score)}]{card.score}[/{score_color(card.score)}]",
            )
        console.print(table)

    p = dashboard.priority_breakdown
    console.print(
        f"  Issues: {dashboard.total_issues}  Recommendations: {dashboard.total_recommendations}  "
        f"([red]{p.critical} critical[/red], [yellow]{p.high} high[/yellow], "
        f"{p.medium} medium, [dim]{p.low} low[/dim])"
    )


def print_keyword_research(console: Console, data: dict[str, Any], limit: int = 20) -> None:
    summary = data.get("summary") or {}
    console.print(
        f"  [bold]Keywords:[/bold] {summary.get('totalKeywords', 0)}  "
        f"[bold]Opportunities:[/bold] {summary.get('opportunities', 0)}  "
        f"[bold]Avg difficulty:[/bold] {summary.get('avgDifficulty', 0)}  "
        f"[bold]Avg volume:[/bold] {summary.get('avgVolume', 0):,}"
    )
    keywords = data.get("keywords") or []
    if keywords:
        table = Table(title="Top keywords")
        table.add_column("Keyword", style="bold")
        table.add_column("Volume", justify="right")
        table.add_column("Difficulty", justify="right")
        table.add_column("Intent")
        for kw in keywords[:limit]:
            table.add_row(
                escape(str(kw.get("keyword", ""))),
                str(kw.get("searchVolume", kw.get("volume", ""))),
                str(kw.get("difficulty", "")),
                escape(str(kw.get("intent", ""))),
            )
        console.print(table)
    for rec in data.get("recommendations") or []:
        text = rec.get("message") or rec.get("title") if isinstance(rec, dict) else rec
        console.print(f"  [cyan]-[/cyan] {escape(str(text))}")


def format_progress(percent: int, message: str, width: int = 30) -> str:
    filled = int(width * max(0, min(100, percent)) / 100)
    bar = "#" * filled + "-" * (width - filled)
    return f"  [cyan]{bar}[/cyan] {percent:3d}% {escape(message)}"


def format_status(status: SessionStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value.upper()}[/{color}]"


def print_results_list(console: Console, items: list, title: str = "Stored reports") -> None:
    table = Table(title=title)
    table.add_column("URL", style="bold")
    table.add_column("Version", justify="right")
    table.add_column("Created")
    for item in items:
        table.add_row(escape(item.url), str(item.version), escape(item.created_at or ""))
    console.print(table)


def print_blog_preview(console: Console, content: dict[str, Any]) -> None:
    console.print(f"\n  [bold]{escape(str(content.get('title', '')))}[/bold]")
    if content.get("metaDescription"):
        console.print(f"  [dim]{escape(str(content['metaDescription']))}[/dim]")
    for section in content.get("body") or []:
        console.print(f"  [cyan]-[/cyan] {escape(str(section.get('heading', '')))}")
    if content.get("faq"):
        console.print(f"  [dim]{len(content['faq'])} FAQ entries[/dim]")
