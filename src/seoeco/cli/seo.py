"""seo - terminal client for the AI SEO Ecosystem backend.

Streams live multi-agent analyses and wraps the keyword research, blog
generation and stored report endpoints.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from ..models.api import BLOG_AUDIENCES, BLOG_TONES

console = Console()


def _fail(message: str, code: int = 1) -> NoReturn:
    console.print(f"  [red]ERROR[/red] {message}")
    sys.exit(code)


def _services(config: dict):
    from ..api.client import ApiClient
    from ..core.auth import AuthManager, TokenStore
    from ..core.config import get_api_url, get_auth_store_path

    store = TokenStore(get_auth_store_path(config))
    client = ApiClient(
        get_api_url(config),
        token_store=store,
        timeout=config["api"].get("timeout_seconds", 30),
    )
    return client, AuthManager(client, store)


@click.group()
@click.pass_context
@click.option("--api-url", type=str, help="Backend API base URL (e.g. http://localhost:3001/api)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
def seo_cli(ctx: click.Context, api_url: str | None, config_path: str | None) -> None:
    """AI SEO Ecosystem - live multi-agent SEO analysis."""
    from ..core.config import get_effective_config
    from ..logging_config import setup_logging

    overrides = {"api": {"url": api_url}} if api_url else None
    config = get_effective_config(
        config_path=Path(config_path) if config_path else None,
        cli_overrides=overrides,
    )
    setup_logging(log_file=config["logging"].get("file"), level=config["logging"].get("level"))
    ctx.obj = config


# ----------------------------------------------------------------------
# Analysis
# ----------------------------------------------------------------------


async def _run_analysis(config: dict, target: str, agent_ids: list[str], token: str | None, quiet: bool):
    from ..core.config import get_api_url
    from ..core.session import SessionController
    from ..formatters.console import format_log_entry, print_banner

    stream_cfg = config["stream"]
    controller = SessionController(
        get_api_url(config),
        token=token,
        retry_attempts=stream_cfg.get("retry_attempts", 3),
        retry_delay_seconds=stream_cfg.get("retry_delay_seconds", 2),
        connect_timeout=stream_cfg.get("connect_timeout_seconds", 10),
    )
    printed = 0
    banner_shown = False

    def on_change(state) -> None:
        nonlocal printed, banner_shown
        if quiet:
            return
        entries = state.log.entries
        for entry in entries[printed:]:
            console.print(format_log_entry(entry))
        printed = len(entries)
        if state.banner and not banner_shown:
            print_banner(console, state.banner)
            banner_shown = True

    controller.subscribe(on_change)
    async with controller:
        controller.start_analysis(target, agent_ids)
        return await controller.wait()


@seo_cli.command()
@click.pass_obj
@click.argument("target")
@click.option("--agents", "-a", type=str, help="Comma-separated agent ids (crawl is always included)")
@click.option("--json", "as_json", is_flag=True, help="Print the collected results as JSON")
def analyze(config: dict, target: str, agents: str | None, as_json: bool) -> None:
    """Stream a live analysis of a URL or sitemap.

    Example: seo analyze https://example.com -a meta,schema
    """
    from ..core.agents import parse_agent_list
    from ..core.dashboard import build_dashboard
    from ..core.session import is_sitemap_url
    from ..formatters.console import format_progress, format_status, print_dashboard
    from ..models.session import SessionStatus

    try:
        agent_ids = parse_agent_list(agents)
    except ValueError as e:
        _fail(str(e), 2)

    _, auth = _services(config)
    if not as_json:
        kind = "sitemap" if is_sitemap_url(target) else "URL"
        console.print(f"\n  [bold]Analyzing {kind}[/bold] {target}")
        console.print(f"  [dim]Agents: {', '.join(agent_ids)}[/dim]\n")

    try:
        state = asyncio.run(_run_analysis(config, target, agent_ids, auth.token, quiet=as_json))
    except ValueError as e:
        _fail(str(e), 2)

    results = state.results.as_dict()
    if as_json:
        click.echo(json.dumps({"status": state.status.value, "results": results}, indent=2, default=str))
    else:
        console.print()
        console.print(format_progress(state.progress_percent, state.progress_message))
        console.print(f"  Status: {format_status(state.status)}")
        if results:
            print_dashboard(console, build_dashboard(results))

    if state.status is not SessionStatus.COMPLETED:
        sys.exit(1)


@seo_cli.command("agents")
@click.pass_obj
@click.option("--server", is_flag=True, help="Show the agent status reported by the backend")
def list_agents(config: dict, server: bool) -> None:
    """List the analysis agents."""
    from ..api.errors import ApiError
    from ..formatters.console import print_agents

    if not server:
        print_agents(console)
        return

    client, _ = _services(config)
    try:
        status = asyncio.run(client.agents_status())
    except ApiError as e:
        _fail(str(e))
    click.echo(json.dumps(status, indent=2))


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------


def _authenticate(config: dict, email: str, password: str, signup: bool) -> None:
    from ..api.errors import ApiError

    _, auth = _services(config)
    try:
        if signup:
            user = asyncio.run(auth.signup(email, password))
        else:
            user = asyncio.run(auth.login(email, password))
    except ApiError as e:
        _fail(str(e))
    action = "Account created" if signup else "Signed in"
    console.print(f"  [green]OK[/green] {action} as {user.email}")


@seo_cli.command()
@click.pass_obj
@click.option("--email", "-e", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, help="Account password")
def login(config: dict, email: str, password: str) -> None:
    """Sign in and store the session token."""
    _authenticate(config, email, password, signup=False)


@seo_cli.command()
@click.pass_obj
@click.option("--email", "-e", prompt=True, help="Account email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password")
def signup(config: dict, email: str, password: str) -> None:
    """Create an account and store the session token."""
    _authenticate(config, email, password, signup=True)


@seo_cli.command()
@click.pass_obj
def logout(config: dict) -> None:
    """Forget the stored session token."""
    _, auth = _services(config)
    auth.logout()
    console.print("  [green]OK[/green] Signed out")


@seo_cli.command()
@click.pass_obj
def whoami(config: dict) -> None:
    """Verify the stored token and show the signed-in user."""
    _, auth = _services(config)
    if not auth.is_authenticated:
        _fail("Not signed in. Run: seo login")
    if not asyncio.run(auth.verify()):
        _fail("Session expired. Run: seo login")
    console.print(f"  [green]OK[/green] {auth.user.email} (id {auth.user.id})")


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------


@seo_cli.command()
@click.pass_obj
@click.argument("keywords")
@click.option("--json", "as_json", is_flag=True, help="Print the raw research data as JSON")
def keywords(config: dict, keywords: str, as_json: bool) -> None:
    """Research a comma-separated list of keywords.

    Example: seo keywords "seo tools, keyword research"
    """
    from ..api.errors import ApiError
    from ..formatters.console import print_keyword_research

    client, _ = _services(config)
    try:
        data = asyncio.run(client.keyword_research(keywords.split(",")))
    except (ApiError, ValueError) as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        print_keyword_research(console, data)


@seo_cli.command()
@click.pass_obj
@click.argument("topic")
@click.option("--keywords", "-k", type=str, default="", help="Comma-separated target keywords")
@click.option("--length", "target_length", type=int, default=1500, help="Target word count")
@click.option("--tone", type=click.Choice(BLOG_TONES), default="professional")
@click.option("--audience", type=click.Choice(BLOG_AUDIENCES), default="general")
@click.option("--background", type=str, default="", help="Extra context for the writer")
@click.option("--no-intro", is_flag=True)
@click.option("--no-conclusion", is_flag=True)
@click.option("--faq", is_flag=True, help="Include an FAQ section")
@click.option("--output", "-o", type=click.Path(), help="Write the post as Markdown (file or directory)")
def blog(
    config: dict,
    topic: str,
    keywords: str,
    target_length: int,
    tone: str,
    audience: str,
    background: str,
    no_intro: bool,
    no_conclusion: bool,
    faq: bool,
    output: str | None,
) -> None:
    """Generate an SEO blog post for TOPIC."""
    from ..api.errors import ApiError
    from ..formatters.console import print_blog_preview
    from ..formatters.markdown import blog_to_markdown, export_blog_markdown, slugify_topic
    from ..models.api import BlogRequest

    request = BlogRequest(
        topic=topic,
        keywords=[k.strip() for k in keywords.split(",") if k.strip()],
        target_length=target_length,
        tone=tone,
        target_audience=audience,
        background=background,
        include_intro=not no_intro,
        include_conclusion=not no_conclusion,
        include_faq=faq,
    )
    client, _ = _services(config)
    try:
        data = asyncio.run(client.generate_blog(request))
    except (ApiError, ValueError) as e:
        _fail(str(e))

    content = data.get("content") or {}
    if output:
        path = Path(output)
        if path.is_dir():
            path = path / f"{slugify_topic(topic)}.md"
        export_blog_markdown(content, path)
        console.print(f"  [green]OK[/green] Saved {path}")
        print_blog_preview(console, content)
    else:
        click.echo(blog_to_markdown(content))


# ----------------------------------------------------------------------
# Stored reports
# ----------------------------------------------------------------------


async def _results(client, url: str | None, version: int | None, download: str | None):
    from ..core.reports import download_version, load_version_report, unique_urls
    from ..formatters.console import print_results_list

    if url and version is not None:
        if download:
            path = await download_version(client, url, version, Path(download))
            console.print(f"  [green]OK[/green] Saved {path}")
            return None
        report = await load_version_report(client, url, version)
        if report is None:
            console.print("  [yellow]WARN[/yellow] This version is a PDF report. Use --download DIR to save it.")
        return report

    response = await client.list_results(url=url)
    if not response.results:
        console.print("  No stored reports.")
        return None
    if url:
        print_results_list(console, response.results, title=f"Versions of {url}")
    else:
        print_results_list(console, response.results)
        console.print(f"  [dim]{len(unique_urls(response.results))} analyzed URL(s)[/dim]")
    return None


@seo_cli.command()
@click.pass_obj
@click.option("--url", "-u", type=str, help="Only show reports for this URL")
@click.option("--version", "-v", "version", type=int, help="Show one stored version (needs --url)")
@click.option("--download", "-d", type=click.Path(file_okay=False), help="Download the version into DIR")
def results(config: dict, url: str | None, version: int | None, download: str | None) -> None:
    """Browse stored analysis reports."""
    from ..api.errors import ApiError
    from ..core.dashboard import build_dashboard
    from ..formatters.console import print_dashboard

    client, auth = _services(config)
    if not auth.is_authenticated:
        _fail("Sign in required. Run: seo login")
    if version is not None and not url:
        _fail("--version needs --url", 2)

    try:
        report = asyncio.run(_results(client, url, version, download))
    except ApiError as e:
        if e.is_unauthorized:
            _fail("Session expired. Run: seo login")
        _fail(str(e))

    if report:
        print_dashboard(console, build_dashboard(report))


@seo_cli.command("config")
@click.pass_obj
def show_config(config: dict) -> None:
    """Show the effective configuration (defaults, file, env and flags merged)."""
    import yaml

    click.echo(yaml.safe_dump(config, sort_keys=False).rstrip())
    if not config["media"].get("demo_video_url"):
        console.print("  [dim]No demo video configured (SEOECO_DEMO_VIDEO_URL)[/dim]")


@seo_cli.command()
@click.pass_obj
def health(config: dict) -> None:
    """Check the backend is reachable."""
    from ..api.errors import ApiError

    client, _ = _services(config)
    try:
        data = asyncio.run(client.health())
    except ApiError as e:
        _fail(str(e))
    console.print(f"  [green]OK[/green] {client.root_url} {data.get('status', 'ok')}")


def main() -> None:
    seo_cli()


if __name__ == "__main__":
    main()
