"""Stored report history.

The results endpoint returns metadata only; the report itself is an
externally hosted artifact (JSON or PDF). JSON reports are transformed into
the same url -> agent -> result shape the live session produces, so the
dashboard renders both the same way.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from ..api.errors import ApiError
from ..logging_config import get_logger
from ..models.api import ResultItem

if TYPE_CHECKING:
    from ..api.client import ApiClient

logger = get_logger(__name__)

DOWNLOAD_EXTENSIONS = ("pdf", "json", "html")


def unique_urls(results: list[ResultItem]) -> list[str]:
    """Distinct report URLs in first-seen order."""
    seen: dict[str, None] = {}
    for item in results:
        seen.setdefault(item.url, None)
    return list(seen)


def is_pdf_artifact(url: str) -> bool:
    return url.split("?")[0].lower().endswith(".pdf")


def artifact_json_url(url: str) -> str:
    """Guess the JSON sibling of an artifact URL."""
    path, sep, query = url.partition("?")
    if path.lower().endswith(".json"):
        return url
    if path.lower().endswith(".pdf"):
        return f"{path[:-4]}.json{sep}{query}"
    return f"{path}.json{sep}{query}"


def artifact_extension(url: str) -> str:
    path = url.split("?")[0]
    last = path.rsplit("/", 1)[-1]
    if "." not in last:
        return "pdf"
    ext = last.rsplit(".", 1)[-1].lower()
    return ext if ext in DOWNLOAD_EXTENSIONS else "pdf"


def report_filename(url: Optional[str], version: int, extension: str = "pdf") -> str:
    clean = "report"
    if url:
        clean = re.sub(r"^https?://", "", url)
        clean = clean.replace("/", "_")
        clean = re.sub(r"[^a-zA-Z0-9_]", "_", clean)
    ext = extension.lower() if extension.lower() in DOWNLOAD_EXTENSIONS else "pdf"
    return f"SEO_Report_{clean}_v{version}.{ext}"


def transform_report(report: dict[str, Any], url: str) -> dict[str, dict[str, Any]]:
    """Turn a stored report into a url -> agent -> result mapping."""
    if "sections" not in report:
        return {url: report}

    url_key = report.get("url") or url
    agents: dict[str, Any] = {}
    for section_name, section_data in (report.get("sections") or {}).items():
        if section_data:
            agents[section_name] = section_data

    if report.get("recommendations") or report.get("score") or report.get("lighthouse"):
        agents["report"] = {
            "recommendations": report.get("recommendations"),
            "score": report.get("score"),
            "lighthouse": report.get("lighthouse"),
            "summary": report.get("summary"),
            "url": report.get("url"),
        }
    return {url_key: agents}


async def get_version(client: "ApiClient", url: str, version: int) -> ResultItem:
    response = await client.list_results(url=url, version=version)
    if not response.results or not response.results[0].artifact_url:
        raise ApiError("Version data not found")
    return response.results[0]


async def load_version_report(
    client: "ApiClient", url: str, version: int
) -> Optional[dict[str, dict[str, Any]]]:
    """Fetch one stored version as a result set.

    Returns None when the artifact is a PDF or otherwise not JSON; the
    caller can still offer it as a download.
    """
    item = await get_version(client, url, version)
    artifact = item.artifact_url
    if is_pdf_artifact(artifact):
        return None

    json_url = artifact_json_url(artifact)
    response = await client.fetch_artifact(json_url)
    if not response.is_success and json_url != artifact:
        response = await client.fetch_artifact(artifact)

    if not response.is_success:
        content_type = response.headers.get("content-type", "")
        if "pdf" in content_type or ".pdf" in artifact.lower():
            return None
        raise ApiError("Failed to fetch report data", response.status_code)

    try:
        report = json.loads(response.text)
    except ValueError:
        logger.warning("Report artifact for %s v%d is not JSON", url, version)
        return None
    if not isinstance(report, dict):
        return None
    return transform_report(report, url)


async def download_version(client: "ApiClient", url: str, version: int, dest_dir: Path) -> Path:
    """Save a stored version's artifact under ``dest_dir``."""
    item = await get_version(client, url, version)
    response = await client.fetch_artifact(item.artifact_url)
    if not response.is_success:
        raise ApiError(
            f"Failed to download file: {response.status_code} {response.reason_phrase}",
            response.status_code,
        )
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    path = dest_dir / report_filename(url, version, artifact_extension(item.artifact_url))
    path.write_bytes(response.content)
    return path
