"""Markdown export for generated blog posts."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any


def slugify_topic(topic: str) -> str:
    """Download filename stem for a blog topic."""
    slug = re.sub(r"\s+", "-", topic.strip()).lower()
    return slug or "blog-post"


def blog_to_markdown(content: dict[str, Any]) -> str:
    """Render the generator's ``content`` object as a Markdown document.

    Expected shape: title, introduction, body (list of sections with
    heading/content and optional subsections), conclusion, optional faq.
    """
    lines: list[str] = []
    lines.append(f"# {content.get('title', '')}")
    lines.append("")
    if content.get("introduction"):
        lines.append(str(content["introduction"]))
        lines.append("")

    for section in content.get("body") or []:
        lines.append(f"## {section.get('heading', '')}")
        lines.append("")
        lines.append(str(section.get("content", "")))
        lines.append("")
        for sub in section.get("subsections") or []:
            lines.append(f"### {sub.get('heading', '')}")
            lines.append("")
            lines.append(str(sub.get("content", "")))
            lines.append("")

    if content.get("conclusion"):
        lines.append("## Conclusion")
        lines.append("")
        lines.append(str(content["conclusion"]))
        lines.append("")

    faq = content.get("faq") or []
    if faq:
        lines.append("## FAQ")
        lines.append("")
        for item in faq:
            lines.append(f"**{item.get('question', '')}**")
            lines.append("")
            lines.append(str(item.get("answer", "")))
            lines.append("")

    return "\n".join(lines)


def export_blog_markdown(content: dict[str, Any], output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(blog_to_markdown(content), encoding="utf-8")
    return output_path
