"""Render the Teacher Notes page body."""

from __future__ import annotations

from typing import List, Sequence

from apps.canvas.models import ModuleItem
from nexgen.utils.text import escape_html

from .classifier import build_common_issues, detect_hardware, detect_software
from .structure import ModuleOutline, SessionPage
from .synthesizer import (
    build_objective_points,
    build_task_differentiation,
    build_task_points,
    build_task_summary,
)

# Fixed authoring rules applied to every generated notes page.
SESSION_OBJECTIVE_LEAD = "By the end of the session, students should be able to:"
SESSION_TEACHER_FOCUS = (
    "Encourage students to explain their thinking, test ideas independently, "
    "and iterate before asking for direct fixes."
)
TASK_TEACHER_FOCUS = (
    "Prompt students to predict outcomes, test one change at a time, "
    "and justify their debugging decisions."
)
TROUBLESHOOTING_CLOSE = "Keep students in a troubleshooting cycle: inspect, test, adjust, then re-test."

BEGINNER_LABEL = "Beginners (Year 7):"
EXTENSION_LABEL = "Extension (confident students / Year 10):"


def _bullets(lines: List[str], values: Sequence[str]) -> None:
    lines.append("<ul>")
    for value in values:
        lines.append(f"<li><p>{escape_html(value)}</p></li>")
    lines.append("</ul>")


def render_teacher_notes_html(
    page_title: str,
    session_name: str,
    module_items: Sequence[ModuleItem],
    module_pages: Sequence[SessionPage],
) -> str:
    outline = ModuleOutline(module_items)
    pages = sorted(module_pages, key=lambda page: page.position)
    intro_pages = outline.intro_pages(pages)
    tasks = outline.tasks(pages)
    full_text = "\n".join(page.body_text for page in pages)

    lines: List[str] = [
        f"<h2>{escape_html(page_title)}</h2>",
        "<h3>Main Session Objective</h3>",
        f"<p>{escape_html(SESSION_OBJECTIVE_LEAD)}</p>",
    ]
    _bullets(lines, build_objective_points(intro_pages, tasks, session_name))
    lines.append(f"<p><strong>Teacher focus:</strong> {escape_html(SESSION_TEACHER_FOCUS)}</p>")
    lines.append("<hr />")

    lines.append("<h3>Components &amp; Software Required</h3>")
    lines.append("<p><strong>Software:</strong></p>")
    _bullets(lines, detect_software(full_text))
    lines.append("<p><strong>Hardware:</strong></p>")
    _bullets(lines, detect_hardware(full_text))

    for task in tasks:
        lines.append("<hr />")
        lines.append(f"<h3>{escape_html(task.title)}</h3>")
        lines.append(f"<p>{escape_html(build_task_summary(task))}</p>")

        points = build_task_points(task)
        if points:
            lines.append("<p>Key points to reinforce:</p>")
            _bullets(lines, points)

        guidance = build_task_differentiation(task)
        lines.append("<p><strong>Differentiation:</strong></p>")
        lines.append("<ul>")
        lines.append(f"<li><p><strong>{BEGINNER_LABEL}</strong> {escape_html(guidance.beginner)}</p></li>")
        lines.append(f"<li><p><strong>{EXTENSION_LABEL}</strong> {escape_html(guidance.extension)}</p></li>")
        lines.append("</ul>")
        lines.append(f"<p><strong>Teacher focus:</strong> {escape_html(TASK_TEACHER_FOCUS)}</p>")

    lines.append("<hr />")
    lines.append("<h3>Most Common Issues</h3>")
    lines.append("<ul>")
    for issue in build_common_issues(tasks, full_text):
        lines.append("<li>")
        lines.append(f"<p>{escape_html(issue.issue)}</p>")
        lines.append("<ul>")
        lines.append(f"<li><p><strong>Solution:</strong> {escape_html(issue.solution)}</p></li>")
        lines.append("</ul>")
        lines.append("</li>")
    lines.append("</ul>")
    lines.append(f"<p>{escape_html(TROUBLESHOOTING_CLOSE)}</p>")

    return "\n".join(lines)


__all__ = ["render_teacher_notes_html"]
