"""Build Teacher Notes for a session module from its live Canvas content."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from apps.canvas.models import ModuleItem, ModuleSummary, PageRecord

from .headers import resolve_module_by_name
from .renderer import render_teacher_notes_html
from .structure import ModuleOutline, SessionPage

LOGGER = logging.getLogger("nexgen.session.teacher_notes")

DEFAULT_FETCH_WORKERS = 8


class TeacherNotesSource(Protocol):
    def list_modules(self, course_id: int, search_term: str | None = None) -> Sequence[ModuleSummary]:
        ...

    def list_module_items(self, course_id: int, module_id: int) -> Sequence[ModuleItem]:
        ...

    def get_page(self, course_id: int, page_url: str) -> PageRecord:
        ...


@dataclass(slots=True)
class TeacherNotesBuildResult:
    module: ModuleSummary
    module_items: List[ModuleItem]
    module_pages: List[SessionPage]
    notes_html: str
    insertion_position: int


def fetch_session_pages(
    client: TeacherNotesSource,
    course_id: int,
    items: Sequence[ModuleItem],
    *,
    max_workers: int = DEFAULT_FETCH_WORKERS,
) -> List[SessionPage]:
    """Fetch page bodies concurrently; any failed fetch aborts with its error."""

    def _fetch(item: ModuleItem) -> SessionPage:
        page_url = str(item.page_url)
        page = client.get_page(course_id, page_url)
        return SessionPage.from_html(
            title=item.title,
            page_url=page_url,
            position=item.position,
            body_html=page.body,
        )

    if not items:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items)))) as pool:
        pages = list(pool.map(_fetch, items))
    return sorted(pages, key=lambda page: page.position)


def build_teacher_notes_for_session(
    client: TeacherNotesSource,
    course_id: int,
    session_name: str,
    page_title: str,
    *,
    max_workers: int = DEFAULT_FETCH_WORKERS,
) -> TeacherNotesBuildResult:
    module = resolve_module_by_name(client, course_id, session_name)
    outline = ModuleOutline(client.list_module_items(course_id, module.id))

    source_items = outline.source_page_items(page_title)
    LOGGER.info(
        "Building teacher notes",
        extra={
            "course_id": course_id,
            "module_id": module.id,
            "items": len(outline.items),
            "source_pages": len(source_items),
        },
    )
    module_pages = fetch_session_pages(client, course_id, source_items, max_workers=max_workers)

    notes_html = render_teacher_notes_html(page_title, session_name, outline.items, module_pages)
    return TeacherNotesBuildResult(
        module=module,
        module_items=list(outline.items),
        module_pages=module_pages,
        notes_html=notes_html,
        insertion_position=outline.insertion_position(),
    )


__all__ = [
    "TeacherNotesBuildResult",
    "TeacherNotesSource",
    "build_teacher_notes_for_session",
    "fetch_session_pages",
]
