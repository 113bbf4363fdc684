"""Idempotent publication of a built Teacher Notes page into its session module."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol, Sequence

import httpx

from apps.canvas.models import ModuleItem, PageRecord
from nexgen.core.provenance import ProvenanceLogger

from .headers import normalize_name
from .teacher_notes import TeacherNotesBuildResult

LOGGER = logging.getLogger("nexgen.session.placement")

DRAFT_SUFFIX = " (Draft)"
_DRAFT_SUFFIX_RE = re.compile(r"\(draft\)\s*$", re.IGNORECASE)

Clock = Callable[[], datetime]


class PlacementError(RuntimeError):
    """Raised when a required placement step fails."""


class PageWriter(Protocol):
    def get_page(self, course_id: int, page_url: str) -> PageRecord:
        ...

    def list_pages(self, course_id: int, search_term: str | None = None) -> Sequence[PageRecord]:
        ...

    def create_page(self, course_id: int, *, title: str, body: str, published: bool) -> PageRecord:
        ...

    def update_page(
        self,
        course_id: int,
        page_url: str,
        *,
        title: str | None = None,
        body: str | None = None,
        published: bool | None = None,
    ) -> PageRecord:
        ...

    def create_module_page_item(
        self,
        course_id: int,
        module_id: int,
        *,
        page_url: str,
        position: int,
        title: str | None = None,
    ) -> ModuleItem:
        ...

    def update_module_item_position(self, course_id: int, module_id: int, item_id: int, position: int) -> ModuleItem:
        ...


@dataclass(frozen=True, slots=True)
class ArchiveOutcome:
    archived_title: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class PlacementReport:
    page_url: str
    page_title: str
    draft: bool
    created_page: bool = False
    created_module_item: bool = False
    moved_module_item: bool = False
    archived_title: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def placement_unchanged(self) -> bool:
        return not (self.created_module_item or self.moved_module_item)


def resolve_page_title(raw_title: str, *, draft: bool) -> str:
    """Append the draft suffix once; titles already ending in "(Draft)" are kept."""
    if draft and not _DRAFT_SUFFIX_RE.search(raw_title):
        return f"{raw_title}{DRAFT_SUFFIX}"
    return raw_title


def archive_stamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    iso = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"
    return iso.replace(".", "-").replace(":", "-")


def archive_page(
    client: PageWriter,
    course_id: int,
    page_url: str,
    *,
    clock: Clock | None = None,
) -> ArchiveOutcome:
    """Copy the current page into an unpublished, time-stamped archive page.

    Failures are returned, not raised; the caller decides whether to continue.
    """

    now = (clock or (lambda: datetime.now(timezone.utc)))()
    try:
        current = client.get_page(course_id, page_url)
        archived = client.create_page(
            course_id,
            title=f"{current.title} (Archive {archive_stamp(now)})",
            body=current.body or "",
            published=False,
        )
    except (httpx.HTTPError, RuntimeError) as exc:
        return ArchiveOutcome(error=str(exc))
    return ArchiveOutcome(archived_title=archived.title)


def find_module_page_item(items: Sequence[ModuleItem], page_title: str) -> Optional[ModuleItem]:
    key = normalize_name(page_title)
    return next(
        (item for item in items if item.is_page and item.page_url and normalize_name(item.title) == key),
        None,
    )


def publish_teacher_notes(
    client: PageWriter,
    course_id: int,
    built: TeacherNotesBuildResult,
    page_title: str,
    *,
    draft: bool = False,
    require_archive: bool = False,
    provenance: ProvenanceLogger | None = None,
    clock: Clock | None = None,
) -> PlacementReport:
    """Create or update the notes page, then place it at the top of the session.

    Draft runs only write the page; archive and module placement are skipped.
    """

    def _record(stage: str, message: str, **payload: object) -> None:
        if provenance is not None:
            provenance.log({"stage": stage, "message": message, "payload": {"course_id": course_id, **payload}})

    def _overwrite(page_url: str, report: PlacementReport) -> None:
        if not draft:
            outcome = archive_page(client, course_id, page_url, clock=clock)
            if outcome.ok:
                report.archived_title = outcome.archived_title
                _record("archive_page", "Archived previous page content", page_url=page_url, title=outcome.archived_title)
            else:
                if require_archive:
                    raise PlacementError(f"Archiving {page_url} failed; page left unchanged: {outcome.error}")
                message = f"Archive of {page_url} failed; overwriting anyway: {outcome.error}"
                LOGGER.warning(message)
                report.warnings.append(message)
        client.update_page(course_id, page_url, title=page_title, body=built.notes_html, published=True)
        _record("update_page", "Updated teacher notes page", page_url=page_url, title=page_title)

    existing_item = find_module_page_item(built.module_items, page_title)
    if existing_item is not None:
        report = PlacementReport(page_url=str(existing_item.page_url), page_title=page_title, draft=draft)
        _overwrite(report.page_url, report)
    else:
        key = normalize_name(page_title)
        existing_page = next(
            (page for page in client.list_pages(course_id, page_title) if normalize_name(page.title) == key),
            None,
        )
        if existing_page is not None:
            report = PlacementReport(page_url=existing_page.url, page_title=page_title, draft=draft)
            _overwrite(report.page_url, report)
        else:
            created = client.create_page(course_id, title=page_title, body=built.notes_html, published=True)
            report = PlacementReport(page_url=created.url, page_title=page_title, draft=draft, created_page=True)
            _record("create_page", "Created teacher notes page", page_url=created.url, title=page_title)

    if draft:
        return report

    module_id = built.module.id
    target = built.insertion_position
    item_for_page = next(
        (item for item in built.module_items if item.is_page and item.page_url == report.page_url),
        None,
    )
    if item_for_page is None:
        client.create_module_page_item(
            course_id,
            module_id,
            page_url=report.page_url,
            position=target,
            title=page_title,
        )
        report.created_module_item = True
        _record("create_module_item", "Added page to session module", module_id=module_id, position=target)
    elif item_for_page.position != target:
        try:
            client.update_module_item_position(course_id, module_id, item_for_page.id, target)
        except httpx.HTTPError as exc:
            message = f"Moving module item {item_for_page.id} to position {target} failed: {exc}"
            LOGGER.warning(message)
            report.warnings.append(message)
        else:
            report.moved_module_item = True
            _record(
                "move_module_item",
                "Moved module item to top of session",
                module_id=module_id,
                item_id=item_for_page.id,
                position=target,
            )
    return report


__all__ = [
    "ArchiveOutcome",
    "PlacementError",
    "PlacementReport",
    "archive_page",
    "archive_stamp",
    "find_module_page_item",
    "publish_teacher_notes",
    "resolve_page_title",
]
