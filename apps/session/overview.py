"""Read-only summaries of a course's modules and of one module's items."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Protocol, Sequence

from apps.canvas.models import ModuleItem, ModuleSummary

from .headers import resolve_module_by_name

LOGGER = logging.getLogger("nexgen.session.overview")


class ModuleOverviewSource(Protocol):
    def list_modules(self, course_id: int, search_term: str | None = None) -> Sequence[ModuleSummary]:
        ...

    def list_module_items(self, course_id: int, module_id: int) -> Sequence[ModuleItem]:
        ...


def count_items_by_type(items: Iterable[ModuleItem]) -> Dict[str, int]:
    """Item counts keyed by Canvas item type, in first-seen order."""
    counts: Dict[str, int] = {}
    for item in items:
        counts[item.type] = counts.get(item.type, 0) + 1
    return counts


def build_module_overview(
    client: ModuleOverviewSource,
    course_id: int,
    module_name: str | None = None,
) -> Dict[str, Any]:
    """Return ``{"summary": str, "details": {...}}`` for the course or one module.

    Without ``module_name`` every module in the course is listed. With it the
    name must resolve to exactly one module, whose items are listed along with
    per-type counts.
    """

    if not module_name:
        modules = client.list_modules(course_id)
        return {
            "summary": f"Found {len(modules)} modules in course {course_id}.",
            "details": {"modules": [{"id": module.id, "name": module.name} for module in modules]},
        }

    module = resolve_module_by_name(client, course_id, module_name)
    items = sorted(client.list_module_items(course_id, module.id), key=lambda item: item.position)
    LOGGER.info(
        "Module overview built",
        extra={"course_id": course_id, "module_id": module.id, "items": len(items)},
    )
    return {
        "summary": f'Module "{module.name}" has {len(items)} items.',
        "details": {
            "module": {"id": module.id, "name": module.name},
            "itemCountsByType": count_items_by_type(items),
            "items": [
                {
                    "id": item.id,
                    "position": item.position,
                    "type": item.type,
                    "title": item.title,
                    "page_url": item.page_url,
                }
                for item in items
            ],
        },
    }


__all__ = ["ModuleOverviewSource", "build_module_overview", "count_items_by_type"]
