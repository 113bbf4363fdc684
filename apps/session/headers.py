"""Session header titles and module lookup by name."""

from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from apps.canvas.models import ModuleSummary
from nexgen.core.config import SessionsConfig

LOGGER = logging.getLogger(__name__)

TOKEN_PADDED = "{nn}"
TOKEN_RAW = "{n}"


class ModuleLister(Protocol):
    def list_modules(self, course_id: int, search_term: str | None = None) -> Sequence[ModuleSummary]:
        ...


class ModuleResolutionError(ValueError):
    """Raised when a module name does not resolve to exactly one module."""

    def __init__(self, message: str, *, suggestions: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.suggestions = list(suggestions)


def normalize_name(name: str) -> str:
    return name.strip().lower()


def build_session_header_titles(session_number: int, config: SessionsConfig) -> List[str]:
    """Render the configured header templates for one session.

    ``{nn}`` becomes the zero-padded session number and ``{n}`` the raw one.
    """

    if isinstance(session_number, bool) or not isinstance(session_number, int) or session_number <= 0:
        raise ValueError("Session number must be a positive integer.")
    templates = config.headers_template
    if not templates:
        raise ValueError("Session header templates are missing.")
    pad = max(1, int(config.session_number_pad or 2))
    padded = str(session_number).zfill(pad)
    raw = str(session_number)
    return [title.replace(TOKEN_PADDED, padded).replace(TOKEN_RAW, raw) for title in templates]


def resolve_module_by_name(client: ModuleLister, course_id: int, module_name: str) -> ModuleSummary:
    target = normalize_name(module_name)
    if not target:
        raise ModuleResolutionError("Module name is required.")

    modules = list(client.list_modules(course_id, module_name))
    matches = [module for module in modules if normalize_name(module.name) == target]

    if len(matches) == 1:
        LOGGER.debug("Resolved module %r to id %s", module_name, matches[0].id)
        return matches[0]

    if len(matches) > 1:
        names = [module.name for module in matches]
        raise ModuleResolutionError(
            f'Multiple modules matched "{module_name}": {", ".join(names)}',
            suggestions=names,
        )

    if not modules:
        raise ModuleResolutionError(f'No modules found matching "{module_name}".')

    suggestions = [module.name for module in modules]
    raise ModuleResolutionError(
        f'No exact module name match for "{module_name}". Closest matches: {", ".join(suggestions)}',
        suggestions=suggestions,
    )


__all__ = [
    "ModuleResolutionError",
    "build_session_header_titles",
    "normalize_name",
    "resolve_module_by_name",
]
