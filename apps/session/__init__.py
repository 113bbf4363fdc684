"""Session authoring: header titles, module lookup and Teacher Notes synthesis."""

from .headers import ModuleResolutionError, build_session_header_titles, resolve_module_by_name
from .overview import build_module_overview, count_items_by_type
from .placement import PlacementError, PlacementReport, publish_teacher_notes, resolve_page_title
from .teacher_notes import TeacherNotesBuildResult, build_teacher_notes_for_session

__all__ = [
    "ModuleResolutionError",
    "PlacementError",
    "PlacementReport",
    "TeacherNotesBuildResult",
    "build_module_overview",
    "build_session_header_titles",
    "build_teacher_notes_for_session",
    "count_items_by_type",
    "publish_teacher_notes",
    "resolve_module_by_name",
    "resolve_page_title",
]
