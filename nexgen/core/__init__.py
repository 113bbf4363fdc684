"""Foundational configuration and provenance utilities for the Canvas tooling."""

from .config import (
    CanvasSettings,
    PipelineConfig,
    SessionsConfig,
    TeacherNotesConfig,
    load_pipeline_config,
)
from .provenance import ProvenanceEvent, ProvenanceLogger

__all__ = [
    "CanvasSettings",
    "PipelineConfig",
    "ProvenanceEvent",
    "ProvenanceLogger",
    "SessionsConfig",
    "TeacherNotesConfig",
    "load_pipeline_config",
]
