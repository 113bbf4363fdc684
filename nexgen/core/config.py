"""
Typed configuration helpers for the Nexgen Canvas tooling.

Two sources feed a run: the optional pipeline YAML (session header templates,
teacher-notes defaults) and the process environment (Canvas connection).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

DEFAULT_CONFIG_PATH = Path("config") / "canvas_pipeline.yaml"
DEFAULT_HEADERS_TEMPLATE = [
    "Teachers Notes",
    "QUIZ",
    "Session {nn}: Task A",
    "Session {nn}: Task B",
    "Session {nn}: Task C",
]

ENV_BASE_URL = "CANVAS_BASE_URL"
ENV_API_TOKEN = "CANVAS_API_TOKEN"
ENV_COURSE_ID = "CANVAS_TEST_COURSE_ID"


class SessionsConfig(BaseModel):
    """Session numbering and the SubHeader titles created for each session."""

    model_config = ConfigDict(extra="ignore")

    session_number_pad: int = Field(default=2, ge=1, le=6)
    headers_template: List[str] = Field(default_factory=lambda: list(DEFAULT_HEADERS_TEMPLATE))

    @field_validator("headers_template", mode="before")
    @classmethod
    def strip_templates(cls, value: Any) -> Any:
        if value is None:
            return list(DEFAULT_HEADERS_TEMPLATE)
        if isinstance(value, list):
            return [item.strip() if isinstance(item, str) else item for item in value]
        return value


class TeacherNotesConfig(BaseModel):
    """Defaults for the teacher-notes command."""

    model_config = ConfigDict(extra="ignore")

    page_title: str = "Teacher Notes"
    require_archive: bool = Field(
        default=False,
        description="Abort the overwrite when the archive copy of the previous page cannot be created.",
    )
    fetch_workers: int = Field(default=8, ge=1, le=32)
    preview_lines: int = Field(default=40, ge=1)


class PipelineConfig(BaseModel):
    """Top-level configuration for the Canvas automation commands."""

    model_config = ConfigDict(extra="ignore")

    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    teacher_notes: TeacherNotesConfig = Field(default_factory=TeacherNotesConfig)

    @model_validator(mode="before")
    @classmethod
    def coerce_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        # camelCase keys written for the older JSON config
        sessions = payload.get("sessions")
        if isinstance(sessions, dict):
            sessions = dict(sessions)
            if "sessionNumberPad" in sessions:
                sessions.setdefault("session_number_pad", sessions.pop("sessionNumberPad"))
            if "headersTemplate" in sessions:
                sessions.setdefault("headers_template", sessions.pop("headersTemplate"))
            payload["sessions"] = sessions
        return payload


class CanvasSettings(BaseModel):
    """Connection info for the Canvas REST API, read from the environment."""

    base_url: str
    api_token: str
    default_course_id: Optional[int] = None

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, env: Dict[str, str] | None = None, *, load_env_file: bool = True) -> "CanvasSettings":
        if load_env_file and env is None:
            load_dotenv()
        source = env if env is not None else os.environ
        course_raw = _optional_env(source, ENV_COURSE_ID)
        try:
            course_id = int(course_raw) if course_raw is not None else None
        except ValueError as exc:
            raise ValueError(f"Invalid {ENV_COURSE_ID}: expected an integer, got {course_raw!r}") from exc
        return cls(
            base_url=_required_env(source, ENV_BASE_URL),
            api_token=_required_env(source, ENV_API_TOKEN),
            default_course_id=course_id,
        )

    def page_link(self, course_id: int, page_url: str) -> str:
        return f"{self.base_url}/courses/{course_id}/pages/{page_url}"


def _required_env(source: Mapping[str, str], name: str) -> str:
    value = _optional_env(source, name)
    if value is None:
        raise ValueError(f"Missing env var: {name}")
    return value


def _optional_env(source: Mapping[str, str], name: str) -> str | None:
    raw = source.get(name)
    if not raw:
        return None
    trimmed = raw.strip()
    return trimmed or None


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def load_pipeline_config(path: Path | None = None) -> PipelineConfig:
    """Load the pipeline YAML, falling back to defaults when the file is absent."""
    resolved = (path or DEFAULT_CONFIG_PATH).expanduser().resolve()
    if not resolved.exists():
        return PipelineConfig()
    try:
        data = read_yaml_file(resolved)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {resolved}: {exc}") from exc
    try:
        return PipelineConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid pipeline config in {resolved}") from exc


__all__ = [
    "CanvasSettings",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_HEADERS_TEMPLATE",
    "PipelineConfig",
    "SessionsConfig",
    "TeacherNotesConfig",
    "load_pipeline_config",
    "read_yaml_file",
]
