"""Objective bullets, task points and differentiation guidance from session text.

Everything here is deterministic string heuristics over page titles and the
first usable sentence of each page body. When nothing usable is found the
functions fall back to fixed wording rather than returning nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from nexgen.utils.text import dedupe, normalize_space

from .structure import SessionPage, SessionTask

MAX_OBJECTIVES = 3
MAX_TASK_POINTS = 3
MIN_SENTENCE_LENGTH = 20

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_TERMINAL = (".", "!", "?")
_TASK_TITLE_RE = re.compile(r"^(Session\s+\d+\s*):\s*Task\s+([A-Za-z0-9]+)", re.IGNORECASE)

FILLER_PREFIXES: tuple[re.Pattern[str], ...] = (
    re.compile(r"^hi all[,!\s]*", re.IGNORECASE),
    re.compile(r"^(the task|task|keypad circuit)\b\s*[:\-]?\s*", re.IGNORECASE),
)

# Applied in order, each at most once.
OUTCOME_OPENERS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^students should be able to\s*",
        r"^students should\s*",
        r"^students (will|can)\s*",
        r"^in this (task|session),?\s*(you|students)\s*(will|should)\s*",
        r"^you (will|should)\s*",
        r"^in this (task|session),?\s*",
        r"^this (task|session)\s+(is|covers)\s*",
        r"^now,?\s*",
    )
)

GENERIC_OUTCOME = "Complete the activity and explain how it works."


@dataclass(frozen=True, slots=True)
class TaskLabel:
    session_label: str
    task_label: str


@dataclass(frozen=True, slots=True)
class Differentiation:
    beginner: str
    extension: str


@dataclass(frozen=True, slots=True)
class TaskContext:
    """Lowercased text a differentiation rule may inspect."""

    full: str
    titles: str

    @classmethod
    def from_task(cls, task: SessionTask) -> "TaskContext":
        page_titles = " ".join(page.title for page in task.pages)
        bodies = " ".join(page.body_text for page in task.pages)
        return cls(
            full=f"{task.title} {page_titles} {bodies}".lower(),
            titles=f"{task.title} {page_titles}".lower(),
        )


@dataclass(frozen=True, slots=True)
class DifferentiationRule:
    name: str
    applies: Callable[[TaskContext], bool]
    guidance: Differentiation


def _has_any(text: str, patterns: Sequence[str]) -> bool:
    return any(re.search(pattern, text, re.IGNORECASE) for pattern in patterns)


DIFFERENTIATION_RULES: tuple[DifferentiationRule, ...] = (
    DifferentiationRule(
        "custom_character",
        lambda ctx: _has_any(ctx.full, [r"\bcustom\b"]) and _has_any(ctx.full, [r"\bcharacters?\b"]),
        Differentiation(
            "Edit one provided custom character pattern (for example, change a smiley face) "
            "and display it correctly on the LCD.",
            "Design two original custom characters and alternate them as a short animation or status indicator.",
        ),
    ),
    DifferentiationRule(
        "keypad",
        lambda ctx: _has_any(ctx.full, [r"\bkeypad\b", r"\b3x4\b", r"\bmatrix\b"]),
        Differentiation(
            "Read one key press in Serial Monitor and verify each key prints the correct value.",
            "Build a 4-digit PIN check with a clear/reset key and a simple lockout after three incorrect attempts.",
        ),
    ),
    DifferentiationRule(
        "theory",
        lambda ctx: _has_any(ctx.titles, [r"\bhow\s+.+\s+work", r"\btheory\b", r"\bconcept\b"]),
        Differentiation(
            "Label the key LCD or circuit pins used in class and explain one function for each pin.",
            "Predict how changing one parameter (for example contrast or delay) will affect output, "
            "then test and record the result.",
        ),
    ),
    DifferentiationRule(
        "hardware_assembly",
        lambda ctx: _has_any(ctx.full, [r"\bwiring\b", r"\blcd\b"]),
        Differentiation(
            "Follow the class wiring diagram exactly, then upload a fixed message such as HELLO "
            "to confirm the setup works.",
            "Modify the sketch to rotate between two messages or show a simple counter updated every second.",
        ),
    ),
)

DEFAULT_DIFFERENTIATION = Differentiation(
    "Make one small tweak to the working example (text, delay, or one variable) and verify the result.",
    "Add one extra feature of your choice and explain what changed in your code or wiring.",
)


def cleanup_sentence(value: str) -> str:
    for pattern in FILLER_PREFIXES:
        value = pattern.sub("", value, count=1)
    return normalize_space(value)


def _ensure_terminal(sentence: str) -> str:
    return sentence if sentence.endswith(_TERMINAL) else f"{sentence}."


def first_sentence(text: str) -> Optional[str]:
    """First sentence of at least ``MIN_SENTENCE_LENGTH`` characters after cleanup.

    Falls back to the whole cleaned text when every sentence is too short.
    """

    normalized = normalize_space(text)
    if not normalized:
        return None
    for raw in _SENTENCE_SPLIT_RE.split(normalized):
        sentence = cleanup_sentence(raw)
        if len(sentence) >= MIN_SENTENCE_LENGTH:
            return _ensure_terminal(sentence)
    fallback = cleanup_sentence(normalized)
    return _ensure_terminal(fallback) if fallback else None


def to_outcome_bullet(sentence: str) -> str:
    """Rephrase an instruction sentence as a student outcome."""

    cleaned = cleanup_sentence(sentence)
    for pattern in OUTCOME_OPENERS:
        cleaned = pattern.sub("", cleaned, count=1)
    cleaned = re.sub(r"\byour\b", "their", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\ba lcd\b", "an LCD", cleaned, count=1, flags=re.IGNORECASE)
    cleaned = normalize_space(cleaned)
    if not cleaned:
        return GENERIC_OUTCOME
    capitalized = cleaned[0].upper() + cleaned[1:]
    if capitalized.endswith(_TERMINAL):
        capitalized = capitalized[:-1]
    return f"{capitalized}."


def parse_task_header(title: str) -> Optional[TaskLabel]:
    match = _TASK_TITLE_RE.match(title.strip())
    if not match:
        return None
    return TaskLabel(
        session_label=normalize_space(match.group(1)),
        task_label=match.group(2).upper(),
    )


def build_task_sequence_objective(tasks: Sequence[SessionTask]) -> Optional[str]:
    if not tasks:
        return None

    parsed = [parse_task_header(task.title) for task in tasks]
    labels = [label for label in parsed if label is not None]
    if len(labels) == len(tasks):
        session_label = labels[0].session_label
        if all(label.session_label.lower() == session_label.lower() for label in labels):
            letters = "/".join(label.task_label for label in labels)
            return f"Complete {session_label}: Task {letters}."

    titles = ", ".join(task.title for task in tasks)
    return f"Complete the session task sequence: {titles}."


def build_objective_points(
    intro_pages: Sequence[SessionPage],
    tasks: Sequence[SessionTask],
    session_name: str,
) -> List[str]:
    candidates: List[str] = []
    sequence = build_task_sequence_objective(tasks)
    if sequence:
        candidates.append(sequence)

    intro_sentence = first_sentence(" ".join(page.body_text for page in intro_pages))
    if intro_sentence:
        candidates.append(to_outcome_bullet(intro_sentence))

    fillers = (
        f"Apply the core skills from {session_name} with increasing independence.",
        "Troubleshoot one issue at a time before requesting direct help.",
        "Explain how the session activities connect to the finished project.",
    )
    points = dedupe(candidates)
    for filler in fillers:
        if len(points) >= MAX_OBJECTIVES:
            break
        points = dedupe([*points, filler])
    return points[:MAX_OBJECTIVES]


def build_task_summary(task: SessionTask) -> str:
    sources = ", ".join(page.title for page in task.pages)
    return f"Outcome for this task: complete the activities in {sources}."


def build_task_points(task: SessionTask) -> List[str]:
    points: List[str] = []
    for page in task.pages:
        sentence = first_sentence(page.body_text)
        if sentence:
            points.append(to_outcome_bullet(sentence))
            continue
        points.append(f'Complete "{page.title}" and verify it works before moving on.')
    return dedupe(points)[:MAX_TASK_POINTS]


def build_task_differentiation(task: SessionTask) -> Differentiation:
    """Guidance from the first matching rule in ``DIFFERENTIATION_RULES``."""

    context = TaskContext.from_task(task)
    for rule in DIFFERENTIATION_RULES:
        if rule.applies(context):
            return rule.guidance
    return DEFAULT_DIFFERENTIATION


__all__ = [
    "DEFAULT_DIFFERENTIATION",
    "DIFFERENTIATION_RULES",
    "Differentiation",
    "DifferentiationRule",
    "build_objective_points",
    "build_task_differentiation",
    "build_task_points",
    "build_task_sequence_objective",
    "build_task_summary",
    "first_sentence",
    "parse_task_header",
    "to_outcome_bullet",
]
