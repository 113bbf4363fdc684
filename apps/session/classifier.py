"""Keyword classification of session text: required components and common issues.

Each table is ordered data. Output order follows table order, so reordering a
table changes the rendered notes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

from nexgen.utils.text import dedupe, normalize_space

from .structure import SessionTask

MAX_COMMON_ISSUES = 4
MIN_COMMON_ISSUES = 3


@dataclass(frozen=True, slots=True)
class KeywordRule:
    pattern: re.Pattern[str]
    label: str


@dataclass(frozen=True, slots=True)
class CommonIssue:
    issue: str
    solution: str


@dataclass(frozen=True, slots=True)
class IssueRule:
    trigger: re.Pattern[str]
    issue: CommonIssue


def _rule(pattern: str, label: str) -> KeywordRule:
    return KeywordRule(re.compile(pattern, re.IGNORECASE), label)


SOFTWARE_KEYWORDS: tuple[KeywordRule, ...] = (
    _rule(r"\barduino ide\b", "Arduino IDE"),
    _rule(r"\bserial monitor\b", "Serial Monitor"),
    _rule(r"\bblender\b", "Blender"),
    _rule(r"\btinkercad\b", "Tinkercad"),
    _rule(r"\bweb browser\b", "Web browser (Chrome preferred)"),
)
SOFTWARE_FALLBACK: tuple[str, ...] = ("Arduino IDE", "Serial Monitor")

HARDWARE_KEYWORDS: tuple[KeywordRule, ...] = (
    _rule(r"\blcd\b", "LCD screen module"),
    _rule(r"\b3x4\b|\bmatrix keypad\b|\bkeypad\b", "3x4 matrix keypad"),
    _rule(r"\besp32\b|\bnodemcu\b", "NodeMCU ESP32 board"),
    _rule(r"\bbreadboard\b", "Breadboard"),
    _rule(r"\bjumper wire", "Jumper wires"),
    _rule(r"\busb\b", "USB cable"),
)
HARDWARE_FALLBACK: tuple[str, ...] = ("LCD screen module", "3x4 matrix keypad", "NodeMCU ESP32 board")

# Matched against lowercased text.
ISSUE_RULES: tuple[IssueRule, ...] = (
    IssueRule(
        re.compile(r"\bwiring\b"),
        CommonIssue(
            "Incorrect pin wiring between the board, LCD, and keypad.",
            "Have students trace each wire against the diagram one connection at a time, "
            "then re-test after each correction.",
        ),
    ),
    IssueRule(
        re.compile(r"\bupload\b|\bcompile\b"),
        CommonIssue(
            "Sketch upload errors caused by board/port configuration mistakes.",
            "Check board model, selected port, cable quality, and close any app using the "
            "serial connection before retrying.",
        ),
    ),
    IssueRule(
        re.compile(r"\bkeypad\b"),
        CommonIssue(
            "Incorrect row/column mapping in keypad code.",
            "Compare keypad wiring to the row/column array in code and test each key in "
            "Serial Monitor to confirm mapping.",
        ),
    ),
    IssueRule(
        re.compile(r"\blcd\b"),
        CommonIssue(
            "LCD output not displaying as expected.",
            "Verify power and data pins, adjust LCD contrast, and run a minimal known-good "
            "test sketch first.",
        ),
    ),
)

MULTIPLE_CHANGES_ISSUE = CommonIssue(
    "Students make multiple changes at once and lose track of the cause of errors.",
    "Enforce one-change-at-a-time debugging and require a quick test after each change.",
)
CHECKPOINT_ISSUE = CommonIssue(
    "Students forget to save a known-good version before experimenting.",
    "Set mandatory checkpoint saves after each working milestone before extensions.",
)
UNVERIFIED_WORK_ISSUE = CommonIssue(
    "Students move on to the next task before confirming the current one works.",
    "Ask for a quick demonstration of working output before students start the next task.",
)


def detect_components(
    text: str,
    patterns: Sequence[KeywordRule],
    fallback: Sequence[str],
) -> List[str]:
    """Labels of every rule matching ``text``; ``fallback`` when none match."""

    found = [rule.label for rule in patterns if rule.pattern.search(text)]
    if not found:
        return list(fallback)
    return dedupe(found)


def detect_software(text: str) -> List[str]:
    return detect_components(text, SOFTWARE_KEYWORDS, SOFTWARE_FALLBACK)


def detect_hardware(text: str) -> List[str]:
    return detect_components(text, HARDWARE_KEYWORDS, HARDWARE_FALLBACK)


def build_common_issues(tasks: Sequence[SessionTask], full_text: str) -> List[CommonIssue]:
    lower = full_text.lower()
    issues = [rule.issue for rule in ISSUE_RULES if rule.trigger.search(lower)]

    if len(issues) < MIN_COMMON_ISSUES and tasks:
        issues.append(MULTIPLE_CHANGES_ISSUE)
    if len(issues) < MAX_COMMON_ISSUES:
        issues.append(CHECKPOINT_ISSUE)
    if len(issues) < MIN_COMMON_ISSUES and tasks:
        issues.append(UNVERIFIED_WORK_ISSUE)

    return dedupe_issues(issues)[:MAX_COMMON_ISSUES]


def dedupe_issues(values: Sequence[CommonIssue]) -> List[CommonIssue]:
    seen: set[str] = set()
    out: List[CommonIssue] = []
    for value in values:
        issue = normalize_space(value.issue)
        solution = normalize_space(value.solution)
        if not issue or not solution:
            continue
        key = issue.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(CommonIssue(issue, solution))
    return out


__all__ = [
    "CommonIssue",
    "HARDWARE_FALLBACK",
    "HARDWARE_KEYWORDS",
    "ISSUE_RULES",
    "KeywordRule",
    "SOFTWARE_FALLBACK",
    "SOFTWARE_KEYWORDS",
    "build_common_issues",
    "detect_components",
    "detect_hardware",
    "detect_software",
]
