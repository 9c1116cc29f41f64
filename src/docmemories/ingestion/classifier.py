"""Heuristic filter deciding which sections are worth sending to the model."""

from __future__ import annotations

import re
from dataclasses import dataclass

from docmemories.models import Section

STRONG_SIGNALS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"good to know",
        r"warning:",
        r"note:",
        r"important:",
        r"\bdon't\b",
        r"\bavoid\b",
        r"instead of",
        r"prefer\s+\w+\s+over",
        r"common mistake",
        r"\berror\b.*\bwhen\b",
    )
)

MEDIUM_SIGNALS = (
    re.compile(r"```\w+"),
    re.compile(r"for example", re.IGNORECASE),
    re.compile(r"you can", re.IGNORECASE),
    re.compile(r"you should", re.IGNORECASE),
    re.compile(r"make sure", re.IGNORECASE),
    re.compile(r"be careful", re.IGNORECASE),
)

SKIP_TITLES = frozenset({"version history", "installation", "setup"})

TABLE_ROW_RE = re.compile(r"^\s*\|.*\|\s*$")
TABLE_RATIO = 0.7
MIN_TABLE_LINES = 3
MIN_CONTENT_CHARS = 100
MEDIUM_LENGTH_CHARS = 300


@dataclass(slots=True, frozen=True)
class Classification:
    accepted: bool
    reason: str


def _count(patterns, content: str) -> int:
    return sum(1 for pattern in patterns if pattern.search(content))


def classify_section(section: Section) -> Classification:
    """Apply the rule cascade to one section.

    Skip titles and tables win over any signal; the decision depends only on
    the section's title and content.
    """
    title = section.title
    content = section.content

    if title.strip().lower() in SKIP_TITLES:
        return Classification(False, "skip pattern")

    lines = [line for line in content.split("\n") if line.strip()]
    table_lines = [line for line in lines if TABLE_ROW_RE.match(line)]
    if len(lines) > MIN_TABLE_LINES and len(table_lines) / len(lines) > TABLE_RATIO:
        return Classification(False, "mostly table")

    if _count(STRONG_SIGNALS, content) > 0:
        return Classification(True, "strong signal")

    medium = _count(MEDIUM_SIGNALS, content)
    if medium >= 2:
        return Classification(True, "multiple medium")
    if medium == 1 and len(content) > MEDIUM_LENGTH_CHARS:
        return Classification(True, "medium + length")

    if len(content) < MIN_CONTENT_CHARS:
        return Classification(False, "too short")

    return Classification(False, "no signals")
