"""Markdown heading parser.

Splits a document into level 1-4 sections. Text before the first heading
belongs to no section, and a document without headings yields no sections.
"""

from __future__ import annotations

import re
from typing import List

from docmemories.models import Section

HEADING_RE = re.compile(r"^(#{1,4})\s+(.+)$")


def _close(section: Section, lines: List[str], end: int) -> Section:
    section.end_line = end - 1
    section.content = "\n".join(lines[section.start_line + 1 : end]).strip()
    return section


def parse_sections(text: str) -> List[Section]:
    """Return the ordered heading-delimited sections of ``text``."""
    lines = text.split("\n")
    sections: List[Section] = []
    current: Section | None = None

    for index, line in enumerate(lines):
        match = HEADING_RE.match(line)
        if not match:
            continue
        if current is not None:
            sections.append(_close(current, lines, index))
        current = Section(
            level=len(match.group(1)),
            title=match.group(2).replace("`", ""),
            start_line=index,
            end_line=-1,
            content="",
        )

    if current is not None:
        sections.append(_close(current, lines, len(lines)))

    return sections
