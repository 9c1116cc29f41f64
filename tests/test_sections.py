"""Tests for the markdown section parser."""

from __future__ import annotations

from docmemories.ingestion.sections import parse_sections

DOC = """Intro text before any heading.

# Getting Started
Welcome.

## Caching
Use `cache()` to memoize.
More lines.

#### Deep heading
deep body
##### Level five is content
"""


class TestParseSections:
    """Test parse_sections function."""

    def test_levels_and_titles(self) -> None:
        """Should detect level 1-4 headings in order."""
        sections = parse_sections(DOC)

        assert [(s.level, s.title) for s in sections] == [
            (1, "Getting Started"),
            (2, "Caching"),
            (4, "Deep heading"),
        ]

    def test_preamble_is_dropped(self) -> None:
        """Text before the first heading belongs to no section."""
        sections = parse_sections(DOC)

        assert all("Intro text" not in s.content for s in sections)

    def test_content_between_headings(self) -> None:
        """Content is the stripped text strictly between headings."""
        sections = parse_sections(DOC)

        assert sections[0].content == "Welcome."
        assert sections[1].content == "Use `cache()` to memoize.\nMore lines."

    def test_level_five_heading_is_content(self) -> None:
        """Headings deeper than level 4 stay in the body."""
        sections = parse_sections(DOC)

        assert sections[-1].content == "deep body\n##### Level five is content"

    def test_line_numbers(self) -> None:
        """Start is the heading line, end is the line before the next heading."""
        sections = parse_sections(DOC)
        lines = DOC.split("\n")

        assert lines[sections[0].start_line] == "# Getting Started"
        assert sections[0].end_line == sections[1].start_line - 1
        assert sections[-1].end_line == len(lines) - 1

    def test_sections_do_not_overlap(self) -> None:
        """Sections are ordered and disjoint."""
        sections = parse_sections(DOC)

        for previous, current in zip(sections, sections[1:]):
            assert previous.end_line < current.start_line

    def test_backticks_removed_from_title(self) -> None:
        """Inline code markers are stripped from titles."""
        sections = parse_sections("## The `useEffect` hook\nbody")

        assert sections[0].title == "The useEffect hook"

    def test_no_headings_yields_no_sections(self) -> None:
        """A document without heading markers produces zero sections."""
        text = "Just a paragraph.\n\nAnother one with #hashtag and no heading."

        assert parse_sections(text) == []

    def test_heading_requires_space(self) -> None:
        """'#tag' is not a heading."""
        assert parse_sections("#tag\ntext") == []

    def test_empty_section(self) -> None:
        """Back-to-back headings give empty content."""
        sections = parse_sections("# A\n# B\nbody")

        assert sections[0].content == ""
        assert sections[1].content == "body"

    def test_restartable(self) -> None:
        """Repeated calls return equal results."""
        assert parse_sections(DOC) == parse_sections(DOC)
