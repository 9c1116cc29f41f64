"""Strategies that turn a document into extraction candidates.

``SectionStrategy`` parses headings and keeps sections the classifier accepts;
``ChunkStrategy`` slides a fixed window over the raw text and queues every
window. Each strategy also knows how to prompt for and parse its candidates.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Protocol, Sequence, Tuple

from docmemories.config import AppConfig
from docmemories.extraction.parse import parse_jsonl_response, parse_section_response
from docmemories.extraction.prompts import build_chunk_prompt, build_section_prompt
from docmemories.ingestion.classifier import Classification, classify_section
from docmemories.ingestion.sections import parse_sections
from docmemories.models import Candidate, Document, RawExtractionResult, Section
from docmemories.utils.text import chunk_text

LOGGER = logging.getLogger(__name__)


class CandidateStrategy(Protocol):
    name: str

    def candidates(self, document: Document) -> List[Candidate]: ...

    def build_prompt(self, candidate: Candidate) -> str: ...

    def parse_response(self, raw: str, candidate: Candidate) -> List[RawExtractionResult]: ...


class SectionStrategy:
    """Heading-aware extraction: one JSON object (or SKIP) per accepted section."""

    name = "sections"

    def analyze(self, document: Document) -> List[Tuple[Section, Classification]]:
        return [(section, classify_section(section)) for section in parse_sections(document.text)]

    def candidates(self, document: Document) -> List[Candidate]:
        report = self.analyze(document)
        accepted = [
            Candidate(
                source=document.source,
                content=section.content,
                reason=decision.reason,
                title=section.title,
                level=section.level,
            )
            for section, decision in report
            if decision.accepted
        ]
        LOGGER.debug("%s: %d/%d sections to extract", document.source, len(accepted), len(report))
        return accepted

    def build_prompt(self, candidate: Candidate) -> str:
        return build_section_prompt(candidate)

    def parse_response(self, raw: str, candidate: Candidate) -> List[RawExtractionResult]:
        result = parse_section_response(raw, candidate.source, candidate.title)
        return [result] if result is not None else []


class ChunkStrategy:
    """Sliding-window extraction: every window is queued, responses are JSONL."""

    name = "chunks"

    def __init__(self, *, chunk_chars: int = 8000, overlap: int = 200) -> None:
        self.chunk_chars = chunk_chars
        self.overlap = overlap

    def candidates(self, document: Document) -> List[Candidate]:
        windows = list(chunk_text(document.text, max_chars=self.chunk_chars, overlap=self.overlap))
        return [
            Candidate(
                source=document.source,
                content=window,
                reason="sliding window",
                chunk_index=index,
                total_chunks=len(windows),
            )
            for index, window in enumerate(windows)
        ]

    def build_prompt(self, candidate: Candidate) -> str:
        return build_chunk_prompt(candidate)

    def parse_response(self, raw: str, candidate: Candidate) -> List[RawExtractionResult]:
        return parse_jsonl_response(raw, candidate.source)


def build_strategy(config: AppConfig) -> CandidateStrategy:
    if config.strategy == "chunks":
        return ChunkStrategy(chunk_chars=config.chunk_chars, overlap=config.overlap)
    return SectionStrategy()


def collect_candidates(
    documents: Iterable[Document], strategy: CandidateStrategy
) -> List[Candidate]:
    """Flatten candidates across documents, preserving document order."""
    collected: List[Candidate] = []
    for document in documents:
        collected.extend(strategy.candidates(document))
    return collected


def describe(candidates: Sequence[Candidate], limit: int = 10) -> List[str]:
    """Short human-readable listing used by dry runs."""
    lines = [f"{candidate.source} - {candidate.label} ({candidate.reason})" for candidate in candidates[:limit]]
    if len(candidates) > limit:
        lines.append(f"... and {len(candidates) - limit} more")
    return lines
