"""Core docmemories data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional


@dataclass(slots=True, frozen=True)
class Document:
    """A documentation file read from the corpus."""

    path: Path
    source: str
    text: str


@dataclass(slots=True)
class Section:
    """Heading-delimited span of a markdown document."""

    level: int
    title: str
    start_line: int
    end_line: int
    content: str


@dataclass(slots=True)
class Candidate:
    """Section or sliding-window chunk queued for extraction."""

    source: str
    content: str
    reason: str
    title: Optional[str] = None
    level: Optional[int] = None
    chunk_index: Optional[int] = None
    total_chunks: Optional[int] = None

    @property
    def label(self) -> str:
        if self.title is not None:
            return self.title
        if self.chunk_index is not None:
            return f"chunk {self.chunk_index + 1}/{self.total_chunks}"
        return self.source


@dataclass(slots=True)
class RawExtractionResult:
    """Advice parsed from one inference response, before deduplication."""

    trigger_text: str
    advice_text: str
    source_doc: str
    example: Any = None
    source_section: Optional[str] = None


@dataclass(slots=True)
class Memory:
    """Finalized, deduplicated advice record."""

    id: str
    text: str
    context: str
    source: str


@dataclass(slots=True)
class VectorRecord:
    """Memory paired with its embedding vector."""

    id: str
    text: str
    context: str
    source: str
    vector: List[float] = field(default_factory=list)

    @classmethod
    def from_memory(cls, memory: Memory, vector: List[float]) -> "VectorRecord":
        return cls(
            id=memory.id,
            text=memory.text,
            context=memory.context,
            source=memory.source,
            vector=list(vector),
        )

    def to_memory(self) -> Memory:
        return Memory(id=self.id, text=self.text, context=self.context, source=self.source)
