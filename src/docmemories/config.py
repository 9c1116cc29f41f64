"""Application configuration defaults."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from docmemories.embedding.encoder import DEFAULT_MODEL as DEFAULT_EMBEDDING_MODEL
from docmemories.utils.files import DOC_EXTENSIONS, EXCLUDED_DIRS

DEFAULT_MODEL = "claude-sonnet-4-20250514"
STRATEGIES = ("sections", "chunks")
EMBED_FIELDS = ("text", "text+context")
RECOMMENDED_MAX_CONCURRENCY = 8

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppConfig:
    source_dir: Path | None = None
    output: str = "memories.jsonl"
    model: str = DEFAULT_MODEL
    concurrency: int = 1
    strategy: str = "sections"
    chunk_chars: int = 8000
    overlap: int = 200
    timeout: float = 180.0
    claude_path: str = "claude"
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embed_field: str = "text+context"
    table: str = "memories"
    include_provenance: bool = True
    include_ext: tuple[str, ...] = DOC_EXTENSIONS
    exclude_dirs: tuple[str, ...] = field(default=EXCLUDED_DIRS)
    dry_run: bool = False
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {self.strategy!r}; expected one of {STRATEGIES}")
        if self.embed_field not in EMBED_FIELDS:
            raise ValueError(
                f"Unknown embed field {self.embed_field!r}; expected one of {EMBED_FIELDS}"
            )
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.concurrency > RECOMMENDED_MAX_CONCURRENCY:
            LOGGER.warning(
                "Concurrency %d exceeds the recommended maximum of %d",
                self.concurrency,
                RECOMMENDED_MAX_CONCURRENCY,
            )
        if self.chunk_chars < 1:
            raise ValueError("chunk_chars must be positive")
        if not 0 <= self.overlap < self.chunk_chars:
            raise ValueError("overlap must be non-negative and smaller than chunk_chars")
        if self.source_dir is not None:
            self.source_dir = Path(self.source_dir)

    def resolve_source_dir(self, base_dir: Path | None = None) -> Path:
        if self.source_dir is None:
            raise ValueError("source_dir is not configured")
        if self.source_dir.is_absolute() or base_dir is None:
            return self.source_dir
        return base_dir / self.source_dir
