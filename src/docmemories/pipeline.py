"""Documentation-to-memory extraction pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Collection, List, Optional, Sequence

from docmemories.config import AppConfig
from docmemories.embedding.encoder import EmbeddingModel
from docmemories.errors import EmptyExtractionResult, InputNotFound, PersistenceFailure
from docmemories.extraction.finalize import finalize_memories
from docmemories.extraction.inference import InferenceService
from docmemories.extraction.pool import ExtractionPool, ProgressCallback
from docmemories.ingestion.candidates import CandidateStrategy, build_strategy, collect_candidates
from docmemories.models import Candidate, Document, Memory, RawExtractionResult
from docmemories.output.writer import OutputTarget, parse_output_uri, write_memories
from docmemories.utils.files import DOC_EXTENSIONS, EXCLUDED_DIRS, iter_doc_paths, relative_source

LOGGER = logging.getLogger(__name__)


def load_documents(
    root: Path,
    *,
    include_ext: Collection[str] = DOC_EXTENSIONS,
    exclude_dirs: Collection[str] = EXCLUDED_DIRS,
) -> List[Document]:
    """Read every documentation file under ``root``."""
    root = Path(root)
    if not root.is_dir():
        raise InputNotFound(f"Docs path not found: {root}")

    documents = [
        Document(
            path=path,
            source=relative_source(path, root),
            text=path.read_text(encoding="utf-8", errors="replace"),
        )
        for path in iter_doc_paths(root, include_ext=include_ext, exclude_dirs=exclude_dirs)
    ]
    if not documents:
        LOGGER.warning("No documentation files found in %s", root)
    return documents


@dataclass(slots=True)
class ExtractionStats:
    documents: int = 0
    candidates: int = 0
    extracted: int = 0
    skipped: int = 0
    failed: int = 0
    raw_records: int = 0
    memories: int = 0

    def record(self, result: Optional[List[RawExtractionResult]]) -> None:
        if result is None:
            self.failed += 1
        elif result:
            self.extracted += 1
            self.raw_records += len(result)
        else:
            self.skipped += 1


@dataclass(slots=True)
class PipelineResult:
    stats: ExtractionStats
    candidates: List[Candidate] = field(default_factory=list)
    memories: List[Memory] = field(default_factory=list)
    target: Optional[OutputTarget] = None
    written: int = 0


class MemoryExtractor:
    """Coordinates candidate selection, inference dispatch and deduplication."""

    def __init__(
        self,
        service: InferenceService,
        strategy: CandidateStrategy,
        *,
        model: str,
        timeout: float = 180.0,
        workers: int = 1,
        include_provenance: bool = True,
    ) -> None:
        self.service = service
        self.strategy = strategy
        self.model = model
        self.timeout = timeout
        self.workers = workers
        self.include_provenance = include_provenance

    def candidates(self, documents: Sequence[Document]) -> List[Candidate]:
        return collect_candidates(documents, self.strategy)

    def extract(
        self,
        candidates: Sequence[Candidate],
        *,
        stats: Optional[ExtractionStats] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> List[Memory]:
        stats = stats if stats is not None else ExtractionStats()
        pool = ExtractionPool(
            self.service,
            self.strategy,
            model=self.model,
            timeout=self.timeout,
            workers=self.workers,
            progress=progress,
        )
        results = pool.run(candidates)

        raw: List[RawExtractionResult] = []
        for result in results:
            stats.record(result)
            if result:
                raw.extend(result)

        memories = finalize_memories(raw, include_provenance=self.include_provenance)
        stats.memories = len(memories)
        LOGGER.info(
            "Extracted %d unique memories from %d records (%d skipped, %d failed)",
            stats.memories,
            stats.raw_records,
            stats.skipped,
            stats.failed,
        )
        return memories


def run_pipeline(
    config: AppConfig,
    service: InferenceService,
    *,
    embedder_factory: Optional[Callable[[], EmbeddingModel]] = None,
    progress: Optional[ProgressCallback] = None,
) -> PipelineResult:
    """Run the whole extraction for ``config``.

    Raises :class:`InputNotFound` before any dispatch when the source is
    missing and :class:`EmptyExtractionResult` when nothing survives
    finalization. A dry run stops after candidate enumeration.
    ``embedder_factory`` is only called once there is something to embed.
    """
    stats = ExtractionStats()
    documents = load_documents(
        config.resolve_source_dir(),
        include_ext=config.include_ext,
        exclude_dirs=config.exclude_dirs,
    )
    stats.documents = len(documents)

    extractor = MemoryExtractor(
        service,
        build_strategy(config),
        model=config.model,
        timeout=config.timeout,
        workers=config.concurrency,
        include_provenance=config.include_provenance,
    )
    candidates = extractor.candidates(documents)
    stats.candidates = len(candidates)
    LOGGER.info("Found %d candidates in %d documents", stats.candidates, stats.documents)

    if config.dry_run:
        return PipelineResult(stats=stats, candidates=candidates)

    memories = extractor.extract(candidates, stats=stats, progress=progress)
    if not memories:
        raise EmptyExtractionResult(
            f"No memories extracted from {stats.candidates} candidates "
            f"({stats.failed} failed, {stats.skipped} skipped)"
        )

    target = parse_output_uri(config.output)
    embedder = None
    if target.kind == "sqlite" and embedder_factory is not None:
        try:
            embedder = embedder_factory()
        except Exception as exc:
            raise PersistenceFailure(f"Failed to load embedding model: {exc}") from exc
    written = write_memories(
        target,
        memories,
        embedder=embedder,
        embed_field=config.embed_field,
        table=config.table,
    )
    return PipelineResult(
        stats=stats,
        candidates=candidates,
        memories=memories,
        target=target,
        written=written,
    )
