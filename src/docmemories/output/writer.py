"""Persist finalized memories as JSONL or into the SQLite vector store."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Literal, Optional, Sequence

from docmemories.embedding.encoder import EmbeddingModel
from docmemories.errors import PersistenceFailure
from docmemories.index.storage import DEFAULT_TABLE, SQLiteVectorStore
from docmemories.models import Memory, VectorRecord

LOGGER = logging.getLogger(__name__)

VECTOR_SCHEME = "sqlite://"
FILE_MODE = 0o644


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


@dataclass(slots=True, frozen=True)
class OutputTarget:
    kind: Literal["jsonl", "sqlite"]
    path: Path


def parse_output_uri(uri: str) -> OutputTarget:
    """``sqlite://<path>`` selects the vector store, anything else a JSONL file."""
    if uri.startswith(VECTOR_SCHEME):
        return OutputTarget("sqlite", Path(uri[len(VECTOR_SCHEME) :]))
    return OutputTarget("jsonl", Path(uri))


def embedding_text(memory: Memory, embed_field: str = "text+context") -> str:
    if embed_field == "text":
        return memory.text
    return f"{memory.text} {memory.context}"


def write_jsonl(path: Path, memories: Sequence[Memory]) -> int:
    """Write one JSON object per memory, replacing ``path`` atomically."""
    path = Path(path)
    payload = "".join(json.dumps(asdict(memory), ensure_ascii=False) + "\n" for memory in memories)
    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        # mkstemp creates 0600 files
        os.chmod(tmp_name, FILE_MODE & ~_current_umask())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise PersistenceFailure(f"Failed to write {path}: {exc}") from exc

    LOGGER.info("Wrote %d memories to %s", len(memories), path)
    return len(memories)


def read_jsonl(path: Path) -> List[Memory]:
    memories: List[Memory] = []
    with Path(path).open("r", encoding="utf-8") as handle:
        for line in handle:
            if not line.strip():
                continue
            data = json.loads(line)
            memories.append(
                Memory(
                    id=data["id"],
                    text=data["text"],
                    context=data["context"],
                    source=data["source"],
                )
            )
    return memories


def write_vector_store(
    path: Path,
    memories: Sequence[Memory],
    embedder: EmbeddingModel,
    *,
    embed_field: str = "text+context",
    table: str = DEFAULT_TABLE,
) -> int:
    """Embed ``memories`` and replace ``table`` in the SQLite store at ``path``."""
    path = Path(path)
    LOGGER.info("Embedding %d memories...", len(memories))
    try:
        vectors = embedder.embed([embedding_text(memory, embed_field) for memory in memories])
    except Exception as exc:
        raise PersistenceFailure(f"Failed to embed memories: {exc}") from exc

    records = [VectorRecord.from_memory(memory, vector.tolist()) for memory, vector in zip(memories, vectors)]

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        store = SQLiteVectorStore(path, dimension=embedder.dimension)
    except (OSError, sqlite3.Error) as exc:
        raise PersistenceFailure(f"Failed to open vector store {path}: {exc}") from exc

    try:
        written = store.replace_table(records, table=table)
    except (sqlite3.Error, ValueError) as exc:
        raise PersistenceFailure(f"Failed to write table {table!r} in {path}: {exc}") from exc
    finally:
        store.close()

    LOGGER.info("Wrote %d memories to table %s in %s", written, table, path)
    return written


def write_memories(
    target: OutputTarget,
    memories: Sequence[Memory],
    *,
    embedder: Optional[EmbeddingModel] = None,
    embed_field: str = "text+context",
    table: str = DEFAULT_TABLE,
) -> int:
    if target.kind == "sqlite":
        if embedder is None:
            raise ValueError("An embedding model is required for vector store output")
        return write_vector_store(
            target.path, memories, embedder, embed_field=embed_field, table=table
        )
    return write_jsonl(target.path, memories)
