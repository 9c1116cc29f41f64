"""Tests for memory output writers."""

from __future__ import annotations

import json
import os
import sqlite3
import stat
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from docmemories.errors import PersistenceFailure
from docmemories.index.storage import SQLiteVectorStore
from docmemories.models import Memory
from docmemories.output.writer import (
    OutputTarget,
    embedding_text,
    parse_output_uri,
    read_jsonl,
    write_jsonl,
    write_memories,
    write_vector_store,
)


def _memories(count: int = 3) -> list[Memory]:
    return [
        Memory(id=f"id-{i}", text=f"trigger {i}", context=f"advice {i} – ünïcode", source=f"doc{i}.md")
        for i in range(count)
    ]


def _embedder(dimension: int = 4) -> MagicMock:
    embedder = MagicMock()
    embedder.dimension = dimension

    def embed(texts):
        vectors = np.zeros((len(texts), dimension), dtype="float32")
        vectors[:, 0] = 1.0
        return vectors

    embedder.embed.side_effect = embed
    return embedder


class TestParseOutputUri:
    """Backend selection by scheme prefix."""

    def test_sqlite_scheme(self) -> None:
        assert parse_output_uri("sqlite://./out/memories.db") == OutputTarget("sqlite", Path("./out/memories.db"))

    def test_plain_path(self) -> None:
        assert parse_output_uri("out/memories.jsonl") == OutputTarget("jsonl", Path("out/memories.jsonl"))


class TestEmbeddingText:
    """Configurable embedding input."""

    def test_text_only(self) -> None:
        memory = _memories(1)[0]
        assert embedding_text(memory, "text") == "trigger 0"

    def test_text_and_context(self) -> None:
        memory = _memories(1)[0]
        assert embedding_text(memory, "text+context") == f"trigger 0 {memory.context}"


class TestJsonl:
    """Line-delimited output."""

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "memories.jsonl"
        memories = _memories(5)

        written = write_jsonl(path, memories)

        assert written == 5
        assert read_jsonl(path) == memories

    def test_one_object_per_line(self, tmp_path: Path) -> None:
        path = tmp_path / "memories.jsonl"

        write_jsonl(path, _memories(2))
        lines = path.read_text(encoding="utf-8").splitlines()

        assert len(lines) == 2
        assert set(json.loads(lines[0])) == {"id", "text", "context", "source"}

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "memories.jsonl"
        write_jsonl(path, _memories(4))

        write_jsonl(path, _memories(1))

        assert len(read_jsonl(path)) == 1

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        write_jsonl(tmp_path / "memories.jsonl", _memories(2))

        assert [p.name for p in tmp_path.iterdir()] == ["memories.jsonl"]

    def test_file_mode_follows_umask(self, tmp_path: Path) -> None:
        path = tmp_path / "memories.jsonl"
        old_mask = os.umask(0o022)
        try:
            write_jsonl(path, _memories(1))
        finally:
            os.umask(old_mask)

        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_io_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(PersistenceFailure):
            write_jsonl(blocker / "memories.jsonl", _memories(1))


class TestVectorStore:
    """SQLite vector output."""

    def test_writes_rows_with_vectors(self, tmp_path: Path) -> None:
        db = tmp_path / "out" / "memories.db"

        written = write_vector_store(db, _memories(3), _embedder())

        store = SQLiteVectorStore(db)
        try:
            records = list(store.iter_records())
        finally:
            store.close()
        assert written == 3
        assert [r.id for r in records] == ["id-0", "id-1", "id-2"]
        assert records[0].vector == pytest.approx([1.0, 0.0, 0.0, 0.0])

    def test_rerun_keeps_row_count(self, tmp_path: Path) -> None:
        db = tmp_path / "memories.db"
        memories = _memories(3)

        write_vector_store(db, memories, _embedder())
        write_vector_store(db, memories, _embedder())

        store = SQLiteVectorStore(db)
        try:
            assert store.count() == 3
        finally:
            store.close()

    @pytest.mark.parametrize(
        ("field", "expected"),
        [("text", "trigger 0"), ("text+context", "trigger 0 advice 0 – ünïcode")],
    )
    def test_embed_field(self, tmp_path: Path, field: str, expected: str) -> None:
        embedder = _embedder()

        write_vector_store(tmp_path / "m.db", _memories(1), embedder, embed_field=field)

        assert embedder.embed.call_args.args[0] == [expected]

    def test_custom_table(self, tmp_path: Path) -> None:
        db = tmp_path / "m.db"

        write_vector_store(db, _memories(2), _embedder(), table="next_memories")

        store = SQLiteVectorStore(db)
        try:
            assert store.table_exists("next_memories")
            assert not store.table_exists("memories")
        finally:
            store.close()

    def test_embedding_failure(self, tmp_path: Path) -> None:
        embedder = _embedder()
        embedder.embed.side_effect = RuntimeError("model crashed")

        with pytest.raises(PersistenceFailure, match="embed"):
            write_vector_store(tmp_path / "m.db", _memories(1), embedder)

    def test_connect_failure(self, tmp_path: Path) -> None:
        with patch("docmemories.output.writer.SQLiteVectorStore", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(PersistenceFailure, match="open"):
                write_vector_store(tmp_path / "m.db", _memories(1), _embedder())

    def test_insert_failure(self, tmp_path: Path) -> None:
        duplicates = [_memories(1)[0], _memories(1)[0]]

        with pytest.raises(PersistenceFailure, match="write table"):
            write_vector_store(tmp_path / "m.db", duplicates, _embedder())


class TestWriteMemories:
    """Dispatch by target."""

    def test_jsonl_target(self, tmp_path: Path) -> None:
        target = OutputTarget("jsonl", tmp_path / "m.jsonl")

        assert write_memories(target, _memories(2)) == 2
        assert (tmp_path / "m.jsonl").exists()

    def test_sqlite_target_requires_embedder(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            write_memories(OutputTarget("sqlite", tmp_path / "m.db"), _memories(1))

    def test_sqlite_target(self, tmp_path: Path) -> None:
        target = OutputTarget("sqlite", tmp_path / "m.db")

        assert write_memories(target, _memories(2), embedder=_embedder(), embed_field="text") == 2
