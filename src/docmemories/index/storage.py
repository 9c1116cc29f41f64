"""SQLite-backed memory vector store."""

from __future__ import annotations

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence

import numpy as np

from docmemories.models import VectorRecord

DEFAULT_TABLE = "memories"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_table(name: str) -> str:
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


class SQLiteVectorStore:
    """Persistence layer for memories and their embeddings."""

    def __init__(self, db_path: Path, *, dimension: int | None = None) -> None:
        self.db_path = Path(db_path)
        self.dimension = dimension
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def table_exists(self, table: str = DEFAULT_TABLE) -> bool:
        row = self._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (_check_table(table),),
        ).fetchone()
        return row is not None

    def replace_table(self, records: Sequence[VectorRecord], *, table: str = DEFAULT_TABLE) -> int:
        """Drop ``table`` if present, recreate it and bulk insert ``records``.

        Runs as one transaction, so a failed insert leaves the previous
        contents in place.
        """
        name = _check_table(table)
        for record in records:
            if self.dimension is not None and len(record.vector) != self.dimension:
                raise ValueError(
                    f"Vector for {record.id} has dimension {len(record.vector)}, "
                    f"expected {self.dimension}"
                )

        with self.transaction() as conn:
            # DDL is not wrapped implicitly; open the transaction explicitly.
            conn.execute("BEGIN")
            conn.execute(f"DROP TABLE IF EXISTS {name}")
            conn.execute(
                f"""
                CREATE TABLE {name} (
                    id TEXT PRIMARY KEY,
                    text TEXT NOT NULL,
                    context TEXT NOT NULL,
                    source TEXT NOT NULL,
                    vector BLOB NOT NULL
                )
                """
            )
            conn.executemany(
                f"INSERT INTO {name}(id, text, context, source, vector) VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        record.id,
                        record.text,
                        record.context,
                        record.source,
                        sqlite3.Binary(np.asarray(record.vector, dtype="float32").tobytes()),
                    )
                    for record in records
                ],
            )
        return len(records)

    def count(self, table: str = DEFAULT_TABLE) -> int:
        name = _check_table(table)
        return int(self._conn.execute(f"SELECT COUNT(*) FROM {name}").fetchone()[0])

    def iter_records(self, table: str = DEFAULT_TABLE) -> Iterator[VectorRecord]:
        name = _check_table(table)
        for row in self._conn.execute(
            f"SELECT id, text, context, source, vector FROM {name} ORDER BY rowid"
        ):
            yield VectorRecord(
                id=row["id"],
                text=row["text"],
                context=row["context"],
                source=row["source"],
                vector=np.frombuffer(row["vector"], dtype="float32").tolist(),
            )

    def search(
        self, embedding: np.ndarray, *, top_k: int = 10, table: str = DEFAULT_TABLE
    ) -> List[dict]:
        name = _check_table(table)
        query = np.asarray(embedding, dtype="float32")
        rows = self._conn.execute(
            f"SELECT id, text, context, source, vector FROM {name}"
        ).fetchall()

        if not rows:
            return []

        vectors = np.vstack([np.frombuffer(row["vector"], dtype="float32") for row in rows])
        scores = vectors @ query

        if top_k < len(scores):
            top_indices = np.argpartition(scores, -top_k)[-top_k:]
            top_indices = top_indices[np.argsort(scores[top_indices])[::-1]]
        else:
            top_indices = np.argsort(scores)[::-1]

        results: List[dict] = []
        for idx in top_indices:
            row = rows[idx]
            results.append(
                {
                    "id": row["id"],
                    "text": row["text"],
                    "context": row["context"],
                    "source": row["source"],
                    "score": float(scores[idx]),
                }
            )
        return results
