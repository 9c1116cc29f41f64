"""Semantic search over stored memories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from docmemories.embedding.encoder import EmbeddingModel
from docmemories.index.storage import DEFAULT_TABLE, SQLiteVectorStore


@dataclass(slots=True)
class SearchResult:
    id: str
    text: str
    context: str
    source: str
    score: float


class Searcher:
    """High-level API to query the memory store."""

    def __init__(
        self, embedder: EmbeddingModel, store: SQLiteVectorStore, *, table: str = DEFAULT_TABLE
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.table = table

    def search(self, query: str, *, top_k: int = 10) -> List[SearchResult]:
        embedding = self.embedder.embed_query(query)
        rows = self.store.search(embedding, top_k=top_k, table=self.table)
        return [
            SearchResult(
                id=row["id"],
                text=row["text"],
                context=row["context"],
                source=row["source"],
                score=float(row["score"]),
            )
            for row in rows
        ]
