# src/health_plan_rag/adapters.py

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Protocol, Sequence

from health_plan_rag.schemas import SearchDocument


class VectorSearchAdapter(Protocol):
    """Adapter for the vector index holding plan document chunks (pgvector, Azure AI Search, etc.).

    ``document_types`` is a hint only. The retriever filters by type locally and
    keeps documents without a type, so a backend must not drop untyped rows.

    Example implementation for a pgvector RPC:

        class SupabaseVectorSearch:
            def __init__(self, client):
                self.client = client

            def search(self, *, query_embedding, document_types, file_ids, top_k):
                rows = self.client.rpc(
                    "match_file_items_openai",
                    {"query_embedding": query_embedding, "match_count": top_k, "file_ids": list(file_ids)},
                ).execute().data
                return [
                    SearchDocument(
                        id=row["id"],
                        content=row["content"],
                        score=row["similarity"],
                        metadata={**(row.get("plan_metadata") or {}), "fileId": row["file_id"]},
                    )
                    for row in rows
                ]
    """

    def search(
        self,
        *,
        query_embedding: Sequence[float],
        document_types: Optional[Sequence[str]],
        file_ids: Sequence[str],
        top_k: int,
    ) -> List[SearchDocument]:
        """Return up to top_k documents sorted by descending similarity, scoped to file_ids."""
        raise NotImplementedError


class EmbeddingAdapter(Protocol):
    """Adapter for query embeddings. Any LangChain ``Embeddings`` instance satisfies it."""

    def embed_query(self, text: str) -> List[float]:
        raise NotImplementedError


# -------------------------
# Simple defaults (placeholders)
# -------------------------


class NotImplementedVectorSearch:
    def search(
        self,
        *,
        query_embedding: Sequence[float],
        document_types: Optional[Sequence[str]],
        file_ids: Sequence[str],
        top_k: int,
    ) -> List[SearchDocument]:
        raise NotImplementedError("Provide a VectorSearchAdapter implementation")


class NotImplementedEmbedder:
    def embed_query(self, text: str) -> List[float]:
        raise NotImplementedError("Provide an EmbeddingAdapter implementation")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorSearch:
    """Brute-force cosine search over pre-embedded documents. For local runs and tests.

    Like the production RPC, it ignores ``document_types`` and returns the
    closest chunks inside ``file_ids``; type filtering happens in the retriever.
    """

    def __init__(self, entries: Sequence[Dict[str, Any]]):
        # entries: {"document": SearchDocument | dict, "embedding": [floats]}
        self._entries = []
        for entry in entries:
            doc = entry["document"]
            if not isinstance(doc, SearchDocument):
                doc = SearchDocument.model_validate(doc)
            self._entries.append((doc, list(entry["embedding"])))

    def __len__(self) -> int:
        return len(self._entries)

    def search(
        self,
        *,
        query_embedding: Sequence[float],
        document_types: Optional[Sequence[str]],
        file_ids: Sequence[str],
        top_k: int,
    ) -> List[SearchDocument]:
        scope = set(file_ids)
        scored = []
        for doc, embedding in self._entries:
            if scope and doc.metadata.file_id not in scope:
                continue
            score = cosine_similarity(query_embedding, embedding)
            scored.append(doc.model_copy(update={"score": score}))

        scored.sort(key=lambda d: d.score or 0.0, reverse=True)
        return scored[: max(0, int(top_k))]

    @classmethod
    def from_documents(cls, documents: Sequence[SearchDocument], embedder: EmbeddingAdapter) -> "InMemoryVectorSearch":
        """Embed each document's content with ``embedder`` and index it."""
        entries = [{"document": doc, "embedding": embedder.embed_query(doc.content)} for doc in documents]
        return cls(entries)
