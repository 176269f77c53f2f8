# src/health_plan_rag/rag/result_fusion.py
"""Reciprocal Rank Fusion across the per-query result lists.

score(d) = sum over queries of 1 / (k + rank(d, q) + 1), rank 0-indexed.
Documents returned by several queries get a multiplicative consensus boost.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from health_plan_rag.config import PipelineConfig
from health_plan_rag.schemas import FusedDocument, QueryResult, SearchDocument

logger = logging.getLogger(__name__)


class FusionStats(BaseModel):
    total_queries: int
    total_documents: int
    unique_documents: int
    avg_appearances: float
    max_appearances: int
    top_doc_id: Optional[str] = None
    top_doc_score: float = 0.0


def reciprocal_rank_fusion(
    query_results: Sequence[QueryResult],
    *,
    k: Optional[int] = None,
    top_k: Optional[int] = None,
    multi_query_boost: Optional[bool] = None,
    boost_factor: Optional[float] = None,
    config: Optional[PipelineConfig] = None,
) -> List[FusedDocument]:
    config = config or PipelineConfig()
    k = config.rrf_k if k is None else k
    top_k = config.rrf_top_k if top_k is None else top_k
    multi_query_boost = config.multi_query_boost if multi_query_boost is None else multi_query_boost
    boost_factor = config.boost_factor if boost_factor is None else boost_factor

    # id -> [first-seen document, accumulated score, appearances, matching queries]
    entries: Dict[str, list] = {}

    for result in query_results:
        for rank, doc in enumerate(result.documents):
            contribution = 1.0 / (k + rank + 1)
            entry = entries.get(doc.id)
            if entry is None:
                entries[doc.id] = [doc, contribution, 1, [result.query]]
            else:
                entry[1] += contribution
                entry[2] += 1
                entry[3].append(result.query)

    fused: List[FusedDocument] = []
    for doc, score, appearances, matches in entries.values():
        if multi_query_boost and appearances > 1:
            score *= 1 + boost_factor * (appearances - 1)
        fused.append(
            FusedDocument.model_validate(
                {**doc.model_dump(), "rrf_score": score, "appearances": appearances, "query_matches": matches}
            )
        )

    fused.sort(key=lambda d: d.rrf_score, reverse=True)
    top = fused[:top_k]

    logger.info(f"RRF: {len(query_results)} queries -> {len(fused)} unique docs -> top {len(top)}")
    return top


def fusion_simple(document_lists: Sequence[Sequence[SearchDocument]], **options) -> List[FusedDocument]:
    """RRF over anonymous lists, when the originating query strings do not matter."""
    query_results = [QueryResult(query=f"query_{i}", documents=list(docs)) for i, docs in enumerate(document_lists)]
    return reciprocal_rank_fusion(query_results, **options)


def calculate_fusion_stats(query_results: Sequence[QueryResult], fused_docs: Sequence[FusedDocument]) -> FusionStats:
    total_docs = sum(len(r.documents) for r in query_results)
    avg_appearances = sum(d.appearances for d in fused_docs) / len(fused_docs) if fused_docs else 0.0

    return FusionStats(
        total_queries=len(query_results),
        total_documents=total_docs,
        unique_documents=len(fused_docs),
        avg_appearances=round(avg_appearances, 2),
        max_appearances=max((d.appearances for d in fused_docs), default=0),
        top_doc_id=fused_docs[0].id if fused_docs else None,
        top_doc_score=fused_docs[0].rrf_score if fused_docs else 0.0,
    )


def filter_by_document_type(docs: Sequence[FusedDocument], types: Sequence[str]) -> List[FusedDocument]:
    """Keep only documents whose type is listed. Untyped documents are dropped here."""
    return [d for d in docs if d.metadata.document_type and d.metadata.document_type in types]


def group_by_operator(docs: Sequence[FusedDocument]) -> Dict[str, List[FusedDocument]]:
    groups: Dict[str, List[FusedDocument]] = {}
    for doc in docs:
        groups.setdefault(doc.metadata.operator or "unknown", []).append(doc)
    return groups
