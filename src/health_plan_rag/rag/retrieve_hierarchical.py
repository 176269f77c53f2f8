# src/health_plan_rag/rag/retrieve_hierarchical.py
"""Two-phase ("hierarchical") vector search.

1. Search ``general`` documents (top 5).
2. Extract the operators those documents mention.
3. Search ``operator``/``product`` documents (top 10), boosting the extracted operators.
4. Combine with weights: general 0.3, specific 0.7.

Documents without a ``document_type`` are kept in both phases so legacy
chunks indexed before plan metadata existed are never dropped.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Optional, Sequence

from health_plan_rag.adapters import EmbeddingAdapter, VectorSearchAdapter
from health_plan_rag.config import PipelineConfig
from health_plan_rag.constants import GENERAL_DOCUMENT_TYPES, SPECIFIC_DOCUMENT_TYPES
from health_plan_rag.schemas import (
    HierarchicalDocument,
    HierarchicalMetadata,
    HierarchicalRetrieveResult,
    SearchDocument,
)
from health_plan_rag.utils import call_with_timeout, observe

logger = logging.getLogger(__name__)

KNOWN_OPERATORS = (
    "amil",
    "bradesco",
    "sulamerica",
    "sulamérica",
    "unimed",
    "hapvida",
    "notre dame",
    "notredame",
    "intermédica",
    "intermedica",
    "prevent senior",
    "porto seguro",
    "golden cross",
    "medial",
    "são cristóvão",
    "sao cristovao",
    "assim",
    "gndi",
)

OPERATOR_NORMALIZATIONS: Dict[str, str] = {
    "sulamérica": "sulamerica",
    "notre dame": "notredame",
    "intermédica": "intermedica",
    "são cristóvão": "sao cristovao",
    "sao cristovao": "sao cristovao",
}


def normalize_operator_name(name: str) -> str:
    lowered = name.strip().lower()
    return OPERATOR_NORMALIZATIONS.get(lowered, lowered)


def extract_operators_from_docs(docs: Iterable[SearchDocument]) -> List[str]:
    """Operators named in metadata or mentioned in content, normalized, in first-seen order."""
    operators: Dict[str, None] = {}

    for doc in docs:
        if doc.metadata.operator:
            operators[normalize_operator_name(doc.metadata.operator)] = None

        content = doc.content.lower()
        for operator in KNOWN_OPERATORS:
            if operator in content:
                operators[normalize_operator_name(operator)] = None

    return list(operators)


def filter_by_types(docs: Iterable[SearchDocument], document_types: Sequence[str], top_k: int) -> List[SearchDocument]:
    allowed = {t.lower() for t in document_types}
    kept = []
    for doc in docs:
        doc_type = doc.metadata.document_type
        if not doc_type:
            logger.debug(f"Keeping untyped document {doc.id}")
            kept.append(doc)
        elif doc_type.lower() in allowed:
            kept.append(doc)
    return kept[:top_k]


def search_by_document_type(
    vector_search: VectorSearchAdapter,
    *,
    query_embedding: Sequence[float],
    file_ids: Sequence[str],
    document_types: Sequence[str],
    top_k: int,
    config: PipelineConfig,
) -> List[SearchDocument]:
    """One phase of the search. Backend errors and timeouts yield an empty list."""
    if not file_ids:
        logger.info("No file_ids supplied, skipping vector search")
        return []

    try:
        hits = call_with_timeout(
            vector_search.search,
            config.search_timeout_s,
            query_embedding=query_embedding,
            document_types=list(document_types),
            file_ids=list(file_ids),
            top_k=top_k * config.search_overfetch,
        )
    except TimeoutError:
        logger.warning(f"Vector search for {list(document_types)} timed out after {config.search_timeout_s}s")
        return []
    except Exception as e:
        logger.warning(f"Vector search for {list(document_types)} failed: {e}")
        return []

    return filter_by_types(hits or [], document_types, top_k)


def combine_with_weights(
    general_docs: Sequence[SearchDocument],
    specific_docs: Sequence[SearchDocument],
    *,
    general_weight: float,
    specific_weight: float,
    priority_operators: Iterable[str],
    operator_boost: float,
) -> List[HierarchicalDocument]:
    """Weight and merge both phases.

    Ids are deduplicated in insertion order (general first), so a document
    returned by both phases keeps its general-phase score.
    """
    priority = {normalize_operator_name(op) for op in priority_operators}
    combined: List[HierarchicalDocument] = []
    seen = set()

    for doc in general_docs:
        if doc.id in seen:
            continue
        seen.add(doc.id)
        combined.append(
            HierarchicalDocument.model_validate(
                {
                    **doc.model_dump(),
                    "hierarchical_score": (doc.score or 0.0) * general_weight,
                    "hierarchy_level": "general",
                    "operator_prioritized": False,
                }
            )
        )

    for doc in specific_docs:
        if doc.id in seen:
            continue
        seen.add(doc.id)
        operator = normalize_operator_name(doc.metadata.operator) if doc.metadata.operator else None
        prioritized = operator is not None and operator in priority
        combined.append(
            HierarchicalDocument.model_validate(
                {
                    **doc.model_dump(),
                    "hierarchical_score": (doc.score or 0.0) * specific_weight * (operator_boost if prioritized else 1.0),
                    "hierarchy_level": "specific",
                    "operator_prioritized": prioritized,
                }
            )
        )

    combined.sort(key=lambda d: d.hierarchical_score, reverse=True)
    return combined


@observe
def retrieve_hierarchical(
    *,
    query_embedding: Sequence[float],
    file_ids: Sequence[str],
    vector_search: VectorSearchAdapter,
    priority_operators: Sequence[str] = (),
    config: Optional[PipelineConfig] = None,
) -> HierarchicalRetrieveResult:
    config = config or PipelineConfig()
    start = time.perf_counter()

    general_docs = search_by_document_type(
        vector_search,
        query_embedding=query_embedding,
        file_ids=file_ids,
        document_types=GENERAL_DOCUMENT_TYPES,
        top_k=config.general_top_k,
        config=config,
    )
    logger.debug(f"Phase 1: {len(general_docs)} general docs")

    extracted = extract_operators_from_docs(general_docs)
    all_priority = list(dict.fromkeys([*(normalize_operator_name(op) for op in priority_operators), *extracted]))
    logger.debug(f"Extracted operators: {', '.join(extracted) or 'none'}")

    specific_docs = search_by_document_type(
        vector_search,
        query_embedding=query_embedding,
        file_ids=file_ids,
        document_types=SPECIFIC_DOCUMENT_TYPES,
        top_k=config.specific_top_k,
        config=config,
    )
    logger.debug(f"Phase 2: {len(specific_docs)} specific docs")

    combined = combine_with_weights(
        general_docs,
        specific_docs,
        general_weight=config.general_weight,
        specific_weight=config.specific_weight,
        priority_operators=all_priority,
        operator_boost=config.operator_boost,
    )

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        f"Hierarchical search: {len(general_docs)} general + {len(specific_docs)} specific "
        f"-> {len(combined)} docs in {elapsed_ms}ms"
    )

    return HierarchicalRetrieveResult(
        documents=combined,
        general_docs=general_docs,
        specific_docs=specific_docs,
        extracted_operators=extracted,
        metadata=HierarchicalMetadata(
            general_docs_count=len(general_docs),
            specific_docs_count=len(specific_docs),
            total_docs_count=len(combined),
            operators_extracted=len(extracted),
            execution_time_ms=elapsed_ms,
        ),
    )


def retrieve_hierarchical_with_query(
    query: str,
    *,
    file_ids: Sequence[str],
    vector_search: VectorSearchAdapter,
    embedder: EmbeddingAdapter,
    priority_operators: Sequence[str] = (),
    config: Optional[PipelineConfig] = None,
) -> HierarchicalRetrieveResult:
    """Embed ``query`` and run the hierarchical search. Embedding failures propagate."""
    config = config or PipelineConfig()
    embedding = call_with_timeout(embedder.embed_query, config.search_timeout_s, query)
    return retrieve_hierarchical(
        query_embedding=embedding,
        file_ids=file_ids,
        vector_search=vector_search,
        priority_operators=priority_operators,
        config=config,
    )
