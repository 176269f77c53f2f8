# src/health_plan_rag/search/nodes/run_retrieval.py

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from health_plan_rag.adapters import EmbeddingAdapter, VectorSearchAdapter
from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.retrieve_hierarchical import retrieve_hierarchical_with_query
from health_plan_rag.schemas import HierarchicalRetrieveResult, QueryResult
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe, with_error_handling

logger = logging.getLogger(__name__)


def pass_queries(state: SearchPlansState) -> List[str]:
    """Queries for the current pass: the (possibly rewritten) primary query, then the rest."""
    query_strings = list(state.get("query_strings") or [])
    current = state.get("current_query") or (query_strings[0] if query_strings else "")
    if not current:
        return query_strings
    return [current] + query_strings[1:]


def make_run_retrieval_node(vector_search: VectorSearchAdapter, embedder: EmbeddingAdapter, config: PipelineConfig):
    @observe
    @with_error_handling("run_retrieval")
    def run_retrieval(state: SearchPlansState) -> Dict[str, Any]:
        queries = pass_queries(state)
        if not queries:
            return {
                "query_results": [],
                "errors": [
                    {
                        "node": "run_retrieval",
                        "type": "schema_validation",
                        "message": "Missing query_strings",
                        "retryable": False,
                        "details": None,
                    }
                ],
            }

        file_ids = list(state.get("file_ids") or [])
        priority_operators = list(state.get("priority_operators") or [])

        def _retrieve(query: str) -> HierarchicalRetrieveResult:
            return retrieve_hierarchical_with_query(
                query,
                file_ids=file_ids,
                vector_search=vector_search,
                embedder=embedder,
                priority_operators=priority_operators,
                config=config,
            )

        results: List[HierarchicalRetrieveResult] = []
        with ThreadPoolExecutor(max_workers=min(config.max_concurrency, len(queries))) as pool:
            futures = [pool.submit(_retrieve, q) for q in queries]
            # Joined in query order so fusion input is deterministic
            for query, future in zip(queries, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.warning(f"Retrieval failed for query {query!r}: {e}")
                    results.append(HierarchicalRetrieveResult())

        query_results = [QueryResult(query=q, documents=list(r.documents)) for q, r in zip(queries, results)]

        operators: Dict[str, None] = {}
        for r in results:
            operators.update(dict.fromkeys(r.extracted_operators))

        pass_stats = {
            "queries": queries,
            "retrieved_docs": sum(len(r.documents) for r in results),
            "general_docs": sum(r.metadata.general_docs_count for r in results),
            "specific_docs": sum(r.metadata.specific_docs_count for r in results),
            "extracted_operators": list(operators),
            "empty_queries": sum(1 for r in results if not r.documents),
        }

        logger.info(
            f"Retrieved {pass_stats['retrieved_docs']} docs across {len(queries)} queries "
            f"({pass_stats['general_docs']} general, {pass_stats['specific_docs']} specific)"
        )

        return {"query_results": query_results, "pass_stats": pass_stats}

    return run_retrieval
