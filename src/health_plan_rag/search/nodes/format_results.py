# src/health_plan_rag/search/nodes/format_results.py

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.prompts import PROMPT_VERSIONS
from health_plan_rag.schemas import SearchMetadata
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe, with_error_handling

logger = logging.getLogger(__name__)


def make_format_results_node(config: PipelineConfig):
    @observe
    @with_error_handling("format_results")
    def format_results(state: SearchPlansState) -> Dict[str, Any]:
        report = state.get("retrieval_report") or {}
        results = list(state.get("search_results") or [])

        if report.get("skipped"):
            logger.info(f"Search skipped: {report.get('reason')}")
            return {
                "search_results": results,
                "metadata": SearchMetadata(rag_model=config.model_name),
                "retrieval_report": report,
            }

        relevant_count = len(state.get("relevant_docs") or [])
        rewrite_count = int(state.get("rewrite_count", 0))
        limited = bool(state.get("limited_results")) or (
            rewrite_count >= config.max_rewrite_attempts and relevant_count < config.min_relevant_docs
        )

        passes: List[Dict[str, Any]] = list(state.get("retrieval_passes") or [])
        operators: Dict[str, None] = {}
        for p in passes:
            operators.update(dict.fromkeys(p.get("extracted_operators") or []))

        started_at = state.get("started_at")
        elapsed_ms = int((time.perf_counter() - started_at) * 1000) if started_at is not None else 0

        metadata = SearchMetadata(
            query_count=len(state.get("query_strings") or []),
            rewrite_count=rewrite_count,
            total_docs=len(state.get("fused_docs") or []),
            relevant_docs=relevant_count,
            limited_results=limited,
            general_docs_count=sum(p.get("general_docs", 0) for p in passes),
            specific_docs_count=sum(p.get("specific_docs", 0) for p in passes),
            extracted_operators=list(operators),
            budget=state.get("budget_stats"),
            rag_model=config.model_name,
            execution_time_ms=elapsed_ms,
        )

        report = {
            **report,
            "passes": passes,
            "rewrites": [r.model_dump() for r in (state.get("rewrite_history") or [])],
            "fusion": state.get("fusion_stats") or {},
            "budget": metadata.budget.model_dump() if metadata.budget else None,
            "final_docs": len(results),
            "summary": metadata.summary(),
            "prompt_versions": dict(PROMPT_VERSIONS),
        }

        logger.info(
            f"Search finished: {len(results)} docs, {relevant_count} relevant, "
            f"{rewrite_count} rewrites, limited={limited}, {elapsed_ms}ms"
        )

        return {"search_results": results, "metadata": metadata, "retrieval_report": report}

    return format_results
