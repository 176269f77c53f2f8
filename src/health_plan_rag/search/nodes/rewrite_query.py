# src/health_plan_rag/search/nodes/rewrite_query.py

from __future__ import annotations

import logging
from statistics import fmean
from typing import Any, Dict, List, Optional

from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.rewrite_query import create_rewrite_context, detect_problem, rewrite_query
from health_plan_rag.schemas import FusedDocument
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe

logger = logging.getLogger(__name__)


def average_similarity(docs: List[FusedDocument]) -> Optional[float]:
    """Mean raw vector similarity of the fused docs; None when no doc carries a score."""
    scores = [d.score for d in docs if d.score is not None]
    return fmean(scores) if scores else None


def make_rewrite_query_node(llm, config: PipelineConfig):
    @observe
    def rewrite_query_node(state: SearchPlansState) -> Dict[str, Any]:
        attempt = int(state.get("rewrite_count", 0)) + 1
        original = state.get("current_query") or ""

        # rewrite_count must advance even when this node fails, or the loop never ends.
        try:
            fused = list(state.get("fused_docs") or [])
            relevant = list(state.get("relevant_docs") or [])
            problem = detect_problem(len(fused), len(relevant), average_similarity(fused), config)

            context = create_rewrite_context(original, problem, attempt, state["client_profile"])
            result = rewrite_query(context, llm, config)
        except Exception as e:
            logger.exception(f"Error in rewrite_query: {e}")
            return {
                "rewrite_count": attempt,
                "errors": [
                    {
                        "node": "rewrite_query",
                        "type": "runtime_error",
                        "message": str(e),
                        "retryable": True,
                        "details": {"exception_type": type(e).__name__},
                    }
                ],
            }

        logger.info(f"Rewrite {attempt} ({problem}): {original!r} -> {result.rewritten_query!r}")

        history = list(state.get("rewrite_history") or [])
        history.append(result)

        return {
            "current_query": result.rewritten_query,
            "rewrite_count": attempt,
            "rewrite_history": history,
            "limited_results": bool(state.get("limited_results")) or result.limited_results,
        }

    return rewrite_query_node
