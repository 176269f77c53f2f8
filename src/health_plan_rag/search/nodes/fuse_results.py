# src/health_plan_rag/search/nodes/fuse_results.py

from __future__ import annotations

import logging
from typing import Any, Dict, List

from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.result_fusion import calculate_fusion_stats, reciprocal_rank_fusion
from health_plan_rag.schemas import QueryResult
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe, with_error_handling

logger = logging.getLogger(__name__)


def make_fuse_results_node(config: PipelineConfig):
    @observe
    @with_error_handling("fuse_results")
    def fuse_results(state: SearchPlansState) -> Dict[str, Any]:
        query_results: List[QueryResult] = list(state.get("query_results") or [])
        if not query_results:
            return {"fused_docs": [], "fusion_stats": calculate_fusion_stats([], []).model_dump()}

        fused = reciprocal_rank_fusion(query_results, config=config)
        stats = calculate_fusion_stats(query_results, fused)

        return {"fused_docs": fused, "fusion_stats": stats.model_dump()}

    return fuse_results
