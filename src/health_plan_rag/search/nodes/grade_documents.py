# src/health_plan_rag/search/nodes/grade_documents.py

from __future__ import annotations

import logging
from typing import Any, Dict, List

from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.grade_documents import grade_documents
from health_plan_rag.schemas import FusedDocument
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe, with_error_handling

logger = logging.getLogger(__name__)


def make_grade_documents_node(llm, config: PipelineConfig):
    @observe
    @with_error_handling("grade_documents")
    def grade_documents_node(state: SearchPlansState) -> Dict[str, Any]:
        fused: List[FusedDocument] = list(state.get("fused_docs") or [])

        result = grade_documents(fused, state["client_profile"], llm, config)

        # One summary per retrieval pass for the report
        passes = list(state.get("retrieval_passes") or [])
        passes.append(
            {
                **(state.get("pass_stats") or {}),
                "pass": len(passes) + 1,
                "fused_docs": len(fused),
                "relevant_docs": len(result.relevant_documents),
                "grading": result.stats.model_dump(),
            }
        )

        return {
            "graded_docs": result.documents,
            "relevant_docs": result.relevant_documents,
            "grading_stats": result.stats,
            "retrieval_passes": passes,
        }

    return grade_documents_node
