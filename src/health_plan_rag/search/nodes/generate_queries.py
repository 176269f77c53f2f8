# src/health_plan_rag/search/nodes/generate_queries.py

from __future__ import annotations

import logging
from typing import Any, Dict

from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.generate_queries import extract_query_strings, generate_queries
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe, with_error_handling

logger = logging.getLogger(__name__)


def make_generate_queries_node(llm, config: PipelineConfig):
    @observe
    @with_error_handling("generate_queries")
    def generate_queries_node(state: SearchPlansState) -> Dict[str, Any]:
        profile = state["client_profile"]

        generated = generate_queries(profile, llm, config)
        query_strings = extract_query_strings(generated)

        logger.info(f"Planned {len(query_strings)} queries: {[q.focus for q in generated.queries]}")

        return {
            "queries": list(generated.queries),
            "query_strings": query_strings,
            "current_query": query_strings[0],
        }

    return generate_queries_node
