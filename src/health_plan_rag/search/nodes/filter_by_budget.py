# src/health_plan_rag/search/nodes/filter_by_budget.py

from __future__ import annotations

import logging
from typing import Any, Dict

from health_plan_rag.rag.filter_by_budget import filter_by_budget
from health_plan_rag.search.state import SearchPlansState
from health_plan_rag.utils import observe, with_error_handling

logger = logging.getLogger(__name__)


@observe
@with_error_handling("filter_by_budget")
def filter_by_budget_node(state: SearchPlansState) -> Dict[str, Any]:
    relevant = list(state.get("relevant_docs") or [])

    result = filter_by_budget(relevant, state["client_profile"])

    return {
        "search_results": result.compatible_docs,
        "incompatible_docs": result.incompatible_docs,
        "budget_stats": result.stats,
    }
