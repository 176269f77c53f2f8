# src/health_plan_rag/search/state.py

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional

from typing_extensions import TypedDict

from health_plan_rag.schemas import (
    BudgetStats,
    ClientProfile,
    FusedDocument,
    GeneratedQuery,
    GradedDocument,
    GradingStats,
    QueryResult,
    RewriteResult,
    SearchMetadata,
)


# Reducer to append errors across nodes
def add_errors(existing: Optional[List[Dict[str, Any]]], new: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    if not existing:
        existing = []
    if not new:
        return existing
    return existing + new


class SearchPlansState(TypedDict, total=False):
    # Inputs
    client_profile: ClientProfile  # dicts with camelCase keys are accepted by the gate
    file_ids: List[str]
    priority_operators: List[str]

    # Query planning
    queries: List[GeneratedQuery]
    query_strings: List[str]  # priority order
    current_query: str  # primary query, replaced on each rewrite

    # Retrieval pass
    query_results: List[QueryResult]
    pass_stats: Dict[str, Any]
    fused_docs: List[FusedDocument]
    fusion_stats: Dict[str, Any]

    # Grading
    graded_docs: List[GradedDocument]
    relevant_docs: List[GradedDocument]
    grading_stats: GradingStats

    # Corrective loop
    rewrite_count: int
    rewrite_history: List[RewriteResult]
    retrieval_passes: List[Dict[str, Any]]
    limited_results: bool

    # Outputs
    search_results: List[GradedDocument]
    incompatible_docs: List[GradedDocument]
    budget_stats: BudgetStats
    metadata: SearchMetadata
    retrieval_report: Dict[str, Any]

    # Control flow
    continue_search: bool
    started_at: float

    # Errors
    errors: Annotated[List[Dict[str, Any]], add_errors]
