"""Pipeline components: query planning, hierarchical retrieval, fusion, grading, rewriting, budget filtering."""

from health_plan_rag.rag.filter_by_budget import FilterByBudgetResult, count_compatible_plans, filter_by_budget
from health_plan_rag.rag.generate_queries import extract_query_strings, generate_fallback_queries, generate_queries
from health_plan_rag.rag.grade_documents import GradeDocumentsResult, filter_relevant_documents, grade_documents
from health_plan_rag.rag.result_fusion import calculate_fusion_stats, fusion_simple, reciprocal_rank_fusion
from health_plan_rag.rag.retrieve_hierarchical import retrieve_hierarchical, retrieve_hierarchical_with_query
from health_plan_rag.rag.rewrite_query import detect_problem, rewrite_query, should_rewrite

__all__ = [
    "generate_queries",
    "generate_fallback_queries",
    "extract_query_strings",
    "retrieve_hierarchical",
    "retrieve_hierarchical_with_query",
    "reciprocal_rank_fusion",
    "fusion_simple",
    "calculate_fusion_stats",
    "grade_documents",
    "filter_relevant_documents",
    "GradeDocumentsResult",
    "detect_problem",
    "should_rewrite",
    "rewrite_query",
    "filter_by_budget",
    "count_compatible_plans",
    "FilterByBudgetResult",
]
