"""Search graph nodes."""

from health_plan_rag.search.nodes.filter_by_budget import filter_by_budget_node
from health_plan_rag.search.nodes.format_results import make_format_results_node
from health_plan_rag.search.nodes.fuse_results import make_fuse_results_node
from health_plan_rag.search.nodes.generate_queries import make_generate_queries_node
from health_plan_rag.search.nodes.grade_documents import make_grade_documents_node
from health_plan_rag.search.nodes.rewrite_query import make_rewrite_query_node
from health_plan_rag.search.nodes.run_retrieval import make_run_retrieval_node
from health_plan_rag.search.nodes.search_gate import search_gate

__all__ = [
    "search_gate",
    "make_generate_queries_node",
    "make_run_retrieval_node",
    "make_fuse_results_node",
    "make_grade_documents_node",
    "make_rewrite_query_node",
    "filter_by_budget_node",
    "make_format_results_node",
]
