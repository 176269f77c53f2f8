# src/health_plan_rag/search/graph.py

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Union

from langgraph.graph import END, START, StateGraph
from langgraph.types import RetryPolicy

from health_plan_rag.adapters import EmbeddingAdapter, VectorSearchAdapter
from health_plan_rag.config import PipelineConfig
from health_plan_rag.rag.rewrite_query import should_rewrite
from health_plan_rag.schemas import ClientProfile, SearchMetadata
from health_plan_rag.search.nodes.filter_by_budget import filter_by_budget_node
from health_plan_rag.search.nodes.format_results import make_format_results_node
from health_plan_rag.search.nodes.fuse_results import make_fuse_results_node
from health_plan_rag.search.nodes.generate_queries import make_generate_queries_node
from health_plan_rag.search.nodes.grade_documents import make_grade_documents_node
from health_plan_rag.search.nodes.rewrite_query import make_rewrite_query_node
from health_plan_rag.search.nodes.run_retrieval import make_run_retrieval_node
from health_plan_rag.search.nodes.search_gate import search_gate
from health_plan_rag.search.state import SearchPlansState

logger = logging.getLogger(__name__)


def make_search_plans_graph(
    llm,
    *,
    vector_search: VectorSearchAdapter,
    embedder: EmbeddingAdapter,
    config: Optional[PipelineConfig] = None,
    max_retries: int = 1,
):
    config = config or PipelineConfig()
    retry_policy = RetryPolicy(max_attempts=max(1, int(max_retries)))

    g = StateGraph(SearchPlansState)

    g.add_node("search_gate", search_gate, retry_policy=retry_policy)
    g.add_node("generate_queries", make_generate_queries_node(llm, config), retry_policy=retry_policy)
    g.add_node("run_retrieval", make_run_retrieval_node(vector_search, embedder, config), retry_policy=retry_policy)
    g.add_node("fuse_results", make_fuse_results_node(config), retry_policy=retry_policy)
    g.add_node("grade_documents", make_grade_documents_node(llm, config), retry_policy=retry_policy)
    g.add_node("rewrite_query", make_rewrite_query_node(llm, config), retry_policy=retry_policy)
    g.add_node("filter_by_budget", filter_by_budget_node, retry_policy=retry_policy)
    g.add_node("format_results", make_format_results_node(config), retry_policy=retry_policy)

    g.add_edge(START, "search_gate")

    # Skipped searches (no profile, not enough profile data, no files) go straight to formatting
    def route_after_gate(state: SearchPlansState):
        return "generate_queries" if state.get("continue_search", False) else "format_results"

    g.add_conditional_edges("search_gate", route_after_gate, ["generate_queries", "format_results"])

    g.add_edge("generate_queries", "run_retrieval")
    g.add_edge("run_retrieval", "fuse_results")
    g.add_edge("fuse_results", "grade_documents")

    def route_after_grading(state: SearchPlansState):
        relevant = len(state.get("relevant_docs") or [])
        if relevant >= config.min_relevant_docs or not state.get("query_strings"):
            return "filter_by_budget"
        if should_rewrite(relevant, int(state.get("rewrite_count", 0)), config):
            return "rewrite_query"
        return "filter_by_budget"

    g.add_conditional_edges("grade_documents", route_after_grading, ["rewrite_query", "filter_by_budget"])

    g.add_edge("rewrite_query", "run_retrieval")
    g.add_edge("filter_by_budget", "format_results")
    g.add_edge("format_results", END)

    return g.compile()


def run_search_plans(
    llm,
    *,
    client_profile: Union[ClientProfile, Dict[str, Any], None],
    file_ids: Sequence[str],
    vector_search: VectorSearchAdapter,
    embedder: EmbeddingAdapter,
    priority_operators: Sequence[str] = (),
    config: Optional[PipelineConfig] = None,
) -> Dict[str, Any]:
    """Run one search turn and return the final documents, metadata and report.

    Never raises for LLM or vector search failures; see ``errors`` in the
    result for anything a node had to swallow.
    """
    graph = make_search_plans_graph(llm, vector_search=vector_search, embedder=embedder, config=config)
    out = graph.invoke(
        {
            "client_profile": client_profile,
            "file_ids": list(file_ids),
            "priority_operators": list(priority_operators),
        }
    )

    metadata = out.get("metadata") or SearchMetadata()
    return {
        "documents": list(out.get("search_results") or []),
        "metadata": metadata,
        "summary": metadata.summary(),
        "retrieval_report": out.get("retrieval_report") or {},
        "errors": list(out.get("errors") or []),
    }
