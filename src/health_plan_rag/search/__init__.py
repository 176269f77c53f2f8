"""Search graph: plan, retrieve, fuse, grade, rewrite and budget-filter health plan documents."""

from health_plan_rag.search.graph import make_search_plans_graph, run_search_plans
from health_plan_rag.search.state import SearchPlansState

__all__ = ["make_search_plans_graph", "run_search_plans", "SearchPlansState"]
