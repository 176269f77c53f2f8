"""Prompts for the plan search pipeline components."""

from health_plan_rag.rag.prompts.formatting import (
    format_client_info_for_prompt,
    format_documents_for_batch_prompt,
    format_problem_for_prompt,
)
from health_plan_rag.rag.prompts.generate_queries import GENERATE_QUERIES_PROMPT, GENERATE_QUERIES_PROMPT_VERSION
from health_plan_rag.rag.prompts.grade_documents import GRADE_DOCUMENTS_PROMPT, GRADE_DOCUMENTS_PROMPT_VERSION
from health_plan_rag.rag.prompts.rewrite_query import REWRITE_QUERY_PROMPT, REWRITE_QUERY_PROMPT_VERSION

PROMPT_VERSIONS = {
    "generate_queries": GENERATE_QUERIES_PROMPT_VERSION,
    "grade_documents": GRADE_DOCUMENTS_PROMPT_VERSION,
    "rewrite_query": REWRITE_QUERY_PROMPT_VERSION,
}

__all__ = [
    "GENERATE_QUERIES_PROMPT",
    "GENERATE_QUERIES_PROMPT_VERSION",
    "GRADE_DOCUMENTS_PROMPT",
    "GRADE_DOCUMENTS_PROMPT_VERSION",
    "PROMPT_VERSIONS",
    "REWRITE_QUERY_PROMPT",
    "REWRITE_QUERY_PROMPT_VERSION",
    "format_client_info_for_prompt",
    "format_documents_for_batch_prompt",
    "format_problem_for_prompt",
]
