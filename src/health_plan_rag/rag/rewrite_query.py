# src/health_plan_rag/rag/rewrite_query.py
"""Corrective query rewriting.

When grading leaves too few relevant documents, the primary query is
reformulated (at most ``max_rewrite_attempts`` times). The LLM rewrite is
tried first; if it fails a deterministic rewrite keyed by the detected
problem is used instead.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from langchain_core.prompts import ChatPromptTemplate

from health_plan_rag.config import PipelineConfig
from health_plan_rag.llm import Fallback, invoke_structured
from health_plan_rag.rag.prompts import REWRITE_QUERY_PROMPT, format_client_info_for_prompt, format_problem_for_prompt
from health_plan_rag.schemas import ClientProfile, RewriteContext, RewriteProblem, RewriteResponse, RewriteResult
from health_plan_rag.utils import observe

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "melhor",
        "ideal",
        "perfeito",
        "excelente",
        "específico",
        "especial",
        "único",
        "exclusivo",
        "completo",
        "total",
    }
)

# First matching term wins; only its first synonym is appended.
SYNONYMS = {
    "plano de saúde": ("convênio médico", "seguro saúde"),
    "cobertura": ("benefícios", "atendimento"),
    "hospital": ("internação", "emergência"),
    "consulta": ("atendimento médico", "médico"),
    "barato": ("econômico", "custo-benefício"),
    "caro": ("premium", "completo"),
}

_REGULATORY_CODE = re.compile(r"\b(ANS|código|cod\.?)\s*[\d\-.]+", re.IGNORECASE)
_PLAN_CODE = re.compile(r"\b[A-Z]\d{3,}")
_WHITESPACE = re.compile(r"\s+")

MIN_SIMPLIFIED_LENGTH = 15
MIN_SIMPLIFIED_WORDS = 3

_PROMPT = ChatPromptTemplate.from_messages([("human", REWRITE_QUERY_PROMPT)])


# -------------------------
# Problem detection
# -------------------------


def detect_problem(
    total_results: int,
    relevant_results: int,
    avg_similarity: Optional[float] = None,
    config: Optional[PipelineConfig] = None,
) -> RewriteProblem:
    config = config or PipelineConfig()

    if total_results == 0:
        return "no_results"

    if relevant_results < config.min_relevant_docs:
        if avg_similarity is not None and avg_similarity < config.low_similarity_threshold:
            return "low_similarity"
        return "too_specific"

    return "missing_context"


def should_rewrite(relevant_count: int, attempt_count: int, config: Optional[PipelineConfig] = None) -> bool:
    config = config or PipelineConfig()
    return relevant_count < config.min_relevant_docs and attempt_count < config.max_rewrite_attempts


def create_rewrite_context(
    original_query: str,
    problem: RewriteProblem,
    attempt_count: int,
    profile: Optional[ClientProfile] = None,
) -> RewriteContext:
    return RewriteContext(
        original_query=original_query,
        problem=problem,
        attempt_count=attempt_count,
        client_profile=profile or ClientProfile(),
    )


# -------------------------
# Deterministic rewrites
# -------------------------


def simplify_query(query: str) -> str:
    words = [w for w in query.lower().split() if w not in STOP_WORDS]
    if len(words) < MIN_SIMPLIFIED_WORDS:
        return query
    return " ".join(words)


def remove_specific_terms(query: str) -> str:
    simplified = _REGULATORY_CODE.sub("", query)
    simplified = _PLAN_CODE.sub("", simplified)
    simplified = _WHITESPACE.sub(" ", simplified).strip()
    if len(simplified) < MIN_SIMPLIFIED_LENGTH:
        return query
    return simplified


def add_client_context(query: str, profile: ClientProfile) -> str:
    additions = []

    if profile.city:
        additions.append(profile.city)
    elif profile.state:
        additions.append(profile.state)

    if profile.age is not None:
        if profile.age < 30:
            additions.append("jovem")
        elif profile.age >= 60:
            additions.append("idoso senior")

    if profile.has_dependents():
        additions.append("familiar")

    if not additions:
        return query
    return f"{query} {' '.join(additions)}"


def add_synonyms(query: str) -> str:
    lowered = query.lower()
    for term, synonyms in SYNONYMS.items():
        if term in lowered:
            return f"{query} {synonyms[0]}"
    return query


def apply_simple_rewrite(query: str, problem: RewriteProblem, profile: ClientProfile) -> str:
    if problem == "no_results":
        return simplify_query(query)
    if problem == "too_specific":
        return remove_specific_terms(query)
    if problem == "missing_context":
        return add_client_context(query, profile)
    if problem == "low_similarity":
        return add_synonyms(query)
    return query


# -------------------------
# Rewrite
# -------------------------


@observe
def rewrite_query(context: RewriteContext, llm, config: Optional[PipelineConfig] = None) -> RewriteResult:
    config = config or PipelineConfig()
    max_attempts = config.max_rewrite_attempts

    if context.attempt_count > max_attempts:
        logger.info(f"Rewrite limit of {max_attempts} attempts reached, keeping original query")
        return RewriteResult(
            original_query=context.original_query,
            rewritten_query=context.original_query,
            problem=context.problem,
            attempt_count=context.attempt_count,
            limited_results=True,
        )

    logger.info(f"Rewrite attempt {context.attempt_count}/{max_attempts} for problem {context.problem}")

    prompt = _PROMPT.invoke(
        {
            "problem": format_problem_for_prompt(context.problem),
            "original_query": context.original_query,
            "client_info": format_client_info_for_prompt(context.client_profile),
        }
    )
    outcome = invoke_structured(llm, prompt, RewriteResponse, timeout_s=config.llm_timeout_s, caller="rewrite_query")

    if isinstance(outcome, Fallback):
        rewritten = apply_simple_rewrite(context.original_query, context.problem, context.client_profile)
        logger.warning(f"LLM rewrite unavailable ({outcome.reason}), using deterministic rewrite: {rewritten!r}")
        return RewriteResult(
            original_query=context.original_query,
            rewritten_query=rewritten,
            problem=context.problem,
            attempt_count=context.attempt_count,
            limited_results=context.attempt_count >= max_attempts,
        )

    rewritten = outcome.value.rewritten_query
    if rewritten == context.original_query:
        logger.warning("LLM returned the query unchanged")
    if outcome.value.changes:
        logger.debug(f"Rewrite changes: {outcome.value.changes}")

    return RewriteResult(
        original_query=context.original_query,
        rewritten_query=rewritten,
        problem=context.problem,
        attempt_count=context.attempt_count,
        limited_results=False,
    )
