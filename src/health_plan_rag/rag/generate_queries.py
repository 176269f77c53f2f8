# src/health_plan_rag/rag/generate_queries.py
"""Multi-query planning.

Turns a client profile into 3-5 search queries, each with its own focus, so
retrieval covers profile, coverage, price, dependents and conditions in
parallel. The LLM output is untrusted; anything that does not validate
falls back to a deterministic query set built from the profile.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from langchain_core.prompts import ChatPromptTemplate

from health_plan_rag.config import PipelineConfig
from health_plan_rag.llm import Parsed, invoke_structured
from health_plan_rag.rag.prompts import GENERATE_QUERIES_PROMPT, format_client_info_for_prompt
from health_plan_rag.schemas import MAX_QUERY_LENGTH, ClientProfile, GeneratedQueries, GeneratedQuery
from health_plan_rag.utils import observe

logger = logging.getLogger(__name__)

MIN_QUERIES = 3
MAX_QUERIES = 5

COVERAGE_QUERY = "cobertura plano de saúde consultas exames internação"
CHILDREN_QUERY = "plano de saúde familiar com cobertura para crianças pediatria"
FAMILY_QUERY = "plano de saúde familiar casal cobertura completa"
GENERAL_QUERY = "melhores planos de saúde Brasil cobertura ampla rede credenciada"
CONDITIONS_TEMPLATE = "plano de saúde {conditions} cobertura tratamento"

_PROMPT = ChatPromptTemplate.from_messages([("human", GENERATE_QUERIES_PROMPT)])


def _plain_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _clip(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, on a word boundary when possible."""
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0].rstrip()
    return cut or text[:limit]


def _join_within(items: List[str], limit: int) -> str:
    """Join distinct items with spaces, dropping the tail once ``limit`` would be exceeded."""
    distinct = list(dict.fromkeys(item.strip() for item in items if item and item.strip()))
    kept: List[str] = []
    length = 0
    for item in distinct:
        extra = len(item) + (1 if kept else 0)
        if length + extra > limit:
            break
        kept.append(item)
        length += extra
    if not kept and distinct:
        return _clip(distinct[0], limit)
    return " ".join(kept)


def generate_fallback_queries(profile: ClientProfile) -> GeneratedQueries:
    queries: List[GeneratedQuery] = []

    profile_parts = ["plano de saúde"]
    if profile.age is not None:
        profile_parts.append(f"para pessoa de {profile.age} anos")
    if profile.city:
        profile_parts.append(f"em {profile.city}")
    queries.append(GeneratedQuery(query=_clip(" ".join(profile_parts), MAX_QUERY_LENGTH), focus="profile", priority=1))

    queries.append(GeneratedQuery(query=COVERAGE_QUERY, focus="coverage", priority=2))

    if profile.budget is not None:
        queries.append(
            GeneratedQuery(
                query=f"plano de saúde até {_plain_number(profile.budget)} reais mensais custo benefício",
                focus="price",
                priority=3,
            )
        )

    if profile.has_dependents():
        has_children = any(d.age is not None and d.age < 18 for d in profile.dependents)
        queries.append(
            GeneratedQuery(query=CHILDREN_QUERY if has_children else FAMILY_QUERY, focus="dependents", priority=3)
        )

    room = MAX_QUERY_LENGTH - len(CONDITIONS_TEMPLATE.format(conditions=""))
    conditions = _join_within(profile.pre_existing_conditions, room)
    if conditions:
        queries.append(
            GeneratedQuery(query=CONDITIONS_TEMPLATE.format(conditions=conditions), focus="conditions", priority=2)
        )

    while len(queries) < MIN_QUERIES:
        queries.append(GeneratedQuery(query=GENERAL_QUERY, focus="general", priority=5))

    return GeneratedQueries(queries=queries[:MAX_QUERIES])


@observe
def generate_queries(profile: ClientProfile, llm, config: Optional[PipelineConfig] = None) -> GeneratedQueries:
    """Ask the LLM for 3-5 diversified queries; never raises for model failures."""
    config = config or PipelineConfig()

    prompt = _PROMPT.invoke({"client_info": format_client_info_for_prompt(profile)})
    outcome = invoke_structured(llm, prompt, GeneratedQueries, timeout_s=config.llm_timeout_s, caller="generate_queries")

    if isinstance(outcome, Parsed):
        logger.info(f"Generated {len(outcome.value.queries)} queries with model {config.model_name}")
        return outcome.value

    logger.warning(f"Query generation fell back to deterministic queries ({outcome.reason})")
    return generate_fallback_queries(profile)


def extract_query_strings(generated: GeneratedQueries) -> List[str]:
    """Query strings ordered by priority (1 first); ties keep their original order."""
    return [q.query for q in sorted(generated.queries, key=lambda q: q.priority)]
