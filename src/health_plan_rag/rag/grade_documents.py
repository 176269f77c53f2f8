# src/health_plan_rag/rag/grade_documents.py
"""Batched LLM relevance grading of fused documents against the client profile.

Grading fails open: when a batch cannot be graded every document in it is
kept as ``partially_relevant`` with a fixed reason and confidence 0.5.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, Field

from health_plan_rag.config import PipelineConfig
from health_plan_rag.llm import Fallback, invoke_structured
from health_plan_rag.rag.prompts import (
    GRADE_DOCUMENTS_PROMPT,
    format_client_info_for_prompt,
    format_documents_for_batch_prompt,
)
from health_plan_rag.schemas import (
    ClientProfile,
    FusedDocument,
    GradedDocument,
    GradeResult,
    GradeScore,
    GradingResponse,
    GradingStats,
)
from health_plan_rag.utils import chunked, observe

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Avaliação automática não disponível - documento mantido por precaução"
FALLBACK_CONFIDENCE = 0.5

_PROMPT = ChatPromptTemplate.from_messages([("human", GRADE_DOCUMENTS_PROMPT)])


class GradeDocumentsResult(BaseModel):
    documents: List[GradedDocument] = Field(default_factory=list)
    relevant_documents: List[GradedDocument] = Field(default_factory=list)
    stats: GradingStats = Field(default_factory=GradingStats)


def create_fallback_grade(document_id: str) -> GradeResult:
    return GradeResult(
        document_id=document_id,
        score="partially_relevant",
        reason=FALLBACK_REASON,
        confidence=FALLBACK_CONFIDENCE,
    )


def _graded(doc: FusedDocument, grade: GradeResult, *, fallback: bool = False) -> GradedDocument:
    return GradedDocument.model_validate(
        {
            **doc.model_dump(),
            "grade_result": grade,
            "is_relevant": grade.score != "irrelevant",
            "graded_by_fallback": fallback,
        }
    )


def _fail_open(batch: Sequence[FusedDocument]) -> List[GradedDocument]:
    return [_graded(doc, create_fallback_grade(doc.id), fallback=True) for doc in batch]


def grade_batch(
    batch: Sequence[FusedDocument],
    profile: ClientProfile,
    llm,
    config: PipelineConfig,
) -> List[GradedDocument]:
    """Grade one batch with a single LLM call. Never raises for model failures."""
    prompt = _PROMPT.invoke(
        {
            "client_info": format_client_info_for_prompt(profile),
            "documents": format_documents_for_batch_prompt(batch),
        }
    )
    outcome = invoke_structured(llm, prompt, GradingResponse, timeout_s=config.grading_timeout_s, caller="grade_documents")

    if isinstance(outcome, Fallback):
        logger.warning(f"Grading batch of {len(batch)} failed open ({outcome.reason})")
        return _fail_open(batch)

    by_id: Dict[str, GradeResult] = {}
    for result in outcome.value.results:
        by_id.setdefault(result.document_id, result)

    graded = []
    for doc in batch:
        grade = by_id.get(doc.id)
        if grade is None:
            logger.warning(f"Grader omitted document {doc.id}, keeping it with fallback grade")
            graded.append(_graded(doc, create_fallback_grade(doc.id), fallback=True))
        else:
            graded.append(_graded(doc, grade))
    return graded


def calculate_stats(documents: Sequence[GradedDocument]) -> GradingStats:
    counts = count_by_score(documents)
    return GradingStats(
        total=len(documents),
        relevant=counts["relevant"],
        partially_relevant=counts["partially_relevant"],
        irrelevant=counts["irrelevant"],
        failed=sum(1 for d in documents if d.graded_by_fallback),
    )


@observe
def grade_documents(
    documents: Sequence[FusedDocument],
    profile: ClientProfile,
    llm,
    config: Optional[PipelineConfig] = None,
) -> GradeDocumentsResult:
    config = config or PipelineConfig()

    if not documents:
        logger.info("No documents to grade")
        return GradeDocumentsResult()

    batches = chunked(documents, config.grading_batch_size)
    logger.info(f"Grading {len(documents)} documents in {len(batches)} batches of {config.grading_batch_size}")

    graded: List[GradedDocument] = []
    for i, batch in enumerate(batches, start=1):
        logger.debug(f"Grading batch {i}/{len(batches)} ({len(batch)} docs)")
        graded.extend(grade_batch(batch, profile, llm, config))

    stats = calculate_stats(graded)
    relevant = [d for d in graded if d.grade_result.score != "irrelevant"] if config.filter_irrelevant else list(graded)

    logger.info(
        f"Grading result: {stats.relevant} relevant, {stats.partially_relevant} partial, "
        f"{stats.irrelevant} irrelevant, {stats.failed} fallback"
    )

    return GradeDocumentsResult(documents=graded, relevant_documents=relevant, stats=stats)


def filter_relevant_documents(
    documents: Sequence[FusedDocument],
    profile: ClientProfile,
    llm,
    config: Optional[PipelineConfig] = None,
) -> List[FusedDocument]:
    """Grade and return only the non-irrelevant documents, stripped of their grades."""
    config = (config or PipelineConfig()).model_copy(update={"filter_irrelevant": True})
    result = grade_documents(documents, profile, llm, config)
    grade_fields = {"grade_result", "is_relevant", "graded_by_fallback"}
    return [FusedDocument.model_validate(d.model_dump(exclude=grade_fields)) for d in result.relevant_documents]


def count_by_score(documents: Sequence[GradedDocument]) -> Dict[GradeScore, int]:
    counts: Dict[GradeScore, int] = {"relevant": 0, "partially_relevant": 0, "irrelevant": 0}
    for doc in documents:
        counts[doc.grade_result.score] += 1
    return counts
