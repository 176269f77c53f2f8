# src/health_plan_rag/schemas.py
"""Shared pydantic models for the plan search pipeline.

Every model accepts the camelCase field names used by the upstream
orchestrator and vector index (``documentType``, ``rrfScore``...) as well as
the snake_case attribute names used in Python.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, confloat, conint
from pydantic.alias_generators import to_camel

QueryFocus = Literal["profile", "coverage", "price", "dependents", "conditions", "general"]
GradeScore = Literal["relevant", "partially_relevant", "irrelevant"]
RewriteProblem = Literal["no_results", "low_similarity", "too_specific", "missing_context"]
HierarchyLevel = Literal["general", "specific"]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------------
# Client profile
# -------------------------


class Dependent(_Model):
    age: Optional[conint(ge=0, le=120)] = None
    relationship: Optional[str] = None


class ClientProfile(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    age: Optional[conint(ge=0, le=120)] = None
    city: Optional[str] = None
    state: Optional[str] = None
    budget: Optional[confloat(ge=0)] = None
    dependents: List[Dependent] = Field(default_factory=list)
    pre_existing_conditions: List[str] = Field(default_factory=list)
    preferences: List[str] = Field(default_factory=list)

    def has_minimum_data(self) -> bool:
        return self.age is not None or bool(self.city) or self.budget is not None

    def has_dependents(self) -> bool:
        return len(self.dependents) > 0


# -------------------------
# Queries
# -------------------------


MAX_QUERY_LENGTH = 500


class GeneratedQuery(_Model):
    model_config = ConfigDict(extra="ignore")

    query: str = Field(..., min_length=10, max_length=MAX_QUERY_LENGTH)
    focus: QueryFocus
    priority: conint(ge=1, le=5)


class GeneratedQueries(_Model):
    queries: List[GeneratedQuery] = Field(..., min_length=3, max_length=5)


# -------------------------
# Documents
# -------------------------


class DocumentMetadata(_Model):
    document_type: Optional[str] = None
    operator: Optional[str] = None
    plan_code: Optional[str] = None
    tags: Optional[List[str]] = None
    file_id: Optional[str] = None
    file_name: Optional[str] = None


class SearchDocument(_Model):
    id: str
    content: str = ""
    score: Optional[float] = None  # raw similarity from the vector index
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)


class HierarchicalDocument(SearchDocument):
    hierarchical_score: float
    hierarchy_level: HierarchyLevel
    operator_prioritized: bool = False


class HierarchicalMetadata(_Model):
    general_docs_count: int = 0
    specific_docs_count: int = 0
    total_docs_count: int = 0
    operators_extracted: int = 0
    execution_time_ms: int = 0


class HierarchicalRetrieveResult(_Model):
    documents: List[HierarchicalDocument] = Field(default_factory=list)
    general_docs: List[SearchDocument] = Field(default_factory=list)
    specific_docs: List[SearchDocument] = Field(default_factory=list)
    extracted_operators: List[str] = Field(default_factory=list)
    metadata: HierarchicalMetadata = Field(default_factory=HierarchicalMetadata)


class QueryResult(_Model):
    query: str
    documents: List[SearchDocument] = Field(default_factory=list)


class FusedDocument(SearchDocument):
    rrf_score: float
    appearances: int = 1
    query_matches: List[str] = Field(default_factory=list)
    hierarchy_level: Optional[HierarchyLevel] = None


# -------------------------
# Grading
# -------------------------


class GradeResult(_Model):
    document_id: str = Field(..., min_length=1)
    score: GradeScore
    reason: str = Field(..., min_length=10, max_length=300)
    confidence: Optional[confloat(ge=0.0, le=1.0)] = None
    missing_info: Optional[List[str]] = None


class GradingResponse(_Model):
    results: List[GradeResult]


class GradedDocument(FusedDocument):
    grade_result: GradeResult
    is_relevant: bool
    graded_by_fallback: bool = False


class GradingStats(_Model):
    total: int = 0
    relevant: int = 0
    partially_relevant: int = 0
    irrelevant: int = 0
    failed: int = 0


# -------------------------
# Rewriting
# -------------------------


class RewriteContext(_Model):
    original_query: str
    problem: RewriteProblem
    attempt_count: conint(ge=1)
    client_profile: ClientProfile = Field(default_factory=ClientProfile)


class RewriteResult(_Model):
    original_query: str
    rewritten_query: str
    problem: RewriteProblem
    attempt_count: int
    limited_results: bool


class RewriteResponse(_Model):
    """LLM contract for the rewriter."""

    rewritten_query: str = Field(..., min_length=10)
    changes: Optional[str] = None


# -------------------------
# Pricing
# -------------------------


class AgeBandPrices(_Model):
    band1: Optional[float] = None  # 0-18
    band2: Optional[float] = None  # 19-38
    band3: Optional[float] = None  # 39-59
    band4: Optional[float] = None  # 60-75
    band5: Optional[float] = None  # 76+

    def for_band(self, band: int) -> Optional[float]:
        return getattr(self, f"band{band}", None)

    def has_any(self) -> bool:
        return any(self.for_band(b) for b in range(1, 6))


class PlanPricing(_Model):
    plan_name: str
    operator: str
    category: Optional[str] = None
    prices_by_age_band: AgeBandPrices = Field(default_factory=AgeBandPrices)


class BudgetStats(_Model):
    total: int = 0
    compatible: int = 0
    incompatible: int = 0
    no_price_info: int = 0


# -------------------------
# Run metadata
# -------------------------


class SearchMetadata(_Model):
    query_count: conint(ge=0) = 0
    rewrite_count: conint(ge=0) = 0
    total_docs: conint(ge=0) = 0
    relevant_docs: conint(ge=0) = 0
    limited_results: bool = False

    general_docs_count: int = 0
    specific_docs_count: int = 0
    extracted_operators: List[str] = Field(default_factory=list)
    budget: Optional[BudgetStats] = None
    rag_model: Optional[str] = None
    execution_time_ms: int = 0
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def summary(self) -> Dict[str, object]:
        """Compact view handed to the orchestrator for telemetry."""
        return {
            "queryCount": self.query_count,
            "rewriteCount": self.rewrite_count,
            "totalDocs": self.total_docs,
            "relevantDocs": self.relevant_docs,
            "limitedResults": self.limited_results,
        }
