# src/health_plan_rag/config.py
"""Pipeline configuration.

All tunables are carried on a single ``PipelineConfig`` that is passed
explicitly through every component call. Values can be overridden through
``HEALTH_PLAN_RAG_*`` environment variables or a ``.env`` file.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from health_plan_rag import constants as c


class PipelineConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HEALTH_PLAN_RAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        protected_namespaces=(),
    )

    # Corrective loop
    max_rewrite_attempts: int = Field(c.DEFAULT_MAX_REWRITE_ATTEMPTS, ge=0, le=5)
    min_relevant_docs: int = Field(c.DEFAULT_MIN_RELEVANT_DOCS, ge=1)
    low_similarity_threshold: float = Field(c.DEFAULT_LOW_SIMILARITY_THRESHOLD, ge=0.0, le=1.0)

    # Fusion
    rrf_k: int = Field(c.DEFAULT_RRF_K, ge=1)
    rrf_top_k: int = Field(c.DEFAULT_RRF_TOP_K, ge=1)
    multi_query_boost: bool = True
    boost_factor: float = Field(c.DEFAULT_BOOST_FACTOR, ge=0.0)

    # Hierarchical retrieval
    general_top_k: int = Field(c.DEFAULT_GENERAL_TOP_K, ge=1)
    specific_top_k: int = Field(c.DEFAULT_SPECIFIC_TOP_K, ge=1)
    general_weight: float = Field(c.DEFAULT_GENERAL_WEIGHT, ge=0.0)
    specific_weight: float = Field(c.DEFAULT_SPECIFIC_WEIGHT, ge=0.0)
    operator_boost: float = Field(c.DEFAULT_OPERATOR_BOOST, ge=1.0)
    search_overfetch: int = Field(c.DEFAULT_SEARCH_OVERFETCH, ge=1)

    # Grading
    grading_batch_size: int = Field(c.DEFAULT_GRADING_BATCH_SIZE, ge=1)
    filter_irrelevant: bool = True

    # Timeouts (seconds) and fan-out
    llm_timeout_s: float = Field(c.DEFAULT_LLM_TIMEOUT_S, gt=0)
    grading_timeout_s: float = Field(c.DEFAULT_GRADING_TIMEOUT_S, gt=0)
    search_timeout_s: float = Field(c.DEFAULT_SEARCH_TIMEOUT_S, gt=0)
    max_concurrency: int = Field(c.DEFAULT_MAX_CONCURRENCY, ge=1)

    # Models
    model_name: str = c.DEFAULT_MODEL_NAME
    embedding_model: str = c.DEFAULT_EMBEDDING_MODEL
