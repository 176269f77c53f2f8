# tests/unit/rag/conftest.py
"""Shared fixtures for pipeline component unit tests."""

import os
from pathlib import Path
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest

from health_plan_rag.config import PipelineConfig
from health_plan_rag.schemas import ClientProfile, FusedDocument, SearchDocument

# Disable Langfuse for unit tests
os.environ["LANGFUSE_ENABLED"] = "0"

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def config():
    """Config with short timeouts so failure paths stay fast."""
    return PipelineConfig(llm_timeout_s=2, grading_timeout_s=2, search_timeout_s=2)


@pytest.fixture
def sample_profile():
    return ClientProfile(age=35, city="São Paulo", state="SP", budget=800)


@pytest.fixture
def family_profile():
    return ClientProfile(
        age=42,
        city="Campinas",
        state="SP",
        budget=1500,
        dependents=[{"age": 8, "relationship": "filho"}, {"age": 40, "relationship": "cônjuge"}],
        pre_existing_conditions=["diabetes"],
    )


@pytest.fixture
def make_doc():
    """Factory for SearchDocument."""

    def _make(
        doc_id: str,
        content: str = "Plano de saúde com cobertura ampla",
        score: Optional[float] = 0.8,
        document_type: Optional[str] = None,
        operator: Optional[str] = None,
        file_id: str = "file-1",
    ) -> SearchDocument:
        return SearchDocument(
            id=doc_id,
            content=content,
            score=score,
            metadata={"documentType": document_type, "operator": operator, "fileId": file_id},
        )

    return _make


@pytest.fixture
def make_fused(make_doc):
    """Factory for FusedDocument."""

    def _make(doc_id: str, rrf_score: float = 0.016, **kwargs: Any) -> FusedDocument:
        doc = make_doc(doc_id, **kwargs)
        return FusedDocument.model_validate({**doc.model_dump(), "rrf_score": rrf_score})

    return _make


@pytest.fixture
def llm_returning():
    """Build a mock chat model whose structured output chain returns ``payload``."""

    def _make(payload: Any) -> MagicMock:
        mock_chain = MagicMock()
        mock_chain.invoke = MagicMock(return_value=payload)
        llm = MagicMock()
        llm.with_structured_output.return_value = mock_chain
        return llm

    return _make


@pytest.fixture
def llm_raising():
    """Build a mock chat model whose structured output chain raises ``error``."""

    def _make(error: Exception) -> MagicMock:
        mock_chain = MagicMock()
        mock_chain.invoke = MagicMock(side_effect=error)
        llm = MagicMock()
        llm.with_structured_output.return_value = mock_chain
        return llm

    return _make


@pytest.fixture
def failing_llm(llm_raising):
    return llm_raising(RuntimeError("LLM unavailable"))


@pytest.fixture
def load_fixture():
    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture
def grades_payload():
    """Build a grading response payload from {doc_id: score}."""

    def _make(grades: Dict[str, str]) -> Dict[str, Any]:
        return {
            "results": [
                {"documentId": doc_id, "score": score, "reason": f"Avaliação do documento {doc_id} para o cliente"}
                for doc_id, score in grades.items()
            ]
        }

    return _make
