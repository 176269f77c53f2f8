# tests/unit/search/conftest.py
"""Shared fixtures for search graph tests."""

import os
import re
from typing import Iterable
from unittest.mock import MagicMock

import pytest

from health_plan_rag.adapters import InMemoryVectorSearch
from health_plan_rag.config import PipelineConfig
from health_plan_rag.schemas import ClientProfile, SearchDocument

# Disable Langfuse for unit tests
os.environ["LANGFUSE_ENABLED"] = "0"

_DOC_ID = re.compile(r"\(ID: ([^)]+)\)")

NEXUS_ESSENCIAL = """## Tabela NEXUS Sudeste Total

| Categoria | 0-18 | 19-38 | 39-59 | 60-75 | 76+ |
|---|---|---|---|---|---|
| Essencial | R$ 250,00 | R$ 450,00 | R$ 780,50 | R$ 1.450,00 | R$ 2.100,00 |
"""

NEXUS_PREMIUM = """## Tabela NEXUS Premium

| Categoria | 0-18 | 19-38 | 39-59 | 60-75 | 76+ |
|---|---|---|---|---|---|
| Premium | R$ 900,00 | R$ 1.200,00 | R$ 1.800,00 | R$ 3.000,00 | R$ 4.500,00 |
"""


class ConstantEmbedder:
    """Every text maps to the same vector, so similarity is 1.0 and ordering follows insertion."""

    def embed_query(self, text: str):
        return [1.0, 0.5, 0.25]


@pytest.fixture
def config():
    return PipelineConfig(llm_timeout_s=2, grading_timeout_s=2, search_timeout_s=2)


@pytest.fixture
def profile():
    return ClientProfile(age=35, city="São Paulo", state="SP", budget=800)


@pytest.fixture
def embedder():
    return ConstantEmbedder()


@pytest.fixture
def corpus():
    return [
        SearchDocument(
            id="guia-sp",
            content="Guia de planos em São Paulo: Amil e Nexus lideram em rede credenciada",
            metadata={"documentType": "general", "fileId": "file-1"},
        ),
        SearchDocument(
            id="nexus-essencial",
            content=NEXUS_ESSENCIAL,
            metadata={"documentType": "product", "operator": "Nexus", "fileId": "file-1"},
        ),
        SearchDocument(
            id="nexus-premium",
            content=NEXUS_PREMIUM,
            metadata={"documentType": "product", "operator": "Nexus", "fileId": "file-1"},
        ),
        SearchDocument(
            id="amil-rede",
            content="Rede Amil com hospitais próprios na capital paulista",
            metadata={"documentType": "operator", "operator": "Amil", "fileId": "file-1"},
        ),
        SearchDocument(
            id="plano-rj",
            content="Plano regional exclusivo para o Rio de Janeiro",
            metadata={"documentType": "product", "operator": "Regional", "fileId": "file-1"},
        ),
        SearchDocument(
            id="outro-arquivo",
            content="Documento de outro corretor",
            metadata={"documentType": "product", "fileId": "file-2"},
        ),
    ]


@pytest.fixture
def vector_search(corpus, embedder):
    return InMemoryVectorSearch.from_documents(corpus, embedder)


QUERIES_PAYLOAD = {
    "queries": [
        {"query": "planos de saúde individuais em São Paulo para 35 anos", "focus": "profile", "priority": 1},
        {"query": "planos até R$ 800 por mês em São Paulo", "focus": "price", "priority": 2},
        {"query": "cobertura hospitalar e rede credenciada em SP", "focus": "coverage", "priority": 3},
    ]
}


@pytest.fixture
def scripted_llm():
    """Build a chat model mock that answers each pipeline prompt by inspecting its text.

    Documents whose id is in ``irrelevant`` are graded irrelevant, all others relevant.
    """

    def _make(irrelevant: Iterable[str] = ()) -> MagicMock:
        irrelevant = set(irrelevant)

        def _respond(prompt):
            text = prompt.to_string()
            if "REFORMULAR" in text:
                payload = {"rewrittenQuery": "planos de saúde com boa rede em São Paulo", "changes": "mais genérica"}
            elif "Avalie CADA documento" in text:
                payload = {
                    "results": [
                        {
                            "documentId": doc_id,
                            "score": "irrelevant" if doc_id in irrelevant else "relevant",
                            "reason": f"Avaliação automática de teste para {doc_id}",
                        }
                        for doc_id in _DOC_ID.findall(text)
                    ]
                }
            elif "gere de 3 a 5 queries" in text:
                payload = QUERIES_PAYLOAD
            else:
                raise AssertionError("Unexpected prompt")
            return payload

        llm = MagicMock()
        llm.with_structured_output.return_value.invoke = MagicMock(side_effect=_respond)
        return llm

    return _make


@pytest.fixture
def failing_llm():
    llm = MagicMock()
    llm.with_structured_output.return_value.invoke = MagicMock(side_effect=RuntimeError("LLM unavailable"))
    return llm
