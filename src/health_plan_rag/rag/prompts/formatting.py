# src/health_plan_rag/rag/prompts/formatting.py
"""Helpers that render profile, documents and problems into prompt text."""

from __future__ import annotations

from typing import Sequence

from health_plan_rag.schemas import ClientProfile, RewriteProblem, SearchDocument

BATCH_CONTENT_LIMIT = 500

PROBLEM_DESCRIPTIONS = {
    "no_results": "Nenhum resultado foi encontrado. A query pode ser muito restritiva ou usar termos incomuns.",
    "low_similarity": (
        "Os resultados encontrados têm baixa similaridade com a query. "
        "Os termos podem não corresponder ao vocabulário dos documentos."
    ),
    "too_specific": (
        "A query é muito específica (nome de plano, código, etc). "
        "Precisa ser mais genérica para encontrar alternativas."
    ),
    "missing_context": (
        "A query não inclui informações importantes do cliente como localização, idade ou tipo de plano desejado."
    ),
}


def format_brl(value: float) -> str:
    """Format a number the way pt-BR renders currency amounts (``1.234,5``)."""
    if float(value).is_integer():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_client_info_for_prompt(profile: ClientProfile) -> str:
    parts = []

    if profile.age is not None:
        parts.append(f"- **Idade:** {profile.age} anos")

    if profile.city or profile.state:
        location = ", ".join(p for p in (profile.city, profile.state) if p)
        parts.append(f"- **Localização:** {location}")

    if profile.budget is not None:
        parts.append(f"- **Orçamento:** até R$ {format_brl(profile.budget)}/mês")

    if profile.dependents:
        descriptions = []
        for dep in profile.dependents:
            dep_parts = []
            if dep.relationship:
                dep_parts.append(dep.relationship)
            if dep.age is not None:
                dep_parts.append(f"{dep.age} anos")
            descriptions.append(" de ".join(dep_parts) or "dependente")
        parts.append(f"- **Dependentes:** {', '.join(descriptions)}")

    if profile.pre_existing_conditions:
        parts.append(f"- **Condições pré-existentes:** {', '.join(profile.pre_existing_conditions)}")

    if profile.preferences:
        parts.append(f"- **Preferências:** {', '.join(profile.preferences)}")

    if not parts:
        return "Nenhuma informação específica do cliente disponível"

    return "\n".join(parts)


def format_documents_for_batch_prompt(docs: Sequence[SearchDocument]) -> str:
    blocks = []
    for index, doc in enumerate(docs, start=1):
        meta = [m for m in (doc.metadata.document_type, doc.metadata.operator) if m]
        content = doc.content
        if len(content) > BATCH_CONTENT_LIMIT:
            content = content[:BATCH_CONTENT_LIMIT] + "..."

        lines = [f"### Documento {index} (ID: {doc.id})"]
        lines.append(f"**Metadados:** {' | '.join(meta)}" if meta else "")
        lines.append(f"**Conteúdo:** {content}")
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def format_problem_for_prompt(problem: RewriteProblem) -> str:
    return PROBLEM_DESCRIPTIONS.get(problem, problem)
