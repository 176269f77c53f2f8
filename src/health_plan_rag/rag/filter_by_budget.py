# src/health_plan_rag/rag/filter_by_budget.py
"""Budget compatibility filter.

Complements semantic grading with a numeric check: a document is kept when
at least one plan it prices fits the client's budget for their age band.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, TypeVar

from pydantic import BaseModel, Field

from health_plan_rag.rag.pricing import (
    extract_prices_from_content,
    get_age_band,
    get_age_band_name,
    get_price_for_age_band,
)
from health_plan_rag.schemas import BudgetStats, ClientProfile, SearchDocument

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=SearchDocument)


class FilterByBudgetResult(BaseModel):
    compatible_docs: List[SearchDocument] = Field(default_factory=list)
    incompatible_docs: List[SearchDocument] = Field(default_factory=list)
    stats: BudgetStats = Field(default_factory=BudgetStats)


def filter_by_budget(documents: Sequence[D], profile: ClientProfile) -> FilterByBudgetResult:
    """Partition ``documents`` by price compatibility, preserving input order.

    Documents without any readable price are kept and counted as ``no_price_info``.
    Without both age and budget every document is compatible.
    """
    documents = list(documents)
    age, budget = profile.age, profile.budget

    if age is None or budget is None:
        logger.info("No age or budget in profile, keeping all documents")
        return FilterByBudgetResult(
            compatible_docs=documents,
            stats=BudgetStats(total=len(documents), compatible=len(documents)),
        )

    band = get_age_band(age)
    logger.info(f"Filtering {len(documents)} docs for age {age} ({get_age_band_name(band)}), budget R${budget}")

    compatible: List[SearchDocument] = []
    incompatible: List[SearchDocument] = []
    no_price_info = 0

    for doc in documents:
        plans = extract_prices_from_content(doc.content)
        if not plans:
            no_price_info += 1
            compatible.append(doc)
            continue

        fitting = []
        for plan in plans:
            price = get_price_for_age_band(plan, band)
            if price is not None and price <= budget:
                fitting.append(f"{plan.plan_name}: R${price}")

        if fitting:
            logger.debug(f"Doc {doc.id} compatible: {', '.join(fitting)}")
            compatible.append(doc)
        else:
            incompatible.append(doc)

    logger.info(
        f"Budget filter: {len(compatible)} compatible, {len(incompatible)} incompatible, {no_price_info} without price"
    )

    return FilterByBudgetResult(
        compatible_docs=compatible,
        incompatible_docs=incompatible,
        stats=BudgetStats(
            total=len(documents),
            compatible=len(compatible),
            incompatible=len(incompatible),
            no_price_info=no_price_info,
        ),
    )


def count_compatible_plans(documents: Sequence[SearchDocument], age: int, budget: float) -> int:
    """Distinct plan names (case-insensitive) priced within ``budget`` for ``age``."""
    band = get_age_band(age)
    names = set()
    for doc in documents:
        for plan in extract_prices_from_content(doc.content):
            price = get_price_for_age_band(plan, band)
            if price is not None and price <= budget:
                names.add(plan.plan_name.lower())
    return len(names)
