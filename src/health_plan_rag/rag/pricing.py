# src/health_plan_rag/rag/pricing.py
"""Price extraction from plan document text.

Plan documents carry price tables as Markdown. Two layouts are recognized:

* age-band rows: ``| Plano | R$ 0-18 | R$ 19-38 | R$ 39-59 | R$ 60-75 | R$ 76+ |``
* base price rows: ``| A | Plano | R$ 180,00 |`` (taken as the 19-38 band)

Amounts use the Brazilian format (``1.234,56``). Text that does not match
simply yields no prices.
"""

from __future__ import annotations

import re
from typing import List, Optional

from health_plan_rag.schemas import AgeBandPrices, PlanPricing

AGE_BAND_NAMES = {
    1: "0-18 anos",
    2: "19-38 anos",
    3: "39-59 anos",
    4: "60-75 anos",
    5: "76+ anos",
}

# Header rows of the age-band tables
HEADER_MARKERS = ("categoria", "nível", "faixa")

UNKNOWN_OPERATOR = "Desconhecida"

_AGE_BAND_ROW = re.compile(
    r"\|\s*\*?\*?([^|]+?)\*?\*?\s*\|"
    r"\s*R?\$?\s*([\d.,]+)\s*\|"
    r"\s*\*?\*?R?\$?\s*([\d.,]+)\*?\*?\s*\|"
    r"\s*R?\$?\s*([\d.,]+)\s*\|"
    r"\s*R?\$?\s*([\d.,]+)\s*\|"
    r"\s*R?\$?\s*([\d.,]+)\s*\|",
    re.IGNORECASE,
)
_BASE_PRICE_ROW = re.compile(
    r"\|\s*\*?\*?([A-E\d])\*?\*?\s*\|\s*([^|]+?)\s*\|\s*R?\$?\s*([\d.,]+)\s*\|",
    re.IGNORECASE,
)
_CURRENCY = re.compile(r"R\$\s*", re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def get_age_band(age: int) -> int:
    """Map an age to its ANS band (1-5)."""
    if age <= 18:
        return 1
    if age <= 38:
        return 2
    if age <= 59:
        return 3
    if age <= 75:
        return 4
    return 5


def get_age_band_name(band: int) -> str:
    return AGE_BAND_NAMES.get(band, "desconhecida")


def parse_price(text: Optional[str]) -> Optional[float]:
    """``"R$ 1.234,56"`` -> ``1234.56``. Returns None when no number can be read."""
    if not text:
        return None
    cleaned = _CURRENCY.sub("", text)
    cleaned = re.sub(r"\s", "", cleaned).replace(".", "").replace(",", ".", 1)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def detect_operator(content: str) -> str:
    if "NEXUS" in content or "NST" in content:
        return "Nexus Sudeste Total"
    if "PLATINUM" in content or "MGA" in content:
        return "MGA Platinum Access"
    if "Einstein" in content:
        return "Einstein"
    return UNKNOWN_OPERATOR


def extract_prices_from_content(content: str) -> List[PlanPricing]:
    plans: List[PlanPricing] = []
    if not content:
        return plans

    operator = detect_operator(content)

    for match in _AGE_BAND_ROW.finditer(content):
        plan_name = match.group(1).strip().replace("*", "")
        lowered = plan_name.lower()
        if any(marker in lowered for marker in HEADER_MARKERS):
            continue

        prices = AgeBandPrices(
            band1=parse_price(match.group(2)),
            band2=parse_price(match.group(3)),
            band3=parse_price(match.group(4)),
            band4=parse_price(match.group(5)),
            band5=parse_price(match.group(6)),
        )
        if prices.has_any():
            plans.append(PlanPricing(plan_name=plan_name, operator=operator, prices_by_age_band=prices))

    for match in _BASE_PRICE_ROW.finditer(content):
        category = match.group(1).strip()
        plan_name = match.group(2).strip()
        base_price = parse_price(match.group(3))
        if not base_price or base_price <= 0:
            continue
        if any(p.plan_name.lower() == plan_name.lower() for p in plans):
            continue
        plans.append(
            PlanPricing(
                plan_name=plan_name,
                operator=operator,
                category=category,
                prices_by_age_band=AgeBandPrices(band2=base_price),
            )
        )

    return plans


def get_price_for_age_band(plan: PlanPricing, band: int) -> Optional[float]:
    """Price for ``band``; unknown band numbers fall back to band 2."""
    if band not in AGE_BAND_NAMES:
        band = 2
    return plan.prices_by_age_band.for_band(band)
