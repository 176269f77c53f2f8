# src/health_plan_rag/search/nodes/search_gate.py

from __future__ import annotations

import time
from typing import Any, Dict

from pydantic import ValidationError

from health_plan_rag.schemas import ClientProfile
from health_plan_rag.search.state import SearchPlansState


def _skip(reason: str) -> Dict[str, Any]:
    return {
        "continue_search": False,
        "search_results": [],
        "retrieval_report": {"skipped": True, "reason": reason},
    }


def search_gate(state: SearchPlansState) -> Dict[str, Any]:
    raw_profile = state.get("client_profile")
    if raw_profile is None:
        return _skip("missing_client_profile")

    try:
        profile = raw_profile if isinstance(raw_profile, ClientProfile) else ClientProfile.model_validate(raw_profile)
    except ValidationError as e:
        return {
            **_skip("invalid_client_profile"),
            "errors": [
                {
                    "node": "search_gate",
                    "type": "schema_validation",
                    "message": "client_profile failed validation.",
                    "retryable": False,
                    "details": {"validation_errors": e.errors(include_url=False)},
                }
            ],
        }

    if not profile.has_minimum_data():
        # Nothing to personalize the search with yet (no age, city or budget).
        return {**_skip("insufficient_profile_data"), "client_profile": profile}

    file_ids = [f for f in (state.get("file_ids") or []) if f]
    if not file_ids:
        return {**_skip("no_file_ids"), "client_profile": profile}

    return {
        "client_profile": profile,
        "file_ids": file_ids,
        "priority_operators": list(state.get("priority_operators") or []),
        "rewrite_count": 0,
        "rewrite_history": [],
        "retrieval_passes": [],
        "limited_results": False,
        "started_at": time.perf_counter(),
        "continue_search": True,
        "retrieval_report": {"skipped": False},
    }
