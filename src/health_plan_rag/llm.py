# src/health_plan_rag/llm.py
"""Structured-output calls against an untrusted chat model.

The response schema is bound with ``llm.with_structured_output``. Every call
returns either ``Parsed(value)`` with a validated pydantic model, or
``Fallback(reason)``. Call sites map ``Fallback`` onto their own static
fallback value; nothing here raises for model flakiness.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Type, TypeVar, Union

from langchain_core.exceptions import OutputParserException
from pydantic import BaseModel, ValidationError

from health_plan_rag.utils import call_with_timeout

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Parsed(Generic[M]):
    value: M


@dataclass(frozen=True)
class Fallback:
    reason: str  # "timeout" | "runtime_error" | "no_output" | "model_output_parse"
    details: Dict[str, Any] = field(default_factory=dict)


LLMOutcome = Union[Parsed[M], Fallback]


def coerce_output(raw: Any, schema: Type[M]) -> M:
    """Support both dict and pydantic outputs from the structured model."""
    if isinstance(raw, schema):
        return raw
    if hasattr(raw, "model_dump"):
        return schema.model_validate(raw.model_dump())
    return schema.model_validate(raw)


def invoke_structured(llm, prompt: Any, schema: Type[M], *, timeout_s: float, caller: str) -> LLMOutcome:
    model = llm.with_structured_output(schema, method="function_calling")

    try:
        raw = call_with_timeout(model.invoke, timeout_s, prompt)
    except TimeoutError:
        logger.warning(f"[{caller}] LLM call timed out after {timeout_s}s")
        return Fallback("timeout", {"timeout_s": timeout_s})
    except (ValidationError, OutputParserException) as e:
        logger.warning(f"[{caller}] Structured output could not be parsed: {e}")
        return Fallback("model_output_parse", {"message": str(e), "exception_type": type(e).__name__})
    except Exception as e:
        logger.warning(f"[{caller}] LLM call failed: {e}")
        return Fallback("runtime_error", {"message": str(e), "exception_type": type(e).__name__})

    if raw is None:
        logger.warning(f"[{caller}] Model returned no structured output")
        return Fallback("no_output")

    try:
        value = coerce_output(raw, schema)
    except ValidationError as e:
        logger.warning(f"[{caller}] Structured output failed validation: {e.error_count()} error(s)")
        return Fallback("model_output_parse", {"validation_errors": e.errors(include_url=False)})

    return Parsed(value)
