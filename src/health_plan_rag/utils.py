# src/health_plan_rag/utils.py
"""Utilities shared by pipeline components and graph nodes: tracing, error handling, timeouts."""

import functools
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, List, Sequence, TypeVar

T = TypeVar("T")

# Observability setup
OBSERVE_ENABLED = os.getenv("LANGFUSE_ENABLED", "1") == "1"

if OBSERVE_ENABLED:
    from langfuse import observe
else:

    def observe(fn=None, **kwargs):
        def _wrap(f):
            return f

        return _wrap(fn) if fn else _wrap


def with_error_handling(node_name: str) -> Callable:
    """Decorator to add consistent error handling to search graph nodes.

    Wraps node functions in try/except and returns structured error dicts
    on the shared ``errors`` channel instead of aborting the graph run.

    Args:
        node_name: Name of the node for error reporting

    Example:
        @with_error_handling("fuse_results")
        def fuse_results(state: SearchPlansState) -> Dict[str, Any]:
            # ... node logic ...
            return {"fused_docs": fused}
    """

    def decorator(func: Callable) -> Callable:
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(state: Dict[str, Any]) -> Dict[str, Any]:
            try:
                logger.debug(f"Starting {node_name}")
                result = func(state)
                logger.debug(f"Completed {node_name}: {len(result)} fields returned")
                return result
            except Exception as e:
                logger.exception(f"Error in {node_name}: {e}")
                return {
                    "errors": [
                        {
                            "node": node_name,
                            "type": "runtime_error",
                            "message": str(e),
                            "retryable": True,
                            "details": {"exception_type": type(e).__name__},
                        }
                    ]
                }

        return wrapper

    return decorator


def call_with_timeout(fn: Callable[..., T], timeout_s: float, *args: Any, **kwargs: Any) -> T:
    """Run ``fn`` and give up after ``timeout_s`` seconds.

    Raises ``TimeoutError`` when the deadline passes. The worker thread is not
    interrupted; its result is discarded.
    """
    pool = ThreadPoolExecutor(max_workers=1)
    future = pool.submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeoutError as e:
        raise TimeoutError(f"Call did not finish within {timeout_s}s") from e
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def chunked(items: Sequence[T], size: int) -> List[List[T]]:
    size = max(1, int(size))
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
