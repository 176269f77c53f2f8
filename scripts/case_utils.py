"""Shared utilities for running search cases."""

import json
from glob import glob
from pathlib import Path
from typing import Any, Dict, List, Tuple


def load_case(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def resolve_cases(case_pattern: str) -> List[Tuple[Path, Dict[str, Any]]]:
    """
    Resolve a case pattern to (path, case_data) tuples sorted by path.

    Accepts a single file (scripts/cases/sp_individual.json) or a glob
    (scripts/cases/*.json, cases/**/*.json).
    """
    if not any(c in case_pattern for c in "*?[]"):
        path = Path(case_pattern)
        if not path.is_file():
            raise FileNotFoundError(f"Case file not found: {case_pattern}")
        return [(path, load_case(path))]

    results = []
    for match in sorted(glob(case_pattern, recursive=True)):
        path = Path(match)
        if not (path.is_file() and path.suffix == ".json"):
            continue
        try:
            results.append((path, load_case(path)))
        except (json.JSONDecodeError, OSError) as e:
            print(f"Warning: Skipping {path}: {e}")

    if not results:
        raise FileNotFoundError(f"No valid JSON case files found matching: {case_pattern}")

    return results


def get_case_id(case_path: Path, case_data: Dict[str, Any]) -> str:
    return case_data.get("case_id", case_path.stem)


def json_default(o: Any):
    # Pydantic models (documents, metadata, rewrite history)
    dump = getattr(o, "model_dump", None)
    if callable(dump):
        return dump(by_alias=True)

    # Keep artifacts usable
    return str(o)


def write_artifact(base_dir: Path, run_id: str, case_id: str, name: str, payload: Any) -> Path:
    out_dir = base_dir / run_id / case_id
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"{name}.json"
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=json_default)
    return out_path
