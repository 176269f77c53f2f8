# scripts/run_search_case.py

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from health_plan_rag.adapters import InMemoryVectorSearch
from health_plan_rag.config import PipelineConfig
from health_plan_rag.model import get_default_embeddings, get_default_model
from health_plan_rag.schemas import SearchDocument
from health_plan_rag.search.graph import run_search_plans
from scripts.case_utils import get_case_id, resolve_cases, write_artifact


def run_single_case(case_path: Path, case: Dict[str, Any], *, run_id: str, llm, embedder, config) -> None:
    """Index the case documents in memory and run one search turn over them."""
    case_id = get_case_id(case_path, case)

    documents = [SearchDocument.model_validate(d) for d in case.get("documents", [])]
    vector_search = InMemoryVectorSearch.from_documents(documents, embedder)
    file_ids = case.get("file_ids") or sorted({d.metadata.file_id for d in documents if d.metadata.file_id})

    print(f"\nRunning SEARCH graph for case: {case_id} ({len(vector_search)} chunks, files {file_ids})")
    out = run_search_plans(
        llm,
        client_profile=case.get("client_profile"),
        file_ids=file_ids,
        vector_search=vector_search,
        embedder=embedder,
        priority_operators=case.get("priority_operators", []),
        config=config,
    )

    print("  ✓ Completed")
    if out["errors"]:
        print(f"  ⚠ Produced errors: {out['errors']}")
    print(f"  ➡ Summary: {out['summary']}")
    for doc in out["documents"]:
        print(f"    - {doc.id} [{doc.grade_result.score}] {doc.grade_result.reason}")

    expected = case.get("expected_document_ids")
    if expected is not None:
        missing = set(expected) - {d.id for d in out["documents"]}
        print(f"  {'✓' if not missing else '✗'} Expected documents present" + (f" (missing {sorted(missing)})" if missing else ""))

    artifacts_dir = Path("artifacts/search_eval")
    write_artifact(artifacts_dir, run_id, case_id, "input", case)
    write_artifact(artifacts_dir, run_id, case_id, "result", out)

    print(f"Artifacts written to: {artifacts_dir / run_id / case_id}")


def main():
    parser = argparse.ArgumentParser(description="Run the plan SEARCH graph on case(s).")
    parser.add_argument("--case", required=True, help="Path to case JSON or glob pattern")
    parser.add_argument("--run-id", default="manual_search", help="Run id for artifacts")
    parser.add_argument("--max-rewrites", type=int, default=None, help="Override max rewrite attempts")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline steps")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    config = PipelineConfig()
    if args.max_rewrites is not None:
        config = config.model_copy(update={"max_rewrite_attempts": args.max_rewrites})

    cases = resolve_cases(args.case)
    print(f"Found {len(cases)} case(s) to process")

    llm = get_default_model(config)
    embedder = get_default_embeddings(config)

    for case_path, case_data in cases:
        try:
            run_single_case(case_path, case_data, run_id=args.run_id, llm=llm, embedder=embedder, config=config)
        except Exception as e:
            print(f"\n❌ Error processing {case_path.name}: {e}")
            raise


if __name__ == "__main__":
    main()
