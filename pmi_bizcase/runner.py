# pmi_bizcase/runner.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Iterable, List, Optional
from datetime import datetime
import json

import pandas as pd

from .adapters import (
    business_case_from_dict,
    business_case_to_dict,
    option_summaries,
    validation_result_to_dict,
)
from .analyzer import analyze_business_case
from .config import load_org_policy, merge_org_policy
from .logger import LogContext, setup_logger
from .report import monthly_frame
from .rules import validate_business_case
from .types import BusinessCase, ValidationResult
from .validate import SchemaError, load_params_from_file, validate_params_dict

logger = setup_logger(__name__)

DEMO_CASE = Path(__file__).resolve().parent / "inputs" / "demo_business_case.yaml"
RECORD_PATTERNS = ("*.yaml", "*.yml", "*.json")


@dataclass
class RunResult:
    summary: Dict[str, Any]
    summary_path: Path
    results_path: Optional[Path] = None
    monthly_path: Optional[Path] = None

    @property
    def is_valid(self) -> bool:
        return bool(self.summary.get("validation", {}).get("isValid"))


def evaluate(
    record: Dict[str, Any], *, mode: str | None = None, include_monthly: bool = False
) -> tuple[BusinessCase, ValidationResult]:
    """raw record -> typed model -> analyzed model -> ValidationResult"""
    case = business_case_from_dict(record, mode=mode)
    analyzed = analyze_business_case(case, include_monthly=include_monthly)
    return analyzed, validate_business_case(analyzed)


def _write_jsonl(path: Path, rows: List[Dict[str, Any]]) -> None:
    with path.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")


def _write_csv(path: Path, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        path.write_text("", encoding="utf-8")
        return
    pd.DataFrame(rows).to_csv(path, index=False)


def run_file(
    config: str | Path | None,
    out_dir: str | Path,
    *,
    mode: str = "analyze",
    fmt: str = "jsonl",
    save_monthly: bool = False,
    validation_mode: str | None = None,
    org_config: str | Path | None = None,
) -> RunResult:
    """
    Analyze (or only schema-check, mode="validate") one record file and write
    summary.json plus an option comparison file. Without a config the packaged
    demo case is used.
    """
    cfg_path = Path(config) if config else DEMO_CASE
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)

    record = load_params_from_file(cfg_path)
    if org_config:
        try:
            policy = load_org_policy(org_config)
        except ValueError as e:
            raise SchemaError(f"{org_config}: {e}") from e
        record = merge_org_policy(record, policy)

    summary_path = out / "summary.json"
    if mode == "validate":
        validate_params_dict(record, mode=validation_mode)
        summary = {"source": str(cfg_path), "schemaValid": True}
        summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        return RunResult(summary=summary, summary_path=summary_path)
    if mode != "analyze":
        raise SchemaError(f"unknown mode: {mode}")

    with LogContext(logger, f"analysis of {cfg_path.name}"):
        analyzed, validation = evaluate(record, mode=validation_mode)

    summary = {
        "source": str(cfg_path),
        "businessCase": business_case_to_dict(analyzed),
        "validation": validation_result_to_dict(validation),
    }
    summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
    if not validation.is_valid:
        logger.warning("%s: %d validation error(s)", cfg_path.name, len(validation.errors))

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = f"{cfg_path.stem}_results_{stamp}"
    rows = option_summaries(analyzed)
    if fmt == "jsonl":
        results_path = out / f"{base}.jsonl"
        _write_jsonl(results_path, rows)
    elif fmt == "csv":
        results_path = out / f"{base}.csv"
        _write_csv(results_path, rows)
    else:
        raise SchemaError(f"unknown fmt: {fmt}")

    monthly_path: Optional[Path] = None
    if save_monthly:
        monthly_path = out / f"{cfg_path.stem}_monthly_{stamp}.csv"
        monthly_frame(analyzed).to_csv(monthly_path)

    return RunResult(
        summary=summary,
        summary_path=summary_path,
        results_path=results_path,
        monthly_path=monthly_path,
    )


def run_dir(
    config_dir: str | Path,
    out_dir: str | Path,
    *,
    patterns: Iterable[str] = RECORD_PATTERNS,
    **kwargs,
) -> Dict[str, RunResult]:
    """Run every YAML/JSON record in a directory; one sub-folder per record."""
    d = Path(config_dir)
    o = Path(out_dir)
    files = sorted({f for pattern in patterns for f in d.glob(pattern) if f.is_file()})
    if not files:
        raise SchemaError(f"{d}: no business case files found")
    return {f.name: run_file(f, o / f.stem, **kwargs) for f in files}
