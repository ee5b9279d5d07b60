# pmi_bizcase/cli.py
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import yaml

# Only imports the thin runner; analysis stays behind runner
from .analyzer import StructuralError
from .runner import run_dir, run_file
from .validate import VALIDATION_MODE_ENV, SchemaError

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="pmi_bizcase",
        description="Business Case financial analysis engine CLI",
    )
    p.add_argument(
        "--mode",
        default="analyze",
        choices=["analyze", "validate"],
        help="analyze: compute _calc blocks and run policy checks; validate: schema check only (default: analyze).",
    )
    p.add_argument(
        "--config",
        required=False,
        default=None,
        help="Path to a YAML/JSON business case, or a directory of them. If omitted, defaults to the packaged demo.",
    )
    p.add_argument(
        "--org-config",
        default=None,
        help="Optional organizational policy file overriding the record's organizational settings.",
    )
    p.add_argument(
        "--outputs-dir",
        default="outputs",
        help="Directory to write result files (default: outputs). Will be created if missing.",
    )
    p.add_argument(
        "--format",
        dest="fmt",
        default="csv",
        choices=["csv", "jsonl"],
        help="Output format for the option comparison file (default: csv).",
    )
    p.add_argument(
        "--save-monthly",
        action="store_true",
        help="If set, also write the per-month cashflow table.",
    )
    v = p.add_mutually_exclusive_group()
    v.add_argument(
        "--strict",
        action="store_true",
        help="Enable strict validation (unknown keys and non-positive amounts raise).",
    )
    v.add_argument(
        "--relaxed",
        action="store_true",
        help="Enable relaxed validation (business-rule issues are reported, not raised).",
    )
    return p.parse_args(argv)


def _validation_mode(ns: argparse.Namespace) -> str | None:
    # flags override the environment; None defers to VALIDATION_MODE
    if ns.strict:
        return "strict"
    if ns.relaxed:
        return "relaxed"
    return os.environ.get(VALIDATION_MODE_ENV) or None


def main(argv: list[str] | None = None) -> int:
    ns = parse_args(argv)

    outputs_dir = Path(ns.outputs_dir).resolve()
    cfg_path: Path | None = Path(ns.config).resolve() if ns.config else None
    outputs_dir.mkdir(parents=True, exist_ok=True)

    kwargs = dict(
        mode=ns.mode,
        fmt=ns.fmt,
        save_monthly=ns.save_monthly,
        validation_mode=_validation_mode(ns),
        org_config=ns.org_config,
    )
    try:
        if cfg_path is not None and cfg_path.is_dir():
            results = list(run_dir(cfg_path, outputs_dir, **kwargs).values())
        else:
            results = [run_file(cfg_path, outputs_dir, **kwargs)]
    except (SchemaError, StructuralError, yaml.YAMLError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    if ns.mode == "validate":
        return EXIT_OK
    for r in results:
        v = r.summary["validation"]
        print(f"{r.summary['source']}: valid={v['isValid']} errors={len(v['errors'])} warnings={len(v['warnings'])}")
    return EXIT_OK if all(r.is_valid for r in results) else EXIT_INVALID


__all__ = ["main", "parse_args"]
