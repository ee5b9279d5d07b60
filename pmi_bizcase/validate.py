# pmi_bizcase/validate.py
"""
Boundary checks for raw Business Case records.

Everything here works on plain dicts (camelCase wire format) and either
returns a normalized copy or raises SchemaError. The calculation core never
imports this module.
"""
from __future__ import annotations
import copy
import math
import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

from . import schema
from .config import load_record
from .logger import setup_logger

logger = setup_logger(__name__)

VALIDATION_MODE_ENV = "VALIDATION_MODE"


class SchemaError(ValueError):
    """Raw record does not satisfy the boundary schema."""


def _mode_from_env_or_flag(flag: str | None) -> str:
    if flag in ("strict", "relaxed"):
        return flag
    env = (os.environ.get(VALIDATION_MODE_ENV) or "").lower()
    return env if env in ("strict", "relaxed") else "relaxed"


def _require_enum(value: Any, allowed: Iterable[str], where: str) -> None:
    if value not in allowed:
        raise SchemaError(f"{where}: {value!r} is not one of {list(allowed)}")


def _number(value: Any, where: str, kind: str = "float") -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(f"{where}: expected a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise SchemaError(f"{where}: expected a finite number, got {value!r}")
    if kind == "int" and float(value) != int(value):
        raise SchemaError(f"{where}: expected an integer, got {value!r}")
    return int(value) if kind == "int" else float(value)


def _require_bool(block: Dict[str, Any], keys: Iterable[str], where: str) -> None:
    for k in keys:
        if block.get(k) is not None and not isinstance(block[k], bool):
            raise SchemaError(f"{where}.{k} must be a boolean, got {block[k]!r}")


def _check_bounds(block: Dict[str, Any], table: Dict[str, Dict[str, Any]], where: str) -> None:
    """Validate scalar bounds in place; clamp fields flagged 'clamp'."""
    for k, spec in table.items():
        if block.get(k) is None:
            continue
        v = _number(block[k], f"{where}.{k}", spec.get("type", "float"))
        lo, hi = spec["min"], spec["max"]
        if lo <= v <= hi:
            block[k] = v
            continue
        if spec.get("clamp"):
            clamped = min(max(v, lo), hi)
            logger.warning("%s.%s=%s outside [%s, %s]; clamped to %s", where, k, v, lo, hi, clamped)
            block[k] = clamped
            continue
        raise SchemaError(f"{where}.{k} outside allowed range [{lo}, {hi}]: {v}")


def normalize_percent_scale(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert 0-1 fractional rates to the 0-100 scale when the record declares
    percentScale: fraction. The scale is never inferred from magnitudes.
    """
    out = copy.deepcopy(data)
    scale = out.pop("percentScale", "percent")
    _require_enum(scale, schema.PERCENT_SCALES, "percentScale")
    if scale == "fraction":
        for block_name, fields in schema.PERCENT_FIELDS.items():
            block = out.get(block_name)
            if not isinstance(block, dict):
                continue
            for k in fields:
                if block.get(k) is not None:
                    block[k] = _number(block[k], f"{block_name}.{k}") * 100.0
    return out


def validate_risk_matrix(matrix: Any, where: str = "organizational.riskMatrix") -> None:
    values = matrix.get("values") if isinstance(matrix, dict) else None
    n = schema.RISK_MATRIX_SIZE
    if not isinstance(values, list) or len(values) != n or any(
        not isinstance(row, list) or len(row) != n for row in values
    ):
        raise SchemaError(f"{where}.values must be a {n}x{n} array")
    for i, row in enumerate(values):
        for j, v in enumerate(row):
            v = _number(v, f"{where}.values[{i}][{j}]", "int")
            if not (schema.RISK_SCORE_MIN <= v <= schema.RISK_SCORE_MAX):
                raise SchemaError(
                    f"{where}.values[{i}][{j}] outside allowed range "
                    f"[{schema.RISK_SCORE_MIN}, {schema.RISK_SCORE_MAX}]: {v}"
                )
    if not schema.matrix_is_monotonic(values):
        raise SchemaError(f"{where}: values must be non-decreasing along rows and columns")


def _validate_risk(rk: Any, where: str) -> None:
    if not isinstance(rk, dict):
        raise SchemaError(f"{where}: expected a mapping")
    if not rk.get("statement"):
        raise SchemaError(f"{where}.statement is required")
    _require_enum(rk.get("probability"), schema.RISK_LEVELS, f"{where}.probability")
    _require_enum(rk.get("impact"), schema.RISK_LEVELS, f"{where}.impact")
    if rk.get("residualRisk") is not None:
        _require_enum(rk["residualRisk"], schema.RISK_LEVELS, f"{where}.residualRisk")


def _validate_line_item(li: Any, where: str, *, mode: str) -> None:
    if not isinstance(li, dict):
        raise SchemaError(f"{where}: expected a mapping")
    _require_enum(li.get("kind"), schema.KINDS, f"{where}.kind")
    _require_enum(li.get("category"), schema.CATEGORIES, f"{where}.category")
    _require_enum(li.get("recurrence", "one-time"), schema.RECURRENCES, f"{where}.recurrence")
    if li.get("confidence") is not None:
        _require_enum(li["confidence"], schema.CONFIDENCE, f"{where}.confidence")
    if "amount" not in li:
        raise SchemaError(f"{where}.amount is required")
    amount = _number(li["amount"], f"{where}.amount")
    li.setdefault("startMonth", 0)
    _check_bounds(li, schema.LINE_ITEM_SCHEMA, where)

    behavior = li.get("recurrenceBehavior")
    if behavior is not None:
        if not isinstance(behavior, dict):
            raise SchemaError(f"{where}.recurrenceBehavior: expected a mapping")
        _require_bool(behavior, ("endsAtHorizon",), f"{where}.recurrenceBehavior")
        occ = behavior.get("totalOccurrences")
        if occ is not None and _number(occ, f"{where}.recurrenceBehavior.totalOccurrences", "int") < 1:
            raise SchemaError(f"{where}.recurrenceBehavior.totalOccurrences must be >= 1")

    # relaxed mode leaves these to the validation engine
    if mode == "strict":
        if amount <= 0:
            raise SchemaError(f"{where}.amount must be > 0")
        end = li.get("endMonth")
        if end is not None and li.get("recurrence", "one-time") != "one-time" and end <= li["startMonth"]:
            raise SchemaError(f"{where}.endMonth must be > startMonth")


def _validate_options(options: Any, *, mode: str) -> None:
    if not isinstance(options, list):
        raise SchemaError("options must be a list")
    for i, o in enumerate(options):
        where = f"options[{i}]"
        if not isinstance(o, dict):
            raise SchemaError(f"{where}: expected a mapping")
        for k in ("id", "name"):
            if not o.get(k):
                raise SchemaError(f"{where}.{k} is required")
        if not isinstance(o.get("isBaseline", False), bool):
            raise SchemaError(f"{where}.isBaseline must be a boolean")
        items = o.get("lineItems")
        if not isinstance(items, list):
            raise SchemaError(f"{where}.lineItems must be a list")
        for j, li in enumerate(items):
            _validate_line_item(li, f"{where}.lineItems[{j}]", mode=mode)
        for j, rk in enumerate(o.get("optionSpecificRisks") or []):
            _validate_risk(rk, f"{where}.optionSpecificRisks[{j}]")


def validate_params_dict(data: Dict[str, Any], *, mode: str | None = None) -> Dict[str, Any]:
    """
    Guardrails for one record; returns a normalized copy.
      - relaxed: required keys, enums, bounds, risk matrix
      - strict : also rejects unknown top-level keys, amount <= 0, bad endMonth
                 and the composite constraints in schema.COMPOSITE_CONSTRAINTS
    horizonMonths and discountRatePct are clamped rather than rejected.
    """
    if not isinstance(data, dict):
        raise SchemaError("record must be a mapping")
    mode = _mode_from_env_or_flag(mode)

    missing = sorted(k for k in schema.REQUIRED_KEYS if k not in data)
    if missing:
        raise SchemaError(f"missing required keys: {missing}")
    if mode == "strict":
        unknown = sorted(k for k in data.keys() if k not in schema.TOP_LEVEL_KEYS)
        if unknown:
            raise SchemaError(f"unknown top-level keys (strict mode): {unknown}")

    out = normalize_percent_scale(data)

    if out.get("schemaVersion", schema.SCHEMA_VERSION) != schema.SCHEMA_VERSION:
        raise SchemaError(f"unsupported schemaVersion: {out.get('schemaVersion')!r}")
    _require_enum(out.get("projectType", "process_improvement"), schema.PROJECT_TYPES, "projectType")

    fin = out.get("financial")
    if not isinstance(fin, dict):
        raise SchemaError("financial must be a mapping")
    _require_enum(fin.get("currency", "CAD"), schema.CURRENCIES, "financial.currency")
    _check_bounds(fin, schema.FINANCIAL_SCHEMA, "financial")
    _require_bool(fin, schema.FINANCIAL_FLAGS, "financial")
    if mode == "strict":
        for c in schema.COMPOSITE_CONSTRAINTS:
            if not c["check"](fin):
                raise SchemaError(c["message"])

    org = out.get("organizational") or {}
    if not isinstance(org, dict):
        raise SchemaError("organizational must be a mapping")
    _check_bounds(org, schema.ORGANIZATIONAL_SCHEMA, "organizational")
    if "riskToleranceLevel" in org:
        _require_enum(org["riskToleranceLevel"], schema.TOLERANCE, "organizational.riskToleranceLevel")
    if "defaultRecurrenceEnd" in org:
        _require_enum(org["defaultRecurrenceEnd"], schema.RECURRENCE_END, "organizational.defaultRecurrenceEnd")
    if "riskMatrix" in org:
        validate_risk_matrix(org["riskMatrix"])
    for ptype, req in (org.get("baselineRequirements") or {}).items():
        _require_enum(ptype, schema.PROJECT_TYPES, "organizational.baselineRequirements")
        for c in (req or {}).get("requiredCategories", []):
            _require_enum(c, schema.CATEGORIES, f"organizational.baselineRequirements.{ptype}")

    _validate_options(out.get("options"), mode=mode)
    for i, rk in enumerate(out.get("projectRisks") or []):
        _validate_risk(rk, f"projectRisks[{i}]")

    strategic = out.get("strategic") or {}
    for i, a in enumerate(strategic.get("keyAssumptions") or []):
        if a.get("validationStatus") is not None:
            _require_enum(a["validationStatus"], schema.ASSUMPTION_STATUS, f"strategic.keyAssumptions[{i}].validationStatus")

    return out


def load_params_from_file(path: Path) -> Dict[str, Any]:
    p = Path(path)
    if p.is_dir():
        # runner handles directories; keep this function file-only
        raise SchemaError(f"{p} is a directory (expected a file)")
    try:
        return load_record(p)
    except ValueError as e:
        raise SchemaError(f"{p}: {e}") from e


def _iter_input_files(p: Path) -> Iterable[Path]:
    if p.is_file():
        yield p
    elif p.is_dir():
        for ext in ("*.yaml", "*.yml", "*.json"):
            yield from sorted(p.rglob(ext))


def _main(argv: List[str] | None = None) -> int:
    import argparse
    parser = argparse.ArgumentParser(prog="pmi_bizcase.validate", add_help=True)
    parser.add_argument("paths", nargs="+", help="YAML/JSON files or directories to validate")
    parser.add_argument("--mode", choices=["strict", "relaxed"], default=None, help="validation mode")
    args = parser.parse_args(argv)

    mode = _mode_from_env_or_flag(args.mode)
    had_error = False

    for raw in args.paths:
        target = Path(raw)
        any_seen = False
        for f in _iter_input_files(target):
            if not f.is_file():
                continue
            any_seen = True
            try:
                validate_params_dict(load_params_from_file(f), mode=mode)
                print(f"OK: {f}")
            except (ValueError, OSError, yaml.YAMLError) as e:
                print(f"{f}: {e}", file=sys.stderr)
                had_error = True
        if not any_seen:
            print(f"{target}: no YAML/JSON files found", file=sys.stderr)
            had_error = True

    return 1 if had_error else 0


if __name__ == "__main__":
    raise SystemExit(_main())
