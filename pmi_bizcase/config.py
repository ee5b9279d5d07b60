from __future__ import annotations

from typing import Any, Dict, Optional
import copy
import io
import json
import os

import yaml

DEFAULT_BASELINE_REQUIREMENTS: Dict[str, Dict[str, Any]] = {
    "new_development": {
        "requiredCategories": ["maintenance", "opex", "risk_avoidance"],
        "description": "New projects must show ongoing operational costs and avoided risks",
    },
    "infrastructure": {
        "requiredCategories": ["maintenance", "opex", "compliance"],
        "description": "Infrastructure projects must include maintenance and compliance costs",
    },
    "process_improvement": {
        "requiredCategories": ["opex", "productivity"],
        "description": "Process improvements must show current operational inefficiencies",
    },
    "compliance": {
        "requiredCategories": ["compliance", "risk_avoidance"],
        "description": "Compliance projects must show regulatory costs and avoided penalties",
    },
    "maintenance": {
        "requiredCategories": ["maintenance", "risk_avoidance"],
        "description": "Maintenance projects must show current maintenance burden and failure risks",
    },
}

DEFAULT_ORGANIZATIONAL_SETTINGS: Dict[str, Any] = {
    "defaultCurrency": "CAD",
    "defaultDiscountRate": 8,
    "npvThreshold": 50000,
    "irrThreshold": 50000,
    "riskToleranceLevel": "Medium",
    "riskMatrix": {
        "values": [
            [1, 2, 4, 6, 8],
            [2, 4, 6, 9, 12],
            [4, 6, 9, 12, 16],
            [6, 9, 12, 16, 20],
            [8, 12, 16, 20, 25],
        ],
        "description": "Standard 5x5 risk matrix with non-linear progression",
    },
    "baselineRequirements": DEFAULT_BASELINE_REQUIREMENTS,
    "financeRatePct": 8,
    "reinvestRatePct": 8,
    "defaultRecurrenceEnd": "horizon",
}

DEFAULT_FINANCIAL_SETTINGS: Dict[str, Any] = {
    "currency": "CAD",
    "horizonMonths": 36,
    "discountRatePct": 8,
    "requireNPV": False,
    "requireMIRR": False,
    "includeTaxes": False,
    "includeInflation": False,
}


def load_record(source: str | os.PathLike | io.StringIO) -> Dict[str, Any]:
    """
    Load a YAML or JSON record from a path or text stream.
    JSON is valid YAML, so streams always go through yaml.safe_load.
    """
    if hasattr(source, "read"):
        text = str(source.read())
        suffix = ""
    else:
        p = os.fspath(source)
        with open(p, "r", encoding="utf-8") as f:
            text = f.read()
        suffix = os.path.splitext(p)[1].lower()

    data = json.loads(text or "{}") if suffix == ".json" else yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping at the top level, got {type(data).__name__}")
    return data


def _fill(target: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in defaults.items():
        target.setdefault(k, copy.deepcopy(v))
    return target


def apply_defaults(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of the record with missing financial and organizational
    settings filled from the defaults. The input is left untouched.
    """
    out = copy.deepcopy(record)
    out.setdefault("schemaVersion", "1.0")
    out.setdefault("projectType", "process_improvement")
    _fill(out.setdefault("financial", {}), DEFAULT_FINANCIAL_SETTINGS)
    _fill(out.setdefault("organizational", {}), DEFAULT_ORGANIZATIONAL_SETTINGS)
    out.setdefault("projectRisks", [])
    return out


def load_org_policy(source: str | os.PathLike | io.StringIO) -> Dict[str, Any]:
    """
    An organization policy file holds organizational settings either at the
    top level or under an 'organizational' key.
    """
    data = load_record(source)
    policy = data.get("organizational", data)
    if not isinstance(policy, dict):
        raise ValueError("organizational policy must be a mapping")
    return policy


def merge_org_policy(record: Dict[str, Any], policy: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Policy keys override the record's organizational block."""
    out = copy.deepcopy(record)
    if policy:
        org = out.setdefault("organizational", {})
        org.update(copy.deepcopy(policy))
    return out
