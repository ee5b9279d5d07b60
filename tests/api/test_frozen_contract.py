import importlib
import inspect
import re
from pathlib import Path


def _param_names(fn):
    return [p.name for p in inspect.signature(fn).parameters.values()]


def test_finance_metrics_public_api_is_stable():
    """Lock down that NPV/MIRR/payback live in finance.metrics with stable entrypoints."""
    m = importlib.import_module("pmi_bizcase.finance.metrics")
    for name in ("npv", "calculate_mirr", "calculate_payback_period", "calculate_roi"):
        assert callable(getattr(m, name, None)), f"Missing or non-callable export: {name}"

    assert _param_names(m.npv)[:2] == ["cashflows", "discount_rate_pct"]
    assert _param_names(m.calculate_mirr) == ["cashflows", "finance_rate_pct", "reinvest_rate_pct"]
    assert _param_names(m.calculate_roi) == ["costs", "benefits"]


def test_core_does_not_depend_on_the_boundary():
    """The calculation core never imports validation, config or file IO."""
    pkg = Path(importlib.import_module("pmi_bizcase").__file__).parent
    core = [
        pkg / "finance" / "cashflow.py",
        pkg / "finance" / "metrics.py",
        pkg / "risk.py",
        pkg / "analyzer.py",
        pkg / "rules.py",
    ]
    forbidden = re.compile(r"^\s*(from|import)\s+(\S*\bvalidate\b|\S*\bconfig\b|yaml|json)", re.MULTILINE)
    for path in core:
        src = path.read_text(encoding="utf-8")
        assert not forbidden.search(src), f"Unexpected boundary dependency inside {path.name}"


def test_adapters_round_trip_shape():
    """business_case_from_dict -> analyze -> business_case_to_dict keeps the wire keys."""
    a = importlib.import_module("pmi_bizcase.adapters")
    analyzer = importlib.import_module("pmi_bizcase.analyzer")
    record = {
        "financial": {"horizonMonths": 6},
        "options": [
            {"id": "b", "name": "Base", "isBaseline": True,
             "lineItems": [{"kind": "cost", "category": "opex", "amount": 1, "recurrence": "monthly"}]},
            {"id": "p", "name": "Plan", "isBaseline": False,
             "lineItems": [{"kind": "benefit", "category": "revenue", "amount": 2, "recurrence": "monthly"}]},
        ],
    }
    out = a.business_case_to_dict(analyzer.analyze_business_case(a.business_case_from_dict(record)))
    calc = out["options"][0]["_calc"]
    for k in (
        "horizonMonths", "currency", "totalCosts", "totalBenefits", "netBenefit", "roiPct",
        "paybackMonths", "npv", "mirrPct", "benefitCostRatio", "profitabilityIndex",
        "breakEvenMonth", "warnings", "hasIrregularCashFlow", "signChanges",
    ):
        assert k in calc


def test_validate_exports_are_stable():
    """validate module must expose these helpers (names kept stable)."""
    v = importlib.import_module("pmi_bizcase.validate")
    for name in ("validate_params_dict", "load_params_from_file", "normalize_percent_scale"):
        obj = getattr(v, name, None)
        assert callable(obj), f"Missing or non-callable export: {name}"
    assert issubclass(v.SchemaError, ValueError)


def test_runner_run_file_api_minimal(tmp_path):
    """run_file must accept (cfg_path, out_dir, ...) and return a result with a summary."""
    r = importlib.import_module("pmi_bizcase.runner")
    assert callable(r.run_file) and callable(r.run_dir)

    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(
        "financial: { horizonMonths: 6 }\n"
        "options:\n"
        "  - { id: b, name: Base, isBaseline: true,"
        " lineItems: [ { kind: cost, category: opex, amount: 1, recurrence: monthly } ] }\n"
        "  - { id: p, name: Plan, isBaseline: false,"
        " lineItems: [ { kind: benefit, category: revenue, amount: 2, recurrence: monthly } ] }\n",
        encoding="utf-8",
    )
    res = r.run_file(cfg, tmp_path / "o", mode="analyze", fmt="jsonl")
    assert isinstance(res.summary, dict)
    assert {"source", "businessCase", "validation"} <= set(res.summary)
    assert res.summary_path.exists()
