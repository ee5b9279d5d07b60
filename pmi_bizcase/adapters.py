# pmi_bizcase/adapters.py
"""
Wire format <-> typed records.

Records arrive camelCase (as the form-mapping layer emits them) and leave
the same way, with each analyzed option carrying a `_calc` block.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .config import apply_defaults
from .types import (
    KPI,
    Assumption,
    BaselineRequirement,
    BusinessCase,
    CalcBlock,
    Category,
    FinancialSettings,
    Kind,
    LineItem,
    Option,
    OrganizationalSettings,
    ProjectType,
    Recurrence,
    RecurrenceBehavior,
    RiskEntry,
    RiskLevel,
    RiskMatrix,
    StrategicContext,
    ValidationResult,
)
from .validate import validate_params_dict


# ------------------------------
# Small helpers (no policy here)
# ------------------------------
def _opt_float(v: Any) -> Optional[float]:
    return float(v) if v is not None else None


def _opt_int(v: Any) -> Optional[int]:
    return int(v) if v is not None else None


def _opt_level(v: Any) -> Optional[RiskLevel]:
    return RiskLevel(v) if v is not None else None


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# ------------------------------
# dict -> records
# ------------------------------
def _line_item(d: Dict[str, Any]) -> LineItem:
    rb = d.get("recurrenceBehavior")
    behavior = None
    if rb is not None:
        behavior = RecurrenceBehavior(
            ends_at_horizon=bool(rb.get("endsAtHorizon", True)),
            total_occurrences=_opt_int(rb.get("totalOccurrences")),
        )
    return LineItem(
        id=str(d.get("id", "")),
        label=str(d.get("label", "")),
        kind=Kind(d["kind"]),
        category=Category(d["category"]),
        amount=float(d["amount"]),
        recurrence=Recurrence(d.get("recurrence", "one-time")),
        start_month=int(d.get("startMonth", 0)),
        end_month=_opt_int(d.get("endMonth")),
        recurrence_behavior=behavior,
        confidence=str(d.get("confidence", "Medium")),
        notes=d.get("notes"),
    )


def _risk(d: Dict[str, Any]) -> RiskEntry:
    return RiskEntry(
        id=str(d.get("id", "")),
        statement=str(d["statement"]),
        category=str(d.get("category", "operational")),
        probability=RiskLevel(d["probability"]),
        impact=RiskLevel(d["impact"]),
        mitigation=str(d.get("mitigation") or ""),
        owner=str(d.get("owner") or ""),
        status=str(d.get("status", "identified")),
        residual_risk=_opt_level(d.get("residualRisk")),
        risk_score=_opt_int(d.get("riskScore")),
        response_strategy=d.get("responseStrategy"),
        response_owner=d.get("responseOwner"),
    )


def _option(d: Dict[str, Any]) -> Option:
    # any incoming _calc is discarded; the analyzer owns it
    return Option(
        id=str(d["id"]),
        name=str(d["name"]),
        description=str(d.get("description", "")),
        is_baseline=bool(d.get("isBaseline", False)),
        implementation_complexity=str(d.get("implementationComplexity", "Medium")),
        line_items=tuple(_line_item(li) for li in d.get("lineItems") or []),
        option_specific_risks=tuple(_risk(r) for r in d.get("optionSpecificRisks") or []),
    )


def _financial(d: Dict[str, Any]) -> FinancialSettings:
    return FinancialSettings(
        currency=str(d.get("currency", "CAD")),
        horizon_months=int(d.get("horizonMonths", 36)),
        discount_rate_pct=float(d.get("discountRatePct", 8.0)),
        require_npv=bool(d.get("requireNPV", False)),
        require_mirr=bool(d.get("requireMIRR", False)),
        include_taxes=bool(d.get("includeTaxes", False)),
        tax_rate_pct=_opt_float(d.get("taxRatePct")),
        include_inflation=bool(d.get("includeInflation", False)),
        inflation_rate_pct=_opt_float(d.get("inflationRatePct")),
        minimum_roi_pct=_opt_float(d.get("minimumROI")),
        maximum_payback_months=_opt_int(d.get("maximumPaybackMonths")),
    )


def _organizational(d: Dict[str, Any]) -> OrganizationalSettings:
    matrix = d.get("riskMatrix") or {}
    reqs = {
        ProjectType(k): BaselineRequirement(
            required_categories=tuple(Category(c) for c in v.get("requiredCategories", [])),
            description=str(v.get("description", "")),
        )
        for k, v in (d.get("baselineRequirements") or {}).items()
    }
    return OrganizationalSettings(
        npv_threshold=float(d.get("npvThreshold", 50000)),
        irr_threshold=float(d.get("irrThreshold", 50000)),
        finance_rate_pct=float(d.get("financeRatePct", 8.0)),
        reinvest_rate_pct=float(d.get("reinvestRatePct", 8.0)),
        risk_tolerance_level=str(d.get("riskToleranceLevel", "Medium")),
        risk_matrix=RiskMatrix(
            values=tuple(tuple(int(v) for v in row) for row in matrix["values"]),
            description=matrix.get("description"),
        ),
        baseline_requirements=reqs,
        default_currency=str(d.get("defaultCurrency", "CAD")),
        default_recurrence_end=str(d.get("defaultRecurrenceEnd", "horizon")),
    )


def _strategic(d: Dict[str, Any]) -> StrategicContext:
    return StrategicContext(
        business_need=str(d.get("businessNeed", "")),
        problem_statement=str(d.get("problemStatement", "")),
        strategic_alignment=tuple(d.get("strategicAlignment") or []),
        key_assumptions=tuple(
            Assumption(
                id=str(a.get("id", "")),
                assumption=str(a.get("assumption", "")),
                impact=str(a.get("impact", "Medium")),
                validation=str(a.get("validation") or ""),
                validation_status=str(a.get("validationStatus", "pending")),
            )
            for a in d.get("keyAssumptions") or []
        ),
        success_kpis=tuple(
            KPI(
                id=str(k.get("id", "")),
                name=str(k.get("name", "")),
                baseline=str(k.get("baseline") or ""),
                target=str(k.get("target") or ""),
                unit=str(k.get("unit") or ""),
                owner=str(k.get("owner") or ""),
                measurement_method=str(k.get("measurementMethod") or ""),
                measurement_frequency=str(k.get("measurementFrequency", "Monthly")),
                priority=str(k.get("priority", "Important")),
            )
            for k in d.get("successKPIs") or []
        ),
    )


def business_case_from_dict(data: Dict[str, Any], *, mode: str | None = None) -> BusinessCase:
    """
    Run boundary validation (SchemaError on failure), fill defaults and build
    the typed record. The input dict is not modified.
    """
    record = apply_defaults(validate_params_dict(data, mode=mode))
    return BusinessCase(
        schema_version=str(record.get("schemaVersion", "1.0")),
        project_type=ProjectType(record.get("projectType", "process_improvement")),
        strategic=_strategic(record.get("strategic") or {}),
        financial=_financial(record["financial"]),
        organizational=_organizational(record["organizational"]),
        options=tuple(_option(o) for o in record["options"]),
        project_risks=tuple(_risk(r) for r in record.get("projectRisks") or []),
        recommended_option=record.get("recommendedOption"),
        recommendation_rationale=record.get("recommendationRationale"),
    )


# ------------------------------
# records -> dict
# ------------------------------
def calc_to_dict(calc: CalcBlock) -> Dict[str, Any]:
    out = {
        "horizonMonths": calc.horizon_months,
        "currency": calc.currency,
        "totalCosts": calc.total_costs,
        "totalBenefits": calc.total_benefits,
        "netBenefit": calc.net_benefit,
        "roiPct": calc.roi_pct,
        "paybackMonths": calc.payback_months,
        "npv": calc.npv,
        "mirrPct": calc.mirr_pct,
        "benefitCostRatio": calc.benefit_cost_ratio,
        "profitabilityIndex": calc.profitability_index,
        "breakEvenMonth": calc.break_even_month,
        "discountedPaybackMonths": calc.discounted_payback_months,
        "warnings": list(calc.warnings),
        "hasIrregularCashFlow": calc.has_irregular_cash_flow,
        "signChanges": calc.sign_changes,
        "maxDrawdown": calc.max_drawdown,
        "peakCashFlow": calc.peak_cash_flow,
    }
    if calc.monthly_cash_flow is not None:
        out["monthlyCashFlow"] = list(calc.monthly_cash_flow)
    return out


def _line_item_to_dict(li: LineItem) -> Dict[str, Any]:
    behavior = None
    if li.recurrence_behavior is not None:
        behavior = _drop_none({
            "endsAtHorizon": li.recurrence_behavior.ends_at_horizon,
            "totalOccurrences": li.recurrence_behavior.total_occurrences,
        })
    return _drop_none({
        "id": li.id,
        "label": li.label,
        "kind": Kind(li.kind).value,
        "category": Category(li.category).value,
        "amount": li.amount,
        "recurrence": Recurrence(li.recurrence).value,
        "startMonth": li.start_month,
        "endMonth": li.end_month,
        "recurrenceBehavior": behavior,
        "confidence": li.confidence,
        "notes": li.notes,
    })


def _risk_to_dict(r: RiskEntry) -> Dict[str, Any]:
    return _drop_none({
        "id": r.id,
        "statement": r.statement,
        "category": r.category,
        "probability": RiskLevel(r.probability).value,
        "impact": RiskLevel(r.impact).value,
        "mitigation": r.mitigation,
        "owner": r.owner,
        "status": r.status,
        "residualRisk": RiskLevel(r.residual_risk).value if r.residual_risk is not None else None,
        "riskScore": r.risk_score,
        "responseStrategy": r.response_strategy,
        "responseOwner": r.response_owner,
    })


def option_to_dict(o: Option) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": o.id,
        "name": o.name,
        "description": o.description,
        "isBaseline": o.is_baseline,
        "implementationComplexity": o.implementation_complexity,
        "lineItems": [_line_item_to_dict(li) for li in o.line_items],
        "optionSpecificRisks": [_risk_to_dict(r) for r in o.option_specific_risks],
    }
    if o.calc is not None:
        out["_calc"] = calc_to_dict(o.calc)
    return out


def business_case_to_dict(case: BusinessCase) -> Dict[str, Any]:
    fin, org = case.financial, case.organizational
    return _drop_none({
        "schemaVersion": case.schema_version,
        "projectType": ProjectType(case.project_type).value,
        "strategic": {
            "businessNeed": case.strategic.business_need,
            "problemStatement": case.strategic.problem_statement,
            "strategicAlignment": list(case.strategic.strategic_alignment),
            "keyAssumptions": [
                {
                    "id": a.id,
                    "assumption": a.assumption,
                    "impact": a.impact,
                    "validation": a.validation,
                    "validationStatus": a.validation_status,
                }
                for a in case.strategic.key_assumptions
            ],
            "successKPIs": [
                {
                    "id": k.id,
                    "name": k.name,
                    "baseline": k.baseline,
                    "target": k.target,
                    "unit": k.unit,
                    "owner": k.owner,
                    "measurementMethod": k.measurement_method,
                    "measurementFrequency": k.measurement_frequency,
                    "priority": k.priority,
                }
                for k in case.strategic.success_kpis
            ],
        },
        "financial": _drop_none({
            "currency": fin.currency,
            "horizonMonths": fin.horizon_months,
            "discountRatePct": fin.discount_rate_pct,
            "requireNPV": fin.require_npv,
            "requireMIRR": fin.require_mirr,
            "includeTaxes": fin.include_taxes,
            "taxRatePct": fin.tax_rate_pct,
            "includeInflation": fin.include_inflation,
            "inflationRatePct": fin.inflation_rate_pct,
            "minimumROI": fin.minimum_roi_pct,
            "maximumPaybackMonths": fin.maximum_payback_months,
        }),
        "organizational": {
            "defaultCurrency": org.default_currency,
            "npvThreshold": org.npv_threshold,
            "irrThreshold": org.irr_threshold,
            "financeRatePct": org.finance_rate_pct,
            "reinvestRatePct": org.reinvest_rate_pct,
            "riskToleranceLevel": org.risk_tolerance_level,
            "riskMatrix": _drop_none({
                "values": [list(row) for row in org.risk_matrix.values],
                "description": org.risk_matrix.description,
            }),
            "baselineRequirements": {
                ProjectType(k).value: {
                    "requiredCategories": [Category(c).value for c in v.required_categories],
                    "description": v.description,
                }
                for k, v in org.baseline_requirements.items()
            },
            "defaultRecurrenceEnd": org.default_recurrence_end,
        },
        "options": [option_to_dict(o) for o in case.options],
        "projectRisks": [_risk_to_dict(r) for r in case.project_risks],
        "recommendedOption": case.recommended_option,
        "recommendationRationale": case.recommendation_rationale,
    })


def validation_result_to_dict(result: ValidationResult) -> Dict[str, Any]:
    return {
        "isValid": result.is_valid,
        "errors": [
            _drop_none({"field": e.field, "message": e.message, "severity": e.severity, "code": e.code})
            for e in result.errors
        ],
        "warnings": [
            _drop_none({"field": w.field, "message": w.message, "recommendation": w.recommendation})
            for w in result.warnings
        ],
    }


def option_summaries(case: BusinessCase) -> List[Dict[str, Any]]:
    """Flat per-option rows (id, name, baseline flag, _calc figures)."""
    rows = []
    for o in case.options:
        row: Dict[str, Any] = {"optionId": o.id, "optionName": o.name, "isBaseline": o.is_baseline}
        if o.calc is not None:
            calc = calc_to_dict(o.calc)
            calc.pop("monthlyCashFlow", None)
            calc["warnings"] = "; ".join(calc["warnings"])
            row.update(calc)
        rows.append(row)
    return rows


__all__ = [
    "business_case_from_dict", "business_case_to_dict", "option_to_dict",
    "calc_to_dict", "validation_result_to_dict", "option_summaries",
]
