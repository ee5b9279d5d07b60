# pmi_bizcase/rules.py
"""
Policy and completeness checks over a Business Case.

Every check is independent and returns its own ValidationResult. Errors
block export; warnings are advisory. Nothing here raises for a business-rule
failure: callers must read ValidationResult.is_valid.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .types import (
    Assumption,
    BusinessCase,
    Category,
    KPI,
    Kind,
    Option,
    OrganizationalSettings,
    ProjectType,
    Recurrence,
    RiskEntry,
    RiskLevel,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)

RECURRING_BASELINE_MESSAGE = "Baseline should include recurring status-quo costs (maintenance/opex, etc.)."


class _Collector:
    """Accumulates issues for one check."""

    def __init__(self) -> None:
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationWarning] = []

    def error(self, field: str, message: str, code: Optional[str] = None, severity: str = "error") -> None:
        self.errors.append(ValidationIssue(field=field, message=message, severity=severity, code=code))

    def warn(self, field: str, message: str, recommendation: Optional[str] = None) -> None:
        self.warnings.append(ValidationWarning(field=field, message=message, recommendation=recommendation))

    def result(self) -> ValidationResult:
        return ValidationResult(
            is_valid=not self.errors,
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
        )


# ---------- a) financial thresholds ----------
def validate_financial_thresholds(case: BusinessCase) -> ValidationResult:
    r = _Collector()
    capex = sum(
        li.amount
        for o in case.options
        if not o.is_baseline
        for li in o.line_items
        if Category(li.category) is Category.CAPEX
    )
    org, fin = case.organizational, case.financial
    if capex >= org.npv_threshold and not fin.require_npv:
        r.warn("financial.requireNPV",
               "NPV is recommended above the organizational threshold.",
               "Enable NPV for this analysis.")
    if capex >= org.irr_threshold and not fin.require_mirr:
        r.warn("financial.requireMIRR",
               "MIRR is recommended above the organizational threshold.",
               "Enable MIRR for stability on complex cashflows.")
    return r.result()


# ---------- b) option comparison ----------
def validate_option_comparison(
    options: Sequence[Option], project_type: ProjectType, org: OrganizationalSettings
) -> ValidationResult:
    r = _Collector()
    baselines = [o for o in options if o.is_baseline]
    if len(baselines) != 1:
        r.error("options", "Exactly one baseline option is required", "BASELINE_COUNT")
        return r.result()
    base = baselines[0]
    field = f"options.{base.id}"

    if any(Kind(li.kind) is Kind.BENEFIT for li in base.line_items):
        r.warn(field, "Baseline includes benefits; verify this reflects the true status quo.")

    has_recurring_cost = any(
        Kind(li.kind) is Kind.COST and Recurrence(li.recurrence) is not Recurrence.ONE_TIME
        for li in base.line_items
    )
    if not has_recurring_cost:
        r.warn(field, RECURRING_BASELINE_MESSAGE, "Add monthly/annual costs that exist today.")

    req = org.baseline_requirements.get(ProjectType(project_type))
    if req is not None and req.required_categories:
        present = {Category(li.category) for li in base.line_items if Kind(li.kind) is Kind.COST}
        for cat in req.required_categories:
            if Category(cat) not in present:
                r.warn(field, f"Baseline missing required category: {Category(cat).value}", req.description)
    return r.result()


# ---------- c) risk completeness ----------
def _all_risks(case: BusinessCase) -> List[Tuple[str, RiskEntry]]:
    out = [(f"projectRisks[{i}]", rk) for i, rk in enumerate(case.project_risks)]
    for i, o in enumerate(case.options):
        out.extend(
            (f"options[{i}].optionSpecificRisks[{j}]", rk)
            for j, rk in enumerate(o.option_specific_risks)
        )
    return out


def validate_risk_assessment(
    risks: Sequence[Tuple[str, RiskEntry]], tolerance: str
) -> ValidationResult:
    """risks are (field prefix, entry) pairs so messages point at the record."""
    r = _Collector()
    for prefix, rk in risks:
        if not (rk.mitigation or "").strip():
            r.error(f"{prefix}.mitigation", "Mitigation is required", "RISK_MITIGATION_MISSING")
        if not (rk.owner or "").strip():
            r.error(f"{prefix}.owner", "Owner is required", "RISK_OWNER_MISSING")
    if tolerance == "Low":
        very_high = [p for p, rk in risks if rk.residual_risk is not None and RiskLevel(rk.residual_risk) is RiskLevel.VERY_HIGH]
        if very_high:
            r.warn("projectRisks",
                   "Residual Very High risks present under Low tolerance.",
                   f"Reduce residual exposure for: {', '.join(very_high)}")
    return r.result()


# ---------- d) KPI completeness ----------
def validate_kpi_completeness(kpis: Sequence[KPI]) -> ValidationResult:
    r = _Collector()
    for i, k in enumerate(kpis):
        if not k.baseline:
            r.warn(f"successKPIs[{i}].baseline", "Baseline missing")
        if not k.target:
            r.warn(f"successKPIs[{i}].target", "Target missing")
        if not k.owner:
            r.warn(f"successKPIs[{i}].owner", "Owner missing")
    return r.result()


# ---------- e) assumption trail ----------
def validate_assumptions(assumptions: Sequence[Assumption]) -> ValidationResult:
    r = _Collector()
    for i, a in enumerate(assumptions):
        if not a.validation:
            r.warn(f"keyAssumptions[{i}].validation", "Add a validation method.")
        if a.validation_status == "pending":
            r.warn(f"keyAssumptions[{i}].validationStatus", "Validation pending.")
    return r.result()


# ---------- f) cashflow integrity ----------
def validate_cashflow_integrity(options: Sequence[Option], horizon_months: int) -> ValidationResult:
    r = _Collector()
    for i, o in enumerate(options):
        for j, li in enumerate(o.line_items):
            field = f"options[{i}].lineItems[{j}]"
            if not li.amount > 0:
                r.error(f"{field}.amount", "Amount must be > 0", "AMOUNT_NOT_POSITIVE")
            if (
                Recurrence(li.recurrence) is not Recurrence.ONE_TIME
                and li.end_month is not None
                and li.end_month <= li.start_month
            ):
                r.error(f"{field}.endMonth",
                        "endMonth must be > startMonth for recurring items",
                        "END_BEFORE_START")
            if li.start_month >= horizon_months:
                r.warn(f"{field}.startMonth",
                       f"Starts at month {li.start_month}, outside the {horizon_months}-month horizon; "
                       "it contributes nothing.",
                       "Extend the horizon or move the start month.")
    return r.result()


# ---------- g) return targets ----------
def validate_return_targets(case: BusinessCase) -> ValidationResult:
    """Needs an analyzed case; options without a CalcBlock are skipped."""
    r = _Collector()
    fin = case.financial
    for i, o in enumerate(case.options):
        if o.is_baseline or o.calc is None:
            continue
        calc = o.calc
        if fin.minimum_roi_pct is not None and calc.roi_pct is not None and calc.roi_pct < fin.minimum_roi_pct:
            r.warn(f"options[{i}]._calc.roiPct",
                   f"ROI {calc.roi_pct:.2f}% is below the {fin.minimum_roi_pct:.2f}% minimum.")
        if fin.maximum_payback_months is not None:
            if calc.payback_months is None:
                r.warn(f"options[{i}]._calc.paybackMonths",
                       "Option does not pay back within the horizon.",
                       f"Payback target is {fin.maximum_payback_months} months.")
            elif calc.payback_months > fin.maximum_payback_months:
                r.warn(f"options[{i}]._calc.paybackMonths",
                       f"Payback at month {calc.payback_months} exceeds the "
                       f"{fin.maximum_payback_months}-month target.")
    return r.result()


def merge_results(results: Sequence[ValidationResult]) -> ValidationResult:
    errors: List[ValidationIssue] = []
    warnings: List[ValidationWarning] = []
    ok = True
    for res in results:
        ok = ok and res.is_valid
        errors.extend(res.errors)
        warnings.extend(res.warnings)
    return ValidationResult(is_valid=ok, errors=tuple(errors), warnings=tuple(warnings))


def validate_business_case(case: BusinessCase) -> ValidationResult:
    """Run every check in declaration order and AND their verdicts."""
    return merge_results([
        validate_financial_thresholds(case),
        validate_option_comparison(case.options, case.project_type, case.organizational),
        validate_risk_assessment(_all_risks(case), case.organizational.risk_tolerance_level),
        validate_kpi_completeness(case.strategic.success_kpis),
        validate_assumptions(case.strategic.key_assumptions),
        validate_cashflow_integrity(case.options, case.financial.horizon_months),
        validate_return_targets(case),
    ])


__all__ = [
    "RECURRING_BASELINE_MESSAGE",
    "validate_financial_thresholds", "validate_option_comparison",
    "validate_risk_assessment", "validate_kpi_completeness",
    "validate_assumptions", "validate_cashflow_integrity",
    "validate_return_targets", "merge_results", "validate_business_case",
]
