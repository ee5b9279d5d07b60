# pmi_bizcase/analyzer.py
"""
Per-option analysis: cashflow -> metrics -> caveats, plus risk scoring.

analyze_business_case() is a pure function of its input. It returns a new
BusinessCase whose options carry a fresh CalcBlock; nothing from a previous
pass is reused.
"""
from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .finance.cashflow import generate_monthly_cashflow
from .finance.metrics import (
    apply_flat_tax,
    benefit_cost_ratio,
    calculate_mirr,
    calculate_payback_period,
    calculate_roi,
    fisher_real_rate,
    npv,
    profitability_index,
)
from .logger import setup_logger
from .risk import score_risk
from .types import (
    BusinessCase,
    CalcBlock,
    FinancialSettings,
    Option,
    OrganizationalSettings,
    RiskEntry,
    RiskMatrix,
)

logger = setup_logger(__name__)

IRREGULAR_CASHFLOW_WARNING = "Irregular cashflow detected (multiple sign changes)."
NO_COSTS_WARNING = "Option has benefits but no costs - verify this is correct."
NO_BENEFITS_WARNING = "Option has costs but no benefits - this may not be viable."


class StructuralError(ValueError):
    """The model violates an invariant that upstream mapping must guarantee."""


def check_structure(options: Sequence[Option]) -> None:
    if len(options) < 2:
        raise StructuralError(f"at least two options are required, got {len(options)}")
    baselines = [o.id for o in options if o.is_baseline]
    if len(baselines) != 1:
        raise StructuralError(f"exactly one baseline option is required, got {len(baselines)}: {baselines}")
    empty = [o.id for o in options if not o.line_items]
    if empty:
        raise StructuralError(f"options without line items: {empty}")


def effective_discount_rate(fin: FinancialSettings) -> float:
    """Nominal discount rate, or the Fisher real rate when inflation is on."""
    if fin.include_inflation and fin.inflation_rate_pct is not None:
        return fisher_real_rate(fin.discount_rate_pct, fin.inflation_rate_pct)
    return fin.discount_rate_pct


def _tax_rate(fin: FinancialSettings) -> Optional[float]:
    return fin.tax_rate_pct if fin.include_taxes else None


def analyze_option(
    option: Option,
    fin: FinancialSettings,
    org: OrganizationalSettings,
    *,
    include_monthly: bool = False,
) -> Option:
    cf = generate_monthly_cashflow(option.line_items, fin.horizon_months, org)
    costs, benefits = cf.totals.costs, cf.totals.benefits

    roi = calculate_roi(costs, benefits)
    discount = effective_discount_rate(fin)
    tax = _tax_rate(fin)

    npv_value: Optional[float] = None
    discounted_payback: Optional[int] = None
    if fin.require_npv:
        npv_value = npv(cf.series, discount, tax)
        taxed = apply_flat_tax(cf.series, tax)
        discounted_payback = calculate_payback_period(taxed, discount).discounted_months
    payback = calculate_payback_period(cf.series)

    warnings: List[str] = []
    mirr_pct: Optional[float] = None
    if fin.require_mirr:
        mirr = calculate_mirr(cf.series, org.finance_rate_pct, org.reinvest_rate_pct)
        mirr_pct = mirr.mirr_pct
        warnings.extend(mirr.warnings)

    if cf.metadata.has_irregular_flow:
        warnings.append(IRREGULAR_CASHFLOW_WARNING)
    if costs == 0 and benefits > 0:
        warnings.append(NO_COSTS_WARNING)
    if costs > 0 and benefits == 0:
        warnings.append(NO_BENEFITS_WARNING)

    calc = CalcBlock(
        horizon_months=fin.horizon_months,
        currency=fin.currency,
        total_costs=costs,
        total_benefits=benefits,
        net_benefit=cf.totals.net,
        roi_pct=roi,
        payback_months=payback.months,
        npv=npv_value,
        mirr_pct=mirr_pct,
        benefit_cost_ratio=benefit_cost_ratio(benefits, costs),
        profitability_index=profitability_index(npv_value, costs),
        break_even_month=payback.break_even_month,
        warnings=tuple(warnings),
        has_irregular_cash_flow=cf.metadata.has_irregular_flow,
        sign_changes=cf.metadata.sign_changes,
        discounted_payback_months=discounted_payback,
        max_drawdown=cf.metadata.max_drawdown,
        peak_cash_flow=cf.metadata.peak_cash_flow,
        monthly_cash_flow=cf.series if include_monthly else None,
    )
    return replace(
        option,
        option_specific_risks=score_risks(option.option_specific_risks, org.risk_matrix),
        calc=calc,
    )


def score_risks(risks: Sequence[RiskEntry], matrix: RiskMatrix) -> Tuple[RiskEntry, ...]:
    return tuple(replace(r, risk_score=score_risk(r, matrix)) for r in risks)


def analyze_business_case(case: BusinessCase, *, include_monthly: bool = False) -> BusinessCase:
    """
    Attach a CalcBlock to every option and a risk_score to every risk.
    Raises StructuralError before any computation when the model is malformed.
    """
    check_structure(case.options)
    fin, org = case.financial, case.organizational

    options = tuple(
        analyze_option(o, fin, org, include_monthly=include_monthly) for o in case.options
    )
    logger.debug(
        "analyzed %d options over %d months (npv=%s, mirr=%s)",
        len(options), fin.horizon_months, fin.require_npv, fin.require_mirr,
    )
    return replace(
        case,
        options=options,
        project_risks=score_risks(case.project_risks, org.risk_matrix),
    )


__all__ = [
    "StructuralError",
    "IRREGULAR_CASHFLOW_WARNING", "NO_COSTS_WARNING", "NO_BENEFITS_WARNING",
    "check_structure", "effective_discount_rate",
    "analyze_option", "score_risks", "analyze_business_case",
]
