import pytest

from pmi_bizcase.analyzer import (
    NO_BENEFITS_WARNING,
    NO_COSTS_WARNING,
    StructuralError,
    analyze_business_case,
    effective_discount_rate,
)
from pmi_bizcase.finance.metrics import MIRR_NOT_COMPUTABLE_CAVEAT, fisher_real_rate
from pmi_bizcase.types import (
    BusinessCase,
    Category,
    FinancialSettings,
    Kind,
    LineItem,
    Option,
    Recurrence,
    RecurrenceBehavior,
    RiskEntry,
    RiskLevel,
)

TO_HORIZON = RecurrenceBehavior(ends_at_horizon=True)


def _baseline(*items):
    items = items or (LineItem(Kind.COST, Category.OPEX, 10.0, Recurrence.MONTHLY, 0, recurrence_behavior=TO_HORIZON),)
    return Option(id="baseline", name="Status quo", is_baseline=True, line_items=tuple(items))


def _proposed(*items, risks=()):
    items = items or (
        LineItem(Kind.COST, Category.CAPEX, 1200.0),
        LineItem(Kind.BENEFIT, Category.PRODUCTIVITY, 100.0, Recurrence.MONTHLY, 1, recurrence_behavior=TO_HORIZON),
    )
    return Option(id="proposed", name="Upgrade", is_baseline=False, line_items=tuple(items),
                  option_specific_risks=tuple(risks))


def _case(options=None, **fin):
    fin.setdefault("horizon_months", 12)
    fin.setdefault("discount_rate_pct", 0.0)
    return BusinessCase(
        options=tuple(options) if options is not None else (_baseline(), _proposed()),
        financial=FinancialSettings(**fin),
    )


def test_proposed_option_figures():
    out = analyze_business_case(_case())
    calc = out.options[1].calc
    assert calc.total_costs == 1200.0
    assert calc.total_benefits == 1100.0
    assert calc.net_benefit == -100.0
    assert calc.roi_pct == pytest.approx(-8.3333333, rel=1e-6)
    assert calc.payback_months is None
    assert calc.break_even_month is None
    assert calc.sign_changes == 1
    assert calc.has_irregular_cash_flow is False
    assert calc.max_drawdown == 1200.0
    assert calc.peak_cash_flow == 100.0


def test_npv_and_mirr_are_only_computed_when_required():
    calc = analyze_business_case(_case()).options[1].calc
    assert calc.npv is None
    assert calc.mirr_pct is None
    assert calc.profitability_index is None
    assert calc.discounted_payback_months is None

    calc = analyze_business_case(_case(require_npv=True, require_mirr=True)).options[1].calc
    assert calc.npv == pytest.approx(-100.0)
    assert calc.profitability_index == pytest.approx(1100.0 / 1200.0)
    assert calc.mirr_pct is not None


def test_calc_carries_horizon_and_currency():
    out = analyze_business_case(_case(horizon_months=24, currency="USD"))
    for o in out.options:
        assert o.calc.horizon_months == 24
        assert o.calc.currency == "USD"


def test_cost_only_and_benefit_only_caveats():
    gift = _proposed(LineItem(Kind.BENEFIT, Category.REVENUE, 100.0))
    out = analyze_business_case(_case([_baseline(), gift]))
    assert NO_BENEFITS_WARNING in out.options[0].calc.warnings
    assert NO_COSTS_WARNING in out.options[1].calc.warnings
    assert out.options[1].calc.roi_pct is None


def test_mirr_caveat_precedes_cost_caveat():
    gift = _proposed(LineItem(Kind.BENEFIT, Category.REVENUE, 100.0))
    warnings = analyze_business_case(_case([_baseline(), gift], require_mirr=True)).options[1].calc.warnings
    assert warnings == (MIRR_NOT_COMPUTABLE_CAVEAT, NO_COSTS_WARNING)


def test_taxes_apply_to_npv_benefits_only():
    gift = _proposed(LineItem(Kind.BENEFIT, Category.REVENUE, 100.0))
    out = analyze_business_case(
        _case([_baseline(), gift], require_npv=True, include_taxes=True, tax_rate_pct=50.0)
    )
    assert out.options[1].calc.npv == pytest.approx(50.0)
    assert out.options[0].calc.npv == pytest.approx(-120.0)


def test_effective_discount_rate():
    assert effective_discount_rate(FinancialSettings(discount_rate_pct=8.0)) == 8.0
    assert effective_discount_rate(
        FinancialSettings(discount_rate_pct=8.0, include_inflation=True, inflation_rate_pct=2.0)
    ) == pytest.approx(fisher_real_rate(8.0, 2.0))
    # inflation switched on without a rate falls back to the nominal rate
    assert effective_discount_rate(FinancialSettings(discount_rate_pct=8.0, include_inflation=True)) == 8.0


def test_monthly_series_only_on_request():
    assert analyze_business_case(_case()).options[0].calc.monthly_cash_flow is None
    series = analyze_business_case(_case(), include_monthly=True).options[1].calc.monthly_cash_flow
    assert len(series) == 12
    assert series[0] == -1200.0


def test_risks_are_scored_on_options_and_project():
    rk = RiskEntry(statement="adoption", probability=RiskLevel.MEDIUM, impact=RiskLevel.HIGH,
                   mitigation="training", owner="PM")
    case = BusinessCase(
        options=(_baseline(), _proposed(risks=[rk])),
        financial=FinancialSettings(horizon_months=12),
        project_risks=(rk,),
    )
    out = analyze_business_case(case)
    assert out.options[1].option_specific_risks[0].risk_score == 12
    assert out.project_risks[0].risk_score == 12


def test_input_is_left_untouched():
    case = _case()
    analyze_business_case(case)
    assert all(o.calc is None for o in case.options)


def test_analysis_is_idempotent():
    case = _case(require_npv=True, require_mirr=True)
    once = analyze_business_case(case)
    assert analyze_business_case(case) == once
    assert analyze_business_case(once) == once


@pytest.mark.parametrize(
    "options, match",
    [
        ([_baseline()], "at least two"),
        ([_proposed(), _proposed()], "exactly one baseline"),
        ([_baseline(), _baseline()], "exactly one baseline"),
        ([_baseline(), Option(id="empty", name="Empty", is_baseline=False, line_items=())], "without line items"),
    ],
)
def test_structural_errors_stop_analysis(options, match):
    with pytest.raises(StructuralError, match=match):
        analyze_business_case(_case(options))
