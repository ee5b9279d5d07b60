import pytest

from pmi_bizcase.finance.cashflow import build_series, generate_monthly_cashflow, sign_changes
from pmi_bizcase.types import (
    Category,
    Kind,
    LineItem,
    OrganizationalSettings,
    Recurrence,
    RecurrenceBehavior,
)


def _item(kind="cost", amount=100.0, recurrence="one-time", start=0, **kw):
    cat = Category.OPEX if kind == "cost" else Category.PRODUCTIVITY
    return LineItem(
        kind=Kind(kind),
        category=kw.pop("category", cat),
        amount=amount,
        recurrence=Recurrence(recurrence),
        start_month=start,
        **kw,
    )


@pytest.mark.parametrize("horizon", [6, 12, 36, 120])
def test_series_length_equals_horizon(horizon):
    res = generate_monthly_cashflow([_item(recurrence="monthly")], horizon)
    assert len(res.series) == horizon


def test_one_time_posts_only_at_start_month():
    res = generate_monthly_cashflow([_item(amount=250.0, start=4)], 12)
    assert res.series[4] == -250.0
    assert sum(1 for v in res.series if v != 0) == 1


def test_one_time_at_or_after_horizon_is_dropped():
    for start in (12, 13, 500):
        res = generate_monthly_cashflow([_item(kind="benefit", start=start)], 12)
        assert all(v == 0 for v in res.series)
        assert res.totals.benefits == 0


def test_monthly_ends_at_horizon_covers_every_month_from_start():
    item = _item(kind="benefit", amount=10.0, recurrence="monthly", start=3,
                 recurrence_behavior=RecurrenceBehavior(ends_at_horizon=True))
    res = generate_monthly_cashflow([item], 12)
    assert list(res.series) == [0.0] * 3 + [10.0] * 9


def test_quarterly_with_explicit_end_month():
    item = _item(recurrence="quarterly", start=0, end_month=7,
                 recurrence_behavior=RecurrenceBehavior(ends_at_horizon=False))
    series = build_series([item], 12)
    assert [m for m, v in enumerate(series) if v] == [0, 3, 6]


def test_end_month_is_clamped_to_horizon():
    item = _item(recurrence="monthly", start=8, end_month=40,
                 recurrence_behavior=RecurrenceBehavior(ends_at_horizon=False))
    series = build_series([item], 12)
    assert [m for m, v in enumerate(series) if v] == [8, 9, 10, 11]


def test_total_occurrences_bound_the_recurrence():
    annual = _item(recurrence="annual", start=2,
                   recurrence_behavior=RecurrenceBehavior(ends_at_horizon=False, total_occurrences=2))
    series = build_series([annual], 36)
    assert [m for m, v in enumerate(series) if v] == [2, 14]


def test_total_occurrences_clamped_at_horizon():
    monthly = _item(recurrence="monthly", start=10,
                    recurrence_behavior=RecurrenceBehavior(ends_at_horizon=False, total_occurrences=5))
    series = build_series([monthly], 12)
    assert [m for m, v in enumerate(series) if v] == [10, 11]


def test_ends_at_horizon_takes_priority_over_end_month():
    item = _item(recurrence="monthly", start=0, end_month=2,
                 recurrence_behavior=RecurrenceBehavior(ends_at_horizon=True))
    series = build_series([item], 6)
    assert all(v == -100.0 for v in series)


def test_default_recurrence_policy_applies_without_behavior():
    item = _item(recurrence="monthly", start=0, end_month=3)
    horizon_policy = OrganizationalSettings(default_recurrence_end="horizon")
    explicit_policy = OrganizationalSettings(default_recurrence_end="explicit")

    assert sum(1 for v in build_series([item], 6, horizon_policy) if v) == 6
    assert [m for m, v in enumerate(build_series([item], 6, explicit_policy)) if v] == [0, 1, 2]


def test_totals_and_metadata():
    items = [
        _item(amount=100.0, start=0),
        _item(kind="benefit", amount=50.0, recurrence="monthly", start=1, end_month=3,
              recurrence_behavior=RecurrenceBehavior(ends_at_horizon=False)),
        _item(amount=10.0, start=3),
    ]
    res = generate_monthly_cashflow(items, 6)
    assert list(res.series) == [-100.0, 50.0, 50.0, -10.0, 0.0, 0.0]
    assert res.totals.costs == 110.0
    assert res.totals.benefits == 100.0
    assert res.totals.net == -10.0
    assert res.metadata.sign_changes == 2
    assert res.metadata.has_irregular_flow is True
    assert res.metadata.max_drawdown == 100.0
    assert res.metadata.peak_cash_flow == 50.0


def test_sign_changes_skip_zero_months():
    assert sign_changes([-1, 0, 0, 2, 0, 3]) == 1
    assert sign_changes([0, 0, 0]) == 0
    assert sign_changes([5, -1, 0, 4]) == 2


def test_generation_is_deterministic():
    items = [
        _item(amount=1234.56, recurrence="quarterly", start=1),
        _item(kind="benefit", amount=0.1, recurrence="monthly", start=0),
    ]
    assert generate_monthly_cashflow(items, 48) == generate_monthly_cashflow(items, 48)
