# pmi_bizcase/finance/cashflow.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from pmi_bizcase.types import Kind, LineItem, OrganizationalSettings, Recurrence

# months between postings; one-time items post once
_STEP = {
    Recurrence.ONE_TIME: 0,
    Recurrence.MONTHLY: 1,
    Recurrence.QUARTERLY: 3,
    Recurrence.ANNUAL: 12,
}


@dataclass(frozen=True)
class CashflowTotals:
    costs: float
    benefits: float
    net: float


@dataclass(frozen=True)
class CashflowMetadata:
    sign_changes: int
    has_irregular_flow: bool
    max_drawdown: float
    peak_cash_flow: float


@dataclass(frozen=True)
class CashflowResult:
    series: Tuple[float, ...]
    totals: CashflowTotals
    metadata: CashflowMetadata


def step_of(recurrence: Recurrence) -> int:
    return _STEP[Recurrence(recurrence)]


def _end_exclusive(
    li: LineItem, start: int, step: int, horizon_months: int, default_ends_at_horizon: bool
) -> int:
    """
    Exclusive end month of a recurring item, resolved in order:
    ends_at_horizon -> end_month -> total_occurrences -> horizon.
    """
    behavior = li.recurrence_behavior
    ends_at_horizon = behavior.ends_at_horizon if behavior is not None else default_ends_at_horizon
    occurrences = behavior.total_occurrences if behavior is not None else None

    if ends_at_horizon:
        return horizon_months
    if li.end_month is not None:
        return min(int(li.end_month), horizon_months)
    if occurrences and occurrences > 0:
        return min(start + step * int(occurrences), horizon_months)
    return horizon_months


def build_series(
    line_items: Iterable[LineItem],
    horizon_months: int,
    org: Optional[OrganizationalSettings] = None,
) -> np.ndarray:
    """
    Signed monthly series over [0, horizon). Costs post negative, benefits
    positive. Items starting at or after the horizon contribute nothing.
    """
    h = int(horizon_months)
    series = np.zeros(max(0, h), dtype=float)
    default_ends_at_horizon = (org.default_recurrence_end if org is not None else "horizon") == "horizon"

    for li in line_items:
        sign = -1.0 if Kind(li.kind) is Kind.COST else 1.0
        start = max(0, int(li.start_month))
        if start >= h:
            continue
        amount = sign * float(li.amount)

        step = step_of(li.recurrence)
        if step == 0:
            series[start] += amount
            continue

        end = _end_exclusive(li, start, step, h, default_ends_at_horizon)
        for m in range(start, min(end, h), step):
            series[m] += amount
    return series


def sign_changes(cashflows: Sequence[float]) -> int:
    """Count sign flips, skipping zero months."""
    prev = 0.0
    changes = 0
    for x in cashflows:
        if x == 0:
            continue
        s = float(np.sign(x))
        if prev == 0:
            prev = s
            continue
        if s != prev:
            changes += 1
            prev = s
    return changes


def generate_monthly_cashflow(
    line_items: Iterable[LineItem],
    horizon_months: int,
    org: Optional[OrganizationalSettings] = None,
) -> CashflowResult:
    series = build_series(line_items, horizon_months, org)

    costs = float(-series[series < 0].sum()) if series.size else 0.0
    benefits = float(series[series > 0].sum()) if series.size else 0.0
    cumulative = np.cumsum(series)
    max_drawdown = abs(min(0.0, float(cumulative.min()))) if series.size else 0.0
    peak = max(0.0, float(series.max())) if series.size else 0.0
    sc = sign_changes(series)

    return CashflowResult(
        series=tuple(float(v) for v in series),
        totals=CashflowTotals(costs=costs, benefits=benefits, net=benefits - costs),
        metadata=CashflowMetadata(
            sign_changes=sc,
            has_irregular_flow=sc > 1,
            max_drawdown=max_drawdown,
            peak_cash_flow=peak,
        ),
    )


__all__ = [
    "CashflowTotals", "CashflowMetadata", "CashflowResult",
    "step_of", "build_series", "sign_changes", "generate_monthly_cashflow",
]
