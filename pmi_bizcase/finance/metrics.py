# pmi_bizcase/finance/metrics.py
"""
Investment metrics over a monthly cashflow series.

Design:
- NPV lives only here (singleton); other modules import it.
- Rates are percentages on a 0-100 scale; annual rates are converted to an
  effective monthly rate before discounting.
- Month t is discounted by (1 + rm) ** (t + 1), i.e. flows sit at month end.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import numpy_financial as npf

from .cashflow import sign_changes

IRREGULAR_FLOW_CAVEAT = "Multiple sign changes detected; IRR can be non-unique. MIRR shown."
MIRR_NOT_COMPUTABLE_CAVEAT = "MIRR not computable (no negative PV or empty series)."


@dataclass(frozen=True)
class MirrResult:
    mirr_pct: Optional[float]
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PaybackResult:
    months: Optional[int]
    break_even_month: Optional[int]
    discounted_months: Optional[int] = None


# ---------- rate helpers ----------
def monthly_rate(annual_rate_pct: float) -> float:
    """Effective monthly rate: (1 + r) ** (1/12) - 1."""
    return (1.0 + float(annual_rate_pct) / 100.0) ** (1.0 / 12.0) - 1.0


def fisher_real_rate(nominal_pct: float, inflation_pct: float) -> float:
    """Real rate in percent: ((1 + n) / (1 + i) - 1) * 100."""
    nominal = float(nominal_pct) / 100.0
    infl = float(inflation_pct) / 100.0
    return ((1.0 + nominal) / (1.0 + infl) - 1.0) * 100.0


def apply_flat_tax(cashflows: Sequence[float], tax_rate_pct: Optional[float]) -> np.ndarray:
    """Tax positive (benefit) months at a flat rate; costs stay untaxed."""
    cfs = np.asarray(cashflows, dtype=float)
    if tax_rate_pct is None:
        return cfs
    return np.where(cfs > 0, cfs * (1.0 - float(tax_rate_pct) / 100.0), cfs)


# ---------- ROI ----------
def calculate_roi(costs: float, benefits: float) -> Optional[float]:
    """(benefits - costs) / costs * 100; None when costs <= 0."""
    if costs <= 0:
        return None
    return (benefits - costs) / costs * 100.0


# ---------- NPV ----------
def npv(cashflows: Sequence[float], discount_rate_pct: float, tax_rate_pct: Optional[float] = None) -> float:
    """
    NPV = sum_{t=0..N-1} CF[t] / (1 + rm) ** (t + 1)

    numpy_financial discounts index 0 by (1 + r) ** 0, so a zero is prepended
    to shift every month one period out.
    """
    adjusted = apply_flat_tax(cashflows, tax_rate_pct)
    if adjusted.size == 0:
        return 0.0
    rm = monthly_rate(discount_rate_pct)
    return float(npf.npv(rm, np.concatenate(([0.0], adjusted))))


# ---------- MIRR ----------
def calculate_mirr(
    cashflows: Sequence[float],
    finance_rate_pct: float,
    reinvest_rate_pct: float,
) -> MirrResult:
    """
    Annualized MIRR in percent with separate finance and reinvestment rates.

    Negatives are discounted to present value at the finance rate, positives
    compounded to period n at the reinvestment rate. Returns mirr_pct=None
    when there is no negative flow.
    """
    cfs = np.asarray(cashflows, dtype=float)
    warnings = []
    if sign_changes(cfs) > 1:
        warnings.append(IRREGULAR_FLOW_CAVEAT)

    n = cfs.size
    mirr_pct: Optional[float] = None
    if n > 0:
        rf = monthly_rate(finance_rate_pct)
        rr = monthly_rate(reinvest_rate_pct)
        periods = np.arange(1, n + 1, dtype=float)
        neg = np.where(cfs < 0, cfs, 0.0)
        pos = np.where(cfs > 0, cfs, 0.0)
        pv_neg = float(np.sum(neg / (1.0 + rf) ** periods))
        fv_pos = float(np.sum(pos * (1.0 + rr) ** (n - periods)))
        if pv_neg != 0:
            monthly = (-fv_pos / pv_neg) ** (1.0 / n) - 1.0
            mirr_pct = ((1.0 + monthly) ** 12 - 1.0) * 100.0

    if mirr_pct is None:
        warnings.append(MIRR_NOT_COMPUTABLE_CAVEAT)
    return MirrResult(mirr_pct=mirr_pct, warnings=tuple(warnings))


# ---------- payback ----------
def _first_non_negative(cumulative: np.ndarray) -> Optional[int]:
    hits = np.flatnonzero(cumulative >= 0)
    return int(hits[0]) if hits.size else None


def calculate_payback_period(
    cashflows: Sequence[float],
    discount_rate_pct: Optional[float] = None,
) -> PaybackResult:
    """
    Payback is the first month whose running total reaches zero; it doubles
    as the break-even month. With a discount rate, the discounted payback
    uses the same month-end convention as npv().
    """
    cfs = np.asarray(cashflows, dtype=float)
    months = _first_non_negative(np.cumsum(cfs))

    discounted = None
    if discount_rate_pct is not None and cfs.size:
        rm = monthly_rate(discount_rate_pct)
        factors = (1.0 + rm) ** np.arange(1, cfs.size + 1, dtype=float)
        discounted = _first_non_negative(np.cumsum(cfs / factors))

    return PaybackResult(months=months, break_even_month=months, discounted_months=discounted)


# ---------- ratios ----------
def benefit_cost_ratio(benefits: float, costs: float) -> Optional[float]:
    if costs <= 0:
        return None
    return benefits / costs


def profitability_index(npv_value: Optional[float], costs: float) -> Optional[float]:
    """(NPV + costs) / costs; only meaningful when NPV was computed."""
    if npv_value is None or costs <= 0:
        return None
    return (npv_value + costs) / costs


__all__ = [
    "MirrResult", "PaybackResult",
    "IRREGULAR_FLOW_CAVEAT", "MIRR_NOT_COMPUTABLE_CAVEAT",
    "monthly_rate", "fisher_real_rate", "apply_flat_tax",
    "calculate_roi", "npv", "calculate_mirr", "calculate_payback_period",
    "benefit_cost_ratio", "profitability_index",
]
