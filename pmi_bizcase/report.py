#!/usr/bin/env python3
"""
Tabular views of an analyzed Business Case for export collaborators.

comparison_frame: one row per option with its computed figures
monthly_frame:    one column per option, one row per month
"""
from typing import Optional

import pandas as pd

from .adapters import option_summaries
from .finance.cashflow import generate_monthly_cashflow
from .types import BusinessCase


def comparison_frame(case: BusinessCase) -> pd.DataFrame:
    """
    Per-option comparison table.

    Args:
        case: An analyzed Business Case (options carry a CalcBlock)

    Returns:
        DataFrame indexed by option id. Summary figures are stored in
        df.attrs: currency, horizon_months, best_roi_option, best_npv_option.
    """
    df = pd.DataFrame(option_summaries(case)).set_index("optionId")

    df.attrs['currency'] = case.financial.currency
    df.attrs['horizon_months'] = case.financial.horizon_months
    candidates = df[~df['isBaseline']] if 'isBaseline' in df else df
    for metric, key in (('roiPct', 'best_roi_option'), ('npv', 'best_npv_option')):
        series = pd.to_numeric(candidates[metric], errors='coerce') if metric in candidates else pd.Series(dtype=float)
        df.attrs[key] = series.idxmax() if series.notna().any() else None
    return df


def monthly_frame(case: BusinessCase, cumulative: bool = False) -> pd.DataFrame:
    """
    Monthly signed cashflow per option over the shared horizon.

    Uses the stored series when the case was analyzed with include_monthly,
    otherwise regenerates it from the line items.
    """
    horizon = case.financial.horizon_months
    data = {}
    for o in case.options:
        if o.calc is not None and o.calc.monthly_cash_flow is not None:
            data[o.id] = list(o.calc.monthly_cash_flow)
        else:
            data[o.id] = list(generate_monthly_cashflow(o.line_items, horizon, case.organizational).series)

    df = pd.DataFrame(data, index=pd.RangeIndex(horizon, name='month'))
    if cumulative:
        df = df.cumsum()
    df.attrs['currency'] = case.financial.currency
    return df


def format_pct(value: Optional[float], digits: int = 1) -> str:
    """Values are already on the 0-100 scale."""
    if value is None or pd.isna(value):
        return 'n/a'
    return f"{value:.{digits}f}%"


def format_money(value: Optional[float], currency: str) -> str:
    if value is None or pd.isna(value):
        return 'n/a'
    return f"{currency} {value:,.2f}"
