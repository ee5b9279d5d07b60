"""
Finance layer: monthly cashflow series and the metrics derived from them.
"""
from pmi_bizcase.finance.cashflow import CashflowResult, generate_monthly_cashflow
from pmi_bizcase.finance.metrics import (
    calculate_mirr,
    calculate_payback_period,
    calculate_roi,
    npv,
)

__all__ = [
    "CashflowResult",
    "generate_monthly_cashflow",
    "calculate_roi",
    "npv",
    "calculate_mirr",
    "calculate_payback_period",
]
