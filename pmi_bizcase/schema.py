from __future__ import annotations
from typing import Any, Dict, List

# Record-level constants
SCHEMA_VERSION = "1.0"
TOP_LEVEL_KEYS = {
    "schemaVersion", "projectType", "strategic", "financial", "organizational",
    "options", "projectRisks", "recommendedOption", "recommendationRationale",
    "percentScale", "workflow", "nextSteps", "complianceChecks", "lastFinancialReview",
}
REQUIRED_KEYS = {"financial", "options"}
FINANCIAL_FLAGS = ("requireNPV", "requireMIRR", "includeTaxes", "includeInflation")

# Enumerations (wire values)
CURRENCIES = ("CAD", "USD", "EUR", "GBP", "ZAR", "BWP", "CDF")
PROJECT_TYPES = ("new_development", "infrastructure", "process_improvement", "compliance", "maintenance")
KINDS = ("cost", "benefit")
CATEGORIES = (
    "capex", "opex", "licensing", "maintenance", "compliance",
    "revenue", "cost_savings", "risk_avoidance", "productivity",
)
RECURRENCES = ("one-time", "monthly", "quarterly", "annual")
RISK_LEVELS = ("Very Low", "Low", "Medium", "High", "Very High")
CONFIDENCE = ("Low", "Medium", "High")
TOLERANCE = ("Low", "Medium", "High")
RECURRENCE_END = ("horizon", "explicit")
PERCENT_SCALES = ("percent", "fraction")
ASSUMPTION_STATUS = ("pending", "validated", "invalidated", "partial")

# Fields on the 0-100 percent scale; converted when percentScale == "fraction".
PERCENT_FIELDS = {
    "financial": ("discountRatePct", "taxRatePct", "inflationRatePct", "minimumROI"),
    "organizational": ("financeRatePct", "reinvestRatePct", "defaultDiscountRate"),
}

# Scalar schema: unit, type, min/max ranges, and description.
# "clamp": True means out-of-range values are clamped instead of rejected.
FINANCIAL_SCHEMA: Dict[str, Dict[str, Any]] = {
    "horizonMonths":        {"unit": "months",  "type": "int",   "min": 6,   "max": 120,   "clamp": True, "desc": "Projection length"},
    "discountRatePct":      {"unit": "percent", "type": "float", "min": 0.0, "max": 100.0, "clamp": True, "desc": "Annual discount rate"},
    "taxRatePct":           {"unit": "percent", "type": "float", "min": 0.0, "max": 100.0, "desc": "Flat tax on benefits"},
    "inflationRatePct":     {"unit": "percent", "type": "float", "min": 0.0, "max": 100.0, "desc": "Annual inflation"},
    "minimumROI":           {"unit": "percent", "type": "float", "min": 0.0, "max": 1e6,   "desc": "ROI target"},
    "maximumPaybackMonths": {"unit": "months",  "type": "int",   "min": 1,   "max": 1200,  "desc": "Payback target"},
}

ORGANIZATIONAL_SCHEMA: Dict[str, Dict[str, Any]] = {
    "npvThreshold":        {"unit": "currency", "type": "float", "min": 0.0, "max": 1e15,  "desc": "CapEx above which NPV is expected"},
    "irrThreshold":        {"unit": "currency", "type": "float", "min": 0.0, "max": 1e15,  "desc": "CapEx above which MIRR is expected"},
    "financeRatePct":      {"unit": "percent",  "type": "float", "min": 0.0, "max": 100.0, "desc": "MIRR finance rate"},
    "reinvestRatePct":     {"unit": "percent",  "type": "float", "min": 0.0, "max": 100.0, "desc": "MIRR reinvestment rate"},
    "defaultDiscountRate": {"unit": "percent",  "type": "float", "min": 0.0, "max": 100.0, "desc": "Organization default discount rate"},
}

LINE_ITEM_SCHEMA: Dict[str, Dict[str, Any]] = {
    "startMonth": {"unit": "months", "type": "int", "min": 0, "max": 10_000, "desc": "First posting month"},
    "endMonth":   {"unit": "months", "type": "int", "min": 0, "max": 10_000, "desc": "Exclusive end month"},
}

RISK_MATRIX_SIZE = 5
RISK_SCORE_MIN = 1
RISK_SCORE_MAX = 25


def matrix_is_monotonic(values: List[List[float]]) -> bool:
    """Non-decreasing along every row and every column."""
    n = len(values)
    for i in range(n):
        for j in range(n - 1):
            if values[i][j] > values[i][j + 1]:
                return False
    for j in range(n):
        for i in range(n - 1):
            if values[i][j] > values[i + 1][j]:
                return False
    return True


# Composite constraints evaluated after scalar checks (strict mode only).
COMPOSITE_CONSTRAINTS = [
    {
        "name": "tax_rate_when_taxes_included",
        "check": lambda f: not f.get("includeTaxes") or f.get("taxRatePct") is not None,
        "message": "financial.includeTaxes requires financial.taxRatePct.",
    },
    {
        "name": "inflation_rate_when_inflation_included",
        "check": lambda f: not f.get("includeInflation") or f.get("inflationRatePct") is not None,
        "message": "financial.includeInflation requires financial.inflationRatePct.",
    },
]
