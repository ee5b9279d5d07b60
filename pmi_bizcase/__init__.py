"""
Business Case financial analysis engine.

    case = business_case_from_dict(record)
    analyzed = analyze_business_case(case)
    result = validate_business_case(analyzed)
"""
from pmi_bizcase.adapters import business_case_from_dict, business_case_to_dict
from pmi_bizcase.analyzer import StructuralError, analyze_business_case
from pmi_bizcase.risk import compute_risk_score
from pmi_bizcase.rules import validate_business_case
from pmi_bizcase.validate import SchemaError

__version__ = "1.0.0"

__all__ = [
    "business_case_from_dict",
    "business_case_to_dict",
    "analyze_business_case",
    "validate_business_case",
    "compute_risk_score",
    "StructuralError",
    "SchemaError",
]
