# pmi_bizcase/types.py
"""
Typed records for one Business Case.

All records are frozen and hold tuples or read-only mappings, so an analyzed
case never aliases the case it was derived from.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class Kind(str, Enum):
    COST = "cost"
    BENEFIT = "benefit"


class Category(str, Enum):
    CAPEX = "capex"
    OPEX = "opex"
    LICENSING = "licensing"
    MAINTENANCE = "maintenance"
    COMPLIANCE = "compliance"
    REVENUE = "revenue"
    COST_SAVINGS = "cost_savings"
    RISK_AVOIDANCE = "risk_avoidance"
    PRODUCTIVITY = "productivity"


class Recurrence(str, Enum):
    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class RiskLevel(str, Enum):
    VERY_LOW = "Very Low"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"


class ProjectType(str, Enum):
    NEW_DEVELOPMENT = "new_development"
    INFRASTRUCTURE = "infrastructure"
    PROCESS_IMPROVEMENT = "process_improvement"
    COMPLIANCE = "compliance"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class RecurrenceBehavior:
    ends_at_horizon: bool = True
    total_occurrences: Optional[int] = None


@dataclass(frozen=True)
class LineItem:
    kind: Kind
    category: Category
    amount: float
    recurrence: Recurrence = Recurrence.ONE_TIME
    start_month: int = 0
    end_month: Optional[int] = None
    recurrence_behavior: Optional[RecurrenceBehavior] = None
    confidence: str = "Medium"
    id: str = ""
    label: str = ""
    notes: Optional[str] = None


@dataclass(frozen=True)
class RiskEntry:
    statement: str
    probability: RiskLevel
    impact: RiskLevel
    mitigation: str = ""
    owner: str = ""
    category: str = "operational"
    status: str = "identified"
    residual_risk: Optional[RiskLevel] = None
    risk_score: Optional[int] = None
    id: str = ""
    # project-level risks only
    response_strategy: Optional[str] = None
    response_owner: Optional[str] = None


@dataclass(frozen=True)
class CalcBlock:
    """Computed figures for one option; rebuilt on every analysis pass."""

    horizon_months: int
    currency: str
    total_costs: float
    total_benefits: float
    net_benefit: float
    roi_pct: Optional[float]
    payback_months: Optional[int]
    npv: Optional[float]
    mirr_pct: Optional[float]
    benefit_cost_ratio: Optional[float]
    profitability_index: Optional[float]
    break_even_month: Optional[int]
    warnings: Tuple[str, ...]
    has_irregular_cash_flow: bool
    sign_changes: int
    discounted_payback_months: Optional[int] = None
    max_drawdown: float = 0.0
    peak_cash_flow: float = 0.0
    monthly_cash_flow: Optional[Tuple[float, ...]] = None


@dataclass(frozen=True)
class Option:
    id: str
    name: str
    is_baseline: bool
    line_items: Tuple[LineItem, ...]
    description: str = ""
    implementation_complexity: str = "Medium"
    option_specific_risks: Tuple[RiskEntry, ...] = ()
    calc: Optional[CalcBlock] = None


@dataclass(frozen=True)
class FinancialSettings:
    currency: str = "CAD"
    horizon_months: int = 36
    discount_rate_pct: float = 8.0
    require_npv: bool = False
    require_mirr: bool = False
    include_taxes: bool = False
    tax_rate_pct: Optional[float] = None
    include_inflation: bool = False
    inflation_rate_pct: Optional[float] = None
    minimum_roi_pct: Optional[float] = None
    maximum_payback_months: Optional[int] = None


@dataclass(frozen=True)
class RiskMatrix:
    values: Tuple[Tuple[int, ...], ...]
    description: Optional[str] = None


DEFAULT_RISK_MATRIX = RiskMatrix(
    values=(
        (1, 2, 4, 6, 8),      # Very Low probability
        (2, 4, 6, 9, 12),     # Low
        (4, 6, 9, 12, 16),    # Medium
        (6, 9, 12, 16, 20),   # High
        (8, 12, 16, 20, 25),  # Very High
    ),
    description="Standard 5x5 risk matrix with non-linear progression",
)


@dataclass(frozen=True)
class BaselineRequirement:
    required_categories: Tuple[Category, ...]
    description: str = ""


@dataclass(frozen=True)
class OrganizationalSettings:
    npv_threshold: float = 50000.0
    irr_threshold: float = 50000.0
    finance_rate_pct: float = 8.0
    reinvest_rate_pct: float = 8.0
    risk_tolerance_level: str = "Medium"
    risk_matrix: RiskMatrix = DEFAULT_RISK_MATRIX
    baseline_requirements: Mapping[ProjectType, BaselineRequirement] = field(default_factory=dict)
    default_currency: str = "CAD"
    default_recurrence_end: str = "horizon"

    def __post_init__(self) -> None:
        # read-only copy of the caller's mapping
        object.__setattr__(self, "baseline_requirements", MappingProxyType(dict(self.baseline_requirements)))


@dataclass(frozen=True)
class KPI:
    name: str
    baseline: str = ""
    target: str = ""
    owner: str = ""
    unit: str = ""
    measurement_method: str = ""
    measurement_frequency: str = "Monthly"
    priority: str = "Important"
    id: str = ""


@dataclass(frozen=True)
class Assumption:
    assumption: str
    validation: str = ""
    validation_status: str = "pending"
    impact: str = "Medium"
    id: str = ""


@dataclass(frozen=True)
class StrategicContext:
    business_need: str = ""
    problem_statement: str = ""
    key_assumptions: Tuple[Assumption, ...] = ()
    success_kpis: Tuple[KPI, ...] = ()
    strategic_alignment: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BusinessCase:
    options: Tuple[Option, ...]
    financial: FinancialSettings = field(default_factory=FinancialSettings)
    organizational: OrganizationalSettings = field(default_factory=OrganizationalSettings)
    project_type: ProjectType = ProjectType.PROCESS_IMPROVEMENT
    strategic: StrategicContext = field(default_factory=StrategicContext)
    project_risks: Tuple[RiskEntry, ...] = ()
    schema_version: str = "1.0"
    recommended_option: Optional[str] = None
    recommendation_rationale: Optional[str] = None


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str
    severity: str = "error"
    code: Optional[str] = None


@dataclass(frozen=True)
class ValidationWarning:
    field: str
    message: str
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool = True
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationWarning, ...] = ()


__all__ = [
    "Kind", "Category", "Recurrence", "RiskLevel", "ProjectType",
    "RecurrenceBehavior", "LineItem", "RiskEntry", "CalcBlock", "Option",
    "FinancialSettings", "RiskMatrix", "DEFAULT_RISK_MATRIX",
    "BaselineRequirement", "OrganizationalSettings", "KPI", "Assumption",
    "StrategicContext", "BusinessCase", "ValidationIssue",
    "ValidationWarning", "ValidationResult",
]
