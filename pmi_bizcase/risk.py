# pmi_bizcase/risk.py
"""
Probability x impact scoring against the organization's 5x5 matrix.
The matrix is validated at the boundary; the lookup trusts it.
"""
from __future__ import annotations

from typing import Dict

from .types import RiskEntry, RiskLevel, RiskMatrix

RISK_LEVEL_INDEX: Dict[RiskLevel, int] = {
    RiskLevel.VERY_LOW: 0,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.VERY_HIGH: 4,
}


def compute_risk_score(probability: RiskLevel, impact: RiskLevel, matrix: RiskMatrix) -> int:
    """Rows are probability, columns are impact."""
    row = RISK_LEVEL_INDEX[RiskLevel(probability)]
    col = RISK_LEVEL_INDEX[RiskLevel(impact)]
    return int(matrix.values[row][col])


def score_risk(risk: RiskEntry, matrix: RiskMatrix) -> int:
    return compute_risk_score(risk.probability, risk.impact, matrix)


__all__ = ["RISK_LEVEL_INDEX", "compute_risk_score", "score_risk"]
