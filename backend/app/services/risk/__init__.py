"""
Risk Scoring

Pure risk assessment used by quote decisions and the analytic quote summary.
"""

from .risk_scorer import RiskAssessment, RiskLevel, RiskScorer, assess, classify

__all__ = [
    'RiskAssessment',
    'RiskLevel',
    'RiskScorer',
    'assess',
    'classify',
]
