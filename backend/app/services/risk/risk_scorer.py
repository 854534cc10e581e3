"""
Risk Scorer

Deterministic, additive risk assessment from inspection, vehicle and quote
signals. Rules are applied, and factors appended, in a fixed order so that
any downstream truncation always drops the lowest-priority factors.

Rules:
1. Overall rating < 3 -> +3; < 4 -> +2 (no rating -> no points)
2. +1 per critical OBD2 code
3. +2 per critical safety issue
4. Title status present and not clean -> +2
5. Still has a loan with a positive balance -> +1

Level: >= 7 HIGH, >= 4 MEDIUM, else LOW.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ...models.case_models import (
    CaseAggregate, Inspection, LoanStatus, Quote, Severity, TitleStatus, Vehicle,
)

HIGH_RISK_THRESHOLD = 7
MEDIUM_RISK_THRESHOLD = 4


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def label(self) -> str:
        """Display form, e.g. 'HIGH RISK'."""
        return f"{self.value} RISK"


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    level: RiskLevel
    factors: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level.value,
            "factors": list(self.factors),
        }


def classify(score: int) -> RiskLevel:
    if score >= HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def assess(
    vehicle: Optional[Vehicle],
    inspection: Optional[Inspection],
    quote: Optional[Quote],
) -> RiskAssessment:
    """Score a case from its vehicle, inspection and quote records."""
    vehicle = vehicle or Vehicle()
    inspection = inspection or Inspection()
    quote = quote or Quote()

    score = 0
    factors = []

    # 1. Inspection rating
    rating = inspection.overall_rating
    if rating is not None:
        if rating < 3:
            score += 3
            factors.append("Low overall inspection rating")
        elif rating < 4:
            score += 2
            factors.append("Below average inspection rating")

    # 2. Critical OBD2 codes (unbounded)
    critical_codes = len(quote.obd2_scan.critical_codes) if quote.obd2_scan else 0
    if critical_codes > 0:
        score += critical_codes
        factors.append(f"{critical_codes} critical OBD2 codes")

    # 3. Critical safety issues
    critical_safety = sum(1 for issue in inspection.safety_issues if issue.severity == Severity.CRITICAL.value)
    if critical_safety > 0:
        score += critical_safety * 2
        factors.append(f"{critical_safety} critical safety issues")

    # 4. Title
    if vehicle.title_status and vehicle.title_status != TitleStatus.CLEAN.value:
        score += 2
        factors.append("Non-clean title status")

    # 5. Outstanding loan
    if vehicle.loan_status == LoanStatus.STILL_HAS_LOAN.value and (vehicle.loan_amount or 0) > 0:
        score += 1
        factors.append("Outstanding loan balance")

    return RiskAssessment(score=score, level=classify(score), factors=tuple(factors))


class RiskScorer:
    """Injectable wrapper around assess() for services that take collaborators."""

    def assess(
        self,
        vehicle: Optional[Vehicle],
        inspection: Optional[Inspection],
        quote: Optional[Quote],
    ) -> RiskAssessment:
        return assess(vehicle, inspection, quote)

    def assess_case(self, aggregate: CaseAggregate) -> RiskAssessment:
        return assess(aggregate.vehicle, aggregate.inspection, aggregate.quote)
