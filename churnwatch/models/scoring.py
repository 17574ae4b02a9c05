"""
Risk scoring weights and the scoring function for at-risk customers.

Score composition (capped at 100):
- Base score by risk category (20-85)
- Severity multiplier applied to the base (0.7x-1.8x)
- Account value bonus (0-25), values are in cents
- Payment failure bonus (0-15)
- Risk factor bonus (0-10)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict

from churnwatch.models.base import enum_value

if TYPE_CHECKING:
    from churnwatch.models.customer import Customer


@dataclass(frozen=True)
class ScoringWeights:
    """All scoring constants in one place for easy tuning."""

    # === Base score by risk category ===
    category_base: Dict[str, int] = field(default_factory=lambda: {
        "multiple-failures": 85,
        "failed-payment": 70,
        "expiring-card": 40,
    })
    category_default: int = 20  # Unknown or missing category

    # === Severity multiplier ===
    severity_multiplier: Dict[str, float] = field(default_factory=lambda: {
        "low": 0.7,
        "medium": 1.0,
        "high": 1.4,
        "critical": 1.8,
    })
    severity_default: float = 1.0

    # === Bonuses ===
    value_divisor: float = 10000  # 100 currency units per point
    value_cap: float = 25
    failure_points: int = 5  # per recorded payment failure
    failure_cap: int = 15
    risk_factor_points: int = 2  # per risk factor
    risk_factor_cap: int = 10

    max_score: int = 100


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class ScoreBreakdown:
    """Component parts of a single score, for explaining work-queue order."""

    base: int
    multiplier: float
    value_bonus: float
    failure_bonus: float
    risk_factor_bonus: float
    raw: float
    score: int

    def as_dict(self) -> Dict[str, float]:
        return {
            "base": self.base,
            "multiplier": self.multiplier,
            "valueBonus": self.value_bonus,
            "failureBonus": self.failure_bonus,
            "riskFactorBonus": self.risk_factor_bonus,
            "raw": self.raw,
            "score": self.score,
        }


ZERO_BREAKDOWN = ScoreBreakdown(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0)


def _round_half_up(value: float) -> int:
    # Half away from zero, unlike round().
    return int(math.floor(value + 0.5))


def score_breakdown(
    customer: "Customer", weights: ScoringWeights = DEFAULT_WEIGHTS
) -> ScoreBreakdown:
    """Compute the score of a customer along with its components."""
    if enum_value(customer.account_status) != "at-risk":
        return ZERO_BREAKDOWN

    base = weights.category_base.get(
        enum_value(customer.risk_category), weights.category_default
    )
    multiplier = weights.severity_multiplier.get(
        enum_value(customer.risk_severity), weights.severity_default
    )

    account_value = customer.account_value
    if isinstance(account_value, bool) or not isinstance(account_value, (int, float)):
        account_value = 0
    value_bonus = min(account_value / weights.value_divisor, weights.value_cap)

    failure_bonus = 0
    if customer.payment_method is not None:
        failure_bonus = min(
            customer.payment_method.failure_count * weights.failure_points,
            weights.failure_cap,
        )

    risk_factor_bonus = min(
        len(customer.risk_factors) * weights.risk_factor_points,
        weights.risk_factor_cap,
    )

    raw = base * multiplier + value_bonus + failure_bonus + risk_factor_bonus
    capped = max(0.0, min(float(weights.max_score), raw))
    return ScoreBreakdown(
        base=base,
        multiplier=multiplier,
        value_bonus=value_bonus,
        failure_bonus=failure_bonus,
        risk_factor_bonus=risk_factor_bonus,
        raw=raw,
        score=_round_half_up(capped),
    )


def calculate_risk_score(
    customer: "Customer", weights: ScoringWeights = DEFAULT_WEIGHTS
) -> int:
    """Return the 0-100 intervention priority of a customer."""
    return score_breakdown(customer, weights).score
