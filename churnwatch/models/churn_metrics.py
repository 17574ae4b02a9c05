"""
Churn prevention metrics for one reporting period.

Like AdminUser, a metrics record is never partially valid: construction
raises on missing periods or inconsistent totals.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Union

from pydantic import Field, model_validator

from churnwatch.models.base import CamelModel
from churnwatch.models.customer import AccountStatus, Customer, InterventionOutcome
from churnwatch.utils.validators import is_non_negative_number, is_valid_date, parse_date

MAX_AVERAGE_RESOLUTION_TIME = 180


def _generate_metrics_id() -> str:
    return f"metrics_{time.time_ns() // 1_000_000}"


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ChurnPreventionMetrics(CamelModel):
    """Intervention results aggregated over `period_start`..`period_end`."""

    id: str = Field(default_factory=_generate_metrics_id)
    period_start: datetime
    period_end: datetime
    total_interventions: int = 0
    successful_resolutions: int = 0
    average_resolution_time: float = 0
    customer_retention_rate: float = 0
    revenue_retained: float = 0

    @model_validator(mode="before")
    @classmethod
    def require_period(cls, data: Any) -> Any:
        if isinstance(data, dict):
            start = data.get("periodStart", data.get("period_start"))
            end = data.get("periodEnd", data.get("period_end"))
            if not start or not end:
                raise ValueError(
                    "periodStart and periodEnd are required for churn prevention metrics."
                )
        return data

    @model_validator(mode="after")
    def check_consistency(self) -> "ChurnPreventionMetrics":
        if _as_utc(self.period_end) < _as_utc(self.period_start):
            raise ValueError("periodEnd cannot be before periodStart.")
        if self.successful_resolutions > self.total_interventions:
            raise ValueError("successfulResolutions cannot exceed totalInterventions.")
        if self.average_resolution_time > MAX_AVERAGE_RESOLUTION_TIME:
            raise ValueError("averageResolutionTime must not exceed 180 seconds.")
        if not 0 <= self.customer_retention_rate <= 100:
            raise ValueError("customerRetentionRate must be between 0 and 100.")
        return self

    def success_rate(self) -> float:
        if not self.total_interventions:
            return 0.0
        return self.successful_resolutions / self.total_interventions * 100

    def to_json(self) -> Dict[str, Any]:
        record = self.model_dump(mode="json", by_alias=True)
        record["successRate"] = self.success_rate()
        return record

    @classmethod
    def from_customers(
        cls,
        customers: Iterable[Customer],
        period_start: Union[datetime, str],
        period_end: Union[datetime, str],
        average_resolution_time: float = 0,
    ) -> "ChurnPreventionMetrics":
        """
        Aggregate intervention history for a reporting period.

        Interventions count when their date falls inside the period; records
        with an unparseable date are left out. Retention is resolved over
        resolved plus churned customers, and 100 when no account has left
        the at-risk state yet. Revenue retained sums resolved account values.
        """
        if isinstance(period_start, str):
            period_start = parse_date(period_start)
        if isinstance(period_end, str):
            period_end = parse_date(period_end)
        start, end = _as_utc(period_start), _as_utc(period_end)

        total = successful = resolved = churned = 0
        revenue = 0.0
        for customer in customers:
            for record in customer.intervention_history:
                if not is_valid_date(record.date):
                    continue
                if start <= _as_utc(parse_date(record.date)) <= end:
                    total += 1
                    if record.outcome == InterventionOutcome.SUCCESS.value:
                        successful += 1

            if customer.account_status == AccountStatus.RESOLVED:
                resolved += 1
                if is_non_negative_number(customer.account_value):
                    revenue += customer.account_value
            elif customer.account_status == AccountStatus.CHURNED:
                churned += 1

        closed = resolved + churned
        return cls(
            period_start=period_start,
            period_end=period_end,
            total_interventions=total,
            successful_resolutions=successful,
            average_resolution_time=average_resolution_time,
            customer_retention_rate=resolved / closed * 100 if closed else 100.0,
            revenue_retained=revenue,
        )
