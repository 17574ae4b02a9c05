"""
Churn prevention metrics: fail-fast construction and period aggregation.

Run with: pytest tests/unit/test_churn_metrics.py -v
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from churnwatch.models.churn_metrics import ChurnPreventionMetrics

START = datetime(2025, 1, 1, tzinfo=timezone.utc)
END = datetime(2025, 1, 31, tzinfo=timezone.utc)


class TestConstruction:
    """Construction either yields a consistent record or raises."""

    def test_valid_metrics(self):
        metrics = ChurnPreventionMetrics(
            period_start=START,
            period_end=END,
            total_interventions=10,
            successful_resolutions=4,
            average_resolution_time=90,
            customer_retention_rate=80,
            revenue_retained=125000,
        )
        assert metrics.id.startswith("metrics_")
        assert metrics.success_rate() == 40

    def test_counts_default_to_zero(self):
        metrics = ChurnPreventionMetrics(period_start=START, period_end=START)
        assert metrics.total_interventions == 0
        assert metrics.success_rate() == 0.0

    @pytest.mark.parametrize(
        "payload",
        [{"period_start": START}, {"periodEnd": END}, {}],
    )
    def test_period_required(self, payload):
        with pytest.raises(ValueError, match="periodStart and periodEnd are required"):
            ChurnPreventionMetrics(**payload)

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"period_start": END, "period_end": START}, "periodEnd cannot be before periodStart"),
            (
                {"total_interventions": 2, "successful_resolutions": 3},
                "successfulResolutions cannot exceed totalInterventions",
            ),
            ({"average_resolution_time": 181}, "averageResolutionTime must not exceed 180"),
            ({"customer_retention_rate": -1}, "customerRetentionRate must be between 0 and 100"),
            ({"customer_retention_rate": 100.5}, "customerRetentionRate must be between 0 and 100"),
        ],
    )
    def test_inconsistent_values_rejected(self, overrides, message):
        data = {"period_start": START, "period_end": END}
        data.update(overrides)
        with pytest.raises(ValidationError, match=message):
            ChurnPreventionMetrics(**data)

    def test_boundaries_accepted(self):
        metrics = ChurnPreventionMetrics(
            period_start=START,
            period_end=END,
            total_interventions=3,
            successful_resolutions=3,
            average_resolution_time=180,
            customer_retention_rate=100,
        )
        assert metrics.success_rate() == 100

    def test_camel_case_input_and_output(self):
        metrics = ChurnPreventionMetrics.model_validate(
            {"periodStart": "2025-01-01T00:00:00Z", "periodEnd": "2025-01-31T00:00:00Z"}
        )
        data = metrics.to_json()
        assert data["periodStart"].startswith("2025-01-01")
        assert data["successRate"] == 0.0
        assert "customerRetentionRate" in data


class TestFromCustomers:
    def test_aggregates_period(self, make_customer):
        saved = make_customer(id="saved", account_value=40000)
        saved.record_intervention("no-answer", date="2025-01-05T09:00:00Z")
        saved.record_intervention("success", date="2025-01-06T09:00:00Z")
        saved.transition_to("resolved")

        lost = make_customer(id="lost")
        lost.record_intervention("failed", date="2025-01-10")
        lost.record_intervention("success", date="2024-12-20")
        lost.record_intervention("success", date="not-a-date")
        lost.transition_to("churned")

        pending = make_customer(id="pending", account_value=900)
        pending.record_intervention("scheduled", date="2025-01-31T00:00:00Z")

        metrics = ChurnPreventionMetrics.from_customers([saved, lost, pending], START, END)

        assert metrics.total_interventions == 4
        assert metrics.successful_resolutions == 1
        assert metrics.customer_retention_rate == 50
        assert metrics.revenue_retained == 40000

    def test_no_closed_accounts(self, make_customer):
        metrics = ChurnPreventionMetrics.from_customers(
            [make_customer()], "2025-01-01", "2025-01-31"
        )
        assert metrics.customer_retention_rate == 100
        assert metrics.total_interventions == 0

    def test_reversed_period(self):
        with pytest.raises(ValueError, match="periodEnd cannot be before periodStart"):
            ChurnPreventionMetrics.from_customers([], END, START)
