"""
Customer Service.

Load-mutate-save workflows around the Customer aggregate. Every write goes
through `Customer.ensure_valid` and carries the loaded `lastModified` as an
optimistic concurrency token, so two operators working the same account
cannot silently overwrite each other.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from churnwatch.models.churn_metrics import ChurnPreventionMetrics
from churnwatch.models.customer import (
    AccountStatus,
    Customer,
    InterventionOutcome,
    InterventionRecord,
    TransitionResult,
)
from churnwatch.models.payment_method import PaymentMethod
from churnwatch.repositories.base import CustomerRepository
from churnwatch.repositories.dynamodb_repo import InterventionLogRepository
from churnwatch.models.fleet import find_high_risk_customers, summarize_fleet
from churnwatch.utils.error_handling import NotFoundError, ValidationError
from churnwatch.utils.logging_config import get_logger
from churnwatch.utils.validators import ensure_present

if TYPE_CHECKING:
    from churnwatch.config.settings import Settings

logger = get_logger(__name__)


class CustomerService:
    """Service for customer lifecycle and intervention workflows."""

    def __init__(
        self,
        repository: CustomerRepository,
        intervention_log: Optional[InterventionLogRepository] = None,
    ):
        self.repository = repository
        self.intervention_log = intervention_log

    # --- reads ------------------------------------------------------------

    def get_customer(self, customer_id: str) -> Customer:
        customer = self.repository.get(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    def list_customers(self, status: Optional[str] = None) -> List[Customer]:
        customers = self.repository.list_all()
        if status is None:
            return customers
        return [c for c in customers if c.account_status == status]

    def high_risk_queue(self, limit: Optional[int] = None) -> List[Customer]:
        """Intervention work queue, highest priority first."""
        queue = find_high_risk_customers(self.repository.list_all())
        logger.info("High-risk queue built", extra={"size": len(queue), "limit": limit})
        return queue[:limit] if limit is not None else queue

    def fleet_summary(self) -> Dict[str, Any]:
        return summarize_fleet(self.repository.list_all())

    def prevention_metrics(self, period_start: str, period_end: str) -> ChurnPreventionMetrics:
        """Intervention results for a reporting period."""
        try:
            metrics = ChurnPreventionMetrics.from_customers(
                self.repository.list_all(), period_start, period_end
            )
        except ValueError as exc:
            raise ValidationError("Invalid reporting period", errors=[str(exc)]) from exc
        logger.info(
            "Prevention metrics built",
            extra={"total_interventions": metrics.total_interventions},
        )
        return metrics

    # --- writes -----------------------------------------------------------

    def save_customer(
        self, customer: Customer, expected_last_modified: Optional[str] = None
    ) -> Customer:
        """Validate, then persist the whole record."""
        customer.ensure_valid()
        self.repository.save(customer, expected_last_modified=expected_last_modified)
        return customer

    def flag_at_risk_customer(self, payload: Dict[str, Any]) -> Customer:
        """Intake flow: create a brand new at-risk customer from a risk signal."""
        try:
            ensure_present(payload.get("name"), "name")
            ensure_present(payload.get("email"), "email")
            ensure_present(payload.get("riskCategory"), "riskCategory")
        except ValueError as exc:
            raise ValidationError(str(exc), errors=[str(exc)]) from exc

        customer = Customer.create_at_risk_customer(
            name=payload["name"],
            email=payload["email"],
            risk_category=payload["riskCategory"],
            account_value=payload.get("accountValue"),
            risk_severity=payload.get("riskSeverity"),
            customer_since=payload.get("customerSince"),
            last_payment_date=payload.get("lastPaymentDate"),
        )
        self.save_customer(customer)
        logger.info(
            "At-risk customer created",
            extra={
                "customer_id": customer.id,
                "risk_category": payload["riskCategory"],
                "risk_score": customer.calculate_risk_score(),
            },
        )
        return customer

    def transition_customer(
        self,
        customer_id: str,
        new_status: Union[AccountStatus, str],
        reason: Optional[str] = None,
    ) -> TransitionResult:
        """
        Apply a status change and persist it.

        Illegal transitions come back as a failed TransitionResult and leave
        the stored record untouched.
        """
        customer = self.get_customer(customer_id)
        token = customer.last_modified
        result = customer.transition_to(new_status, reason)

        if not result.success:
            logger.warning(
                "Transition rejected",
                extra={"customer_id": customer_id, "error": result.error},
            )
            return result

        self.save_customer(customer, expected_last_modified=token)
        logger.info(
            "Customer transitioned",
            extra={
                "customer_id": customer_id,
                "previous_status": result.previous_status,
                "new_status": result.new_status,
                "reason": reason,
            },
        )
        return result

    def record_intervention(
        self,
        customer_id: str,
        outcome: Union[InterventionOutcome, str],
        notes: Optional[str] = None,
        agent_id: Optional[str] = None,
    ) -> InterventionRecord:
        customer = self.get_customer(customer_id)
        token = customer.last_modified
        record = customer.record_intervention(outcome, notes)
        self.save_customer(customer, expected_last_modified=token)

        if self.intervention_log is not None:
            try:
                self.intervention_log.put_event(customer_id, record, {"agent_id": agent_id})
            except Exception as exc:
                # The customer record is the source of truth; the log is a mirror.
                logger.warning(
                    "Failed to mirror intervention",
                    extra={"customer_id": customer_id, "error": str(exc)},
                )

        logger.info(
            "Intervention recorded",
            extra={"customer_id": customer_id, "outcome": record.outcome},
        )
        return record

    def add_risk_factor(self, customer_id: str, factor: str) -> Customer:
        customer = self.get_customer(customer_id)
        token = customer.last_modified
        customer.add_risk_factor(factor)
        return self.save_customer(customer, expected_last_modified=token)

    def update_payment_method(self, customer_id: str, payment_method: PaymentMethod) -> Customer:
        """Swap in a fresh snapshot of the customer's card."""
        customer = self.get_customer(customer_id)
        token = customer.last_modified
        customer.replace_payment_method(payment_method.to_snapshot())
        self.save_customer(customer, expected_last_modified=token)
        logger.info(
            "Payment method replaced",
            extra={
                "customer_id": customer_id,
                "failure_count": payment_method.failure_count,
                "needs_replacement": payment_method.needs_replacement(),
            },
        )
        return customer


def build_customer_service(settings: Optional["Settings"] = None) -> CustomerService:
    """Wire the service from environment settings."""
    from churnwatch.config.settings import Settings
    from churnwatch.repositories.postgres_repo import PostgresCustomerRepository

    settings = settings or Settings.from_environment()
    repository = PostgresCustomerRepository.from_url(settings.database_url)
    repository.create_schema()

    intervention_log = None
    if settings.intervention_log_enabled:
        intervention_log = InterventionLogRepository(
            settings.interventions_table, region_name=settings.aws_region
        )
    logger.info(
        "Customer service configured",
        extra={
            "environment": settings.environment,
            "intervention_log_enabled": settings.intervention_log_enabled,
        },
    )
    return CustomerService(repository, intervention_log)
