"""
Customer aggregate: account lifecycle, validation and risk scoring.

A Customer moves through a small state machine:

    active -> at-risk -> resolved -> at-risk ...
    at-risk -> churned (terminal)

Status only changes through `transition_to`; history and risk factors are
append-only. The risk score and the other derived fields are recomputed on
every call and never stored on the record.
"""

from __future__ import annotations

import secrets
import string
import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from churnwatch.models.base import (
    CamelModel,
    coerce_enum,
    enum_value,
    joined_values,
    utc_now_iso,
)
from churnwatch.models.fleet import find_high_risk_customers as _find_high_risk
from churnwatch.models.scoring import (
    DEFAULT_WEIGHTS,
    ScoreBreakdown,
    ScoringWeights,
    calculate_risk_score,
    score_breakdown,
)
from churnwatch.utils.error_handling import CustomerValidationError
from churnwatch.utils.validators import (
    is_blank,
    is_non_negative_number,
    is_valid_date,
    is_valid_email,
)


class AccountStatus(str, Enum):
    """Lifecycle states of a subscription account."""

    ACTIVE = "active"
    AT_RISK = "at-risk"
    RESOLVED = "resolved"
    CHURNED = "churned"


class RiskCategory(str, Enum):
    """Root cause of an at-risk status."""

    EXPIRING_CARD = "expiring-card"
    FAILED_PAYMENT = "failed-payment"
    MULTIPLE_FAILURES = "multiple-failures"


class RiskSeverity(str, Enum):
    """Urgency scale modulating the risk score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class InterventionOutcome(str, Enum):
    """Outcomes understood by downstream reporting; others are stored verbatim."""

    SUCCESS = "success"
    FAILED = "failed"
    NO_ANSWER = "no-answer"
    SCHEDULED = "scheduled"


STATE_TRANSITIONS: Dict[AccountStatus, List[AccountStatus]] = {
    AccountStatus.ACTIVE: [AccountStatus.AT_RISK],
    AccountStatus.AT_RISK: [AccountStatus.RESOLVED, AccountStatus.CHURNED],
    AccountStatus.RESOLVED: [AccountStatus.AT_RISK],
    AccountStatus.CHURNED: [],
}

# Reaching these statuses clears the risk classification.
CLEARING_STATUSES = (AccountStatus.RESOLVED, AccountStatus.CHURNED)

DERIVED_FIELDS = ("riskScore", "statusDescription", "requiresIntervention")

_ID_ALPHABET = string.digits + string.ascii_lowercase


class PaymentMethodSnapshot(CamelModel):
    """Payment method as seen from the customer record; replaced wholesale."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    card_type: Optional[str] = None
    last_four_digits: Optional[str] = None
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None
    status: Optional[str] = None
    failure_count: int = 0
    last_failure_date: Optional[str] = None
    last_success_date: Optional[str] = None


class InterventionRecord(CamelModel):
    """One recorded attempt to resolve an at-risk account."""

    model_config = ConfigDict(frozen=True)

    date: str
    outcome: str
    notes: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of the accumulate-and-report validation."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class TransitionResult(BaseModel):
    """Outcome of a status change request; failures are data, not exceptions."""

    success: bool
    error: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    reason: Optional[str] = None
    timestamp: Optional[str] = None
    valid_transitions: List[str] = Field(default_factory=list)


class Customer(CamelModel):
    """Aggregate root for a subscription customer."""

    id: Optional[str] = None
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    account_status: Union[AccountStatus, str] = Field(
        default=AccountStatus.ACTIVE, union_mode="left_to_right"
    )
    risk_category: Optional[Union[RiskCategory, str]] = Field(
        default=None, union_mode="left_to_right"
    )
    risk_severity: Union[RiskSeverity, str] = Field(
        default=RiskSeverity.LOW, union_mode="left_to_right"
    )
    last_payment_date: Optional[str] = None
    # Any raw value; validate() reports non-numbers.
    account_value: Any = 0
    customer_since: Optional[str] = None
    last_modified: str = Field(default_factory=utc_now_iso)
    service_provider: str = ""
    service_type: str = ""
    billing_cycle: str = "monthly"
    next_billing_date: Optional[str] = None
    payment_method: Optional[PaymentMethodSnapshot] = None
    risk_factors: List[str] = Field(default_factory=list)
    intervention_history: List[InterventionRecord] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        """Treat missing, null and empty values alike so field defaults apply."""
        if not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if value is not None and value != "" and key not in DERIVED_FIELDS
        }

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> ValidationResult:
        """
        Check the record and report every problem at once.

        Never raises; callers decide whether an invalid record is fatal.
        """
        errors: List[str] = []

        if not self.id:
            errors.append("Customer ID is required")

        if is_blank(self.name):
            errors.append("Customer name is required")

        if is_blank(self.email):
            errors.append("Email address is required")

        if self.email and not is_valid_email(self.email):
            errors.append("Email address must be valid format")

        if not isinstance(self.account_status, AccountStatus):
            errors.append(
                "Account status must be one of: " + joined_values(AccountStatus)
            )

        if self.account_status == AccountStatus.AT_RISK:
            if not self.risk_category:
                errors.append("Risk category is required for at-risk customers")
            elif not isinstance(self.risk_category, RiskCategory):
                errors.append("Risk category must be one of: " + joined_values(RiskCategory))

        if not isinstance(self.risk_severity, RiskSeverity):
            errors.append("Risk severity must be one of: " + joined_values(RiskSeverity))

        if not is_non_negative_number(self.account_value):
            errors.append("Account value must be a positive number")

        if self.last_payment_date and not is_valid_date(self.last_payment_date):
            errors.append("Last payment date must be valid date format")

        if self.customer_since and not is_valid_date(self.customer_since):
            errors.append("Customer since date must be valid date format")

        if self.next_billing_date and not is_valid_date(self.next_billing_date):
            errors.append("Next billing date must be valid date format")

        return ValidationResult(is_valid=not errors, errors=errors)

    def ensure_valid(self) -> "Customer":
        """Fail-fast counterpart of `validate`, used before persistence."""
        result = self.validate()
        if not result.is_valid:
            raise CustomerValidationError(self.id, result.errors)
        return self

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def allowed_transitions(self) -> List[AccountStatus]:
        return list(STATE_TRANSITIONS.get(self.account_status, []))

    def can_transition_to(self, new_status: Union[AccountStatus, str]) -> bool:
        return coerce_enum(AccountStatus, new_status) in self.allowed_transitions()

    def transition_to(
        self, new_status: Union[AccountStatus, str], reason: Optional[str] = None
    ) -> TransitionResult:
        """Move to `new_status` if the lifecycle allows it."""
        target = coerce_enum(AccountStatus, new_status)
        if not self.can_transition_to(target):
            return self._rejected(target)

        previous_status = self.account_status
        self.account_status = target
        self.last_modified = utc_now_iso()

        if target in CLEARING_STATUSES:
            self.risk_category = None
            self.risk_severity = RiskSeverity.LOW

        return TransitionResult(
            success=True,
            previous_status=enum_value(previous_status),
            new_status=enum_value(target),
            reason=reason,
            timestamp=self.last_modified,
        )

    def flag_at_risk(
        self,
        risk_category: Union[RiskCategory, str],
        risk_severity: Union[RiskSeverity, str, None] = None,
        reason: Optional[str] = None,
    ) -> TransitionResult:
        """Transition to at-risk and classify the risk in the same step."""
        category = coerce_enum(RiskCategory, risk_category)
        if not isinstance(category, RiskCategory):
            return TransitionResult(
                success=False,
                error=f"Unknown risk category: {enum_value(risk_category)}",
                valid_transitions=[enum_value(s) for s in self.allowed_transitions()],
            )
        if not self.can_transition_to(AccountStatus.AT_RISK):
            return self._rejected(AccountStatus.AT_RISK)

        self.risk_category = category
        self.risk_severity = coerce_enum(RiskSeverity, risk_severity or RiskSeverity.MEDIUM)
        return self.transition_to(AccountStatus.AT_RISK, reason)

    def _rejected(self, target: Any) -> TransitionResult:
        valid = [enum_value(s) for s in self.allowed_transitions()]
        return TransitionResult(
            success=False,
            error=(
                f"Cannot transition from {enum_value(self.account_status)} to "
                f"{enum_value(target)}. Valid transitions: {', '.join(valid) or 'none'}"
            ),
            valid_transitions=valid,
        )

    # ------------------------------------------------------------------
    # Risk scoring
    # ------------------------------------------------------------------

    def requires_intervention(self) -> bool:
        return (
            self.account_status == AccountStatus.AT_RISK
            and self.risk_category is not None
        )

    def calculate_risk_score(self, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
        return calculate_risk_score(self, weights)

    def score_breakdown(self, weights: ScoringWeights = DEFAULT_WEIGHTS) -> ScoreBreakdown:
        return score_breakdown(self, weights)

    def get_status_description(self) -> str:
        if self.account_status == AccountStatus.ACTIVE:
            return "Active account with no issues"
        if self.account_status == AccountStatus.AT_RISK:
            if self.risk_category:
                return f"At risk - {enum_value(self.risk_category).replace('-', ' ', 1)}"
            return "At risk - unknown issue"
        if self.account_status == AccountStatus.RESOLVED:
            return "Issue resolved successfully"
        if self.account_status == AccountStatus.CHURNED:
            return "Customer has churned"
        return "Unknown status"

    # ------------------------------------------------------------------
    # Intervention tracking
    # ------------------------------------------------------------------

    def record_intervention(
        self,
        outcome: Union[InterventionOutcome, str],
        notes: Optional[str] = None,
        date: Optional[str] = None,
    ) -> InterventionRecord:
        """Append an intervention attempt; history entries are never edited."""
        record = InterventionRecord(
            date=date or utc_now_iso(), outcome=enum_value(outcome), notes=notes
        )
        self.intervention_history.append(record)
        self.touch()
        return record

    def last_intervention(self) -> Optional[InterventionRecord]:
        return self.intervention_history[-1] if self.intervention_history else None

    def add_risk_factor(self, factor: str) -> None:
        self.risk_factors.append(factor)
        self.touch()

    def replace_payment_method(
        self, payment_method: Union[PaymentMethodSnapshot, Dict[str, Any], None]
    ) -> None:
        if isinstance(payment_method, dict):
            payment_method = PaymentMethodSnapshot.model_validate(payment_method)
        self.payment_method = payment_method
        self.touch()

    def touch(self) -> None:
        """Restamp `last_modified`; it doubles as the optimistic concurrency token."""
        self.last_modified = utc_now_iso()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def stored_record(self) -> Dict[str, Any]:
        """Stored fields only, in declaration order, with camelCase keys."""
        dumped = self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"payment_method", "intervention_history"},
        )
        dumped["paymentMethod"] = (
            self.payment_method.model_dump(mode="json", by_alias=True, exclude_none=True)
            if self.payment_method is not None
            else None
        )
        dumped["interventionHistory"] = [
            record.model_dump(mode="json", by_alias=True, exclude_none=True)
            for record in self.intervention_history
        ]
        return {field.alias: dumped[field.alias] for field in type(self).model_fields.values()}

    def to_json(self) -> Dict[str, Any]:
        """Stored fields plus the derived view computed right now."""
        record = self.stored_record()
        record["riskScore"] = self.calculate_risk_score()
        record["statusDescription"] = self.get_status_description()
        record["requiresIntervention"] = self.requires_intervention()
        return record

    @classmethod
    def from_json(cls, record: Dict[str, Any]) -> "Customer":
        return cls.model_validate(record)

    # ------------------------------------------------------------------
    # Factories and fleet helpers
    # ------------------------------------------------------------------

    @staticmethod
    def generate_id() -> str:
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        return f"cust_{time.time_ns() // 1_000_000}_{suffix}"

    @classmethod
    def create_at_risk_customer(
        cls,
        name: str,
        email: str,
        risk_category: Union[RiskCategory, str, None],
        account_value: Union[int, float, None] = None,
        risk_severity: Union[RiskSeverity, str, None] = None,
        customer_since: Optional[str] = None,
        last_payment_date: Optional[str] = None,
    ) -> "Customer":
        """Build a new at-risk customer straight from a detected risk signal."""
        return cls(
            id=cls.generate_id(),
            name=name,
            email=email,
            account_status=AccountStatus.AT_RISK,
            risk_category=coerce_enum(RiskCategory, risk_category),
            risk_severity=coerce_enum(RiskSeverity, risk_severity or RiskSeverity.MEDIUM),
            account_value=account_value or 0,
            customer_since=customer_since or utc_now_iso(),
            last_payment_date=last_payment_date,
        )

    @staticmethod
    def find_high_risk_customers(customers: Iterable["Customer"]) -> List["Customer"]:
        return _find_high_risk(customers)
