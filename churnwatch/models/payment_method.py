"""Payment method entity and the card-health rules built on it."""

from __future__ import annotations

import time
from datetime import date, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, model_validator

from churnwatch.models.base import (
    CamelModel,
    coerce_enum,
    enum_value,
    joined_values,
    utc_now_iso,
)
from churnwatch.models.customer import PaymentMethodSnapshot, ValidationResult
from churnwatch.utils.validators import is_valid_date, parse_date


class CardType(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"
    DISCOVER = "discover"


class PaymentMethodStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    FAILED = "failed"
    INVALID = "invalid"
    INACTIVE = "inactive"


class FailureReason(str, Enum):
    CARD_DECLINED = "card_declined"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    EXPIRED_CARD = "expired_card"
    INVALID_CVC = "invalid_cvc"
    PROCESSING_ERROR = "processing_error"
    LOST_CARD = "lost_card"
    STOLEN_CARD = "stolen_card"


CARD_DISPLAY_NAMES = {
    CardType.VISA: "Visa",
    CardType.MASTERCARD: "Mastercard",
    CardType.AMEX: "American Express",
    CardType.DISCOVER: "Discover",
}

STATUS_DESCRIPTIONS = {
    PaymentMethodStatus.ACTIVE: "Active and working",
    PaymentMethodStatus.EXPIRED: "Card has expired",
    PaymentMethodStatus.FAILED: "Multiple payment failures",
    PaymentMethodStatus.INVALID: "Card is invalid or blocked",
    PaymentMethodStatus.INACTIVE: "Replaced by newer payment method",
}

# Consecutive failures after which a card is considered failed.
FAILURE_THRESHOLD = 3


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _timestamp(value: Optional[str]) -> float:
    if not value or not is_valid_date(value):
        return 0.0
    parsed = parse_date(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


class PaymentMethod(CamelModel):
    """A stored card and its failure history."""

    id: Optional[str] = None
    customer_id: Optional[str] = None
    card_type: Optional[Union[CardType, str]] = Field(default=None, union_mode="left_to_right")
    last_four_digits: Optional[str] = None
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None
    status: Union[PaymentMethodStatus, str] = Field(
        default=PaymentMethodStatus.ACTIVE, union_mode="left_to_right"
    )
    failure_count: int = 0
    last_failure_date: Optional[str] = None
    last_success_date: Optional[str] = None
    last_failure_reason: Optional[Union[FailureReason, str]] = Field(
        default=None, union_mode="left_to_right"
    )
    processor_payment_method_id: Optional[str] = None
    processor_customer_id: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {key: value for key, value in data.items() if value is not None and value != ""}

    def validate(self, today: Optional[date] = None) -> ValidationResult:
        """Report every problem with the card; never raises."""
        today = today or date.today()
        errors: List[str] = []

        if not self.id:
            errors.append("Payment method ID is required")

        if not self.customer_id:
            errors.append("Customer ID is required")

        if not self.card_type:
            errors.append("Card type is required")
        elif not isinstance(self.card_type, CardType):
            errors.append("Card type must be one of: " + joined_values(CardType))

        if not self.last_four_digits:
            errors.append("Last four digits are required")
        elif not (len(self.last_four_digits) == 4 and self.last_four_digits.isdigit()):
            errors.append("Last four digits must be exactly 4 numeric characters")

        if not self.expiry_month:
            errors.append("Expiry month is required and must be a number")
        elif not 1 <= self.expiry_month <= 12:
            errors.append("Expiry month must be between 1 and 12")

        if not self.expiry_year:
            errors.append("Expiry year is required and must be a number")
        elif self.expiry_year < today.year:
            errors.append("Expiry year must be current year or future")

        if not isinstance(self.status, PaymentMethodStatus):
            errors.append("Status must be one of: " + joined_values(PaymentMethodStatus))

        if self.failure_count < 0:
            errors.append("Failure count must be a non-negative integer")

        if self.last_failure_reason and not isinstance(self.last_failure_reason, FailureReason):
            errors.append("Failure reason must be one of: " + joined_values(FailureReason))

        if self.last_failure_date and not is_valid_date(self.last_failure_date):
            errors.append("Last failure date must be valid date format")

        if self.last_success_date and not is_valid_date(self.last_success_date):
            errors.append("Last success date must be valid date format")

        return ValidationResult(is_valid=not errors, errors=errors)

    # --- expiry -----------------------------------------------------------

    def is_expired(self, today: Optional[date] = None) -> bool:
        if not self.expiry_year or not self.expiry_month:
            return False
        today = today or date.today()
        return _month_index(self.expiry_year, self.expiry_month) < _month_index(
            today.year, today.month
        )

    def is_expiring_soon(self, months_ahead: int = 3, today: Optional[date] = None) -> bool:
        """True when the card expires within `months_ahead` months (or already has)."""
        if self.is_expired(today):
            return True
        if not self.expiry_year or not self.expiry_month:
            return False
        today = today or date.today()
        horizon = _month_index(today.year, today.month) + months_ahead
        return _month_index(self.expiry_year, self.expiry_month) <= horizon

    # --- payment outcomes -------------------------------------------------

    def record_failure(
        self, reason: Union[FailureReason, str, None], timestamp: Optional[str] = None
    ) -> None:
        reason = coerce_enum(FailureReason, reason)
        self.failure_count += 1
        self.last_failure_date = timestamp or utc_now_iso()
        self.last_failure_reason = reason
        self.updated_at = utc_now_iso()

        if reason == FailureReason.EXPIRED_CARD:
            self.status = PaymentMethodStatus.EXPIRED
        elif reason in (FailureReason.LOST_CARD, FailureReason.STOLEN_CARD):
            self.status = PaymentMethodStatus.INVALID
        elif self.failure_count >= FAILURE_THRESHOLD:
            self.status = PaymentMethodStatus.FAILED

    def record_success(self, timestamp: Optional[str] = None) -> None:
        self.last_success_date = timestamp or utc_now_iso()
        self.failure_count = 0
        self.last_failure_date = None
        self.last_failure_reason = None
        self.status = PaymentMethodStatus.ACTIVE
        self.updated_at = utc_now_iso()

    def deactivate(self) -> None:
        self.status = PaymentMethodStatus.INACTIVE
        self.updated_at = utc_now_iso()

    # --- display ----------------------------------------------------------

    def card_type_display(self) -> str:
        if not self.card_type:
            return ""
        return CARD_DISPLAY_NAMES.get(self.card_type, enum_value(self.card_type))

    def masked_card_number(self) -> str:
        return f"**** **** **** {self.last_four_digits}"

    def formatted_expiry(self) -> str:
        if not self.expiry_month or not self.expiry_year:
            return ""
        return f"{self.expiry_month:02d}/{str(self.expiry_year)[-2:]}"

    def status_description(self) -> str:
        return STATUS_DESCRIPTIONS.get(self.status, "Unknown status")

    def failure_rate(self) -> int:
        """Rough failure percentage used to rank cards against each other."""
        if not self.last_success_date and self.failure_count > 0:
            return 100
        if self.failure_count == 0:
            return 0
        return min(100, self.failure_count * 25)

    def needs_replacement(self, today: Optional[date] = None) -> bool:
        return (
            self.is_expired(today)
            or self.is_expiring_soon(2, today)
            or self.status in (PaymentMethodStatus.FAILED, PaymentMethodStatus.INVALID)
            or self.failure_count >= FAILURE_THRESHOLD
        )

    # --- serialization ----------------------------------------------------

    def to_snapshot(self) -> PaymentMethodSnapshot:
        """The subset of fields a Customer record carries."""
        return PaymentMethodSnapshot(
            id=self.id,
            card_type=enum_value(self.card_type),
            last_four_digits=self.last_four_digits,
            expiry_month=self.expiry_month,
            expiry_year=self.expiry_year,
            status=enum_value(self.status),
            failure_count=self.failure_count,
            last_failure_date=self.last_failure_date,
            last_success_date=self.last_success_date,
        )

    def to_json(self) -> Dict[str, Any]:
        record = self.model_dump(mode="json", by_alias=True)
        record.update(
            {
                "cardTypeDisplay": self.card_type_display(),
                "maskedCardNumber": self.masked_card_number(),
                "formattedExpiry": self.formatted_expiry(),
                "statusDescription": self.status_description(),
                "isExpired": self.is_expired(),
                "isExpiringSoon": self.is_expiring_soon(),
                "needsReplacement": self.needs_replacement(),
                "failureRate": self.failure_rate(),
            }
        )
        return record

    @classmethod
    def from_json(cls, record: Dict[str, Any]) -> "PaymentMethod":
        return cls.model_validate(record)

    @classmethod
    def from_processor_card(cls, card_data: Dict[str, Any], customer_id: str) -> "PaymentMethod":
        """Build from a processor card payload shaped `{id, customer, card: {...}}`."""
        card = card_data.get("card") or {}
        return cls(
            id=f"pm_{time.time_ns() // 1_000_000}",
            customer_id=customer_id,
            card_type=card.get("brand"),
            last_four_digits=card.get("last4"),
            expiry_month=card.get("exp_month"),
            expiry_year=card.get("exp_year"),
            status=PaymentMethodStatus.ACTIVE,
            processor_payment_method_id=card_data.get("id"),
            processor_customer_id=card_data.get("customer"),
            last_success_date=utc_now_iso(),
        )


def find_problematic_methods(
    payment_methods: List[PaymentMethod], today: Optional[date] = None
) -> List[PaymentMethod]:
    return [
        pm
        for pm in payment_methods
        if pm.needs_replacement(today)
        or pm.failure_count > 0
        or pm.status != PaymentMethodStatus.ACTIVE
    ]


def get_most_reliable(
    payment_methods: List[PaymentMethod], today: Optional[date] = None
) -> Optional[PaymentMethod]:
    """Lowest failure rate wins; ties go to the most recent success."""
    candidates = [
        pm
        for pm in payment_methods
        if pm.status == PaymentMethodStatus.ACTIVE and not pm.is_expired(today)
    ]
    if not candidates:
        return None
    candidates.sort(key=lambda pm: (pm.failure_rate(), -_timestamp(pm.last_success_date)))
    return candidates[0]
