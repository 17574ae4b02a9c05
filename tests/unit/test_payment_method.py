"""
Payment method health tests. A fixed `today` keeps expiry checks stable.

Run with: pytest tests/unit/test_payment_method.py -v
"""

from datetime import date

import pytest

from churnwatch.models.payment_method import (
    CardType,
    FailureReason,
    PaymentMethod,
    PaymentMethodStatus,
    find_problematic_methods,
    get_most_reliable,
)

TODAY = date(2025, 6, 15)


def _card(**overrides):
    data = {
        "id": "pm_1",
        "customer_id": "cust_1",
        "card_type": "visa",
        "last_four_digits": "4242",
        "expiry_month": 12,
        "expiry_year": 2030,
        "last_success_date": "2025-06-01T00:00:00Z",
    }
    data.update(overrides)
    return PaymentMethod(**data)


class TestValidation:
    def test_valid_card(self):
        assert _card().validate(TODAY).is_valid is True

    def test_empty_card(self):
        errors = PaymentMethod().validate(TODAY).errors
        assert errors == [
            "Payment method ID is required",
            "Customer ID is required",
            "Card type is required",
            "Last four digits are required",
            "Expiry month is required and must be a number",
            "Expiry year is required and must be a number",
        ]

    def test_field_rules(self):
        card = _card(
            card_type="diners",
            last_four_digits="42a",
            expiry_month=13,
            expiry_year=2020,
            failure_count=-1,
        )
        assert card.validate(TODAY).errors == [
            "Card type must be one of: visa, mastercard, amex, discover",
            "Last four digits must be exactly 4 numeric characters",
            "Expiry month must be between 1 and 12",
            "Expiry year must be current year or future",
            "Failure count must be a non-negative integer",
        ]


class TestExpiry:
    @pytest.mark.parametrize(
        "year,month,expired,soon",
        [
            (2025, 5, True, True),
            (2025, 6, False, True),
            (2025, 9, False, True),
            (2025, 10, False, False),
            (2030, 1, False, False),
        ],
    )
    def test_expiry_windows(self, year, month, expired, soon):
        card = _card(expiry_year=year, expiry_month=month)
        assert card.is_expired(TODAY) is expired
        assert card.is_expiring_soon(today=TODAY) is soon

    def test_missing_expiry_is_not_expired(self):
        card = _card(expiry_year=None, expiry_month=None)
        assert card.is_expired(TODAY) is False
        assert card.is_expiring_soon(today=TODAY) is False


class TestPaymentOutcomes:
    def test_expired_card_failure(self):
        card = _card()
        card.record_failure("expired_card", timestamp="2025-06-10T00:00:00Z")
        assert card.status == PaymentMethodStatus.EXPIRED
        assert card.failure_count == 1
        assert card.last_failure_reason == FailureReason.EXPIRED_CARD
        assert card.last_failure_date == "2025-06-10T00:00:00Z"

    @pytest.mark.parametrize("reason", ["lost_card", "stolen_card"])
    def test_lost_or_stolen_invalidates(self, reason):
        card = _card()
        card.record_failure(reason)
        assert card.status == PaymentMethodStatus.INVALID

    def test_repeated_declines_fail_the_card(self):
        card = _card()
        card.record_failure("card_declined")
        card.record_failure("insufficient_funds")
        assert card.status == PaymentMethodStatus.ACTIVE
        card.record_failure("card_declined")
        assert card.status == PaymentMethodStatus.FAILED
        assert card.needs_replacement(TODAY) is True

    def test_success_resets(self):
        card = _card(failure_count=3, status="failed", last_failure_reason="card_declined")
        card.record_success(timestamp="2025-06-14T00:00:00Z")
        assert card.status == PaymentMethodStatus.ACTIVE
        assert card.failure_count == 0
        assert card.last_failure_reason is None
        assert card.last_success_date == "2025-06-14T00:00:00Z"

    def test_deactivate(self):
        card = _card()
        card.deactivate()
        assert card.status == PaymentMethodStatus.INACTIVE
        assert card.status_description() == "Replaced by newer payment method"


class TestDisplay:
    def test_display_helpers(self):
        card = _card(card_type=CardType.AMEX, expiry_month=3, expiry_year=2027)
        assert card.card_type_display() == "American Express"
        assert card.masked_card_number() == "**** **** **** 4242"
        assert card.formatted_expiry() == "03/27"
        assert card.status_description() == "Active and working"

    def test_failure_rate(self):
        assert _card().failure_rate() == 0
        assert _card(failure_count=2).failure_rate() == 50
        assert _card(failure_count=1, last_success_date=None).failure_rate() == 100

    def test_to_json_includes_display_fields(self):
        data = _card().to_json()
        assert data["cardType"] == "visa"
        assert data["maskedCardNumber"] == "**** **** **** 4242"
        assert data["needsReplacement"] is False

    def test_snapshot(self):
        snapshot = _card(failure_count=1).to_snapshot()
        assert snapshot.card_type == "visa"
        assert snapshot.failure_count == 1
        assert snapshot.last_four_digits == "4242"

    def test_from_processor_card(self):
        card = PaymentMethod.from_processor_card(
            {
                "id": "pm_proc_1",
                "customer": "proc_cus_9",
                "card": {"brand": "mastercard", "last4": "1111", "exp_month": 8, "exp_year": 2031},
            },
            customer_id="cust_1",
        )
        assert card.card_type == CardType.MASTERCARD
        assert card.processor_payment_method_id == "pm_proc_1"
        assert card.validate(TODAY).is_valid is True


class TestFleetHelpers:
    def test_find_problematic_methods(self):
        healthy = _card(id="ok")
        expiring = _card(id="soon", expiry_year=2025, expiry_month=7)
        declined = _card(id="declined", failure_count=1)
        inactive = _card(id="old", status="inactive")
        problems = find_problematic_methods([healthy, expiring, declined, inactive], TODAY)
        assert [pm.id for pm in problems] == ["soon", "declined", "old"]

    def test_most_reliable_prefers_lowest_failure_rate(self):
        flaky = _card(id="flaky", failure_count=1)
        solid = _card(id="solid")
        assert get_most_reliable([flaky, solid], TODAY).id == "solid"

    def test_most_reliable_tie_goes_to_recent_success(self):
        older = _card(id="older", last_success_date="2025-01-01T00:00:00Z")
        newer = _card(id="newer", last_success_date="2025-06-01T00:00:00Z")
        assert get_most_reliable([older, newer], TODAY).id == "newer"

    def test_most_reliable_skips_expired_and_inactive(self):
        expired = _card(id="expired", expiry_year=2024)
        inactive = _card(id="inactive", status="inactive")
        assert get_most_reliable([expired, inactive], TODAY) is None
