"""
Customer and AdminUser validation tests.

Customer validation accumulates every problem; AdminUser construction fails
fast. No database or AWS connection required.

Run with: pytest tests/unit/test_customer_validation.py -v
"""

import pytest

from churnwatch.models.admin_user import AdminUser, UserRole
from churnwatch.models.customer import AccountStatus, Customer, RiskSeverity
from churnwatch.utils.error_handling import CustomerValidationError


class TestCustomerValidate:
    """Test the accumulate-and-report validation."""

    def test_valid_customer(self, make_customer):
        """A fully populated at-risk customer is valid."""
        result = make_customer().validate()
        assert result.is_valid is True
        assert result.errors == []

    def test_empty_customer_reports_required_fields_in_order(self):
        """Missing id, name and email are all reported together."""
        result = Customer().validate()
        assert result.is_valid is False
        assert result.errors == [
            "Customer ID is required",
            "Customer name is required",
            "Email address is required",
        ]

    def test_whitespace_name_is_blank(self, make_customer):
        result = make_customer(name="   ").validate()
        assert result.errors == ["Customer name is required"]

    def test_invalid_email_format(self, make_customer):
        result = make_customer(email="not-an-email").validate()
        assert result.errors == ["Email address must be valid format"]

    def test_unknown_status_is_kept_and_reported(self, make_customer):
        """Unknown enum values survive parsing so validation can name them."""
        customer = make_customer(account_status="frozen")
        assert customer.account_status == "frozen"
        assert customer.validate().errors == [
            "Account status must be one of: active, at-risk, resolved, churned"
        ]

    def test_at_risk_requires_category(self, make_customer):
        result = make_customer(risk_category=None).validate()
        assert result.errors == ["Risk category is required for at-risk customers"]

    def test_at_risk_unknown_category(self, make_customer):
        result = make_customer(risk_category="fraud").validate()
        assert result.errors == [
            "Risk category must be one of: expiring-card, failed-payment, multiple-failures"
        ]

    def test_category_not_checked_outside_at_risk(self, make_customer):
        """Only at-risk customers need a category."""
        result = make_customer(account_status="active", risk_category=None).validate()
        assert result.is_valid is True

    def test_unknown_severity(self, make_customer):
        result = make_customer(risk_severity="apocalyptic").validate()
        assert result.errors == ["Risk severity must be one of: low, medium, high, critical"]

    def test_negative_account_value(self, make_customer):
        result = make_customer(account_value=-1).validate()
        assert result.errors == ["Account value must be a positive number"]

    def test_zero_account_value_is_valid(self, make_customer):
        assert make_customer(account_value=0).validate().is_valid is True

    @pytest.mark.parametrize(
        "field,message",
        [
            ("last_payment_date", "Last payment date must be valid date format"),
            ("customer_since", "Customer since date must be valid date format"),
            ("next_billing_date", "Next billing date must be valid date format"),
        ],
    )
    def test_invalid_dates(self, make_customer, field, message):
        result = make_customer(**{field: "yesterday-ish"}).validate()
        assert result.errors == [message]

    def test_impossible_calendar_date(self, make_customer):
        """February 30th parses syntactically but is not a real date."""
        result = make_customer(customer_since="2024-02-30").validate()
        assert result.errors == ["Customer since date must be valid date format"]

    def test_many_errors_accumulate(self):
        customer = Customer(
            id="c1",
            name="",
            email="bad",
            account_status="at-risk",
            risk_severity="extreme",
            account_value=-10,
            last_payment_date="nope",
        )
        assert customer.validate().errors == [
            "Customer name is required",
            "Email address must be valid format",
            "Risk category is required for at-risk customers",
            "Risk severity must be one of: low, medium, high, critical",
            "Account value must be a positive number",
            "Last payment date must be valid date format",
        ]

    def test_validate_never_raises(self):
        """Even a badly broken record only produces a result."""
        result = Customer(account_status="???", risk_severity="???").validate()
        assert result.is_valid is False


class TestEnsureValid:
    """Test the fail-fast check used before persistence."""

    def test_returns_customer_when_valid(self, make_customer):
        customer = make_customer()
        assert customer.ensure_valid() is customer

    def test_raises_with_all_errors(self):
        with pytest.raises(CustomerValidationError) as exc_info:
            Customer(id="c9").ensure_valid()
        assert exc_info.value.status_code == 422
        assert exc_info.value.customer_id == "c9"
        assert exc_info.value.errors == [
            "Customer name is required",
            "Email address is required",
        ]


class TestCustomerDefaults:
    """Missing, null and empty values all fall back to defaults."""

    def test_defaults(self):
        customer = Customer.from_json(
            {"id": "c1", "accountStatus": None, "riskSeverity": "", "billingCycle": None}
        )
        assert customer.account_status == AccountStatus.ACTIVE
        assert customer.risk_severity == RiskSeverity.LOW
        assert customer.billing_cycle == "monthly"
        assert customer.account_value == 0
        assert customer.risk_factors == []
        assert customer.intervention_history == []
        assert customer.last_modified

    def test_known_values_become_enum_members(self):
        customer = Customer.from_json({"accountStatus": "churned", "riskSeverity": "high"})
        assert customer.account_status is AccountStatus.CHURNED
        assert customer.risk_severity is RiskSeverity.HIGH


class TestAdminUser:
    """AdminUser construction is all-or-nothing."""

    def test_valid_admin(self):
        user = AdminUser(name="Ana", email="ana@example.com")
        assert user.role == UserRole.ADMIN
        assert user.id.startswith("user_")
        assert user.last_login_time is None

    def test_supervisor_role(self):
        user = AdminUser(name="Ana", email="ana@example.com", role="supervisor")
        assert user.role is UserRole.SUPERVISOR

    @pytest.mark.parametrize("payload", [{"name": "Ana"}, {"email": "ana@example.com"}, {}])
    def test_missing_name_or_email(self, payload):
        with pytest.raises(ValueError, match="name and email are required for an admin user"):
            AdminUser(**payload)

    def test_invalid_email(self):
        with pytest.raises(ValueError, match="Invalid email format"):
            AdminUser(name="Ana", email="ana-at-example")

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            AdminUser(name="Ana", email="ana@example.com", role="intern")
