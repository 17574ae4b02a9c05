"""
Pytest configuration shared by all test modules.

Puts the repository root on sys.path so `import churnwatch` works without an
editable install, and gives boto3 offline-friendly defaults so no test needs
AWS access.
"""

import os
import sys
from pathlib import Path

import boto3
import pytest


def _ensure_repo_root_on_sys_path() -> None:
    """Add repository root to sys.path if missing."""
    repo_root = str(Path(__file__).resolve().parents[1])
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_ensure_repo_root_on_sys_path()

os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("INTERVENTIONS_TABLE", "test-interventions-table")

# Create a default boto3 session so resources/clients do not error during import.
boto3.setup_default_session(region_name="eu-west-2")

from churnwatch.models.customer import Customer  # noqa: E402
from churnwatch.repositories.memory_repo import InMemoryCustomerRepository  # noqa: E402
from churnwatch.services.customer_service import CustomerService  # noqa: E402


def build_customer(**overrides) -> Customer:
    """A valid at-risk customer; keyword overrides use snake_case field names."""
    data = {
        "id": "cust_001",
        "name": "Maria Silva",
        "email": "maria@example.com",
        "phone": "+1-555-0100",
        "account_status": "at-risk",
        "risk_category": "failed-payment",
        "risk_severity": "medium",
        "last_payment_date": "2025-01-15T00:00:00.000Z",
        "account_value": 5000,
        "customer_since": "2022-03-01",
        "service_provider": "StreamCo",
        "service_type": "Premium Plan",
        "billing_cycle": "monthly",
        "next_billing_date": "2025-02-15",
    }
    data.update(overrides)
    return Customer(**data)


@pytest.fixture
def make_customer():
    return build_customer


@pytest.fixture
def memory_repo() -> InMemoryCustomerRepository:
    return InMemoryCustomerRepository()


@pytest.fixture
def customer_service(memory_repo) -> CustomerService:
    return CustomerService(memory_repo)
