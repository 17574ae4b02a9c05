"""
Fleet-level views over many customers.

Used to build the human work queue: who needs attention, in which order.
"""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Dict, Iterable, List

from churnwatch.models.base import enum_value

if TYPE_CHECKING:
    from churnwatch.models.customer import Customer


def find_high_risk_customers(customers: Iterable["Customer"]) -> List["Customer"]:
    """
    Customers requiring intervention, highest risk score first.

    `sorted` is stable, so customers with equal scores keep their input order
    and the queue is reproducible between runs.
    """
    flagged = [customer for customer in customers if customer.requires_intervention()]
    return sorted(flagged, key=lambda customer: customer.calculate_risk_score(), reverse=True)


def summarize_fleet(customers: Iterable["Customer"]) -> Dict[str, object]:
    """Counts per account status plus the size of the intervention queue."""
    by_status: Counter = Counter()
    needing_intervention = 0
    total = 0
    for customer in customers:
        total += 1
        by_status[enum_value(customer.account_status)] += 1
        if customer.requires_intervention():
            needing_intervention += 1
    return {
        "total": total,
        "byStatus": dict(by_status),
        "requiresIntervention": needing_intervention,
    }
