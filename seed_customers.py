#!/usr/bin/env python3
"""Seed the customer store from a billing export JSON file."""

import sys

from churnwatch.config.settings import Settings
from churnwatch.services.customer_service import build_customer_service
from churnwatch.services.seed_service import load_customers


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: seed_customers.py <customers.json>")
        return 2

    settings = Settings.from_environment()
    print(f"Seeding customers into {settings.database_url} ({settings.environment})")

    service = build_customer_service(settings)
    try:
        report = load_customers(argv[0], service.repository)
    except (OSError, ValueError) as e:
        print(f"Error reading seed file: {e}")
        return 1

    print(f"Loaded {report.loaded} customers, skipped {report.skipped}.")
    for customer_id, errors in report.errors_by_id.items():
        print(f"  {customer_id}: {'; '.join(errors)}")

    queue = service.high_risk_queue(limit=settings.high_risk_queue_limit)
    print(f"{len(queue)} customers currently require intervention.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
