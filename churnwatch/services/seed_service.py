"""
Bulk import of customer records from an export file.

Accepts the `{"customers": [...]}` document produced by the billing export
(or a plain list of records). Invalid records are skipped and reported
instead of aborting the whole import.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError as PydanticValidationError

from churnwatch.models.customer import Customer
from churnwatch.repositories.base import CustomerRepository
from churnwatch.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SeedReport:
    """What happened to each record of an import."""

    loaded: int = 0
    skipped: int = 0
    errors_by_id: Dict[str, List[str]] = field(default_factory=dict)


def read_records(source: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read customer records from a JSON export file."""
    document = json.loads(Path(source).read_text(encoding="utf-8"))
    if isinstance(document, dict):
        document = document.get("customers", [])
    if not isinstance(document, list):
        raise ValueError("Seed file must contain a list of customers")
    return document


def load_customers(
    source: Union[str, Path, Iterable[Dict[str, Any]]],
    repository: CustomerRepository,
) -> SeedReport:
    """Validate and store every well-formed record from `source`."""
    records = read_records(source) if isinstance(source, (str, Path)) else list(source)
    report = SeedReport()

    for index, record in enumerate(records):
        key = str(record.get("id") or f"record[{index}]")
        try:
            customer = Customer.from_json(record)
        except PydanticValidationError as exc:
            report.skipped += 1
            report.errors_by_id[key] = [error["msg"] for error in exc.errors()]
            continue

        result = customer.validate()
        if not result.is_valid:
            report.skipped += 1
            report.errors_by_id[key] = result.errors
            continue

        repository.save(customer)
        report.loaded += 1

    logger.info(
        "Customer seed finished",
        extra={"loaded": report.loaded, "skipped": report.skipped},
    )
    if report.errors_by_id:
        logger.warning("Skipped invalid customer records", extra={"errors": report.errors_by_id})
    return report
