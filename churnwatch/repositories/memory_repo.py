"""In-process customer store for local runs, seeding dry-runs and tests."""

from threading import Lock
from typing import Any, Dict, List, Optional

from churnwatch.models.customer import Customer
from churnwatch.utils.error_handling import ConflictError


class InMemoryCustomerRepository:
    """Keeps stored records, not live objects, so every load is a fresh Customer."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = Lock()

    def get(self, customer_id: str) -> Optional[Customer]:
        with self._lock:
            record = self._records.get(customer_id)
        return Customer.from_json(record) if record is not None else None

    def save(self, customer: Customer, expected_last_modified: Optional[str] = None) -> None:
        record = customer.stored_record()
        with self._lock:
            current = self._records.get(customer.id)
            if (
                expected_last_modified is not None
                and current is not None
                and current["lastModified"] != expected_last_modified
            ):
                raise ConflictError(f"Customer {customer.id} was modified concurrently")
            self._records[customer.id] = record

    def list_all(self) -> List[Customer]:
        with self._lock:
            records = list(self._records.values())
        return [Customer.from_json(record) for record in records]

    def delete(self, customer_id: str) -> bool:
        with self._lock:
            return self._records.pop(customer_id, None) is not None
