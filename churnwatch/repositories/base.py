"""Persistence contract the services rely on."""

from typing import List, Optional, Protocol

from churnwatch.models.customer import Customer


class CustomerRepository(Protocol):
    """Load-by-id and save-whole-record storage for customers."""

    def get(self, customer_id: str) -> Optional[Customer]:
        ...

    def save(self, customer: Customer, expected_last_modified: Optional[str] = None) -> None:
        """
        Store the full record.

        When `expected_last_modified` is given, the stored record must still
        carry that token or ConflictError is raised.
        """
        ...

    def list_all(self) -> List[Customer]:
        ...

    def delete(self, customer_id: str) -> bool:
        ...
