"""Customer repository on SQLAlchemy Core (PostgreSQL in production, SQLite locally)."""

import json
from typing import List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from churnwatch.models.customer import Customer
from churnwatch.utils.error_handling import ConflictError

SCHEMA = """
CREATE TABLE IF NOT EXISTS customers (
    id TEXT PRIMARY KEY,
    account_status TEXT NOT NULL,
    payload TEXT NOT NULL,
    last_modified TEXT NOT NULL
)
"""

UPSERT = """
INSERT INTO customers (id, account_status, payload, last_modified)
VALUES (:id, :account_status, :payload, :last_modified)
ON CONFLICT (id) DO UPDATE SET
    account_status = excluded.account_status,
    payload = excluded.payload,
    last_modified = excluded.last_modified
"""

CONDITIONAL_UPDATE = """
UPDATE customers
SET account_status = :account_status, payload = :payload, last_modified = :last_modified
WHERE id = :id AND last_modified = :expected_last_modified
"""


class PostgresCustomerRepository:
    """Thin wrapper to keep SQL organized and parameterized."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "PostgresCustomerRepository":
        return cls(create_engine(database_url, pool_pre_ping=True))

    def create_schema(self) -> None:
        self.execute(SCHEMA, {})

    def fetch_one(self, query: str, params: dict) -> Optional[dict]:
        """Execute a SELECT and return one row as dict."""
        with self.engine.connect() as conn:
            row = conn.execute(text(query), params).fetchone()
            return dict(row._mapping) if row else None

    def fetch_all(self, query: str, params: dict) -> List[dict]:
        with self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(text(query), params)]

    def execute(self, query: str, params: dict) -> None:
        """Execute a parameterized statement in its own transaction."""
        with self.engine.begin() as conn:
            conn.execute(text(query), params)

    def get(self, customer_id: str) -> Optional[Customer]:
        row = self.fetch_one("SELECT payload FROM customers WHERE id = :id", {"id": customer_id})
        return Customer.from_json(json.loads(row["payload"])) if row else None

    def save(self, customer: Customer, expected_last_modified: Optional[str] = None) -> None:
        record = customer.stored_record()
        params = {
            "id": customer.id,
            "account_status": record["accountStatus"],
            "payload": json.dumps(record),
            "last_modified": record["lastModified"],
        }
        if expected_last_modified is None:
            self.execute(UPSERT, params)
            return

        params["expected_last_modified"] = expected_last_modified
        with self.engine.begin() as conn:
            result = conn.execute(text(CONDITIONAL_UPDATE), params)
            if result.rowcount == 0:
                exists = conn.execute(
                    text("SELECT 1 FROM customers WHERE id = :id"), {"id": customer.id}
                ).fetchone()
                if exists:
                    raise ConflictError(f"Customer {customer.id} was modified concurrently")
                conn.execute(text(UPSERT), {k: v for k, v in params.items() if k != "expected_last_modified"})

    def list_all(self) -> List[Customer]:
        rows = self.fetch_all("SELECT payload FROM customers ORDER BY id", {})
        return [Customer.from_json(json.loads(row["payload"])) for row in rows]

    def list_by_status(self, status: str) -> List[Customer]:
        rows = self.fetch_all(
            "SELECT payload FROM customers WHERE account_status = :status ORDER BY id",
            {"status": status},
        )
        return [Customer.from_json(json.loads(row["payload"])) for row in rows]

    def delete(self, customer_id: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(text("DELETE FROM customers WHERE id = :id"), {"id": customer_id})
            return result.rowcount > 0
