"""DynamoDB repository for the intervention audit trail."""

from typing import Any, Dict, List, Optional

import boto3

from churnwatch.models.customer import InterventionRecord


class InterventionLogRepository:
    """Append-only log of interventions, keyed by customer and timestamp."""

    def __init__(self, table_name: str, region_name: Optional[str] = None, table: Any = None):
        self.table = table or boto3.resource("dynamodb", region_name=region_name).Table(table_name)

    def put_event(
        self,
        customer_id: str,
        record: InterventionRecord,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Insert one intervention; returns the stored item."""
        item = {
            "customer_id": customer_id,
            "timestamp": record.date,
            "outcome": record.outcome,
        }
        if record.notes:
            item["notes"] = record.notes
        if extra:
            item.update({k: v for k, v in extra.items() if v is not None})
        self.table.put_item(Item=item)
        return item

    def query_recent(self, customer_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Query most recent interventions, newest first."""
        resp = self.table.query(
            KeyConditionExpression="customer_id = :cid",
            ExpressionAttributeValues={":cid": customer_id},
            ScanIndexForward=False,
            Limit=limit,
        )
        return resp.get("Items", [])

    def history(self, customer_id: str, limit: int = 20) -> List[InterventionRecord]:
        """Recent interventions as domain records, oldest first."""
        items = self.query_recent(customer_id, limit)
        return [
            InterventionRecord(date=item["timestamp"], outcome=item["outcome"], notes=item.get("notes"))
            for item in reversed(items)
        ]
