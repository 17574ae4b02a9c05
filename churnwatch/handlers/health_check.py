"""Lightweight health check handler."""

import os
from datetime import datetime, timezone

from churnwatch.utils.error_handling import json_response


def lambda_handler(event, context):
    """Return a simple 200 response to verify the service is alive."""
    return json_response(
        200,
        {
            "status": "ok",
            "service": "churnwatch",
            "environment": os.environ.get("ENVIRONMENT", "dev"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
