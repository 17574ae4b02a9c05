"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

One function keeps the lazily built CustomerService (and its connection
pool) warm across routes.
"""

import re
from typing import Callable, Dict, Tuple

from churnwatch.utils.error_handling import json_response

from . import customer_actions, customers, health_check

_ID = r"[^/]+"

# Order matters: literal paths must win over the {id} patterns.
ROUTE_TABLE: Tuple[Tuple[str, str, str], ...] = (
    ("GET", r"/health", "health"),
    ("GET", r"/customers", "list"),
    ("GET", rf"/customers/status/{_ID}", "list"),
    ("GET", r"/customers/high-risk", "high_risk"),
    ("GET", r"/customers/summary", "summary"),
    ("GET", r"/customers/metrics", "metrics"),
    ("GET", rf"/customers/{_ID}", "get"),
    ("POST", r"/customers", "create"),
    ("POST", rf"/customers/{_ID}/transition", "transition"),
    ("POST", rf"/customers/{_ID}/interventions", "intervention"),
)


def _handlers() -> Dict[str, Callable]:
    # Resolved per request so patched handler modules take effect.
    return {
        "health": health_check.lambda_handler,
        "list": customers.list_handler,
        "get": customers.get_handler,
        "high_risk": customers.high_risk_handler,
        "summary": customers.summary_handler,
        "metrics": customers.metrics_handler,
        "create": customer_actions.create_handler,
        "transition": customer_actions.transition_handler,
        "intervention": customer_actions.intervention_handler,
    }


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    The event contains the HTTP method and path; we route it to the correct
    handler while keeping shared setup (logging, error handling) centralized.
    """
    method = event.get("requestContext", {}).get("http", {}).get("method", "")
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    normalized = path.rstrip("/") or "/"

    handlers = _handlers()
    for route_method, pattern, name in ROUTE_TABLE:
        if method.upper() == route_method and re.fullmatch(pattern, normalized):
            return handlers[name](event, context)

    return json_response(404, {"message": "Route not found", "route": f"{method.upper()} {path}"})
