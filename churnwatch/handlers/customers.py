"""Read handlers: customer records, status filters and the high-risk queue."""

from typing import Optional

from churnwatch.utils.error_handling import AppError, json_response, to_response
from churnwatch.utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy-loaded service to avoid import-time DB connections
_customer_service: Optional["CustomerService"] = None


def _get_customer_service():
    """Lazy-load CustomerService."""
    global _customer_service
    if _customer_service is None:
        from churnwatch.services.customer_service import build_customer_service
        _customer_service = build_customer_service()
    return _customer_service


def _path_segments(event) -> list:
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    return [segment for segment in path.split("/") if segment]


def list_handler(event, context):
    """GET /customers and GET /customers/status/{status}."""
    path_params = event.get("pathParameters") or {}
    query_params = event.get("queryStringParameters") or {}
    segments = _path_segments(event)

    status = path_params.get("status") or query_params.get("status")
    if not status and len(segments) == 3 and segments[1] == "status":
        status = segments[2]

    customers = _get_customer_service().list_customers(status=status)
    return json_response(200, [customer.to_json() for customer in customers])


def get_handler(event, context):
    """GET /customers/{id}."""
    path_params = event.get("pathParameters") or {}
    segments = _path_segments(event)
    customer_id = path_params.get("id") or (segments[1] if len(segments) > 1 else None)
    if not customer_id:
        return json_response(400, {"message": "customer id is required"})

    try:
        customer = _get_customer_service().get_customer(customer_id)
    except AppError as exc:
        return to_response(exc)

    logger.info("Customer served", extra={"customer_id": customer_id})
    return json_response(200, customer.to_json())


def high_risk_handler(event, context):
    """GET /customers/high-risk: the intervention work queue."""
    query_params = event.get("queryStringParameters") or {}
    limit = query_params.get("limit")
    try:
        limit = int(limit) if limit is not None else None
    except ValueError:
        return json_response(400, {"message": "limit must be an integer"})

    queue = _get_customer_service().high_risk_queue(limit=limit)
    return json_response(
        200,
        [
            {**customer.to_json(), "scoreBreakdown": customer.score_breakdown().as_dict()}
            for customer in queue
        ],
    )


def summary_handler(event, context):
    """GET /customers/summary."""
    return json_response(200, _get_customer_service().fleet_summary())


def metrics_handler(event, context):
    """GET /customers/metrics?start=...&end=...: churn prevention results."""
    query_params = event.get("queryStringParameters") or {}
    start, end = query_params.get("start"), query_params.get("end")
    if not start or not end:
        return json_response(400, {"message": "start and end are required"})

    try:
        metrics = _get_customer_service().prevention_metrics(start, end)
    except AppError as exc:
        return to_response(exc)
    return json_response(200, metrics.to_json())
