"""
Write handlers: at-risk intake, status transitions and intervention records.

An illegal transition is an expected business outcome, so it is answered
with 409 and the structured result rather than treated as a failure.
"""

from __future__ import annotations

import json
import uuid
from typing import Optional

from churnwatch.models.response import ApiResponse
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


def _customer_id(event) -> Optional[str]:
    path_params = event.get("pathParameters") or {}
    if path_params.get("id"):
        return path_params["id"]
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    segments = [segment for segment in path.split("/") if segment]
    return segments[1] if len(segments) > 2 else None


def _payload(event) -> dict:
    return json.loads(event.get("body") or "{}")


def _handle(action, correlation_id: str):
    """Run one write action with the shared error mapping."""
    try:
        return action()
    except AppError as exc:
        logger.info(
            "Request rejected",
            extra={"correlation_id": correlation_id, "error": str(exc)},
        )
        response = to_response(exc)
        body = json.loads(response["body"])
        body["correlation_id"] = correlation_id
        response["body"] = json.dumps(body)
        return response
    except json.JSONDecodeError as exc:
        return json_response(
            400,
            {"message": "Invalid JSON body", "error": str(exc), "correlation_id": correlation_id},
        )
    except Exception as exc:
        logger.exception("Customer action failed", extra={"correlation_id": correlation_id})
        return json_response(
            500,
            {"message": "Internal error", "error": str(exc), "correlation_id": correlation_id},
        )


def create_handler(event, context):
    """POST /customers: register a customer straight from a risk signal."""
    correlation_id = str(uuid.uuid4())

    def action():
        customer = _get_customer_service().flag_at_risk_customer(_payload(event))
        return json_response(201, customer.to_json())

    return _handle(action, correlation_id)


def transition_handler(event, context):
    """POST /customers/{id}/transition with body {"status": ..., "reason": ...}."""
    correlation_id = str(uuid.uuid4())

    def action():
        customer_id = _customer_id(event)
        payload = _payload(event)
        if not customer_id or not payload.get("status"):
            return json_response(
                400, {"message": "customer id and status are required", "correlation_id": correlation_id}
            )

        result = _get_customer_service().transition_customer(
            customer_id, payload["status"], payload.get("reason")
        )
        response = ApiResponse(
            message="Transition applied" if result.success else result.error,
            status="ok" if result.success else "rejected",
            data=result.model_dump(),
            correlation_id=correlation_id,
        )
        return {
            "statusCode": 200 if result.success else 409,
            "headers": {"Content-Type": "application/json"},
            "body": response.model_dump_json(),
        }

    return _handle(action, correlation_id)


def intervention_handler(event, context):
    """POST /customers/{id}/interventions with body {"outcome": ..., "notes": ...}."""
    correlation_id = str(uuid.uuid4())

    def action():
        customer_id = _customer_id(event)
        payload = _payload(event)
        if not customer_id or not payload.get("outcome"):
            return json_response(
                400, {"message": "customer id and outcome are required", "correlation_id": correlation_id}
            )

        record = _get_customer_service().record_intervention(
            customer_id,
            payload["outcome"],
            notes=payload.get("notes"),
            agent_id=payload.get("agentId"),
        )
        response = ApiResponse(
            message="Intervention recorded",
            data=record.model_dump(by_alias=True, exclude_none=True),
            correlation_id=correlation_id,
        )
        return {
            "statusCode": 201,
            "headers": {"Content-Type": "application/json"},
            "body": response.model_dump_json(),
        }

    return _handle(action, correlation_id)
