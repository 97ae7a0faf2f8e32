"""
Typeform Webhook Bridge

Receives Typeform webhooks and forwards one notification per submission
to the gateway.

Flow for POST /typeform-listener:
1. Parse body (400 if not a JSON object with a string event_type)
2. Ignore non-"form_response" events (200)
3. Format the submission
4. Forward to the gateway with the shared bearer token

Once the event is structurally valid the response is always 200, so the
upstream service never retries because of a downstream failure. Failures
are logged instead.
"""

import logging

from fastapi import APIRouter, Request, status
from pydantic import ValidationError

from api.errors import error_response
from api.schemas import describe_validation_error

from .formatting import format_typeform_submission
from .gateway_client import GatewayClient, GatewayForwardError
from .schemas import TypeformEvent

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Typeform Bridge"])


def get_gateway_client(request: Request) -> GatewayClient:
    return request.app.state.gateway_client


@router.post("/typeform-listener")
async def typeform_listener(request: Request):
    """
    Accept a Typeform webhook.

    Returns:
        200 {"status": "success", "forwarded_to": url}
        200 {"status": "ignored", "event_type": ...}
        200 {"status": "accepted", "forwarded": false}  (gateway failed)
        400 malformed body
    """
    # Step 1: Parse
    try:
        payload = await request.json()
    except ValueError:
        return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON")

    if not isinstance(payload, dict):
        return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    try:
        event = TypeformEvent.model_validate(payload)
    except ValidationError as e:
        reason = describe_validation_error(e)
        logger.warning(f"Malformed Typeform event: {reason}")
        return error_response(status.HTTP_400_BAD_REQUEST, reason)

    # Step 2: Filter
    if not event.is_form_response:
        logger.info(f"Ignoring Typeform event type: {event.event_type}")
        return {"status": "ignored", "event_type": event.event_type}

    client = get_gateway_client(request)

    # Steps 3-4: Format and forward; failures never reach the caller
    try:
        message = format_typeform_submission(event)
        result = await client.forward(message)
    except GatewayForwardError as e:
        logger.error(
            f"Failed to forward submission {event.event_id}: {e}",
            extra={
                "event_id": event.event_id,
                "gateway_url": client.url,
                "status_code": e.status_code,
                "details": e.details,
            },
        )
        return {"status": "accepted", "forwarded": False}
    except Exception as e:
        logger.error(f"Unexpected error handling submission {event.event_id}: {e}", exc_info=True)
        return {"status": "accepted", "forwarded": False}

    logger.info(
        "Submission forwarded",
        extra={
            "event_id": event.event_id,
            "gateway_status": result.status_code,
            "content_length": len(message),
        },
    )
    return {"status": "success", "forwarded_to": client.url}


@router.get("/health")
async def bridge_health(request: Request):
    """Bridge liveness plus where it forwards. Token presence only, never the value."""
    client = get_gateway_client(request)
    return {
        "status": "Bridge running",
        "target_bot_api": client.url,
        "auth_status": "Token set" if client.auth_token else "Token missing",
    }
