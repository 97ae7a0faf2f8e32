"""
Notification Gateway

FastAPI router exposing the WhatsApp session to trusted callers.

Flow for POST /notify:
1. Verify bearer token (401 missing, 403 mismatch; skipped in insecure mode)
2. Validate body: {"message": non-empty string, <= 4096 chars after trim}
3. Build OutboundMessage for the configured recipient
4. ConnectionManager.send()
5. Map outcome: sent -> 200, not_connected -> 503, delivery_failed -> 500

Nothing raised here may crash the process; every failure becomes a JSON
error body.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError

from connection import ConnectionManager, OutboundMessage
from infra.config import GatewayConfig
from transport.whatsapp import NormalizationError, normalize_phone_number

from .errors import error_response
from .schemas import (
    NotifyRequest,
    NotifyResponse,
    StatusResponse,
    describe_validation_error,
)
from .security import require_bearer_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notification Gateway"])


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


def get_gateway_config(request: Request) -> GatewayConfig:
    return request.app.state.gateway_config


@router.post(
    "/notify",
    response_model=NotifyResponse,
    dependencies=[Depends(require_bearer_token)],
)
async def notify(request: Request):
    """
    Send a notification to the configured recipient.

    Expected payload:
    {
        "message": "New form submission ..."
    }

    Returns:
        200 {"success": true, "recipient": "<jid>"}
        400 invalid body, 401/403 auth, 503 not connected, 500 delivery failed
    """
    manager = get_connection_manager(request)
    config = get_gateway_config(request)

    # Step 1: Parse body
    try:
        payload = await request.json()
    except ValueError:
        return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON")

    if not isinstance(payload, dict):
        return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    # Step 2: Validate message
    try:
        notify_request = NotifyRequest.model_validate(payload)
    except ValidationError as e:
        reason = describe_validation_error(e)
        logger.info(f"Rejected notification: {reason}")
        return error_response(status.HTTP_400_BAD_REQUEST, reason)

    # Step 3: Resolve recipient
    recipient = config.recipient_jid
    if recipient is None:
        logger.error("Notification rejected: ADMIN_NUMBER is not configured")
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Notification recipient is not configured",
        )

    message = OutboundMessage(recipient=recipient, body=notify_request.message)

    # Step 4: Dispatch
    result = await manager.send(message)
    logger.info(
        f"Notification dispatch: {result.status}",
        extra={
            "recipient": recipient,
            "content_length": len(message.body),
            "outcome": result.status,
        },
    )

    # Step 5: Map outcome
    if result.status == "not_connected":
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "WhatsApp is not connected",
            details=result.error,
        )
    if result.status == "delivery_failed":
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to deliver notification",
            details=result.error,
        )

    return NotifyResponse(success=True, recipient=recipient, message_id=result.message_id)


@router.get("/status", response_model=StatusResponse)
async def connection_status(request: Request) -> StatusResponse:
    """Current connection category and configured identities. No secrets."""
    manager = get_connection_manager(request)
    config = get_gateway_config(request)
    state = manager.state

    bot_number = None
    if config.bot_number:
        try:
            bot_number = normalize_phone_number(config.bot_number)
        except NormalizationError:
            bot_number = None

    return StatusResponse(
        connected=state.is_connected,
        status="online" if state.is_connected else "offline",
        state=state.phase.value,
        reconnect_attempts=state.attempt,
        retry_in_seconds=manager.retry_in(),
        bot_number=bot_number,
        recipient=config.recipient_jid,
        pairing_mode=config.pairing_mode,
        pairing_pending=manager.pairing.outstanding is not None,
        auth_mode="bearer" if config.auth_enabled else "insecure",
        session_persistence="degraded" if manager.persistence_degraded else "ok",
    )
