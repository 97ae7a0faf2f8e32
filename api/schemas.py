"""
Notification Gateway - Pydantic Schemas

PURE DATA MODELS - NO LOGIC beyond field validation.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, StrictStr, ValidationError, field_validator


MAX_MESSAGE_LENGTH = 4096


class NotifyRequest(BaseModel):
    """Body of POST /notify."""

    message: StrictStr = Field(
        ...,
        description=f"Notification text, 1-{MAX_MESSAGE_LENGTH} characters after trimming",
    )

    @field_validator("message")
    @classmethod
    def _trim_and_bound(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        if len(value) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"must be at most {MAX_MESSAGE_LENGTH} characters (got {len(value)})")
        return value


class NotifyResponse(BaseModel):
    """Successful dispatch."""

    success: bool = True
    recipient: str = Field(..., description="JID the message was sent to")
    message_id: Optional[str] = None


class ErrorResponse(BaseModel):
    """Every non-2xx gateway response."""

    error: str
    details: Optional[str] = None


class StatusResponse(BaseModel):
    """GET /status. Identities only, never secrets."""

    connected: bool
    status: Literal["online", "offline"]
    state: str
    reconnect_attempts: int
    retry_in_seconds: Optional[float] = None
    bot_number: Optional[str] = None
    recipient: Optional[str] = None
    pairing_mode: str
    pairing_pending: bool
    auth_mode: Literal["bearer", "insecure"]
    session_persistence: Literal["ok", "degraded"]


def describe_validation_error(exc: ValidationError) -> str:
    """First validation problem as 'field: reason'."""
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    reason = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
    return f"{location}: {reason}"
