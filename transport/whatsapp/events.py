"""
Transport event stream.

A closed set of tagged events emitted by a WhatsApp transport for one
connection attempt. The connection manager consumes them in order.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Union


class DisconnectReason(IntEnum):
    """Status codes a transport attaches to a close event."""

    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    CONNECTION_REPLACED = 440
    LOGGED_OUT = 401
    BAD_SESSION = 500
    RESTART_REQUIRED = 515
    MULTIDEVICE_MISMATCH = 411
    FORBIDDEN = 403
    UNAVAILABLE_SERVICE = 503


@dataclass(frozen=True)
class Open:
    """Connection authenticated and ready to send."""


@dataclass(frozen=True)
class Close:
    """Connection ended. status_code may be None when the transport has none."""

    status_code: Optional[int] = None
    reason: str = "connection closed"


@dataclass(frozen=True)
class PairingChallenge:
    """
    Transport has no valid credentials and wants the device paired.

    qr carries the QR payload when the transport offers one.
    """

    qr: Optional[str] = None


@dataclass(frozen=True)
class CredentialsUpdated:
    """New credential blob that must be persisted."""

    credentials: Dict[str, Any] = field(default_factory=dict)


TransportEvent = Union[Open, Close, PairingChallenge, CredentialsUpdated]
