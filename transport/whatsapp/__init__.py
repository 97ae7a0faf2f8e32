"""WhatsApp Transport Layer - Module Exports"""

from .base import TransportError, WhatsAppTransport
from .events import (
    Close,
    CredentialsUpdated,
    DisconnectReason,
    Open,
    PairingChallenge,
    TransportEvent,
)
from .normalize import NormalizationError, normalize_phone_number, to_jid
from .schemas import Session
from .stub import StubWhatsAppTransport

__all__ = [
    # Interface
    "WhatsAppTransport",
    "TransportError",
    "StubWhatsAppTransport",
    # Events
    "TransportEvent",
    "Open",
    "Close",
    "PairingChallenge",
    "CredentialsUpdated",
    "DisconnectReason",
    # Data
    "Session",
    # Normalization
    "normalize_phone_number",
    "to_jid",
    "NormalizationError",
]
