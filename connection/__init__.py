"""
Connection lifecycle exports.

Session storage, reconnect policy, pairing and the connection manager.
"""

from .errors import InvalidTransition, PersistenceError
from .manager import ConnectionManager, OutboundMessage, SendResult, SendStatus
from .pairing import PairingCoordinator, PairingMode, PairingRequest, log_pairing_instructions
from .reconnect import CloseCategory, ReconnectPolicy, classify_close
from .session_store import FileSessionStore, InMemorySessionStore, SessionStore
from .state import (
    ALLOWED_TRANSITIONS,
    TERMINAL_PHASES,
    ConnectionPhase,
    ConnectionState,
    resolve_close,
    transition,
)

__all__ = [
    "ConnectionManager",
    "OutboundMessage",
    "SendResult",
    "SendStatus",
    "ConnectionPhase",
    "ConnectionState",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_PHASES",
    "transition",
    "resolve_close",
    "ReconnectPolicy",
    "CloseCategory",
    "classify_close",
    "PairingCoordinator",
    "PairingMode",
    "PairingRequest",
    "log_pairing_instructions",
    "SessionStore",
    "FileSessionStore",
    "InMemorySessionStore",
    "PersistenceError",
    "InvalidTransition",
]
