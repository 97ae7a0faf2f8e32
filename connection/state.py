"""
Connection state machine.

ConnectionState is an immutable value. transition() and resolve_close() are
the only functions that compute a new one, and every change they make is
checked against ALLOWED_TRANSITIONS. The manager applies their results; it
never builds states by hand.

Edges:
    idle             -> connecting                       (Start)
    connecting       -> awaiting_pairing                 (PairingChallenge)
    awaiting_pairing -> connecting                       (PairingHandled)
    connecting       -> connected                        (Open, counter reset)
    connecting | awaiting_pairing | connected -> closing (Close)
    closing          -> logged_out | backoff | failed    (resolve_close)
    backoff          -> connecting                       (BackoffElapsed)
    any non-terminal -> idle                             (Stop)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from transport.whatsapp.events import (
    Close,
    CredentialsUpdated,
    Open,
    PairingChallenge,
    TransportEvent,
)

from .errors import InvalidTransition
from .reconnect import CloseCategory, ReconnectPolicy, classify_close


class ConnectionPhase(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_PAIRING = "awaiting_pairing"
    CONNECTED = "connected"
    CLOSING = "closing"
    BACKOFF = "backoff"
    LOGGED_OUT = "logged_out"
    FAILED = "failed"


TERMINAL_PHASES: FrozenSet[ConnectionPhase] = frozenset(
    {ConnectionPhase.LOGGED_OUT, ConnectionPhase.FAILED}
)

ALLOWED_TRANSITIONS: Dict[ConnectionPhase, FrozenSet[ConnectionPhase]] = {
    ConnectionPhase.IDLE: frozenset({ConnectionPhase.CONNECTING}),
    ConnectionPhase.CONNECTING: frozenset({
        ConnectionPhase.AWAITING_PAIRING,
        ConnectionPhase.CONNECTED,
        ConnectionPhase.CLOSING,
        ConnectionPhase.IDLE,
    }),
    ConnectionPhase.AWAITING_PAIRING: frozenset({
        ConnectionPhase.CONNECTING,
        ConnectionPhase.CLOSING,
        ConnectionPhase.IDLE,
    }),
    ConnectionPhase.CONNECTED: frozenset({
        ConnectionPhase.CLOSING,
        ConnectionPhase.IDLE,
    }),
    ConnectionPhase.CLOSING: frozenset({
        ConnectionPhase.LOGGED_OUT,
        ConnectionPhase.BACKOFF,
        ConnectionPhase.FAILED,
    }),
    ConnectionPhase.BACKOFF: frozenset({
        ConnectionPhase.CONNECTING,
        ConnectionPhase.IDLE,
    }),
    ConnectionPhase.LOGGED_OUT: frozenset(),
    ConnectionPhase.FAILED: frozenset(),
}


# Lifecycle events raised by the manager itself (not by the transport)

@dataclass(frozen=True)
class Start:
    """start() was called."""


@dataclass(frozen=True)
class BackoffElapsed:
    """The deferred reconnect timer fired."""


@dataclass(frozen=True)
class PairingHandled:
    """The pairing artifact was delivered to the operator (or the request failed)."""


@dataclass(frozen=True)
class Stop:
    """stop() was called."""


LifecycleEvent = Union[Start, BackoffElapsed, PairingHandled, Stop]


@dataclass(frozen=True)
class ConnectionState:
    """
    Snapshot of the single session connection.

    attempt is the reconnect counter for the current failure streak.
    until is the monotonic deadline of a pending backoff.
    """

    phase: ConnectionPhase = ConnectionPhase.IDLE
    attempt: int = 0
    reason: Optional[str] = None
    status_code: Optional[int] = None
    until: Optional[float] = None

    @property
    def is_connected(self) -> bool:
        return self.phase is ConnectionPhase.CONNECTED

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def describe(self) -> str:
        if self.phase is ConnectionPhase.BACKOFF:
            return f"backoff(attempt={self.attempt})"
        if self.phase in (ConnectionPhase.CLOSING, ConnectionPhase.LOGGED_OUT, ConnectionPhase.FAILED):
            return f"{self.phase.value}({self.reason}, code={self.status_code})"
        return self.phase.value


def _move(state: ConnectionState, phase: ConnectionPhase, **changes) -> ConnectionState:
    if phase not in ALLOWED_TRANSITIONS[state.phase]:
        raise InvalidTransition(f"{state.phase.value} -> {phase.value}")
    return replace(state, phase=phase, **changes)


def transition(
    state: ConnectionState,
    event: Union[TransportEvent, LifecycleEvent],
) -> ConnectionState:
    """
    Compute the next state for an event.

    Events that do not apply to the current phase return `state` itself
    (same object), so callers can detect a no-op with `is`.
    """
    phase = state.phase

    if isinstance(event, Start):
        if phase is ConnectionPhase.IDLE:
            return _move(state, ConnectionPhase.CONNECTING, reason=None, status_code=None, until=None)
        return state

    if isinstance(event, BackoffElapsed):
        if phase is ConnectionPhase.BACKOFF:
            return _move(state, ConnectionPhase.CONNECTING, reason=None, status_code=None, until=None)
        return state

    if isinstance(event, PairingChallenge):
        if phase is ConnectionPhase.CONNECTING:
            return _move(state, ConnectionPhase.AWAITING_PAIRING)
        return state

    if isinstance(event, PairingHandled):
        if phase is ConnectionPhase.AWAITING_PAIRING:
            return _move(state, ConnectionPhase.CONNECTING)
        return state

    if isinstance(event, Open):
        if phase is ConnectionPhase.CONNECTING:
            return _move(state, ConnectionPhase.CONNECTED, attempt=0, reason=None, status_code=None)
        return state

    if isinstance(event, Close):
        if phase in (
            ConnectionPhase.CONNECTING,
            ConnectionPhase.AWAITING_PAIRING,
            ConnectionPhase.CONNECTED,
        ):
            return _move(
                state,
                ConnectionPhase.CLOSING,
                reason=event.reason,
                status_code=event.status_code,
            )
        return state

    if isinstance(event, Stop):
        if phase is ConnectionPhase.IDLE or phase in TERMINAL_PHASES:
            return state
        return _move(state, ConnectionPhase.IDLE, attempt=0, reason=None, status_code=None, until=None)

    if isinstance(event, CredentialsUpdated):
        return state

    raise TypeError(f"Unknown connection event: {event!r}")


def resolve_close(
    state: ConnectionState,
    policy: ReconnectPolicy,
    now: float,
) -> ConnectionState:
    """
    Settle a closing state into logged_out, failed, or backoff.

    A logout is terminal regardless of the counter. Otherwise the streak
    either schedules backoff(attempt + 1) or, once exhausted, fails.
    """
    if state.phase is not ConnectionPhase.CLOSING:
        return state

    if classify_close(state.status_code) is CloseCategory.LOGGED_OUT:
        return _move(state, ConnectionPhase.LOGGED_OUT)

    if policy.is_exhausted(state.attempt):
        return _move(state, ConnectionPhase.FAILED)

    delay = policy.delay_for(state.attempt)
    return _move(
        state,
        ConnectionPhase.BACKOFF,
        attempt=state.attempt + 1,
        until=now + delay,
    )
