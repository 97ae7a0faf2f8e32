"""
Connection lifecycle manager.

Owns the single WhatsApp transport of this process and the one authoritative
ConnectionState. Every state change goes through the pure reducer in
connection.state and happens synchronously on the event loop, so HTTP
handlers always observe a consistent snapshot.

Responsibilities:
- Load the stored session once at start()
- Run one connection attempt at a time and consume its events in order
- Persist every credential update (failures are counted, not fatal)
- Drive pairing through the PairingCoordinator
- Schedule at most one deferred reconnect, cancelled by logout/failure/stop
- Serialize outbound sends behind a single-flight lock
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Literal, Optional, Union

from transport.whatsapp.base import TransportError, WhatsAppTransport
from transport.whatsapp.events import (
    Close,
    CredentialsUpdated,
    Open,
    PairingChallenge,
    TransportEvent,
)
from transport.whatsapp.schemas import Session

from .errors import PersistenceError
from .pairing import PairingCoordinator
from .reconnect import ReconnectPolicy
from .session_store import SessionStore
from .state import (
    BackoffElapsed,
    ConnectionPhase,
    ConnectionState,
    LifecycleEvent,
    PairingHandled,
    Start,
    Stop,
    resolve_close,
    transition,
)

logger = logging.getLogger(__name__)

SendStatus = Literal["sent", "not_connected", "delivery_failed"]


@dataclass(frozen=True)
class OutboundMessage:
    """One text notification. Built per request, never persisted."""

    recipient: str
    body: str
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SendResult:
    """Outcome of ConnectionManager.send(). Never raised, always returned."""

    status: SendStatus
    recipient: str
    message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "sent"


class ConnectionManager:
    """
    Single-session WhatsApp connection with explicit start()/stop().

    Construct one per process and hand it to whatever needs to send.
    """

    def __init__(
        self,
        transport: WhatsAppTransport,
        session_store: SessionStore,
        pairing: PairingCoordinator,
        policy: Optional[ReconnectPolicy] = None,
        send_timeout: float = 30.0,
        save_failure_threshold: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._transport = transport
        self._store = session_store
        self._pairing = pairing
        self._policy = policy or ReconnectPolicy()
        self._send_timeout = send_timeout
        self._save_failure_threshold = save_failure_threshold
        self._clock = clock

        self._state = ConnectionState()
        self._session: Optional[Session] = None
        self._attempt_task: Optional[asyncio.Task] = None
        self._backoff_task: Optional[asyncio.Task] = None
        self._send_lock = asyncio.Lock()
        self._save_failures = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def pairing(self) -> PairingCoordinator:
        return self._pairing

    @property
    def policy(self) -> ReconnectPolicy:
        return self._policy

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @property
    def save_failures(self) -> int:
        return self._save_failures

    @property
    def persistence_degraded(self) -> bool:
        return self._save_failures >= self._save_failure_threshold

    @property
    def reconnect_pending(self) -> bool:
        return self._backoff_task is not None and not self._backoff_task.done()

    def retry_in(self) -> Optional[float]:
        """Seconds until the pending reconnect fires, if one is scheduled."""
        if self._state.phase is not ConnectionPhase.BACKOFF or self._state.until is None:
            return None
        return max(0.0, self._state.until - self._clock())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the stored session and begin the first connection attempt."""
        if self._state.phase is not ConnectionPhase.IDLE:
            logger.warning(f"start() ignored in state {self._state.describe()}")
            return

        loop = asyncio.get_running_loop()
        self._session = await loop.run_in_executor(None, self._store.load)
        if self._session is None:
            logger.info("No stored WhatsApp session; pairing will be required")
        else:
            logger.info(f"Loaded WhatsApp session for device {self._session.device_id}")

        self._begin_attempt(Start())

    async def stop(self) -> None:
        """Cancel any pending reconnect, end the current attempt, go idle."""
        self._cancel_backoff()

        task = self._attempt_task
        self._attempt_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        try:
            await self._transport.disconnect()
        except TransportError as e:
            logger.warning(f"Transport disconnect failed: {e}")

        self._apply(Stop())
        logger.info("Connection manager stopped")

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, message: OutboundMessage) -> SendResult:
        """
        Send one text message.

        Only permitted while connected. A transport failure is reported as
        delivery_failed and does not change the connection state.
        """
        if not self._state.is_connected:
            return self._not_connected(message)

        async with self._send_lock:
            # State may have changed while waiting for the lock
            if not self._state.is_connected:
                return self._not_connected(message)

            try:
                message_id = await asyncio.wait_for(
                    self._transport.send_text(message.recipient, message.body),
                    timeout=self._send_timeout,
                )
            except asyncio.TimeoutError:
                error = f"Send timed out after {self._send_timeout:.1f}s"
                logger.error(error, extra={"recipient": message.recipient})
                return SendResult(status="delivery_failed", recipient=message.recipient, error=error)
            except TransportError as e:
                logger.error(f"Transport rejected message: {e}", extra={"recipient": message.recipient})
                return SendResult(status="delivery_failed", recipient=message.recipient, error=str(e))
            except Exception as e:
                logger.error(f"Unexpected error sending message: {e}", exc_info=True)
                return SendResult(status="delivery_failed", recipient=message.recipient, error=str(e))

        return SendResult(status="sent", recipient=message.recipient, message_id=message_id)

    def _not_connected(self, message: OutboundMessage) -> SendResult:
        return SendResult(
            status="not_connected",
            recipient=message.recipient,
            error=f"WhatsApp session is not connected (state: {self._state.phase.value})",
        )

    # ------------------------------------------------------------------
    # State machine plumbing
    # ------------------------------------------------------------------

    def _apply(self, event: Union[TransportEvent, LifecycleEvent]) -> bool:
        """Run the reducer. Returns False when the event was a no-op."""
        new_state = transition(self._state, event)
        if new_state is self._state:
            return False
        self._set_state(new_state)
        return True

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self._state
        self._state = new_state
        logger.info(f"Connection state: {old_state.describe()} -> {new_state.describe()}")

    def _begin_attempt(self, trigger: LifecycleEvent) -> None:
        if not self._apply(trigger):
            return
        self._pairing.arm()
        self._attempt_task = asyncio.create_task(
            self._run_attempt(), name="whatsapp-connection-attempt"
        )

    async def _run_attempt(self) -> None:
        """
        Connect once and consume events until the transport closes.

        Any failure other than cancellation ends the attempt as a
        recoverable close.
        """
        try:
            await self._transport.connect(self._session)
        except TransportError as e:
            logger.error(f"WhatsApp connect failed: {e}")
            self._handle_close(Close(reason=f"connect failed: {e}"))
            return
        except Exception as e:
            logger.error(f"Unexpected error connecting to WhatsApp: {e}", exc_info=True)
            self._handle_close(Close(reason=f"unexpected error: {e}"))
            return

        try:
            async for event in self._transport.events():
                await self._dispatch(event)
                if isinstance(event, Close):
                    return
        except TransportError as e:
            logger.error(f"WhatsApp event stream failed: {e}")
            self._handle_close(Close(reason=f"event stream failed: {e}"))
            return
        except Exception as e:
            logger.error(f"Unexpected error in WhatsApp event handling: {e}", exc_info=True)
            self._handle_close(Close(reason=f"unexpected error: {e}"))
            return

        # Stream ended without a close event
        self._handle_close(Close(reason="event stream ended"))

    async def _dispatch(self, event: TransportEvent) -> None:
        if isinstance(event, Open):
            if self._apply(event):
                self._pairing.clear()
                logger.info("WhatsApp connection open")
            return

        if isinstance(event, Close):
            self._handle_close(event)
            return

        if isinstance(event, PairingChallenge):
            if not self._apply(event):
                logger.debug(f"Pairing challenge ignored in state {self._state.describe()}")
                return
            await self._pairing.handle_challenge(event, self._transport)
            self._apply(PairingHandled())
            return

        if isinstance(event, CredentialsUpdated):
            await self._persist(event.credentials)
            return

        logger.warning(f"Unknown transport event ignored: {event!r}")

    def _handle_close(self, event: Close) -> None:
        if self.reconnect_pending:
            logger.debug("Close coalesced: reconnect already scheduled")
            return
        if not self._apply(event):
            logger.debug(f"Close ignored in state {self._state.describe()}")
            return

        settled = resolve_close(self._state, self._policy, self._clock())
        self._set_state(settled)

        if settled.phase is ConnectionPhase.LOGGED_OUT:
            self._cancel_backoff()
            logger.error(
                "WhatsApp session logged out. No reconnect will be attempted. "
                "Clear the stored session (scripts/reset_session.py) and restart to pair again."
            )
        elif settled.phase is ConnectionPhase.FAILED:
            self._cancel_backoff()
            logger.error(
                f"WhatsApp reconnect gave up after {settled.attempt} attempts "
                f"(last reason: {settled.reason}). Restart the gateway to try again."
            )
        elif settled.phase is ConnectionPhase.BACKOFF:
            delay = max(0.0, settled.until - self._clock())
            logger.warning(
                f"WhatsApp connection closed ({settled.reason}); "
                f"reconnect attempt {settled.attempt}/{self._policy.max_attempts} in {delay:.1f}s"
            )
            self._backoff_task = asyncio.create_task(
                self._reconnect_after(delay), name="whatsapp-reconnect-timer"
            )

    async def _reconnect_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._backoff_task = None
        self._begin_attempt(BackoffElapsed())

    def _cancel_backoff(self) -> None:
        task = self._backoff_task
        self._backoff_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _persist(self, credentials: dict) -> None:
        session = Session(device_id=self._store.device_id, credentials=credentials)
        self._session = session

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._store.save, session)
        except PersistenceError as e:
            self._save_failures += 1
            if self.persistence_degraded:
                logger.error(
                    f"Session save failed {self._save_failures} times in a row; "
                    f"a restart may require pairing again: {e}"
                )
            else:
                logger.warning(f"Session save failed: {e}")
            return

        if self._save_failures:
            logger.info(f"Session save recovered after {self._save_failures} failures")
        self._save_failures = 0
