"""
Stub WhatsApp transport for testing and offline development.

Deterministic and in-memory. Events are scripted with emit(); in auto mode
the stub also plays the remote side of pairing so a local gateway can reach
the connected state without a phone.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Tuple

from .base import TransportError, WhatsAppTransport
from .events import Close, CredentialsUpdated, Open, PairingChallenge, TransportEvent
from .schemas import Session

logger = logging.getLogger(__name__)


class StubWhatsAppTransport(WhatsAppTransport):
    """
    Fake transport with a scriptable event queue.

    Failure knobs (fail_connect, fail_pairing, fail_send) hold the error
    message to raise, or None to succeed.
    """

    def __init__(self, auto: bool = False, pairing_code: str = "STUB-0000"):
        self.auto = auto
        self.pairing_code = pairing_code
        self.fail_connect: Optional[str] = None
        self.fail_pairing: Optional[str] = None
        self.fail_send: Optional[str] = None

        self.connected = False
        self.connect_calls: List[Optional[Session]] = []
        self.pairing_code_requests: List[str] = []
        self.sent: List[Tuple[str, str]] = []

        self._queue: "asyncio.Queue[TransportEvent]" = asyncio.Queue()

    def emit(self, event: TransportEvent) -> None:
        """Queue an event for the current (or next) connection attempt."""
        self._queue.put_nowait(event)

    async def connect(self, session: Optional[Session]) -> None:
        self.connect_calls.append(session)
        if self.fail_connect:
            raise TransportError(self.fail_connect)

        self.connected = True
        if self.auto:
            if session is None:
                self.emit(PairingChallenge(qr="stub-qr-payload"))
            else:
                self.emit(Open())

    async def events(self) -> AsyncIterator[TransportEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if isinstance(event, Close):
                self.connected = False
                return

    async def request_pairing_code(self, phone_number: str) -> str:
        self.pairing_code_requests.append(phone_number)
        if self.fail_pairing:
            raise TransportError(self.fail_pairing)

        if self.auto:
            self.emit(CredentialsUpdated(credentials={"me": phone_number, "registered": True}))
            self.emit(Open())
        return self.pairing_code

    async def send_text(self, jid: str, text: str) -> Optional[str]:
        if self.fail_send:
            raise TransportError(self.fail_send)

        self.sent.append((jid, text))
        logger.debug(f"[stub] sent {len(text)} chars to {jid}")
        return f"stub-{len(self.sent)}"

    async def disconnect(self) -> None:
        self.connected = False
