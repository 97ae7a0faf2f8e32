"""
Pairing coordination.

When the transport has no valid credentials it issues pairing challenges.
This module makes sure each connection attempt produces at most one pairing
request and that the operator sees the artifact (code or QR payload).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from transport.whatsapp.base import TransportError, WhatsAppTransport
from transport.whatsapp.events import PairingChallenge

logger = logging.getLogger(__name__)

PairingMode = Literal["code", "qr"]


@dataclass(frozen=True)
class PairingRequest:
    """The single pairing artifact issued for the current attempt."""

    phone_number: Optional[str] = None
    code: Optional[str] = None
    qr: Optional[str] = None
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def log_pairing_instructions(request: PairingRequest) -> None:
    """Default operator display: a loud block in the process log."""
    logger.warning("=" * 60)
    if request.code:
        logger.warning(f"WhatsApp pairing code for +{request.phone_number}: {request.code}")
        logger.warning(
            "On the phone: WhatsApp > Linked devices > Link a device > "
            "Link with phone number instead, then enter the code above."
        )
    else:
        logger.warning("WhatsApp pairing QR payload (render it and scan it):")
        logger.warning(request.qr)
        logger.warning("On the phone: WhatsApp > Linked devices > Link a device.")
    logger.warning("=" * 60)


class PairingCoordinator:
    """
    One-pairing-request-per-attempt guard.

    arm() is called at the start of every connection attempt. In code mode
    the first challenge requests a code; later challenges in the same attempt
    are ignored unless the request failed. In QR mode the transport supplies
    the artifact itself, so each refreshed QR replaces the outstanding one.
    """

    def __init__(
        self,
        mode: PairingMode = "code",
        phone_number: Optional[str] = None,
        display: Optional[Callable[[PairingRequest], None]] = None,
    ):
        if mode not in ("code", "qr"):
            raise ValueError(f"Unknown pairing mode: {mode}")
        if mode == "code" and not phone_number:
            raise ValueError("phone_number is required for code pairing")

        self.mode = mode
        self.phone_number = phone_number
        self._display = display or log_pairing_instructions
        self._requested = False
        self._outstanding: Optional[PairingRequest] = None

    @property
    def outstanding(self) -> Optional[PairingRequest]:
        return self._outstanding

    def arm(self) -> None:
        """Start a fresh attempt: allow exactly one new request."""
        self._requested = False
        self._outstanding = None

    def clear(self) -> None:
        """Pairing finished (connection opened)."""
        self._outstanding = None

    async def handle_challenge(
        self,
        challenge: PairingChallenge,
        transport: WhatsAppTransport,
    ) -> Optional[PairingRequest]:
        """
        React to a pairing challenge.

        Returns:
            The request issued for this challenge, or None if it was ignored
            or the code could not be obtained
        """
        if self.mode == "qr":
            if not challenge.qr:
                logger.warning("Pairing challenge carried no QR payload")
                return None
            request = PairingRequest(qr=challenge.qr)
            self._outstanding = request
            self._display(request)
            return request

        if self._requested:
            logger.debug("Pairing challenge ignored: request already outstanding")
            return None

        self._requested = True
        try:
            code = await transport.request_pairing_code(self.phone_number)
        except TransportError as e:
            self._requested = False
            logger.error(f"Failed to obtain pairing code: {e}")
            return None

        request = PairingRequest(phone_number=self.phone_number, code=code)
        self._outstanding = request
        logger.info("Pairing code issued", extra={"phone_number": self.phone_number})
        self._display(request)
        return request
