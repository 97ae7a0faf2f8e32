"""
WhatsApp transport abstract interface.

Role: one authenticated device connection to WhatsApp.

Rules:
- The connection manager depends ONLY on this interface
- One connect() per connection attempt
- events() yields the attempt's events and stops after Close
- Failures raise TransportError; no retries here
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from .events import TransportEvent
from .schemas import Session


class TransportError(Exception):
    """Transport-level failure (connect, pairing code, or send)."""
    pass


class WhatsAppTransport(ABC):
    """
    Abstract WhatsApp session boundary.

    Implementations wrap a real protocol client. The stub implementation
    is used for development and tests.
    """

    @abstractmethod
    async def connect(self, session: Optional[Session]) -> None:
        """
        Begin a connection attempt.

        Args:
            session: Stored credentials, or None when the device must pair

        Raises:
            TransportError: The attempt could not be started
        """
        raise NotImplementedError

    @abstractmethod
    def events(self) -> AsyncIterator[TransportEvent]:
        """Iterate this attempt's events. Ends after a Close event."""
        raise NotImplementedError

    @abstractmethod
    async def request_pairing_code(self, phone_number: str) -> str:
        """
        Ask WhatsApp for a pairing code bound to phone_number.

        Raises:
            TransportError: No code could be obtained
        """
        raise NotImplementedError

    @abstractmethod
    async def send_text(self, jid: str, text: str) -> Optional[str]:
        """
        Send a text message.

        Returns:
            Message id assigned by the transport, if any

        Raises:
            TransportError: WhatsApp rejected the message
        """
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the socket without logging the device out."""
        raise NotImplementedError
