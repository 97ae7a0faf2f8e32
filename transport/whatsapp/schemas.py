"""
WhatsApp Transport Layer - Data Models

PURE DATA MODELS - NO LOGIC
Defines the contract between the session client and the transport.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    """
    Persisted credential bundle for one registered device.

    The credentials blob is opaque to everything except the transport.
    It is saved and loaded as a unit.
    """

    device_id: str
    credentials: Dict[str, Any]
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "credentials": self.credentials,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        """Rebuild a session from its stored form. Raises on malformed input."""
        device_id = data["device_id"]
        credentials = data["credentials"]
        if not isinstance(device_id, str) or not isinstance(credentials, dict):
            raise ValueError("Session fields have unexpected types")

        updated_at_raw: Optional[str] = data.get("updated_at")
        updated_at = (
            datetime.fromisoformat(updated_at_raw) if updated_at_raw else _utcnow()
        )
        return cls(device_id=device_id, credentials=credentials, updated_at=updated_at)
