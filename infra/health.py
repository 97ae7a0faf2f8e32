"""
Health checks for deployment readiness.

Provides:
- live: the gateway process is running
- ready: the WhatsApp session is connected and session persistence is healthy

Both reflect in-process state only; no remote service is contacted.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from connection import ConnectionManager


@dataclass
class HealthStatus:
    """Health status response."""

    status: str  # "healthy", "degraded", "unhealthy"
    timestamp: str
    ready: bool
    uptime_seconds: float
    connection_state: str
    message: str
    metadata: Dict[str, Any]


class HealthChecker:
    """
    Health checker for gateway readiness.

    Invariant: Health checks never touch the transport.
    """

    def __init__(self, manager: ConnectionManager, start_time: Optional[float] = None):
        self.manager = manager
        self.start_time = start_time if start_time is not None else time.time()

    def _metadata(self) -> Dict[str, Any]:
        state = self.manager.state
        return {
            "reconnect_attempts": state.attempt,
            "session_stored": self.manager.has_session,
            "session_save_failures": self.manager.save_failures,
        }

    def check_live(self) -> HealthStatus:
        """Liveness probe: always healthy if this code runs."""
        return HealthStatus(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            ready=self.manager.is_connected,
            uptime_seconds=time.time() - self.start_time,
            connection_state=self.manager.state.phase.value,
            message="Gateway process is running",
            metadata=self._metadata(),
        )

    def check_ready(self) -> HealthStatus:
        """
        Readiness probe: can /notify deliver right now?

        - connected + persistence ok      -> healthy
        - connected + persistence failing -> degraded (a restart would need pairing)
        - anything else                   -> unhealthy
        """
        state = self.manager.state
        connected = state.is_connected
        degraded = self.manager.persistence_degraded

        if connected and not degraded:
            status, message = "healthy", "WhatsApp session connected"
        elif connected:
            status, message = "degraded", "WhatsApp session connected but session saves are failing"
        elif state.is_terminal:
            status, message = "unhealthy", f"WhatsApp session {state.phase.value}; operator action required"
        else:
            status, message = "unhealthy", f"WhatsApp session not connected ({state.phase.value})"

        return HealthStatus(
            status=status,
            timestamp=datetime.now(timezone.utc).isoformat(),
            ready=connected and not degraded,
            uptime_seconds=time.time() - self.start_time,
            connection_state=state.phase.value,
            message=message,
            metadata=self._metadata(),
        )

    def to_dict(self, status: HealthStatus) -> Dict[str, Any]:
        """Convert HealthStatus to dict for JSON serialization."""
        return {
            "status": status.status,
            "timestamp": status.timestamp,
            "ready": status.ready,
            "uptime_seconds": status.uptime_seconds,
            "connection_state": status.connection_state,
            "message": status.message,
            "metadata": status.metadata,
        }
