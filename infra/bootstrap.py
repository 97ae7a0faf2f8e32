"""
Gateway bootstrap.

Builds the ConnectionManager and its collaborators from configuration and
reports the outcome as a StartupResult. The entry point decides what to do
with a failed result; nothing here terminates the process.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from connection import ConnectionManager, SessionStore
from transport.whatsapp import WhatsAppTransport

from .config import ConfigError, GatewayConfig, get_gateway_config

logger = logging.getLogger(__name__)


@dataclass
class StartupResult:
    """Outcome of bootstrap_gateway()."""

    ok: bool
    config: Optional[GatewayConfig] = None
    manager: Optional[ConnectionManager] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"StartupResult(ok={self.ok}, errors={len(self.errors)}, "
            f"warnings={len(self.warnings)})"
        )


def bootstrap_gateway(
    config: Optional[GatewayConfig] = None,
    transport: Optional[WhatsAppTransport] = None,
    session_store: Optional[SessionStore] = None,
) -> StartupResult:
    """
    Validate configuration and construct the connection manager.

    Args:
        config: Configuration (read from the environment when omitted)
        transport: Transport override (tests, embedding)
        session_store: Session store override (tests, embedding)

    Returns:
        StartupResult with ok=False and the collected errors when a required
        setting is missing; the manager is not started either way
    """
    try:
        config = config or get_gateway_config()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return StartupResult(ok=False, errors=[str(e)])

    errors, warnings = config.validate()
    for warning in warnings:
        logger.warning(warning)
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return StartupResult(ok=False, config=config, errors=errors, warnings=warnings)

    try:
        transport = transport or config.create_transport()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return StartupResult(ok=False, config=config, errors=[str(e)], warnings=warnings)

    manager = ConnectionManager(
        transport=transport,
        session_store=session_store or config.create_session_store(),
        pairing=config.create_pairing_coordinator(),
        policy=config.create_reconnect_policy(),
        send_timeout=config.send_timeout,
        save_failure_threshold=config.save_failure_threshold,
    )
    return StartupResult(ok=True, config=config, manager=manager, warnings=warnings)
