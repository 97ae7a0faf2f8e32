"""
Infrastructure module exports.

Configuration, bootstrap and health checks for the gateway and the bridge.
"""

from .config import (
    BridgeConfig,
    ConfigError,
    GatewayConfig,
    PairingModeType,
    get_bridge_config,
    get_gateway_config,
)
from .bootstrap import StartupResult, bootstrap_gateway
from .health import HealthChecker, HealthStatus

__all__ = [
    "GatewayConfig",
    "BridgeConfig",
    "ConfigError",
    "PairingModeType",
    "get_gateway_config",
    "get_bridge_config",
    "StartupResult",
    "bootstrap_gateway",
    "HealthChecker",
    "HealthStatus",
]
