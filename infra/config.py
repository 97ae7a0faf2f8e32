"""
Infrastructure configuration system.

Environment-based settings for the gateway and the bridge, with factories
for the components they configure. Missing required values are reported by
validate(); nothing here exits the process.
"""

import importlib
import os
from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from connection import (
    FileSessionStore,
    PairingCoordinator,
    ReconnectPolicy,
    SessionStore,
)
from transport.whatsapp import (
    NormalizationError,
    StubWhatsAppTransport,
    WhatsAppTransport,
    normalize_phone_number,
    to_jid,
)


PairingModeType = Literal["code", "qr"]

DEFAULT_GATEWAY_URL = "http://localhost:8000/notify"


class ConfigError(Exception):
    """Configuration is missing or malformed."""
    pass


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass
class GatewayConfig:
    """Notification gateway configuration from environment."""

    # Auth
    auth_token: Optional[str]

    # Identities
    bot_number: Optional[str]
    admin_number: Optional[str]
    pairing_mode: PairingModeType

    # Session storage
    session_dir: str
    session_id: Optional[str]

    # Transport
    transport: str
    send_timeout: float

    # Reconnect
    reconnect_base_delay: float
    reconnect_max_delay: float
    max_reconnect_attempts: int

    # Persistence health
    save_failure_threshold: int

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """
        Load configuration from environment variables.

        Raises:
            ConfigError: A numeric variable could not be parsed
        """
        return cls(
            auth_token=_env_str("BOT_SECRET_TOKEN"),
            bot_number=_env_str("BOT_PHONE_NUMBER"),
            admin_number=_env_str("ADMIN_NUMBER"),
            pairing_mode=(_env_str("PAIRING_MODE") or "code").lower(),  # type: ignore
            session_dir=_env_str("SESSION_DIR") or "./auth_info",
            session_id=_env_str("SESSION_ID"),
            transport=_env_str("WHATSAPP_TRANSPORT") or "stub",
            send_timeout=_env_float("SEND_TIMEOUT", 30.0),
            reconnect_base_delay=_env_float("RECONNECT_BASE_DELAY", 2.0),
            reconnect_max_delay=_env_float("RECONNECT_MAX_DELAY", 60.0),
            max_reconnect_attempts=_env_int("MAX_RECONNECT_ATTEMPTS", 10),
            save_failure_threshold=_env_int("SESSION_SAVE_FAILURE_THRESHOLD", 3),
        )

    @property
    def auth_enabled(self) -> bool:
        return bool(self.auth_token)

    @property
    def device_id(self) -> str:
        """Key of the stored session: explicit id, else the bot number, else 'default'."""
        if self.session_id:
            return self.session_id
        if self.bot_number:
            try:
                return normalize_phone_number(self.bot_number)
            except NormalizationError:
                pass
        return "default"

    @property
    def recipient_jid(self) -> Optional[str]:
        """JID of the notification recipient, or None when not configured/invalid."""
        if not self.admin_number:
            return None
        try:
            return to_jid(self.admin_number)
        except NormalizationError:
            return None

    def validate(self) -> Tuple[List[str], List[str]]:
        """
        Check the configuration.

        Returns:
            (errors, warnings). Errors block startup; warnings degrade features.
        """
        errors: List[str] = []
        warnings: List[str] = []

        if self.pairing_mode not in ("code", "qr"):
            errors.append(f"PAIRING_MODE must be 'code' or 'qr', got {self.pairing_mode!r}")

        if self.bot_number:
            try:
                normalize_phone_number(self.bot_number)
            except NormalizationError as e:
                errors.append(f"BOT_PHONE_NUMBER is invalid: {e}")
        elif self.pairing_mode == "code":
            errors.append("BOT_PHONE_NUMBER is required when PAIRING_MODE=code")

        if self.admin_number:
            try:
                to_jid(self.admin_number)
            except NormalizationError as e:
                errors.append(f"ADMIN_NUMBER is invalid: {e}")
        else:
            warnings.append("ADMIN_NUMBER is not set; /notify will answer 503")

        if not self.auth_token:
            warnings.append(
                "BOT_SECRET_TOKEN is not set; gateway running in INSECURE mode "
                "(no bearer token required)"
            )

        if self.transport == "stub":
            warnings.append(
                "WHATSAPP_TRANSPORT=stub: messages are accepted but NOT delivered to WhatsApp; "
                "set WHATSAPP_TRANSPORT=module:ClassName for a real session"
            )

        if self.reconnect_base_delay <= 0:
            errors.append("RECONNECT_BASE_DELAY must be positive")
        if self.reconnect_max_delay < self.reconnect_base_delay:
            errors.append("RECONNECT_MAX_DELAY must be >= RECONNECT_BASE_DELAY")
        if self.max_reconnect_attempts < 0:
            errors.append("MAX_RECONNECT_ATTEMPTS must be >= 0")
        if self.send_timeout <= 0:
            errors.append("SEND_TIMEOUT must be positive")
        if self.save_failure_threshold < 1:
            errors.append("SESSION_SAVE_FAILURE_THRESHOLD must be >= 1")

        return errors, warnings

    def create_transport(self) -> WhatsAppTransport:
        """
        Create the WhatsApp transport.

        "stub" selects the built-in development transport; any other value is
        an import path "package.module:ClassName" of a WhatsAppTransport
        subclass constructible without arguments.
        """
        if self.transport == "stub":
            return StubWhatsAppTransport(auto=True)

        module_name, _, class_name = self.transport.partition(":")
        if not module_name or not class_name:
            raise ConfigError(
                f"WHATSAPP_TRANSPORT must be 'stub' or 'module:ClassName', got {self.transport!r}"
            )
        try:
            module = importlib.import_module(module_name)
            transport_cls = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigError(f"Cannot load transport {self.transport!r}: {e}") from e

        if not (isinstance(transport_cls, type) and issubclass(transport_cls, WhatsAppTransport)):
            raise ConfigError(f"{self.transport!r} is not a WhatsAppTransport")
        return transport_cls()

    def create_session_store(self) -> SessionStore:
        """Create the file-backed session store."""
        return FileSessionStore(directory=self.session_dir, device_id=self.device_id)

    def create_reconnect_policy(self) -> ReconnectPolicy:
        return ReconnectPolicy(
            base_delay=self.reconnect_base_delay,
            max_delay=self.reconnect_max_delay,
            max_attempts=self.max_reconnect_attempts,
        )

    def create_pairing_coordinator(self) -> PairingCoordinator:
        phone = normalize_phone_number(self.bot_number) if self.bot_number else None
        return PairingCoordinator(mode=self.pairing_mode, phone_number=phone)


@dataclass
class BridgeConfig:
    """Webhook bridge configuration from environment."""

    gateway_url: str
    auth_token: Optional[str]
    timeout: float

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        return cls(
            gateway_url=_env_str("BOT_API_URL") or DEFAULT_GATEWAY_URL,
            auth_token=_env_str("BOT_SECRET_TOKEN"),
            timeout=_env_float("BRIDGE_TIMEOUT", 10.0),
        )

    def validate(self) -> List[str]:
        """Bridge problems are warnings only: the bridge always starts."""
        warnings: List[str] = []
        if not self.auth_token:
            warnings.append(
                "BOT_SECRET_TOKEN is not set; the bridge cannot authenticate to the gateway"
            )
        if self.timeout <= 0:
            warnings.append("BRIDGE_TIMEOUT must be positive; using 10s")
            self.timeout = 10.0
        return warnings


def get_gateway_config() -> GatewayConfig:
    """Get gateway configuration from the environment."""
    return GatewayConfig.from_env()


def get_bridge_config() -> BridgeConfig:
    """Get bridge configuration from the environment."""
    return BridgeConfig.from_env()
