"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from connection import (  # noqa: E402
    ConnectionManager,
    InMemorySessionStore,
    PairingCoordinator,
    ReconnectPolicy,
)
from infra import GatewayConfig  # noqa: E402
from transport.whatsapp import Session, StubWhatsAppTransport  # noqa: E402

BOT_NUMBER = "15550001111"
ADMIN_NUMBER = "15550002222"
ADMIN_JID = f"{ADMIN_NUMBER}@s.whatsapp.net"
TOKEN = "test-secret-token"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.005):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def wait_until():
    """Await a predicate, polling the event loop."""
    return _wait_until


@pytest.fixture
def stored_session():
    return Session(device_id=BOT_NUMBER, credentials={"me": BOT_NUMBER, "registered": True})


@pytest.fixture
def transport():
    return StubWhatsAppTransport()


@pytest.fixture
def store():
    return InMemorySessionStore(device_id=BOT_NUMBER)


@pytest.fixture
def displayed():
    """Pairing requests shown to the operator."""
    return []


@pytest.fixture
def pairing(displayed):
    return PairingCoordinator(mode="code", phone_number=BOT_NUMBER, display=displayed.append)


@pytest.fixture
def fast_policy():
    """Millisecond backoff so reconnect tests finish quickly."""
    return ReconnectPolicy(base_delay=0.01, max_delay=0.04, max_attempts=3)


@pytest.fixture
def manager(transport, store, pairing, fast_policy):
    return ConnectionManager(
        transport=transport,
        session_store=store,
        pairing=pairing,
        policy=fast_policy,
        send_timeout=0.5,
        save_failure_threshold=2,
    )


@pytest.fixture
def gateway_config(tmp_path):
    return GatewayConfig(
        auth_token=TOKEN,
        bot_number=BOT_NUMBER,
        admin_number=ADMIN_NUMBER,
        pairing_mode="code",
        session_dir=str(tmp_path / "auth_info"),
        session_id=None,
        transport="stub",
        send_timeout=0.5,
        reconnect_base_delay=0.01,
        reconnect_max_delay=0.04,
        max_reconnect_attempts=3,
        save_failure_threshold=2,
    )
