"""
Health Checker Tests

Readiness follows the connection state and session persistence.
"""

import pytest

from infra import HealthChecker
from transport.whatsapp import Close, CredentialsUpdated, Open


class TestHealthChecker:

    def test_idle_gateway_is_live_but_not_ready(self, manager):
        checker = HealthChecker(manager, start_time=0.0)

        live = checker.check_live()
        ready = checker.check_ready()

        assert live.status == "healthy"
        assert ready.status == "unhealthy"
        assert ready.ready is False
        assert ready.connection_state == "idle"
        assert live.uptime_seconds > 0

    @pytest.mark.asyncio
    async def test_connected_is_ready(self, manager, transport, wait_until):
        checker = HealthChecker(manager)
        await manager.start()
        transport.emit(Open())
        await wait_until(lambda: manager.is_connected)

        health = checker.check_ready()

        assert health.status == "healthy"
        assert health.ready is True
        assert checker.to_dict(health)["connection_state"] == "connected"

        await manager.stop()

    @pytest.mark.asyncio
    async def test_failing_saves_degrade_readiness(self, manager, transport, store, wait_until):
        checker = HealthChecker(manager)
        await manager.start()
        transport.emit(Open())
        store.fail_saves = True
        transport.emit(CredentialsUpdated(credentials={"a": 1}))
        transport.emit(CredentialsUpdated(credentials={"a": 2}))
        await wait_until(lambda: manager.persistence_degraded)

        health = checker.check_ready()

        assert health.status == "degraded"
        assert health.ready is False
        assert health.metadata["session_save_failures"] == 2

        await manager.stop()

    @pytest.mark.asyncio
    async def test_logged_out_requires_operator(self, manager, transport, wait_until):
        checker = HealthChecker(manager)
        await manager.start()
        transport.emit(Open())
        transport.emit(Close(status_code=401))
        await wait_until(lambda: manager.state.is_terminal)

        health = checker.check_ready()

        assert health.status == "unhealthy"
        assert "operator action" in health.message
