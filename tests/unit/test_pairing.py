"""
Pairing Coordinator Tests

At most one pairing request per connection attempt.
"""

import pytest

from connection import PairingCoordinator
from transport.whatsapp import PairingChallenge, StubWhatsAppTransport


class TestCodePairing:

    @pytest.mark.asyncio
    async def test_one_request_per_attempt(self, pairing, displayed):
        transport = StubWhatsAppTransport(pairing_code="ABCD-1234")
        pairing.arm()

        first = await pairing.handle_challenge(PairingChallenge(qr="q1"), transport)
        second = await pairing.handle_challenge(PairingChallenge(qr="q2"), transport)

        assert first.code == "ABCD-1234"
        assert second is None
        assert transport.pairing_code_requests == ["15550001111"]
        assert displayed == [first]
        assert pairing.outstanding is first

    @pytest.mark.asyncio
    async def test_arm_allows_a_new_request(self, pairing):
        transport = StubWhatsAppTransport()
        pairing.arm()
        await pairing.handle_challenge(PairingChallenge(), transport)

        pairing.arm()
        assert pairing.outstanding is None
        await pairing.handle_challenge(PairingChallenge(), transport)

        assert len(transport.pairing_code_requests) == 2

    @pytest.mark.asyncio
    async def test_failed_request_can_be_retried(self, pairing, displayed):
        transport = StubWhatsAppTransport()
        transport.fail_pairing = "rate limited"
        pairing.arm()

        assert await pairing.handle_challenge(PairingChallenge(), transport) is None
        assert displayed == []

        transport.fail_pairing = None
        request = await pairing.handle_challenge(PairingChallenge(), transport)

        assert request is not None
        assert len(transport.pairing_code_requests) == 2

    @pytest.mark.asyncio
    async def test_clear_drops_outstanding_request(self, pairing):
        pairing.arm()
        await pairing.handle_challenge(PairingChallenge(), StubWhatsAppTransport())

        pairing.clear()

        assert pairing.outstanding is None


class TestQrPairing:

    @pytest.mark.asyncio
    async def test_each_qr_is_displayed(self):
        shown = []
        coordinator = PairingCoordinator(mode="qr", display=shown.append)
        transport = StubWhatsAppTransport()
        coordinator.arm()

        await coordinator.handle_challenge(PairingChallenge(qr="qr-1"), transport)
        await coordinator.handle_challenge(PairingChallenge(qr="qr-2"), transport)

        assert [r.qr for r in shown] == ["qr-1", "qr-2"]
        assert coordinator.outstanding.qr == "qr-2"
        assert transport.pairing_code_requests == []

    @pytest.mark.asyncio
    async def test_challenge_without_payload_is_ignored(self):
        coordinator = PairingCoordinator(mode="qr", display=lambda r: None)

        assert await coordinator.handle_challenge(PairingChallenge(), StubWhatsAppTransport()) is None


class TestConstruction:

    def test_code_mode_requires_phone(self):
        with pytest.raises(ValueError):
            PairingCoordinator(mode="code")

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            PairingCoordinator(mode="sms", phone_number="1")  # type: ignore
