"""
Reconnect Policy Tests

Backoff formula, exhaustion and close classification.
"""

import pytest

from connection import CloseCategory, ReconnectPolicy, classify_close
from transport.whatsapp import DisconnectReason


class TestBackoffDelay:
    """delay(n) = min(base * 2**n, max)."""

    def test_default_sequence(self):
        policy = ReconnectPolicy()

        delays = [policy.delay_for(n) for n in range(7)]

        assert delays == [2.0, 4.0, 8.0, 16.0, 32.0, 60.0, 60.0]

    def test_monotonic_and_capped(self):
        policy = ReconnectPolicy(base_delay=0.5, max_delay=10.0)

        delays = [policy.delay_for(n) for n in range(20)]

        assert delays == sorted(delays)
        assert max(delays) == 10.0

    def test_huge_attempt_returns_cap(self):
        policy = ReconnectPolicy(base_delay=2.0, max_delay=60.0)

        assert policy.delay_for(5000) == 60.0

    def test_negative_attempt_rejected(self):
        with pytest.raises(ValueError):
            ReconnectPolicy().delay_for(-1)


class TestPolicyValidation:

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_delay": 0},
            {"base_delay": 5.0, "max_delay": 1.0},
            {"max_attempts": -1},
        ],
    )
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            ReconnectPolicy(**kwargs)

    def test_exhaustion(self):
        policy = ReconnectPolicy(max_attempts=3)

        assert not policy.is_exhausted(2)
        assert policy.is_exhausted(3)

    def test_zero_attempts_exhausted_immediately(self):
        assert ReconnectPolicy(max_attempts=0).is_exhausted(0)


class TestCloseClassification:

    def test_logged_out_is_permanent(self):
        assert classify_close(401) is CloseCategory.LOGGED_OUT
        assert classify_close(DisconnectReason.LOGGED_OUT) is CloseCategory.LOGGED_OUT

    @pytest.mark.parametrize("code", [None, 408, 428, 440, 500, 515, 999])
    def test_everything_else_is_recoverable(self, code):
        assert classify_close(code) is CloseCategory.RECOVERABLE
