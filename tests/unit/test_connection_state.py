"""
Connection State Machine Tests

The reducer is pure, so every edge is tested without a transport.
"""

import pytest

from connection import (
    ALLOWED_TRANSITIONS,
    ConnectionPhase,
    ConnectionState,
    InvalidTransition,
    ReconnectPolicy,
    resolve_close,
    transition,
)
from connection.state import BackoffElapsed, PairingHandled, Start, Stop, _move
from transport.whatsapp import Close, CredentialsUpdated, Open, PairingChallenge


def state(phase, **kwargs):
    return ConnectionState(phase=phase, **kwargs)


class TestTransitions:

    def test_start_from_idle(self):
        assert transition(ConnectionState(), Start()).phase is ConnectionPhase.CONNECTING

    def test_start_is_noop_when_not_idle(self):
        current = state(ConnectionPhase.CONNECTED)

        assert transition(current, Start()) is current

    def test_pairing_round_trip(self):
        awaiting = transition(state(ConnectionPhase.CONNECTING), PairingChallenge(qr="x"))
        assert awaiting.phase is ConnectionPhase.AWAITING_PAIRING

        back = transition(awaiting, PairingHandled())
        assert back.phase is ConnectionPhase.CONNECTING

    def test_open_resets_attempt_counter(self):
        connected = transition(state(ConnectionPhase.CONNECTING, attempt=4), Open())

        assert connected.phase is ConnectionPhase.CONNECTED
        assert connected.attempt == 0

    def test_open_while_awaiting_pairing_is_ignored(self):
        current = state(ConnectionPhase.AWAITING_PAIRING)

        assert transition(current, Open()) is current

    @pytest.mark.parametrize(
        "phase",
        [ConnectionPhase.CONNECTING, ConnectionPhase.AWAITING_PAIRING, ConnectionPhase.CONNECTED],
    )
    def test_close_enters_closing(self, phase):
        closing = transition(state(phase, attempt=2), Close(status_code=428, reason="closed"))

        assert closing.phase is ConnectionPhase.CLOSING
        assert closing.status_code == 428
        assert closing.reason == "closed"
        assert closing.attempt == 2

    @pytest.mark.parametrize(
        "phase",
        [ConnectionPhase.IDLE, ConnectionPhase.BACKOFF, ConnectionPhase.LOGGED_OUT, ConnectionPhase.FAILED],
    )
    def test_close_ignored_outside_live_phases(self, phase):
        current = state(phase)

        assert transition(current, Close(status_code=428)) is current

    def test_backoff_elapsed(self):
        connecting = transition(state(ConnectionPhase.BACKOFF, attempt=1, until=5.0), BackoffElapsed())

        assert connecting.phase is ConnectionPhase.CONNECTING
        assert connecting.attempt == 1
        assert connecting.until is None

    def test_stop_returns_to_idle(self):
        idle = transition(state(ConnectionPhase.BACKOFF, attempt=3, until=1.0), Stop())

        assert idle == ConnectionState()

    @pytest.mark.parametrize("phase", [ConnectionPhase.LOGGED_OUT, ConnectionPhase.FAILED])
    def test_terminal_phases_ignore_everything(self, phase):
        current = state(phase)

        for event in (Start(), Open(), Stop(), BackoffElapsed(), PairingChallenge(qr="q")):
            assert transition(current, event) is current

    def test_credentials_update_never_changes_state(self):
        current = state(ConnectionPhase.CONNECTING)

        assert transition(current, CredentialsUpdated(credentials={"a": 1})) is current

    def test_unknown_event_raises(self):
        with pytest.raises(TypeError):
            transition(ConnectionState(), object())

    def test_disallowed_edge_raises(self):
        with pytest.raises(InvalidTransition):
            _move(ConnectionState(), ConnectionPhase.CONNECTED)

    def test_terminal_phases_have_no_exits(self):
        assert ALLOWED_TRANSITIONS[ConnectionPhase.LOGGED_OUT] == frozenset()
        assert ALLOWED_TRANSITIONS[ConnectionPhase.FAILED] == frozenset()


class TestResolveClose:

    policy = ReconnectPolicy(base_delay=2.0, max_delay=60.0, max_attempts=3)

    def test_recoverable_close_schedules_backoff(self):
        settled = resolve_close(state(ConnectionPhase.CLOSING, attempt=0, status_code=428), self.policy, now=100.0)

        assert settled.phase is ConnectionPhase.BACKOFF
        assert settled.attempt == 1
        assert settled.until == 102.0

    def test_delay_grows_with_streak(self):
        settled = resolve_close(state(ConnectionPhase.CLOSING, attempt=2), self.policy, now=0.0)

        assert settled.attempt == 3
        assert settled.until == 8.0

    def test_logged_out_is_terminal(self):
        settled = resolve_close(state(ConnectionPhase.CLOSING, status_code=401), self.policy, now=0.0)

        assert settled.phase is ConnectionPhase.LOGGED_OUT
        assert settled.until is None

    def test_logout_wins_over_exhaustion(self):
        settled = resolve_close(state(ConnectionPhase.CLOSING, attempt=3, status_code=401), self.policy, now=0.0)

        assert settled.phase is ConnectionPhase.LOGGED_OUT

    def test_exhausted_streak_fails(self):
        settled = resolve_close(state(ConnectionPhase.CLOSING, attempt=3, status_code=500), self.policy, now=0.0)

        assert settled.phase is ConnectionPhase.FAILED
        assert settled.is_terminal

    def test_non_closing_state_unchanged(self):
        current = state(ConnectionPhase.CONNECTED)

        assert resolve_close(current, self.policy, now=0.0) is current
