"""Tests for the Idle/AwaitingReply state machine."""

from __future__ import annotations

import unittest

from toura_chat.exceptions import InvalidTransitionError
from toura_chat.state import SessionState, SessionStateMachine


class SessionStateMachineTests(unittest.TestCase):
    """Validate allowed transitions and guards."""

    def test_starts_idle_and_can_send(self) -> None:
        machine = SessionStateMachine()
        self.assertEqual(machine.state, SessionState.IDLE)
        self.assertTrue(machine.can_send_message())

    def test_round_trip_between_states(self) -> None:
        machine = SessionStateMachine()
        machine.transition_to(SessionState.AWAITING_REPLY)
        self.assertFalse(machine.can_send_message())
        machine.transition_to(SessionState.IDLE)
        self.assertTrue(machine.can_send_message())

    def test_self_transition_is_rejected(self) -> None:
        machine = SessionStateMachine()
        with self.assertRaises(InvalidTransitionError):
            machine.transition_to(SessionState.IDLE)

        machine.transition_to(SessionState.AWAITING_REPLY)
        with self.assertRaises(InvalidTransitionError):
            machine.transition_to(SessionState.AWAITING_REPLY)

    def test_require_reports_operation_and_state(self) -> None:
        machine = SessionStateMachine()
        with self.assertRaises(InvalidTransitionError) as ctx:
            machine.require(SessionState.AWAITING_REPLY, "on_reply_received")
        self.assertIn("on_reply_received", str(ctx.exception))
        self.assertIn("IDLE", str(ctx.exception))

        machine.transition_to(SessionState.AWAITING_REPLY)
        machine.require(SessionState.AWAITING_REPLY, "on_reply_received")


if __name__ == "__main__":
    unittest.main()
