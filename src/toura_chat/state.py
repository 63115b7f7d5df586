"""Session state machine for the reply pipeline."""

from __future__ import annotations

from enum import Enum

from .exceptions import InvalidTransitionError


class SessionState(str, Enum):
    """Finite state machine for the active conversation lifecycle."""

    IDLE = "IDLE"
    AWAITING_REPLY = "AWAITING_REPLY"


_ALLOWED_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.AWAITING_REPLY}),
    SessionState.AWAITING_REPLY: frozenset({SessionState.IDLE}),
}


class SessionStateMachine:
    """Track the current state and reject transitions the session never makes.

    Not locked on its own: the owning controller mutates it together with the
    message store under a single lock.
    """

    def __init__(self) -> None:
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    def can_send_message(self) -> bool:
        """Return True when message submission is allowed."""
        return self._state == SessionState.IDLE

    def transition_to(self, new_state: SessionState) -> SessionState:
        """Transition to ``new_state`` or raise :class:`InvalidTransitionError`."""
        if new_state not in _ALLOWED_TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"Cannot move from {self._state.value} to {new_state.value}."
            )
        self._state = new_state
        return self._state

    def require(self, expected_state: SessionState, operation: str) -> None:
        if self._state != expected_state:
            raise InvalidTransitionError(
                f"{operation} is only valid in {expected_state.value}, "
                f"current state is {self._state.value}."
            )
