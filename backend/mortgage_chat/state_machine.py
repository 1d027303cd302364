"""
State machine for a single chat request.

States: RECEIVED → USER_LOADED → (FAQ_SHORT_CIRCUIT | MODEL_INVOKED) → PERSISTED → RESPONDED
Any non-terminal state may move to FAILED.
"""

import logging
import time
from enum import Enum
from typing import Dict, Optional, Set

logger = logging.getLogger(__name__)


class ChatState(str, Enum):
    """
    Chat request states.

    RECEIVED: Request accepted, nothing loaded yet
    USER_LOADED: User record found, user turn appended in memory
    FAQ_SHORT_CIRCUIT: Reply taken from a matching FAQ
    MODEL_INVOKED: Reply generated by the completion provider
    PERSISTED: Users mapping saved and interaction logged
    RESPONDED: Reply returned to the caller (terminal)
    FAILED: Request ended with an error (terminal)
    """
    RECEIVED = "RECEIVED"
    USER_LOADED = "USER_LOADED"
    FAQ_SHORT_CIRCUIT = "FAQ_SHORT_CIRCUIT"
    MODEL_INVOKED = "MODEL_INVOKED"
    PERSISTED = "PERSISTED"
    RESPONDED = "RESPONDED"
    FAILED = "FAILED"


TERMINAL_STATES = frozenset({ChatState.RESPONDED, ChatState.FAILED})


class ChatStateMachine:
    """
    Deterministic state machine for one chat request.

    Enforces valid transitions and records the trail for logging and tests.
    """

    ALLOWED_TRANSITIONS: Dict[ChatState, Set[ChatState]] = {
        ChatState.RECEIVED: {
            ChatState.USER_LOADED,
            ChatState.FAILED,  # Unknown user, corrupt registry
        },
        ChatState.USER_LOADED: {
            ChatState.FAQ_SHORT_CIRCUIT,
            ChatState.MODEL_INVOKED,
            ChatState.FAILED,  # Corrupt FAQ list
        },
        ChatState.FAQ_SHORT_CIRCUIT: {
            ChatState.PERSISTED,
            ChatState.FAILED,  # Persistence error
        },
        ChatState.MODEL_INVOKED: {
            ChatState.PERSISTED,
            ChatState.FAILED,  # Upstream or persistence error
        },
        ChatState.PERSISTED: {
            ChatState.RESPONDED,
        },
        ChatState.RESPONDED: set(),
        ChatState.FAILED: set(),
    }

    def __init__(self, request_id: str = "", initial_state: ChatState = ChatState.RECEIVED):
        self.request_id = request_id
        self._current_state: ChatState = initial_state
        self._previous_state: Optional[ChatState] = None
        self._state_history: list[dict] = []
        self._failure_reason: Optional[str] = None

        self._record_state_change(None, initial_state, "initialization")

    @property
    def current_state(self) -> ChatState:
        return self._current_state

    @property
    def previous_state(self) -> Optional[ChatState]:
        return self._previous_state

    @property
    def state_history(self) -> list[dict]:
        """Get state history for debugging."""
        return self._state_history.copy()

    @property
    def trail(self) -> list[ChatState]:
        """States visited, in order."""
        return [ChatState(record["to_state"]) for record in self._state_history]

    @property
    def failure_reason(self) -> Optional[str]:
        return self._failure_reason

    @property
    def is_terminal(self) -> bool:
        return self._current_state in TERMINAL_STATES

    def can_transition(self, to_state: ChatState) -> bool:
        return to_state in self.ALLOWED_TRANSITIONS.get(self._current_state, set())

    def transition(self, to_state: ChatState, reason: str = "") -> None:
        """
        Move to a new state.

        Raises:
            ValueError: transition is not allowed from the current state
        """
        if not self.can_transition(to_state):
            error_msg = (
                f"Invalid state transition: {self._current_state.value} → {to_state.value}. "
                f"Allowed transitions: {sorted(s.value for s in self.get_allowed_transitions())}"
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        from_state = self._current_state
        self._previous_state = from_state
        self._current_state = to_state
        self._record_state_change(from_state, to_state, reason)

        log_msg = f"[{self.request_id}] State transition: {from_state.value} → {to_state.value}"
        if reason:
            log_msg += f" (reason: {reason})"
        logger.info(log_msg)

    def fail(self, reason: str) -> None:
        """Move to FAILED, remembering why. No-op once terminal."""
        if self.is_terminal:
            return
        self._failure_reason = reason
        self.transition(ChatState.FAILED, reason=reason)

    def _record_state_change(
        self,
        from_state: Optional[ChatState],
        to_state: ChatState,
        reason: str
    ) -> None:
        record = {
            "from_state": from_state.value if from_state else None,
            "to_state": to_state.value,
            "reason": reason,
            "timestamp": int(time.time() * 1000),  # Unix timestamp in milliseconds
        }
        self._state_history.append(record)

    def get_allowed_transitions(self) -> Set[ChatState]:
        return self.ALLOWED_TRANSITIONS.get(self._current_state, set()).copy()

    def __repr__(self) -> str:
        return (
            f"ChatStateMachine(current={self._current_state}, "
            f"previous={self._previous_state})"
        )
