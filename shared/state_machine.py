from enum import Enum
from typing import List
from dataclasses import dataclass


class TenantStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CANCELED = "canceled"


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: TenantStatus
    to_state: TenantStatus
    action: str


class TenantStatusMachine:
    TRANSITIONS = [
        Transition(TenantStatus.TRIAL, TenantStatus.ACTIVE, "activate"),
        Transition(TenantStatus.SUSPENDED, TenantStatus.ACTIVE, "activate"),
        Transition(TenantStatus.TRIAL, TenantStatus.SUSPENDED, "suspend"),
        Transition(TenantStatus.ACTIVE, TenantStatus.SUSPENDED, "suspend"),
        Transition(TenantStatus.TRIAL, TenantStatus.CANCELED, "cancel"),
        Transition(TenantStatus.ACTIVE, TenantStatus.CANCELED, "cancel"),
        Transition(TenantStatus.SUSPENDED, TenantStatus.CANCELED, "cancel"),
        Transition(TenantStatus.CANCELED, TenantStatus.ACTIVE, "reactivate"),
    ]

    # Statuses under which a group may take sign-ups and run draws
    SERVING_STATES = (TenantStatus.TRIAL, TenantStatus.ACTIVE)

    def __init__(self, initial_state: TenantStatus = TenantStatus.TRIAL):
        self._state = initial_state
        self._history: List[tuple] = []

    @property
    def state(self) -> TenantStatus:
        return self._state

    @property
    def is_serving(self) -> bool:
        return self._state in self.SERVING_STATES

    @property
    def allowed_actions(self) -> List[str]:
        return [t.action for t in self.TRANSITIONS if t.from_state == self._state]

    def can_transition(self, action: str) -> bool:
        return action in self.allowed_actions

    def transition(self, action: str) -> TenantStatus:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                old_state = self._state
                self._state = t.to_state
                self._history.append((old_state, action, self._state))
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"No valid transition for action '{action}' from state '{self._state.value}'"
        )

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    @classmethod
    def from_state_string(cls, state_str: str) -> "TenantStatusMachine":
        try:
            state = TenantStatus(state_str)
        except ValueError:
            # Unknown statuses never serve
            state = TenantStatus.SUSPENDED
        return cls(initial_state=state)
