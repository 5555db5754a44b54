"""Storage for named states, acceptance marks and transition rules."""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .compiler import TransitionRule


class StateStore:
    """Insertion-ordered state names with at most one rule per state."""

    def __init__(self) -> None:
        # dict keys double as an ordered set
        self._states: Dict[str, None] = {}
        self._acceptance: Dict[str, bool] = {}
        self._transitions: Dict[str, TransitionRule] = {}

    @property
    def num_states(self) -> int:
        return len(self._states)

    @property
    def num_transitions(self) -> int:
        return len(self._transitions)

    @property
    def states(self) -> Tuple[str, ...]:
        return tuple(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def add_state(self, name: Optional[str], acceptance: bool = False) -> None:
        """Add a state. Re-adding is allowed; acceptance marks are never removed."""
        if not name:
            return
        self._states.setdefault(name, None)
        if acceptance:
            self._acceptance[name] = True

    def add_transition(self, from_state: str, rule: TransitionRule) -> bool:
        """Register the rule for a known state that has none yet."""
        if from_state not in self._states:
            return False
        if from_state in self._transitions:
            return False
        self._transitions[from_state] = rule
        return True

    def has_transition(self, name: str) -> bool:
        return name in self._transitions

    def rule_for(self, name: str) -> Optional[TransitionRule]:
        return self._transitions.get(name)

    def is_acceptance(self, name: str) -> bool:
        return self._acceptance.get(name, False)

    def clear(self) -> None:
        self._states.clear()
        self._acceptance.clear()
        self._transitions.clear()
