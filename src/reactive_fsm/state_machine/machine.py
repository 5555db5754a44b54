"""Core state-machine implementation."""

from __future__ import annotations

import copy
import logging
from collections import deque
from collections.abc import Mapping
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Tuple, Union

from ..infra.exceptions import InvalidTransitionOutput
from ..utils.events import EventBus, Listener, Subscription
from .compiler import TransitionRule, as_rule
from .loader import MachineDefinition, load_definition
from .model import NO_STATE, LoadResult, StateOutput, StateTransition
from .store import StateStore

logger = logging.getLogger("fsm.machine")

DEFAULT_HISTORY_SIZE = 64


class FiniteStateMachine:
    """Reactive Mealy machine with subscriber notifications.

    A machine is populated either directly through `add_state` and
    `add_transition`, or from document data via `from_json` / `create`.
    It starts in the `NO_STATE` state; without an ``initialState`` in the
    document, callers usually pick the start state with the second argument
    of `next`.

    Moore-style machines are driven by passing the state name as input.

    Not thread-safe: callers sharing a machine across threads must lock.
    """

    NO_STATE = NO_STATE

    def __init__(self, name: str = "", history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self.name = name
        self._current_state = NO_STATE
        self._store = StateStore()
        self._bus = EventBus()
        self._subscriptions: List[Subscription] = []
        self._history: Deque[StateTransition] = deque(maxlen=history_size)

        self._initial_state = NO_STATE
        self._initial_data: Optional[Dict[str, Any]] = None
        self._alphabet: Optional[List[str]] = None

    @classmethod
    def create(cls, data: Any, name: Optional[str] = None, **kwargs: Any) -> Optional["FiniteStateMachine"]:
        """Build a machine from document data; ``None`` if the data is invalid.

        Without ``name`` the document's own name is kept rather than blanked.
        """
        if data is None:
            return None
        machine = cls(**kwargs)
        result = machine.from_json(data)
        if not result.success:
            return None
        if name is not None:
            machine.name = name
        return machine

    @property
    def num_states(self) -> int:
        return self._store.num_states

    @property
    def num_transitions(self) -> int:
        return self._store.num_transitions

    @property
    def current_state(self) -> str:
        return self._current_state

    @property
    def states(self) -> Tuple[str, ...]:
        """State names in the order they were added."""
        return self._store.states

    @property
    def initial_state(self) -> str:
        """Initial state from document data; `NO_STATE` otherwise."""
        return self._initial_state

    @property
    def initial_data(self) -> Optional[Dict[str, Any]]:
        """Independent copy of the document's ``initialData``."""
        return copy.deepcopy(self._initial_data) if self._initial_data is not None else None

    @property
    def is_acceptance(self) -> bool:
        return self._store.is_acceptance(self._current_state)

    @property
    def alphabet(self) -> Optional[List[str]]:
        """Copy of the document's alphabet, ``None`` for programmatic machines."""
        return list(self._alphabet) if self._alphabet is not None else None

    def from_json(self, data: Any) -> LoadResult:
        """Initialise this machine from document data.

        Nothing is changed unless the whole document is valid. On success the
        name, alphabet, initial state and initial data are replaced and the
        document's states and transitions are added.
        """
        result, definition = load_definition(data)
        if definition is not None:
            self._apply(definition)
        return result

    def add_state(self, name: Optional[str], acceptance: bool = False) -> None:
        """Add a named state; ``acceptance`` marks it as an acceptance state."""
        self._store.add_state(name, acceptance)

    def add_transition(self, from_state: str, rule: Union[TransitionRule, Callable[..., Any]]) -> bool:
        """Attach the transition rule for ``from_state``.

        Returns False when the state is unknown or already has a rule.
        """
        added = self._store.add_transition(from_state, as_rule(rule))
        if not added:
            logger.debug("Transition from '%s' not added", from_state)
        return added

    def add_subscriber(self, listener: Optional[Listener]) -> None:
        """Observe transitions. Listeners are detached by `clear`."""
        if listener is None:
            return
        self._subscriptions.append(self._bus.subscribe(listener))

    def remove_subscriber(self, listener: Listener) -> None:
        """Stop delivering transitions to a previously added listener."""
        for subscription in tuple(self._subscriptions):
            if subscription.listener == listener:
                subscription.unsubscribe()
                self._subscriptions.remove(subscription)

    def next(self, data: Any, override_state: Optional[str] = None) -> Optional[StateOutput]:
        """Transition based on the current state and ``data``.

        ``override_state``, when given, replaces the current state first. It is
        not checked against the known states.

        Returns ``None`` if there is no rule for the current state or the rule
        declines to transition.
        """
        if override_state:
            self._current_state = override_state

        rule = self._store.rule_for(self._current_state)
        if rule is None:
            return None

        output = _coerce_output(self._current_state, rule(data, self._current_state))
        if output is None:
            logger.debug("No transition out of '%s'", self._current_state)
            return None

        transition = StateTransition(
            from_state=self._current_state,
            to=output.to,
            data=output.data if output.data else None,
        )
        self._bus.publish(transition)
        logger.debug("Transition %s -> %s", transition.from_state, transition.to)

        # a raising listener leaves both the state and the history untouched
        self._history.append(transition)
        self._current_state = output.to
        return StateOutput(to=self._current_state, data=output.data if output.data else data)

    def history(self) -> Iterable[StateTransition]:
        """Return a snapshot of the most recent transitions."""
        return tuple(self._history)

    def clear(self) -> None:
        """Empty this machine; only the name survives.

        Subscribers are detached and the notification channel replaced.
        """
        self._store.clear()
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._bus.close()
        self._bus = EventBus()
        self._history.clear()

        self._current_state = NO_STATE
        self._initial_state = NO_STATE
        self._initial_data = None
        self._alphabet = None

    def _apply(self, definition: MachineDefinition) -> None:
        self.name = definition.name
        self._alphabet = list(definition.alphabet)
        self._initial_state = definition.initial_state
        self._current_state = definition.initial_state
        self._initial_data = definition.initial_data

        for spec in definition.states:
            self._store.add_state(spec.name, spec.acceptance)
            if not self._store.add_transition(spec.name, spec.rule):
                logger.warning("State '%s' already has a transition; keeping the first one", spec.name)

        logger.info(
            "Machine '%s' loaded: %d state(s), initial state %s",
            self.name,
            self.num_states,
            self._initial_state,
        )

    def __repr__(self) -> str:
        return (
            f"FiniteStateMachine(name={self.name!r}, current_state={self._current_state!r}, "
            f"states={self.num_states}, transitions={self.num_transitions})"
        )


def _coerce_output(state: str, output: Any) -> Optional[StateOutput]:
    if output is None:
        return None
    target = output
    if isinstance(output, Mapping):
        target = StateOutput(to=output.get("to"), data=output.get("data"))
    # both forms need a non-empty state name
    if isinstance(target, StateOutput) and isinstance(target.to, str) and target.to:
        return target
    raise InvalidTransitionOutput(state, output)
