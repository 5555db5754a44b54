"""Data structures shared by the machine engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

NO_STATE = "[FSM] NO_STATE"


class LoadAction(Enum):
    """Outcome of loading a machine from document data."""

    NO_DATA = "[FSM] NO_DATA"
    MISSING_PROPS = "[FSM] MISSING_PROPS"
    INVALID_DATA = "[FSM] INVALID_DATA"
    NO_STATE = "[FSM] NO_STATE"
    VALID = "[FSM] DATA_VALID"

    # descriptive aliases
    MISSING_REQUIRED_PROPERTIES = "[FSM] MISSING_PROPS"
    INVALID_DATA_SHAPE = "[FSM] INVALID_DATA"
    EMPTY_STATE_LIST = "[FSM] NO_STATE"


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Result of `FiniteStateMachine.from_json`.

    ``node`` references the fragment of the document in which an error was
    detected, when there is one.
    """

    success: bool
    action: LoadAction
    node: Any = None
    message: str = ""


@dataclass(frozen=True, slots=True)
class StateTransition:
    """Event published for every step of a machine."""

    from_state: str
    to: str
    data: Any = None


@dataclass(slots=True)
class StateOutput:
    """Target state and optional data produced by a transition rule."""

    to: str
    data: Optional[Any] = None
