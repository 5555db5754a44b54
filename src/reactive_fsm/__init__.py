"""Reactive finite state machines, built in code or from document data."""

from __future__ import annotations

from .infra.exceptions import DocumentFormatError, InvalidTransitionOutput, ReactiveFsmError, TransitionCompileError
from .state_machine import (
    NO_STATE,
    FiniteStateMachine,
    LoadAction,
    LoadResult,
    StateOutput,
    StateTransition,
)
from .utils.events import EventBus, Subscription

__all__ = [
    "DocumentFormatError",
    "EventBus",
    "FiniteStateMachine",
    "InvalidTransitionOutput",
    "LoadAction",
    "LoadResult",
    "NO_STATE",
    "ReactiveFsmError",
    "StateOutput",
    "StateTransition",
    "Subscription",
    "TransitionCompileError",
]
