"""Validation of machine documents.

A document is a mapping shaped like::

    {
        "name": "Parity",
        "alphabet": ["0", "1"],
        "initialState": "S1",            # optional
        "initialData": {...},            # optional, must be a mapping
        "states": [
            {"name": "S1", "isAcceptance": True, "transition": "return {'to': 'S1'}"},
        ],
    }

`load_definition` checks and compiles everything up front and only returns a
`MachineDefinition` when the whole document is valid, so a machine is never
left half-populated by a rejected document.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from statemachine import State, StateMachine

from ..infra.exceptions import TransitionCompileError
from .compiler import CompiledTransition, compile_transition
from .model import NO_STATE, LoadAction, LoadResult

logger = logging.getLogger("fsm.loader")

REQUIRED_PROPERTIES = ("name", "alphabet", "states")
REQUIRED_STATE_PROPERTIES = ("name", "isAcceptance", "transition")


@dataclass(frozen=True)
class StateSpec:
    """One validated state descriptor."""

    name: str
    acceptance: bool
    rule: CompiledTransition


@dataclass(frozen=True)
class MachineDefinition:
    """Everything a valid document contributes to a machine."""

    name: str
    alphabet: List[str]
    initial_state: str
    states: Tuple[StateSpec, ...]
    initial_data: Optional[Dict[str, Any]] = None


class LoadPipeline(StateMachine):
    """Tracks how far a document got through validation."""

    received = State("Received", initial=True)
    checked = State("Checked")
    compiled = State("Compiled")
    valid = State("Valid", final=True)
    rejected = State("Rejected", final=True)

    check = received.to(checked)
    compile_states = checked.to(compiled)
    accept = compiled.to(valid)
    reject = received.to(rejected) | checked.to(rejected) | compiled.to(rejected)

    def __init__(self, document_name: str = "") -> None:
        self.document_name = document_name
        self.rejected_at = ""
        super().__init__()

    def before_reject(self) -> None:
        self.rejected_at = self.stage_name()

    def on_enter_compiled(self) -> None:
        logger.debug("Document '%s': all transitions compiled", self.document_name)

    def on_enter_valid(self) -> None:
        logger.info("Document '%s' accepted", self.document_name)

    def stage_name(self) -> str:
        state = self.current_state
        return getattr(state, "id", str(state))


def load_definition(document: Any) -> Tuple[LoadResult, Optional[MachineDefinition]]:
    """Validate a document and compile its transitions.

    Returns the `LoadResult` and, when it is valid, the definition to apply.
    Checks run in a fixed order and the first failure wins.
    """
    if document is None:
        logger.warning("Rejected machine document: no data")
        return LoadResult(False, LoadAction.NO_DATA, message="No document supplied."), None

    pipeline = LoadPipeline(_document_name(document))

    def _reject(action: LoadAction, message: str, node: Any = None) -> Tuple[LoadResult, None]:
        pipeline.reject()
        logger.warning(
            "Rejected machine document '%s' at stage %s: %s",
            pipeline.document_name,
            pipeline.rejected_at,
            message,
        )
        return LoadResult(False, action, node=node, message=message), None

    if not isinstance(document, Mapping):
        return _reject(LoadAction.MISSING_PROPS, "Document is not a mapping")
    missing = [key for key in REQUIRED_PROPERTIES if key not in document]
    if missing:
        return _reject(LoadAction.MISSING_PROPS, f"Missing required properties: {', '.join(missing)}")

    alphabet = document["alphabet"]
    if not _is_sequence(alphabet):
        return _reject(LoadAction.INVALID_DATA, "'alphabet' must be a list", node=alphabet)

    states = document["states"]
    if not _is_sequence(states):
        return _reject(LoadAction.INVALID_DATA, "'states' must be a list", node=states)
    if len(states) == 0:
        return _reject(LoadAction.NO_STATE, "'states' is empty")

    pipeline.check()

    specs: List[StateSpec] = []
    for descriptor in states:
        if not isinstance(descriptor, Mapping) or any(key not in descriptor for key in REQUIRED_STATE_PROPERTIES):
            return _reject(
                LoadAction.INVALID_DATA,
                f"State descriptor must define {', '.join(REQUIRED_STATE_PROPERTIES)}",
                node=descriptor,
            )
        name = descriptor["name"]
        if not isinstance(name, str):
            return _reject(LoadAction.INVALID_DATA, "State name must be a string", node=descriptor)
        try:
            rule = compile_transition(descriptor["transition"], name)
        except TransitionCompileError as exc:
            return _reject(LoadAction.INVALID_DATA, str(exc), node=descriptor)
        specs.append(StateSpec(name=name, acceptance=bool(descriptor["isAcceptance"]), rule=rule))

    pipeline.compile_states()

    initial_data: Optional[Dict[str, Any]] = None
    if "initialData" in document:
        raw_data = document["initialData"]
        if not isinstance(raw_data, Mapping):
            return _reject(LoadAction.INVALID_DATA, "'initialData' must be a mapping", node=raw_data)
        initial_data = copy.deepcopy(dict(raw_data))

    initial_state = document.get("initialState")
    if initial_state is not None and not isinstance(initial_state, str):
        return _reject(LoadAction.INVALID_DATA, "'initialState' must be a string", node=initial_state)

    definition = MachineDefinition(
        name=document["name"],
        alphabet=list(alphabet),
        initial_state=initial_state if initial_state else NO_STATE,
        states=tuple(specs),
        initial_data=initial_data,
    )

    pipeline.accept()
    return LoadResult(True, LoadAction.VALID), definition


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _document_name(document: Any) -> str:
    if isinstance(document, Mapping):
        return str(document.get("name", ""))
    return ""


__all__ = [
    "LoadPipeline",
    "MachineDefinition",
    "StateSpec",
    "load_definition",
]
