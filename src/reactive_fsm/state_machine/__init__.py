"""State machine implementation."""

from .compiler import CompiledTransition, NativeTransition, compile_transition
from .loader import MachineDefinition, load_definition
from .machine import FiniteStateMachine
from .model import NO_STATE, LoadAction, LoadResult, StateOutput, StateTransition

__all__ = [
    "CompiledTransition",
    "FiniteStateMachine",
    "LoadAction",
    "LoadResult",
    "MachineDefinition",
    "NO_STATE",
    "NativeTransition",
    "StateOutput",
    "StateTransition",
    "compile_transition",
    "load_definition",
]
