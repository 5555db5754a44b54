"""Transition rules and the compiler turning document text into rules.

A rule is called as ``rule(data, state)`` and returns the target state, either
as a mapping with a ``"to"`` key (and optional ``"data"``) or as a
`StateOutput`. Rules come in two variants:

* `NativeTransition` wraps a Python callable supplied by calling code.
* `CompiledTransition` is built from the ``transition`` text of a machine
  document. The text is the body of a function of ``data`` and ``state``. It
  runs against a namespace holding only `SAFE_BUILTINS`, so it cannot see
  anything from the host program or the document it came from.
"""

from __future__ import annotations

import ast
import builtins
import inspect
import logging
import textwrap
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set, Union

from ..infra.exceptions import TransitionCompileError

logger = logging.getLogger("fsm.compiler")

PARAMETERS = ("data", "state")

SAFE_BUILTINS: Dict[str, Any] = {
    name: getattr(builtins, name)
    for name in (
        "abs",
        "all",
        "any",
        "bool",
        "dict",
        "divmod",
        "enumerate",
        "filter",
        "float",
        "frozenset",
        "int",
        "isinstance",
        "len",
        "list",
        "map",
        "max",
        "min",
        "pow",
        "range",
        "reversed",
        "round",
        "set",
        "sorted",
        "str",
        "sum",
        "tuple",
        "zip",
        "Exception",
        "IndexError",
        "KeyError",
        "TypeError",
        "ValueError",
    )
}

_FUNCTION_NAME = "transition"


class NativeTransition:
    """Rule backed by a Python callable.

    Callables that take a single argument receive only ``data``; this keeps
    Moore-style helpers such as ``lambda data: {"to": data}`` usable.
    """

    kind = "native"

    def __init__(self, function: Callable[..., Any]) -> None:
        self.function = function
        self._pass_state = _accepts_state(function)

    def __call__(self, data: Any, state: Optional[str] = None) -> Any:
        if self._pass_state:
            return self.function(data, state)
        return self.function(data)

    def __repr__(self) -> str:
        return f"NativeTransition({self.function!r})"


class CompiledTransition:
    """Rule compiled from document text."""

    kind = "compiled"

    def __init__(self, function: Callable[[Any, Optional[str]], Any], source: str, state_name: str = "") -> None:
        self._function = function
        self.source = source
        self.state_name = state_name

    def __call__(self, data: Any, state: Optional[str] = None) -> Any:
        return self._function(data, state)

    def __repr__(self) -> str:
        return f"CompiledTransition(state={self.state_name!r})"


TransitionRule = Union[NativeTransition, CompiledTransition]


def as_rule(rule: Union[TransitionRule, Callable[..., Any]]) -> TransitionRule:
    """Wrap a plain callable as a `NativeTransition`."""
    if isinstance(rule, (NativeTransition, CompiledTransition)):
        return rule
    if not callable(rule):
        raise TypeError(f"Transition rule must be callable, got {type(rule).__name__}")
    return NativeTransition(rule)


def compile_transition(body: Optional[str], state_name: str = "") -> CompiledTransition:
    """Compile a transition body without executing it.

    A blank body yields a rule returning ``None``, i.e. a state with no way
    out. Raises `TransitionCompileError` on syntax errors, imports, or reads
    of names other than the parameters, locals and `SAFE_BUILTINS`.
    """
    if body is not None and not isinstance(body, str):
        raise TransitionCompileError(
            f"Transition for state '{state_name}' must be text, got {type(body).__name__}"
        )

    text = textwrap.dedent(body or "").strip("\n")
    if not text.strip():
        text = "return None"
    source = f"def {_FUNCTION_NAME}({PARAMETERS[0]}, {PARAMETERS[1]}=None):\n" + textwrap.indent(text, "    ")
    filename = f"<transition {state_name or '?'}>"

    try:
        tree = ast.parse(source, filename=filename, mode="exec")
    except SyntaxError as exc:
        line = (exc.lineno or 1) - 1
        raise TransitionCompileError(
            f"Invalid transition for state '{state_name}': {exc.msg} (line {line})", text
        ) from exc

    _check_body(tree, state_name, text)

    namespace: Dict[str, Any] = {"__builtins__": SAFE_BUILTINS}
    # defines the function only; the body runs on each call
    exec(compile(tree, filename, "exec"), namespace)
    logger.debug("Compiled transition for state '%s'", state_name)
    return CompiledTransition(namespace[_FUNCTION_NAME], text, state_name)


_SCOPES = (
    ast.FunctionDef,
    ast.AsyncFunctionDef,
    ast.Lambda,
    ast.ClassDef,
    ast.ListComp,
    ast.SetComp,
    ast.DictComp,
    ast.GeneratorExp,
)
_COMPREHENSIONS = (ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)


def _check_body(tree: ast.Module, state_name: str, text: str) -> None:
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            raise TransitionCompileError(
                f"Transition for state '{state_name}' may not import modules", text
            )

    free = _free_names(tree.body[0], frozenset(SAFE_BUILTINS))
    if free:
        raise TransitionCompileError(
            f"Transition for state '{state_name}' reads undefined name(s): {', '.join(sorted(free))}",
            text,
        )


def _free_names(scope: ast.AST, enclosing: FrozenSet[str]) -> Set[str]:
    """Names read in ``scope`` or its nested scopes that nothing binds.

    Names bound in a comprehension, lambda or nested function are only
    visible inside it. Class scopes are treated like function scopes.
    """
    bound: Set[str] = set()
    loaded: Set[str] = set()
    children: List[ast.AST] = []

    if isinstance(scope, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)):
        arguments = scope.args
        for arg in (*arguments.posonlyargs, *arguments.args, *arguments.kwonlyargs, arguments.vararg, arguments.kwarg):
            if arg is not None:
                bound.add(arg.arg)
        pending = [*arguments.defaults, *(d for d in arguments.kw_defaults if d is not None)]
        pending.extend(scope.body if isinstance(scope.body, list) else [scope.body])
    elif isinstance(scope, ast.ClassDef):
        pending = list(scope.body)
    else:
        pending = list(ast.iter_child_nodes(scope))

    while pending:
        node = pending.pop()
        if isinstance(node, _SCOPES):
            children.append(node)
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                bound.add(node.name)
            elif isinstance(node, _COMPREHENSIONS):
                # assignment expressions bind in the enclosing scope
                bound.update(
                    inner.target.id for inner in ast.walk(node) if isinstance(inner, ast.NamedExpr)
                )
            continue
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, ast.Load):
                loaded.add(node.id)
            else:
                bound.add(node.id)
        elif isinstance(node, ast.ExceptHandler) and node.name:
            bound.add(node.name)
        elif isinstance(node, (ast.MatchAs, ast.MatchStar)) and node.name:
            bound.add(node.name)
        elif isinstance(node, ast.MatchMapping) and node.rest:
            bound.add(node.rest)
        elif isinstance(node, (ast.Global, ast.Nonlocal)):
            bound.update(node.names)
        pending.extend(ast.iter_child_nodes(node))

    visible = enclosing | bound
    free = loaded - visible
    for child in children:
        free |= _free_names(child, visible)
    return free


def _accepts_state(function: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return True
    try:
        signature.bind(None, None)
    except TypeError:
        return False
    return True


__all__ = [
    "CompiledTransition",
    "NativeTransition",
    "PARAMETERS",
    "SAFE_BUILTINS",
    "TransitionRule",
    "as_rule",
    "compile_transition",
]
