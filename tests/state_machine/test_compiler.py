from __future__ import annotations

import pytest

from reactive_fsm.infra.exceptions import TransitionCompileError
from reactive_fsm.state_machine.compiler import (
    CompiledTransition,
    NativeTransition,
    as_rule,
    compile_transition,
)
from tests.helpers import CHANGE_BODY

SECRET = "host value"


def test_compiled_rule_sees_data_and_state() -> None:
    rule = compile_transition("return {'to': state + str(data)}", "S")

    assert isinstance(rule, CompiledTransition)
    assert rule(1, "S") == {"to": "S1"}


def test_state_parameter_is_optional() -> None:
    rule = compile_transition("return {'to': 'A' if state is None else state}")

    assert rule("x") == {"to": "A"}


def test_compilation_does_not_run_the_body() -> None:
    # the body would raise ZeroDivisionError if it ran
    rule = compile_transition("x = 1 / 0\nreturn {'to': 'S1'}", "S1")

    with pytest.raises(ZeroDivisionError):
        rule(None, "S1")


def test_blank_body_returns_none() -> None:
    assert compile_transition("", "c")(None, "c") is None
    assert compile_transition(None, "c")(None, "c") is None


def test_indented_block_bodies_are_dedented() -> None:
    body = """
        if data == 1:
            return {'to': 'odd'}
        return {'to': 'even'}
    """

    rule = compile_transition(body, "S")

    assert rule(1, "S") == {"to": "odd"}
    assert rule(2, "S") == {"to": "even"}


def test_change_body_runs_with_safe_builtins() -> None:
    rule = compile_transition(CHANGE_BODY, "q")
    payment = {"p": 0, "n": 0, "d": 0, "q": 0, "amt": 0.30, "change": 0}

    output = rule(payment, "q")

    assert output["to"] == "q"
    assert output["data"]["amt"] == pytest.approx(0.05)
    assert payment["q"] == 1


def test_syntax_errors_surface_at_compile_time() -> None:
    with pytest.raises(TransitionCompileError) as excinfo:
        compile_transition("return {'to': ", "S1")

    assert "S1" in str(excinfo.value)
    assert excinfo.value.source == "return {'to': "


def test_reading_host_names_is_rejected() -> None:
    with pytest.raises(TransitionCompileError, match="SECRET"):
        compile_transition("return {'to': SECRET}", "S1")


def test_imports_are_rejected() -> None:
    with pytest.raises(TransitionCompileError, match="import"):
        compile_transition("import os\nreturn {'to': os.name}", "S1")


def test_locals_and_comprehensions_are_allowed() -> None:
    body = "\n".join(
        [
            "counts = {symbol: data.count(symbol) for symbol in set(data)}",
            "best = max(counts, key=lambda key: counts[key])",
            "return {'to': best}",
        ]
    )

    assert compile_transition(body, "S")("abb", "S") == {"to": "b"}


def test_non_text_body_is_rejected() -> None:
    with pytest.raises(TransitionCompileError):
        compile_transition(42, "S1")  # type: ignore[arg-type]


def test_native_rule_passes_state_only_when_accepted() -> None:
    one_arg = NativeTransition(lambda data: {"to": data})
    two_args = NativeTransition(lambda data, state: {"to": f"{state}:{data}"})

    assert one_arg("x", "S") == {"to": "x"}
    assert two_args("x", "S") == {"to": "S:x"}


def test_as_rule_wraps_callables_and_keeps_rules() -> None:
    compiled = compile_transition("return {'to': 'S'}")

    assert as_rule(compiled) is compiled
    assert isinstance(as_rule(len), NativeTransition)
    with pytest.raises(TypeError):
        as_rule("not callable")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "body",
    [
        "[x for x in data]\nreturn {'to': x}",
        "pick = lambda item: item\nreturn {'to': item}",
        "def helper(value):\n    inner = value\n    return inner\nreturn {'to': inner}",
    ],
)
def test_names_bound_in_nested_scopes_stay_there(body: str) -> None:
    with pytest.raises(TransitionCompileError, match="undefined name"):
        compile_transition(body, "S1")


def test_nested_scopes_see_enclosing_locals() -> None:
    body = "\n".join(
        [
            "prefix = state",
            "def label(value):",
            "    return prefix + value",
            "[last := symbol for symbol in data]",
            "return {'to': label(last)}",
        ]
    )

    assert compile_transition(body, "S")("ab", "S") == {"to": "Sb"}
