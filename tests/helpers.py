"""Shared machine definitions and transition functions for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

MACHINES_DIR = Path(__file__).resolve().parents[1] / "machines"

COIN_VALUE = {"p": 0.01, "n": 0.05, "d": 0.1, "q": 0.25}

CHANGE_BODY = "\n".join(
    [
        "value = {'p': 0.01, 'n': 0.05, 'd': 0.1}.get(state, 0.25)",
        "left_over = data['amt'] - value",
        "to = state if left_over > 0.001 else 'c'",
        "data['amt'] = left_over if left_over > 0.001 else 0",
        "data['change'] = abs(left_over) if left_over <= 0.001 else 0",
        "data[state] += 1",
        "return {'to': to, 'data': data}",
    ]
)

STRING_MACHINE: dict[str, Any] = {
    "name": "StringTest",
    "initialState": "S1",
    "alphabet": ["a", "b", "c", "d"],
    "states": [
        {
            "name": "S1",
            "isAcceptance": False,
            "transition": "return {'to': 'S2'} if data == 'a' else {'to': 'S1'}",
        },
        {
            "name": "S2",
            "isAcceptance": False,
            "transition": "return {'to': {'a': 'S2', 'b': 'S1', 'c': 'S4'}.get(data, 'S2')}",
        },
        {
            "name": "S3",
            "isAcceptance": False,
            "transition": "return {'to': {'a': 'S1', 'b': 'S4'}.get(data, 'S3')}",
        },
        {
            "name": "S4",
            "isAcceptance": True,
            "transition": "return {'to': 'S3'} if data == 'd' else {'to': 'S4'}",
        },
    ],
}

CHANGE_MACHINE: dict[str, Any] = {
    "name": "ChangeMachine",
    "alphabet": ["p", "n", "d", "q"],
    "states": [
        {"name": "p", "isAcceptance": False, "transition": CHANGE_BODY},
        {"name": "n", "isAcceptance": False, "transition": CHANGE_BODY},
        {"name": "d", "isAcceptance": False, "transition": CHANGE_BODY},
        {"name": "q", "isAcceptance": False, "transition": CHANGE_BODY},
        # no way out of the completed state
        {"name": "c", "isAcceptance": True, "transition": ""},
    ],
    "initialData": {"p": 0, "n": 0, "d": 0, "q": 0, "amt": 0.68, "change": 0},
}


def even_zeros_s1(data: int) -> dict[str, str]:
    return {"to": "S1"} if data == 1 else ({"to": "S2"} if data == 0 else {"to": "S1"})


def even_zeros_s2(data: int) -> dict[str, str]:
    return {"to": "S2"} if data == 1 else ({"to": "S1"} if data == 0 else {"to": "S2"})


def payola(payment: dict[str, float], state: str) -> dict[str, Any]:
    left_over = payment["amt"] - COIN_VALUE[state]
    to = state if left_over > 0.001 else "c"
    payment["amt"] = left_over if left_over > 0.001 else 0
    payment["change"] = abs(left_over) if left_over <= 0.001 else 0
    payment[state] += 1
    return {"to": to, "data": payment}
