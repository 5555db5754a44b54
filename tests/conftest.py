from __future__ import annotations

import copy
from typing import Any

import pytest

from tests.helpers import CHANGE_MACHINE, STRING_MACHINE


@pytest.fixture
def string_machine() -> dict[str, Any]:
    return copy.deepcopy(STRING_MACHINE)


@pytest.fixture
def change_machine() -> dict[str, Any]:
    return copy.deepcopy(CHANGE_MACHINE)


@pytest.fixture
def payment() -> dict[str, float]:
    return {"p": 0, "n": 0, "d": 0, "q": 0, "amt": 0.68, "change": 0}
