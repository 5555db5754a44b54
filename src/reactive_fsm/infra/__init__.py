"""Infrastructure helpers: logging and exception handling."""

from .exceptions import (
    DocumentFormatError,
    InvalidTransitionOutput,
    ReactiveFsmError,
    TransitionCompileError,
    install_exception_hook,
)
from .logging import configure_logging

__all__ = [
    "DocumentFormatError",
    "InvalidTransitionOutput",
    "ReactiveFsmError",
    "TransitionCompileError",
    "configure_logging",
    "install_exception_hook",
]
