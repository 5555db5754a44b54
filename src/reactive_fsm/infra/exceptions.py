"""Exception types and global exception handling."""

from __future__ import annotations

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger("fsm.exceptions")


class ReactiveFsmError(Exception):
    """Base class for errors raised by the engine."""


class TransitionCompileError(ReactiveFsmError, ValueError):
    """Transition source text could not be turned into a rule."""

    def __init__(self, message: str, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class InvalidTransitionOutput(ReactiveFsmError, ValueError):
    """A transition rule returned something without a target state."""

    def __init__(self, state: str, output: Any) -> None:
        super().__init__(f"Transition from '{state}' returned {output!r}; expected a 'to' state.")
        self.state = state
        self.output = output


class DocumentFormatError(ReactiveFsmError, ValueError):
    """A machine document or settings file could not be read."""


def install_exception_hook() -> None:
    """Log uncaught exceptions from the main thread and worker threads."""

    hook = _ExceptionHook()
    hook.install()


@dataclass
class _ExceptionHook:
    _original_excepthook: Optional[Callable[..., Any]] = None
    _original_thread_excepthook: Optional[Callable[..., Any]] = None

    def install(self) -> None:
        self._original_excepthook = sys.excepthook
        sys.excepthook = self._handle_exception

        if hasattr(threading, "excepthook"):
            self._original_thread_excepthook = threading.excepthook
            threading.excepthook = self._handle_thread_exception  # type: ignore[assignment]

    def _handle_exception(self, exc_type, exc_value, exc_traceback) -> None:
        logger.critical(
            "Unhandled exception: %s",
            exc_value,
            exc_info=(exc_type, exc_value, exc_traceback),
        )
        if self._original_excepthook:
            self._original_excepthook(exc_type, exc_value, exc_traceback)

    def _handle_thread_exception(self, args: "threading.ExceptHookArgs") -> None:  # pragma: no cover
        logger.critical(
            "Unhandled thread exception in %s: %s",
            args.thread.name if args.thread else "<unknown>",
            args.exc_value,
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        if self._original_thread_excepthook:
            self._original_thread_excepthook(args)
