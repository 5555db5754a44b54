"""Run a document-defined machine over a sequence of inputs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .config import load_document, load_settings
from .infra import ReactiveFsmError, configure_logging, install_exception_hook
from .state_machine import FiniteStateMachine, StateTransition

logger = logging.getLogger("fsm.cli")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="reactive-fsm",
        description="Load a machine document and drive it with a sequence of inputs.",
    )
    parser.add_argument("document", type=Path, help="Machine document (YAML or JSON).")
    parser.add_argument(
        "--input",
        nargs="*",
        default=[],
        metavar="SYMBOL",
        help="Inputs fed to the machine in order.",
    )
    parser.add_argument(
        "--start",
        default=None,
        help="State to force before the first input (Mealy mode only).",
    )
    parser.add_argument(
        "--moore",
        action="store_true",
        help="Treat each input as the state to step from, threading the payload from initialData.",
    )
    parser.add_argument(
        "--json-input",
        action="store_true",
        help="Parse each input as JSON (e.g. numbers) instead of passing strings.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings file (YAML or JSON).")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level.",
    )
    return parser.parse_args(argv)


def _print_transition(event: StateTransition) -> None:
    print(f"{event.from_state} -> {event.to}")


def _parse_inputs(tokens: Sequence[str], as_json: bool) -> List[Any]:
    if not as_json:
        return list(tokens)
    return [json.loads(token) for token in tokens]


def drive(machine: FiniteStateMachine, inputs: Sequence[Any], start: Optional[str] = None, moore: bool = False) -> Any:
    """Feed ``inputs`` to ``machine`` and return the last payload.

    Stops early when the machine cannot advance.
    """
    payload: Any = machine.initial_data if moore else None
    for index, item in enumerate(inputs):
        if moore:
            output = machine.next(payload, str(item))
        else:
            output = machine.next(item, start if index == 0 else None)
        if output is None:
            logger.info("No transition out of '%s'; stopping after %d input(s)", machine.current_state, index)
            break
        payload = output.data
    return payload


def run(args: argparse.Namespace) -> int:
    overrides = [{"logging": {"level": args.log_level}}] if args.log_level else None
    try:
        settings = load_settings(args.config, overrides=overrides)
    except (OSError, ValueError) as exc:
        print(f"Could not read settings: {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.logging)
    install_exception_hook()

    try:
        document = load_document(args.document)
        inputs = _parse_inputs(args.input, args.json_input)
    except (OSError, ReactiveFsmError, json.JSONDecodeError) as exc:
        print(f"Could not read machine: {exc}", file=sys.stderr)
        return 1

    machine = FiniteStateMachine(history_size=settings.machine.history_size)
    result = machine.from_json(document)
    if not result.success:
        print(f"Invalid machine document: {result.action.value} {result.message}".rstrip(), file=sys.stderr)
        return 2

    logger.info("Running '%s' over %d input(s)", machine.name, len(inputs))
    machine.add_subscriber(_print_transition)
    payload = drive(machine, inputs, start=args.start, moore=args.moore)

    print(f"final state: {machine.current_state}")
    print(f"acceptance: {machine.is_acceptance}")
    if args.moore and payload is not None:
        print(f"data: {json.dumps(payload, sort_keys=True, default=str)}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    return run(parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
