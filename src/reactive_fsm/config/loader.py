"""Settings and machine document loaders."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import yaml

from ..infra.exceptions import DocumentFormatError
from .models import LoggingConfig, MachineConfig, Settings

logger = logging.getLogger("fsm.config")


def _normalize_path(path: Path | str) -> Path:
    return path if isinstance(path, Path) else Path(path)


def _load_raw(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"File not found at {path}")

    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise DocumentFormatError(f"Unsupported file format: {suffix or '<none>'}")

    with path.open("r", encoding="utf-8") as stream:
        try:
            if suffix == ".json":
                return json.load(stream)
            return yaml.safe_load(stream)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise DocumentFormatError(f"Could not parse {path}: {exc}") from exc


def load_document(path: Path | str) -> Any:
    """Read a machine document from a YAML or JSON file.

    The result is the raw document; validation happens when it is handed to
    `FiniteStateMachine.from_json`.
    """
    path = _normalize_path(path)
    document = _load_raw(path)
    logger.debug("Loaded machine document from %s", path)
    return document


def load_settings(
    path: Path | str | None = None,
    overrides: Optional[Iterable[Mapping[str, Any]]] = None,
) -> Settings:
    """Load settings from an optional file, applying override mappings in order.

    Overrides use the same shape as the file, e.g. ``{"logging": {"level": "DEBUG"}}``.
    Unknown keys are ignored.
    """
    raw: Dict[str, Any] = {}
    if path is not None:
        config_path = _normalize_path(path)
        loaded = _load_raw(config_path) or {}
        if not isinstance(loaded, Mapping):
            raise DocumentFormatError(f"Settings file {config_path} must contain a mapping")
        raw = _merge(raw, loaded)
        logging_raw = dict(raw.get("logging") or {})
        log_path = logging_raw.get("filepath")
        if log_path:
            # relative log paths are anchored at the settings file
            logging_raw["filepath"] = (config_path.parent / log_path).resolve()
            raw["logging"] = logging_raw

    for update in overrides or ():
        raw = _merge(raw, update)

    settings = Settings(
        logging=_build(LoggingConfig, raw.get("logging")),
        machine=_build(MachineConfig, raw.get("machine")),
    )
    settings.validate()
    return settings


def _build(factory: Any, section: Optional[Mapping[str, Any]]) -> Any:
    instance = factory()
    if not section:
        return instance
    known = {key: value for key, value in section.items() if hasattr(instance, key)}
    if "filepath" in known and known["filepath"] is not None:
        known["filepath"] = Path(known["filepath"])
    return replace(instance, **known)


def _merge(base: Mapping[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in update.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
