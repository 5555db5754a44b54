"""Dataclass definitions for runtime settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    filepath: Optional[Path] = None
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    console: bool = True

    def resolved_path(self) -> Optional[Path]:
        if self.filepath is None:
            return None
        return Path(self.filepath).expanduser().resolve()


@dataclass(frozen=True)
class MachineConfig:
    """Defaults applied to machines built by the runner."""

    history_size: int = 64


@dataclass(frozen=True)
class Settings:
    """Root settings object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    machine: MachineConfig = field(default_factory=MachineConfig)

    def validate(self) -> None:
        """Validate basic invariants in the configuration."""
        if self.machine.history_size <= 0:
            raise ValueError(f"history_size must be positive, got {self.machine.history_size}")
