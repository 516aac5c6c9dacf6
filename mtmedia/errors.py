# mtmedia/errors.py
from __future__ import annotations
from pathlib import Path


class MediaError(Exception):
    """Fatal error for a run. Carries the phase that failed and the offending path."""

    phase = "run"

    def __init__(self, message: str, *, path: str | Path | None = None,
                 strategy: str | None = None, phase: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.strategy = strategy
        if phase:
            self.phase = phase

    def __str__(self) -> str:
        s = f"[{self.phase}] {self.message}"
        if self.strategy:
            s += f" (strategy={self.strategy})"
        if self.path is not None:
            s += f": {self.path}"
        return s


class LocateError(MediaError):
    phase = "locate"


class HashError(MediaError):
    phase = "hash"


class MaterializeError(MediaError):
    phase = "materialize"


class SerializeError(MediaError):
    phase = "serialize"
