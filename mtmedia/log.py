"""Logging setup: console output routed through tqdm so progress bars stay intact."""

from __future__ import annotations
import io, logging, os, sys
from pathlib import Path

from tqdm import tqdm

LOGGER_NAME = "mtmedia"

_CONSOLE_FORMAT = "%(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class TqdmHandler(logging.Handler):
    """Emit records with tqdm.write; plain print when there is no stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            stream = getattr(sys, "stderr", None)
            if stream is not None:
                tqdm.write(msg, file=stream)
            else:
                print(msg)
        except Exception:
            self.handleError(record)


def _level_for(verbosity: int) -> int:
    if verbosity < 0:
        return logging.WARNING
    if verbosity == 0:
        return logging.INFO
    return logging.DEBUG


def setup_logging(verbosity: int = 0, log_file: str | Path | None = None) -> logging.Logger:
    """Configure the package logger. Safe to call more than once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    console = TqdmHandler()
    console.setLevel(_level_for(verbosity))
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(fh)

    logger.propagate = False
    return logger


# ---- tqdm plumbing ----

def tqdm_file():
    """
    File-like object for tqdm to write to.
    When sys.stderr is None (pythonw, detached), fall back to a sink.
    """
    f = getattr(sys, "stderr", None)
    return f if (f is not None and hasattr(f, "write")) else io.StringIO()


def tqdm_disable() -> bool:
    """
    Disable tqdm when there is no real stderr or when explicitly requested.
    Env override: MTMEDIA_TQDM=0 forces enable, =1 forces disable.
    """
    env = os.environ.get("MTMEDIA_TQDM")
    if env == "0":
        return False
    if env == "1":
        return True
    f = getattr(sys, "stderr", None)
    return not (f is not None and hasattr(f, "write"))
