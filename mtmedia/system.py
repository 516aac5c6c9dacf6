from __future__ import annotations
import logging, shutil
from pathlib import Path

import psutil

log = logging.getLogger(__name__)


def optimal_threads(cap: int = 8) -> int:
    # leave one core for the registering thread
    cores = max(psutil.cpu_count(logical=False) or 1, 1)
    return max(1, min(cores - 1, cap))


def free_bytes(path: Path) -> int:
    """Free space on the volume holding path (or its nearest existing parent)."""
    p = Path(path)
    while not p.exists() and p.parent != p:
        p = p.parent
    return shutil.disk_usage(p).free


def check_resources(target_dir: Path, needed_bytes: int, min_ram_mb: int = 256) -> bool:
    """Warn (never fail) when the target volume or RAM look too small. Returns True if fine."""
    ok = True
    mem = psutil.virtual_memory().available / (1024 ** 2)
    if mem < min_ram_mb:
        log.warning("Low memory (%.0f MB available)", mem)
        ok = False
    free = free_bytes(target_dir)
    if free < needed_bytes:
        log.warning("Low disk space at %s: %.1f MB free, %.1f MB needed",
                    target_dir, free / (1024 ** 2), needed_bytes / (1024 ** 2))
        ok = False
    return ok
