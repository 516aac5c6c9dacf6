# mtmedia/world.py
from __future__ import annotations
import logging
from pathlib import Path

from .paths import WORLD_MT

log = logging.getLogger(__name__)

_LOAD_PREFIX = "load_mod_"


def read_world_mt(path: str | Path) -> dict[str, str]:
    """Parse a world.mt settings file ("key = value" per line).

    Blank lines and '#' comments are ignored; later keys win.
    """
    settings: dict[str, str] = {}
    for line in Path(path).read_text(encoding="utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        settings[key.strip()] = value.strip()
    return settings


def read_world_mods(world_dir: str | Path) -> set[str] | None:
    """Names of mods the world enables, or None if the world has no world.mt.

    A mod is enabled by `load_mod_<name> = true`. Newer worlds may store a
    path instead of "true"; any value except "false" or empty counts.
    """
    p = Path(world_dir) / WORLD_MT
    if not p.is_file():
        return None
    mods: set[str] = set()
    for key, value in read_world_mt(p).items():
        if not key.startswith(_LOAD_PREFIX):
            continue
        name = key[len(_LOAD_PREFIX):]
        if name and value.lower() not in ("false", ""):
            mods.add(name)
    log.debug("[locate] world.mt enables %d mod(s)", len(mods))
    return mods
