# mtmedia/paths.py
from __future__ import annotations
import os
from pathlib import Path

# ---- Media layout (per mod / per world) ----
MEDIA_DIRS: tuple[str, ...] = ("textures", "sounds", "models", "locale")

# ---- Mod discovery markers ----
MOD_MARKER = "init.lua"
MODPACK_MARKERS: tuple[str, ...] = ("modpack.txt", "modpack.conf")

# ---- Game / world layout ----
GAME_MODS_DIR = "mods"
WORLD_MODS_DIR = "worldmods"
WORLD_MT = "world.mt"

# ---- Outputs ----
INDEX_NAMES: dict[str, str] = {
    "text": "index.txt",
    "json": "index.json",
    "mth":  "index.mth",
}


def make_absolute(path: str | Path) -> Path:
    """Absolute form of path without resolving symlinks (logical names come from it)."""
    p = Path(path)
    if p.is_absolute():
        return p
    return Path(os.path.abspath(p))


__all__ = [
    "MEDIA_DIRS", "MOD_MARKER", "MODPACK_MARKERS",
    "GAME_MODS_DIR", "WORLD_MODS_DIR", "WORLD_MT",
    "INDEX_NAMES", "make_absolute",
]
