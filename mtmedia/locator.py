"""Asset discovery across game, mod and world roots with name shadowing.

Roots are ranked game mods < extra mod paths < world mods < world root.
For every logical name (the file's basename as discovered) only the candidate
from the highest-ranked root survives. Nothing is hashed here.
"""

from __future__ import annotations
import logging, os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .errors import LocateError
from .paths import (
    MEDIA_DIRS, MOD_MARKER, MODPACK_MARKERS,
    GAME_MODS_DIR, WORLD_MODS_DIR, make_absolute,
)
from .world import read_world_mods

log = logging.getLogger(__name__)

RANK_GAME = 0
RANK_MOD_PATH = 1
RANK_WORLD_MOD = 2
RANK_WORLD = 3


@dataclass(frozen=True)
class SourceRoot:
    """A directory that may hold media subdirectories."""

    path: Path
    kind: str           # "mod" | "world"; rank tells game mods apart
    rank: int
    seq: int = 0        # discovery order within the whole run
    required: bool = False

    @property
    def priority(self) -> tuple[int, int]:
        return (self.rank, self.seq)

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class CandidateAsset:
    name: str           # logical name requested by clients
    path: Path          # absolute path as discovered (links not resolved)
    root: SourceRoot

    @property
    def priority(self) -> tuple[int, int]:
        return self.root.priority


# ----- root collection -----

def _check_primary(path: Path, what: str) -> Path:
    p = make_absolute(path)
    if not p.is_dir():
        raise LocateError(f"{what} directory does not exist", path=p)
    try:
        with os.scandir(p) as it:
            next(it, None)
    except OSError as e:
        raise LocateError(f"{what} directory is not readable ({e.strerror or e})", path=p) from e
    return p


def _iter_mods(container: Path, enabled: Optional[set[str]]) -> Iterator[Path]:
    """Yield mod directories under container, descending into modpacks.

    Raises OSError if a directory cannot be listed.
    """
    for entry in sorted(container.iterdir(), key=lambda e: e.name):
        if entry.name.startswith(".") or not entry.is_dir():
            continue
        if any((entry / m).exists() for m in MODPACK_MARKERS):
            yield from _iter_mods(entry, enabled)
        elif (entry / MOD_MARKER).exists():
            if enabled is not None and entry.name not in enabled:
                log.debug("[locate] mod %s not enabled, skipping", entry.name)
                continue
            yield entry
        # anything else is probably a VCS directory or similar


def _mods_in(container: Path, enabled: Optional[set[str]], what: str) -> list[Path]:
    if not container.is_dir():
        log.warning("[locate] %s not found, skipping: %s", what, container)
        return []
    try:
        return list(_iter_mods(container, enabled))
    except OSError as e:
        log.warning("[locate] %s unreadable, skipping (%s): %s", what, e.strerror or e, container)
        return []


def collect_roots(game_dir: str | Path, world_dir: str | Path,
                  mod_paths: Iterable[str | Path] = (),
                  enabled_mods: Optional[set[str]] = None) -> list[SourceRoot]:
    """Build the ordered SourceRoot list for a game + world (+ extra mod paths).

    enabled_mods defaults to the world's world.mt selection. Game mods are
    never filtered. A missing or unreadable game/world directory is fatal.
    """
    game = _check_primary(Path(game_dir), "game")
    world = _check_primary(Path(world_dir), "world")

    if enabled_mods is None:
        enabled_mods = read_world_mods(world)
        if enabled_mods is None:
            log.warning("[locate] no world.mt in %s, treating all world mods as enabled", world)

    roots: list[SourceRoot] = []

    def add(path: Path, kind: str, rank: int, required: bool = False) -> None:
        roots.append(SourceRoot(path=path, kind=kind, rank=rank, seq=len(roots), required=required))

    for mod in _mods_in(game / GAME_MODS_DIR, None, "game mods directory"):
        add(mod, "mod", RANK_GAME)
    for extra in mod_paths:
        for mod in _mods_in(make_absolute(extra), enabled_mods, "mod path"):
            add(mod, "mod", RANK_MOD_PATH)
    worldmods = world / WORLD_MODS_DIR
    if worldmods.exists():
        for mod in _mods_in(worldmods, enabled_mods, "world mods directory"):
            add(mod, "mod", RANK_WORLD_MOD)
    add(world, "world", RANK_WORLD, required=True)

    log.info("[locate] %d source root(s): %d mod(s) + world", len(roots), len(roots) - 1)
    return roots


# ----- media walking -----

def _walk_media(d: Path) -> Iterator[Path]:
    """Regular files under d, sorted, following file symlinks but not directory symlinks."""
    with os.scandir(d) as it:
        entries = sorted(it, key=lambda e: e.name)
    for e in entries:
        if e.name.startswith("."):
            continue
        if e.is_dir(follow_symlinks=False):
            yield from _walk_media(Path(e.path))
        elif e.is_file(follow_symlinks=True):
            yield Path(e.path)
        else:
            log.debug("[locate] skipping non-regular entry %s", e.path)


def _scan_root(root: SourceRoot) -> list[CandidateAsset]:
    found: list[CandidateAsset] = []
    for media in MEDIA_DIRS:
        d = root.path / media
        if not d.is_dir():
            continue
        for f in _walk_media(d):
            found.append(CandidateAsset(name=f.name, path=f, root=root))
    return found


def locate(roots: Iterable[SourceRoot]) -> list[CandidateAsset]:
    """Resolve shadowing: one CandidateAsset per logical name, highest priority wins.

    Returns survivors sorted by name.
    """
    winners: dict[str, CandidateAsset] = {}
    shadowed = 0
    for root in sorted(roots, key=lambda r: r.priority):
        try:
            found = _scan_root(root)
        except OSError as e:
            if root.required:
                raise LocateError(f"{root.kind} root is not readable ({e.strerror or e})",
                                  path=root.path) from e
            log.warning("[locate] %s root unreadable, contributes nothing (%s): %s",
                        root.kind, e.strerror or e, root.path)
            continue
        for cand in found:
            prev = winners.get(cand.name)
            if prev is None:
                winners[cand.name] = cand
            elif cand.priority > prev.priority:
                log.debug("[locate] %s: %s shadows %s", cand.name, cand.path, prev.path)
                winners[cand.name] = cand
                shadowed += 1
            else:
                # same root, same basename in two places: first one wins
                log.warning("[locate] duplicate name %s in %s, keeping %s",
                            cand.name, root.path, prev.path)
                shadowed += 1
    log.info("[locate] %d asset name(s), %d shadowed", len(winners), shadowed)
    return [winners[n] for n in sorted(winners)]
