from __future__ import annotations
import argparse, os
from dataclasses import dataclass, field
from pathlib import Path

from .hasher import DEFAULT_ALGORITHM
from .materialize import Strategy
from .paths import INDEX_NAMES, make_absolute
from .system import optimal_threads


def env_threads() -> int | None:
    """MTMEDIA_THREADS, if set to a positive integer."""
    raw = os.environ.get("MTMEDIA_THREADS", "").strip()
    if not raw:
        return None
    try:
        n = int(raw)
    except ValueError:
        raise SystemExit(f"MTMEDIA_THREADS must be an integer, got {raw!r}")
    return n if n > 0 else None


def env_algorithm() -> str:
    return os.environ.get("MTMEDIA_HASH") or DEFAULT_ALGORITHM


@dataclass
class RunConfig:
    game: Path
    world: Path
    media_dir: Path
    index_path: Path
    mod_paths: list[Path] = field(default_factory=list)
    strategy: Strategy = Strategy.NONE
    index_format: str = "text"
    algorithm: str = DEFAULT_ALGORITHM
    workers: int = 1

    @staticmethod
    def from_args(args: argparse.Namespace) -> "RunConfig":
        """CLI flags > environment > defaults."""
        fmt = args.format
        if args.out:
            out = make_absolute(args.out)
            media_dir, index_path = out, out / INDEX_NAMES[fmt]
        else:
            media_dir, index_path = make_absolute(args.media), make_absolute(args.index)

        if args.copy:
            strategy = Strategy.COPY
        elif args.hardlink:
            strategy = Strategy.HARDLINK
        elif args.symlink:
            strategy = Strategy.SYMLINK
        else:
            strategy = Strategy.NONE

        return RunConfig(
            game=make_absolute(args.game),
            world=make_absolute(args.world),
            media_dir=media_dir,
            index_path=index_path,
            mod_paths=[make_absolute(p) for p in (args.mod_paths or [])],
            strategy=strategy,
            index_format=fmt,
            algorithm=args.hash or env_algorithm(),
            workers=args.threads or env_threads() or optimal_threads(),
        )
