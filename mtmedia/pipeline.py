"""One full run: locate -> hash/index -> materialize + serialize."""

from __future__ import annotations
import logging, os
from dataclasses import dataclass

from .config import RunConfig
from .errors import MaterializeError
from .hasher import ContentHasher
from .index import AssetIndex, build_index
from .locator import collect_roots, locate
from .materialize import MaterializeResult, Strategy, realize
from .serialize import get_serializer, write_index
from .system import check_resources

log = logging.getLogger(__name__)


@dataclass
class RunSummary:
    names: int
    identifiers: int
    materialized: MaterializeResult
    index: AssetIndex

    def __str__(self) -> str:
        return (f"indexed {self.names} names, {self.identifiers} distinct identifiers "
                f"({self.materialized.created} created, {self.materialized.unchanged} unchanged)")


def _source_bytes(index: AssetIndex) -> int:
    """Total size of the canonical sources a copy run would write."""
    total = 0
    for ident in index.identifiers():
        src = index.canonical_path_of(ident)
        try:
            total += os.path.getsize(src)
        except OSError as e:
            raise MaterializeError(f"source disappeared after hashing ({e.strerror or e})",
                                   path=src, strategy=Strategy.COPY.value) from e
    return total


def run(cfg: RunConfig) -> RunSummary:
    """Build the index and media directory described by cfg.

    Raises MediaError (with the failing phase) on any fatal problem. The
    index file is written last, so a failed run never replaces a good index.
    """
    # fail on bad format/algorithm choices before touching the filesystem
    get_serializer(cfg.index_format)
    hasher = ContentHasher(cfg.algorithm)

    roots = collect_roots(cfg.game, cfg.world, cfg.mod_paths)
    candidates = locate(roots)
    index = build_index(candidates, hasher, workers=cfg.workers)

    if cfg.strategy is Strategy.COPY:
        check_resources(cfg.media_dir, _source_bytes(index))

    result = realize(index, cfg.media_dir, cfg.strategy, workers=cfg.workers)
    write_index(index, cfg.index_path, cfg.index_format)

    return RunSummary(names=len(index), identifiers=len(index.identifiers()),
                      materialized=result, index=index)
