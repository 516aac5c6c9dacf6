"""The AssetIndex: logical name -> content identifier, plus identifier -> canonical path.

Built once by build_index() and read-only afterwards. Many names may share an
identifier; exactly one source path is recorded per identifier and that is
the file the materializer links or copies.
"""

from __future__ import annotations
import logging, threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from tqdm import tqdm

from .hasher import ContentHasher
from .locator import CandidateAsset
from .log import tqdm_disable, tqdm_file

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetIndexEntry:
    name: str
    identifier: str
    path: Path


class AssetIndex:
    """Frozen name/identifier mapping. Use build_index() to make one."""

    def __init__(self, entries: Mapping[str, AssetIndexEntry],
                 canonical: Mapping[str, Path], algorithm: str) -> None:
        self._entries = MappingProxyType(dict(entries))
        self._canonical = MappingProxyType(dict(canonical))
        self.algorithm = algorithm
        missing = {e.identifier for e in self._entries.values()} - set(self._canonical)
        if missing:
            raise ValueError(f"identifiers without canonical path: {sorted(missing)[:5]}")

    def names(self) -> frozenset[str]:
        return frozenset(self._entries)

    def identifiers(self) -> frozenset[str]:
        """The deduplicated set to materialize."""
        return frozenset(self._canonical)

    def identifier_of(self, name: str) -> str:
        return self._entries[name].identifier

    def canonical_path_of(self, identifier: str) -> Path:
        return self._canonical[identifier]

    def entry(self, name: str) -> AssetIndexEntry:
        return self._entries[name]

    def entries(self) -> list[AssetIndexEntry]:
        """All entries, sorted by logical name."""
        return [self._entries[n] for n in sorted(self._entries)]

    def names_for(self, identifier: str) -> list[str]:
        if identifier not in self._canonical:
            raise KeyError(identifier)
        return sorted(e.name for e in self._entries.values() if e.identifier == identifier)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __repr__(self) -> str:
        return f"<AssetIndex names={len(self._entries)} identifiers={len(self._canonical)} {self.algorithm}>"


class _Registry:
    """Single-writer accumulator; the first path seen for an identifier is canonical."""

    def __init__(self) -> None:
        self.entries: dict[str, AssetIndexEntry] = {}
        self.canonical: dict[str, Path] = {}
        self.fan_in: dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def register(self, cand: CandidateAsset, identifier: str) -> None:
        with self._lock:
            if cand.name in self.entries:
                raise ValueError(f"duplicate logical name {cand.name!r}")
            path = self.canonical.setdefault(identifier, cand.path)
            if path != cand.path:
                log.debug("[hash] %s duplicates %s", cand.path, path)
            self.entries[cand.name] = AssetIndexEntry(cand.name, identifier, cand.path)
            self.fan_in[identifier] += 1


def build_index(candidates: Sequence[CandidateAsset] | Iterable[CandidateAsset],
                hasher: ContentHasher | None = None, workers: int = 1,
                fan_in_warning: int = 64) -> AssetIndex:
    """Hash every surviving candidate and build the frozen AssetIndex.

    Hashing runs on a thread pool when workers > 1. Results are registered in
    candidate order so the canonical path choice does not depend on timing.
    HashError from an unreadable file propagates and aborts the build.
    """
    hasher = hasher or ContentHasher()
    cands = list(candidates)
    reg = _Registry()
    total = len(cands)

    with tqdm(total=total, desc="Hashing media", unit="file",
              file=tqdm_file(), disable=tqdm_disable()) as bar:
        if workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=workers) as ex:
                # map() yields in submission order; the first failure re-raises here
                for cand, ident in zip(cands, ex.map(lambda c: hasher.digest(c.path), cands)):
                    reg.register(cand, ident)
                    bar.update(1)
        else:
            for cand in cands:
                reg.register(cand, hasher.digest(cand.path))
                bar.update(1)

    for ident, n in reg.fan_in.items():
        if n >= fan_in_warning:
            log.info("[hash] %s is shared by %d names (canonical %s)", ident, n, reg.canonical[ident])

    index = AssetIndex(reg.entries, reg.canonical, hasher.algorithm)
    log.info("[hash] %d name(s), %d distinct identifier(s)", len(index), len(index.identifiers()))
    return index
