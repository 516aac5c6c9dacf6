"""Produce the flat content-addressed media directory from an AssetIndex.

One entry per distinct identifier, named by the identifier. Existing entries
are accepted only if they already match what this run would create (same
bytes for copy and hardlink, same target for symlink); anything else means
the directory belongs to another build and the run stops.
"""

from __future__ import annotations
import enum, errno, filecmp, logging, os, shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from tqdm import tqdm

from .errors import HashError, MaterializeError
from .hasher import ContentHasher
from .index import AssetIndex
from .io import ensure_dir, safe_replace
from .log import tqdm_disable, tqdm_file
from .paths import make_absolute

log = logging.getLogger(__name__)


class Strategy(enum.Enum):
    COPY = "copy"
    HARDLINK = "hardlink"
    SYMLINK = "symlink"
    NONE = "none"       # index only, media directory untouched

    def __str__(self) -> str:
        return self.value


@dataclass
class MaterializeResult:
    created: int = 0
    unchanged: int = 0

    @property
    def total(self) -> int:
        return self.created + self.unchanged


# errno values meaning "this filesystem will not hard link here"
_NO_HARDLINK = {
    errno.EXDEV: "source and target are on different filesystems",
    errno.EPERM: "filesystem does not allow hard links",
    errno.EMLINK: "too many links to source file",
}
for _name in ("ENOTSUP", "EOPNOTSUPP"):
    if hasattr(errno, _name):
        _NO_HARDLINK.setdefault(getattr(errno, _name), "filesystem does not support hard links")


def _stale(dst: Path, reason: str, strategy: Strategy) -> MaterializeError:
    return MaterializeError(f"existing entry {reason}; media directory is stale or shared",
                            path=dst, strategy=strategy.value)


def _check_existing(src: Path, dst: Path, strategy: Strategy) -> None:
    """Raise unless dst already is exactly what strategy would produce from src."""
    if strategy is Strategy.SYMLINK:
        if not dst.is_symlink():
            raise _stale(dst, "is not a symlink", strategy)
        target = os.readlink(dst)
        if target != str(src):
            raise _stale(dst, f"points to {target}, expected {src}", strategy)
        return
    if dst.is_symlink():
        raise _stale(dst, "is a symlink", strategy)
    if not dst.is_file():
        raise _stale(dst, "is not a regular file", strategy)
    try:
        if strategy is Strategy.HARDLINK and os.path.samefile(src, dst):
            return
        if not filecmp.cmp(src, dst, shallow=False):
            raise _stale(dst, f"differs from {src}", strategy)
    except OSError as e:
        raise MaterializeError(f"cannot compare with source ({e.strerror or e})",
                               path=src, strategy=strategy.value) from e
    if strategy is Strategy.HARDLINK:
        log.debug("[materialize] %s has the right bytes but is not linked to %s", dst, src)


def _copy(src: Path, dst: Path) -> None:
    tmp = dst.with_name(f".{dst.name}.tmp")
    try:
        shutil.copy2(src, tmp)
        safe_replace(tmp, dst)
    except OSError:
        if tmp.exists():
            tmp.unlink()
        raise


def _hardlink(src: Path, dst: Path) -> None:
    try:
        os.link(src, dst)
    except FileExistsError:
        raise
    except OSError as e:
        reason = _NO_HARDLINK.get(e.errno)
        if reason:
            # no silent fallback to copy
            raise MaterializeError(f"cannot hard link: {reason}", path=src,
                                   strategy=Strategy.HARDLINK.value) from e
        raise


def _symlink(src: Path, dst: Path) -> None:
    try:
        os.symlink(src, dst)
    except NotImplementedError as e:
        raise MaterializeError("symbolic links are not supported on this platform",
                               path=dst, strategy=Strategy.SYMLINK.value) from e


_CREATE = {
    Strategy.COPY: _copy,
    Strategy.HARDLINK: _hardlink,
    Strategy.SYMLINK: _symlink,
}


def materialize_one(src: Path, dst: Path, strategy: Strategy) -> bool:
    """Create dst from src. Returns True if created, False if it was already up to date."""
    src = make_absolute(src)
    if os.path.lexists(dst):
        _check_existing(src, dst, strategy)
        return False
    try:
        _CREATE[strategy](src, dst)
    except FileExistsError:
        _check_existing(src, dst, strategy)
        return False
    except MaterializeError:
        raise
    except OSError as e:
        raise MaterializeError(f"{strategy.value} failed ({e.strerror or e})",
                               path=src, strategy=strategy.value) from e
    return True


def realize(index: AssetIndex, target_dir: str | Path, strategy: Strategy,
            workers: int = 1) -> MaterializeResult:
    """Ensure one entry per identifier exists under target_dir."""
    result = MaterializeResult()
    if strategy is Strategy.NONE:
        log.info("[materialize] strategy none, media directory not written")
        return result

    target = make_absolute(target_dir)
    try:
        ensure_dir(target)
    except OSError as e:
        raise MaterializeError(f"cannot create media directory ({e.strerror or e})",
                               path=target, strategy=strategy.value) from e

    jobs = [(index.canonical_path_of(i), target / i) for i in sorted(index.identifiers())]

    def _one(job: tuple[Path, Path]) -> bool:
        return materialize_one(job[0], job[1], strategy)

    with tqdm(total=len(jobs), desc=f"Materializing ({strategy.value})", unit="file",
              file=tqdm_file(), disable=tqdm_disable()) as bar:
        if workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=workers) as ex:
                outcomes = ex.map(_one, jobs)
                for created in outcomes:
                    if created:
                        result.created += 1
                    else:
                        result.unchanged += 1
                    bar.update(1)
        else:
            for job in jobs:
                if _one(job):
                    result.created += 1
                else:
                    result.unchanged += 1
                bar.update(1)

    log.info("[materialize] %d entr%s in %s (%d created, %d unchanged)",
             result.total, "y" if result.total == 1 else "ies", target,
             result.created, result.unchanged)
    return result


def verify_media(identifiers: Iterable[str], target_dir: str | Path,
                 hasher: ContentHasher | None = None) -> list[str]:
    """Re-hash every entry under target_dir; return a list of problems (empty if all good)."""
    hasher = hasher or ContentHasher()
    target = Path(target_dir)
    errors: list[str] = []
    for ident in sorted(set(identifiers)):
        p = target / ident
        if not p.exists():
            errors.append(f"Missing: {ident}")
            continue
        try:
            actual = hasher.digest(p)
        except HashError as e:
            errors.append(f"Unreadable: {ident} ({e})")
            continue
        if actual != ident:
            errors.append(f"Hash mismatch: {ident}")
    return errors
