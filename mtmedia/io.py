from __future__ import annotations
import os, tempfile
from pathlib import Path


def ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def safe_replace(src_tmp: Path, dst: Path) -> None:
    """Atomic replace on the same volume.
    Caller ensures src_tmp exists and is complete.
    """
    dst.parent.mkdir(parents=True, exist_ok=True)
    os.replace(str(src_tmp), str(dst))


def atomic_write_bytes(dst: Path, data: bytes) -> None:
    """Write data next to dst, fsync, then rename over dst.

    Readers see either the old file or the complete new one.
    """
    ensure_dir(dst.parent)
    fd, tmp = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=str(dst.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        safe_replace(Path(tmp), dst)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
