"""Content identifiers: streaming digests of a file's full bytes."""

from __future__ import annotations
import hashlib
from pathlib import Path
from typing import Callable

import xxhash

from .errors import HashError

CHUNK_SIZE = 1024 * 1024

# name -> factory for a fresh hash object
HASH_ALGORITHMS: dict[str, Callable] = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "xxh3_128": xxhash.xxh3_128,
}

DEFAULT_ALGORITHM = "sha1"


def hash_file(p: Path, algorithm: str = DEFAULT_ALGORITHM, chunk_size: int = CHUNK_SIZE) -> str:
    """Hex digest of the whole file. Raises OSError if it cannot be read."""
    h = HASH_ALGORITHMS[algorithm]()
    with open(p, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


class ContentHasher:
    """Map a file to its ContentIdentifier (lowercase hex digest).

    The same bytes always give the same identifier, whatever the file's
    name or location.
    """

    def __init__(self, algorithm: str = DEFAULT_ALGORITHM, chunk_size: int = CHUNK_SIZE) -> None:
        if algorithm not in HASH_ALGORITHMS:
            raise ValueError(
                f"unknown hash algorithm {algorithm!r} (choose from {', '.join(sorted(HASH_ALGORITHMS))})"
            )
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    @property
    def digest_size(self) -> int:
        return HASH_ALGORITHMS[self.algorithm]().digest_size

    def digest(self, path: str | Path) -> str:
        try:
            return hash_file(Path(path), self.algorithm, self.chunk_size)
        except OSError as e:
            raise HashError(f"cannot read asset ({e.strerror or e})", path=path) from e

    def __repr__(self) -> str:
        return f"ContentHasher({self.algorithm!r})"
