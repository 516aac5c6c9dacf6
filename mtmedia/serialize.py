"""Index file formats and atomic index writing.

A format turns the AssetIndex's (name, identifier) pairs into bytes. Writing
always goes through a temp file in the destination directory followed by a
rename, so a server reading the index never sees a partial file.
"""

from __future__ import annotations
import json, logging
from pathlib import Path

from .errors import SerializeError
from .index import AssetIndex
from .io import atomic_write_bytes

log = logging.getLogger(__name__)

INDEX_VERSION = 1
MTH_HEADER = b"MTHS\x00\x01"


class Serializer:
    name = ""
    suffix = ""

    def dump(self, index: AssetIndex) -> bytes:
        raise NotImplementedError

    def load(self, data: bytes) -> dict[str, str]:
        raise NotImplementedError(f"{self.name} index cannot be read back into names")

    def algorithm_of(self, data: bytes) -> str | None:
        """Hash algorithm recorded in the index, or None if it has none."""
        return None


class TextSerializer(Serializer):
    """`<identifier> <name>` per line, sorted by name, after a header line."""

    name = "text"
    suffix = ".txt"

    def dump(self, index: AssetIndex) -> bytes:
        lines = [f"# mtmedia index v{INDEX_VERSION} {index.algorithm}"]
        for e in index.entries():
            if "\n" in e.name or "\r" in e.name:
                raise SerializeError("asset name contains a line break", path=e.path)
            lines.append(f"{e.identifier} {e.name}")
        return ("\n".join(lines) + "\n").encode("utf-8")

    def load(self, data: bytes) -> dict[str, str]:
        out: dict[str, str] = {}
        for line in data.decode("utf-8").splitlines():
            if not line or line.startswith("#"):
                continue
            ident, _, name = line.partition(" ")
            if not name:
                raise ValueError(f"malformed index line: {line!r}")
            out[name] = ident
        return out

    def algorithm_of(self, data: bytes) -> str | None:
        first = data.split(b"\n", 1)[0].decode("utf-8").strip()
        prefix = f"# mtmedia index v{INDEX_VERSION} "
        if first.startswith(prefix):
            return first[len(prefix):].strip() or None
        return None


class JsonSerializer(Serializer):
    name = "json"
    suffix = ".json"

    def dump(self, index: AssetIndex) -> bytes:
        doc = {
            "version": INDEX_VERSION,
            "algorithm": index.algorithm,
            "assets": {e.name: e.identifier for e in index.entries()},
        }
        return (json.dumps(doc, indent=2, sort_keys=True, ensure_ascii=False) + "\n").encode("utf-8")

    def load(self, data: bytes) -> dict[str, str]:
        doc = json.loads(data.decode("utf-8"))
        if doc.get("version") != INDEX_VERSION:
            raise ValueError(f"unsupported index version {doc.get('version')!r}")
        return dict(doc.get("assets", {}))

    def algorithm_of(self, data: bytes) -> str | None:
        return json.loads(data.decode("utf-8")).get("algorithm")


class MthSerializer(Serializer):
    """Minetest remote media index: header + raw SHA-1 digest of every distinct file.

    One record per identifier, not per name. Names are not stored, so this is
    not a name -> identifier index and `read_index` cannot load it; clients
    already know the names from the server's media announcement and look up
    content by digest. Only written when asked for with --format mth.
    """

    name = "mth"
    suffix = ".mth"

    def dump(self, index: AssetIndex) -> bytes:
        if index.algorithm != "sha1":
            raise SerializeError(f"mth index requires sha1 identifiers, not {index.algorithm}")
        return MTH_HEADER + b"".join(bytes.fromhex(i) for i in sorted(index.identifiers()))

    def load_identifiers(self, data: bytes) -> list[str]:
        if not data.startswith(MTH_HEADER):
            raise ValueError("not an MTHS index")
        body = data[len(MTH_HEADER):]
        if len(body) % 20:
            raise ValueError("truncated MTHS index")
        return [body[i:i + 20].hex() for i in range(0, len(body), 20)]

    def algorithm_of(self, data: bytes) -> str | None:
        return "sha1"


SERIALIZERS: dict[str, Serializer] = {
    s.name: s for s in (TextSerializer(), JsonSerializer(), MthSerializer())
}


def get_serializer(fmt: str) -> Serializer:
    try:
        return SERIALIZERS[fmt]
    except KeyError:
        raise ValueError(f"unknown index format {fmt!r} (choose from {', '.join(SERIALIZERS)})") from None


def write_index(index: AssetIndex, destination: str | Path, fmt: str = "text") -> Path:
    """Serialize index and atomically replace destination with it."""
    dest = Path(destination)
    data = get_serializer(fmt).dump(index)
    try:
        atomic_write_bytes(dest, data)
    except OSError as e:
        raise SerializeError(f"cannot write index ({e.strerror or e})", path=dest) from e
    log.info("[serialize] wrote %s index with %d name(s) to %s", fmt, len(index), dest)
    return dest


def read_index(path: str | Path, fmt: str = "text") -> dict[str, str]:
    """Load name -> identifier from a text or json index."""
    return get_serializer(fmt).load(Path(path).read_bytes())
