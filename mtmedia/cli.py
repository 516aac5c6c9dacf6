from __future__ import annotations
import argparse, logging, sys
from pathlib import Path

from . import __version__
from .config import RunConfig, env_algorithm
from .errors import MediaError
from .hasher import HASH_ALGORITHMS, ContentHasher
from .log import setup_logging
from .materialize import verify_media
from .pipeline import run
from .serialize import SERIALIZERS, MthSerializer

log = logging.getLogger(__name__)

COMMANDS = ("build", "verify")


def _cmd_build(args: argparse.Namespace) -> int:
    if not args.out and not (args.media and args.index):
        raise SystemExit("Need either --out or both --media and --index. Run with --help for usage.")
    cfg = RunConfig.from_args(args)
    log.debug("config: %s", cfg)
    summary = run(cfg)
    print(summary)
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    data = Path(args.index).read_bytes()
    serializer = SERIALIZERS[args.format]
    if args.format == "mth":
        identifiers = MthSerializer().load_identifiers(data)
    else:
        identifiers = list(serializer.load(data).values())

    # --hash > algorithm recorded in the index > $MTMEDIA_HASH
    algorithm = args.hash or serializer.algorithm_of(data) or env_algorithm()
    log.debug("verifying with %s", algorithm)
    errors = verify_media(identifiers, args.media, ContentHasher(algorithm))
    if errors:
        print(f"invalid media entries: {len(errors)}")
        for e in errors[:20]:
            print("  -", e)
        return 1
    print(f"all {len(set(identifiers))} media entries OK")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--format", choices=sorted(SERIALIZERS), default="text",
                   help="Index file format (default: text)")
    p.add_argument("--hash", choices=sorted(HASH_ALGORITHMS),
                   help="Content hash (build default: $MTMEDIA_HASH or sha1; verify default: the index's own)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More output")
    p.add_argument("-q", "--quiet", action="store_true", help="Warnings and errors only")
    p.add_argument("--log-file", type=str, help="Also write a debug log here")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mtmedia",
                                description="Build a deduplicated, content-addressed Minetest media directory")
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd")

    b = sub.add_parser("build", help="Collect, hash and materialize media (default command)")
    b.add_argument("mod_paths", nargs="*", metavar="PATH", help="Additional mod paths to search")
    b.add_argument("-g", "--game", required=True, help="Path to the game directory")
    b.add_argument("-w", "--world", required=True, help="Path to the world directory")
    b.add_argument("-o", "--out", help="Output directory (media + index)")
    b.add_argument("--media", help="Media directory (with --index, instead of --out)")
    b.add_argument("--index", help="Index file path (with --media, instead of --out)")
    link = b.add_mutually_exclusive_group()
    link.add_argument("-c", "--copy", action="store_true", help="Copy assets to the media directory")
    link.add_argument("-l", "--hardlink", action="store_true", help="Hard link assets to the media directory")
    link.add_argument("-s", "--symlink", action="store_true", help="Symbolically link assets to the media directory")
    b.add_argument("--threads", type=int, help="Worker threads (default: $MTMEDIA_THREADS or auto)")
    _add_common(b)
    b.set_defaults(func=_cmd_build)

    v = sub.add_parser("verify", help="Re-hash a media directory against an index")
    v.add_argument("--index", required=True, help="Index file to check against")
    v.add_argument("--media", required=True, help="Media directory to check")
    _add_common(v)
    v.set_defaults(func=_cmd_verify)

    return p


def run_cli(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # bare `mtmedia -g ... -w ...` means build
    if argv and argv[0] not in COMMANDS and argv[0] not in ("-h", "--help", "-V", "--version"):
        argv.insert(0, "build")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "cmd", None):
        parser.print_help()
        return 2

    setup_logging(-1 if args.quiet else args.verbose, args.log_file)
    try:
        return args.func(args)
    except MediaError as e:
        print(f"error {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
