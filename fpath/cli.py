"""Command line interface for fpath."""
from __future__ import annotations

import argparse
import json
import logging
import threading
from pathlib import Path as _FsPath

from .config import KVOptions
from .errors import FpathError
from .logger import configure_logging, log_event
from .path import Path, from_url
from .watcher import Action, watch

LOGGER_NAME = "fpath.cli"


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "handler"):
        parser.print_help()
        return 1
    configure_logging(args.log_file, level=logging.DEBUG if args.verbose else logging.INFO)
    return args.handler(args)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fpath", description="fpath path utilities")
    parser.add_argument("--log-file", type=_FsPath, help="Write JSON logs to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    info = subparsers.add_parser("info", help="Show path components and size")
    info.add_argument("path")
    info.set_defaults(handler=_handle_info)

    kv = subparsers.add_parser("kv", help="Parse a key/value file")
    kv.add_argument("file")
    kv.add_argument("--sep", default="=", help="Key/value separator (default '=')")
    kv.add_argument("--unquote", action="store_true", help="Decode quoted values")
    kv.add_argument("--expand", action="store_true", help="Expand ${NAME} references")
    kv.add_argument("--json", action="store_true", help="Print the map as JSON")
    kv.set_defaults(handler=_handle_kv)

    download = subparsers.add_parser("download", help="Download a URL unless the target exists")
    download.add_argument("url")
    download.add_argument("target", nargs="?")
    download.set_defaults(handler=_handle_download)

    watch_parser = subparsers.add_parser("watch", help="Log changes to files matching patterns")
    watch_parser.add_argument("root")
    watch_parser.add_argument("patterns", nargs="+")
    watch_parser.set_defaults(handler=_handle_watch)

    return parser


def _handle_info(args: argparse.Namespace) -> int:
    path = Path(args.path)
    details = {
        "path": str(path),
        "abs": str(path.abs()),
        "parent": str(path.parent()),
        "base": path.base(),
        "stem": path.stem(),
        "ext": path.ext(),
        "exists": path.exists(),
        "is_dir": path.is_dir(),
        "size": path.size(),
        "pretty_size": path.pretty_size(),
    }
    print(json.dumps(details, indent=2))
    return 0 if details["exists"] else 2


def _handle_kv(args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Not a file: {path}")
        return 2
    options = KVOptions(separator=args.sep, unquote=args.unquote, expand_vars=args.expand)
    values = path.read_kv(options=options, env={})
    if args.json:
        print(json.dumps(values.strings(), indent=2, ensure_ascii=False))
    else:
        for key, value in values.items():
            print(f"{key}={value}")
    return 0


def _handle_download(args: argparse.Namespace) -> int:
    try:
        path = from_url(args.url, args.target)
    except FpathError as exc:
        print(f"Download failed: {exc}")
        return 1
    print(f"{path} ({path.pretty_size()})")
    return 0


def _handle_watch(args: argparse.Namespace) -> int:
    logger = logging.getLogger(LOGGER_NAME)

    def _report(action: Action, path: Path) -> bool:
        log_event(
            logger,
            level=logging.INFO,
            action="watch.event",
            message=f"{action} {path}",
            extra={"path": str(path), "change": str(action)},
        )
        return True

    try:
        watcher = watch({pattern: _report for pattern in args.patterns}, args.root)
    except FpathError as exc:
        print(f"Watch failed: {exc}")
        return 1

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        watcher.close()
    return 0
