"""
Command-line interface for inspecting layered configuration.

Loads sources in the order given (files, then dotenv, then environment)
and prints the merged result, optionally watching files for changes.
"""

import argparse
import json
import os
import sys
import threading
from typing import Optional, Sequence, TextIO

import yaml

from ._version import __version__
from .config.manager import ConfigManager
from .core.exceptions import LayerConfError
from .utils.logging import setup_logging, get_logger

logger = get_logger(__name__)

LOG_LEVEL_ENV = "LAYERCONF_LOG_LEVEL"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="layerconf",
        description="Merge layered configuration sources and print the result",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
                        help=f"Logging level (default: ${LOG_LEVEL_ENV} or WARNING)")

    sources = argparse.ArgumentParser(add_help=False)
    sources.add_argument("--file", "-f", action="append", default=[], dest="files",
                         help="Configuration file (.yaml, .yml, .json, .toml, .env); repeatable")
    sources.add_argument("--dotenv", help=".env file applied after the files")
    sources.add_argument("--env-prefix", help="Environment variable prefix applied last")
    sources.add_argument("--format", choices=["yaml", "json", "flat"], default="yaml",
                         help="Output format")
    sources.add_argument("--key", help="Print a single flat key")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("show", parents=[sources], help="Print the merged configuration")
    watch = subparsers.add_parser("watch", parents=[sources],
                                  help="Print the merged configuration after every change")
    watch.add_argument("--debounce", type=float, default=0.5, help="Quiet period in seconds")

    return parser


def build_manager(args: argparse.Namespace) -> ConfigManager:
    """Register sources from parsed arguments."""
    manager = ConfigManager()
    for path in args.files:
        manager.with_file(path)
    if args.dotenv:
        manager.with_dotenv(args.dotenv)
    if args.env_prefix:
        manager.with_env_prefix(args.env_prefix)
    return manager


def render_config(manager: ConfigManager, output_format: str, key: Optional[str] = None) -> str:
    """Render the current configuration as text."""
    if key is not None:
        value = manager.get(key)
        return value if isinstance(value, str) else json.dumps(value, default=str)

    if output_format == "flat":
        snapshot = manager.snapshot()
        return "\n".join(f"{k} = {json.dumps(snapshot[k], default=str)}" for k in sorted(snapshot))
    if output_format == "json":
        return json.dumps(manager.as_dict(), indent=2, sort_keys=True, default=str)
    return yaml.safe_dump(manager.as_dict(), default_flow_style=False, sort_keys=True).rstrip("\n")


def run_watch(manager: ConfigManager, args: argparse.Namespace, out: TextIO,
              stop_event: Optional[threading.Event] = None) -> None:
    """Print the configuration after every reload until interrupted."""
    stop_event = stop_event or threading.Event()

    def print_config(current: ConfigManager) -> None:
        print(render_config(current, args.format, args.key), file=out, flush=True)

    manager.on_change(print_config)
    manager.watch(debounce=args.debounce)
    try:
        while not stop_event.wait(0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Watch interrupted by user")
    finally:
        manager.stop_watch()


def main(argv: Optional[Sequence[str]] = None, out: TextIO = sys.stdout) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help(file=out)
        return 1

    try:
        setup_logging(log_level=args.log_level, log_format="minimal")
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        manager = build_manager(args)
        manager.reload()
        print(render_config(manager, args.format, args.key), file=out, flush=True)

        if args.command == "watch":
            run_watch(manager, args, out)
        return 0

    except LayerConfError as e:
        logger.error(f"{e.message}")
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
