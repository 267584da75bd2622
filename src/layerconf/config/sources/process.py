"""
Process-boundary sources: environment variables and command-line flags.
"""

import argparse
import os
from typing import Dict, Any, List, Mapping, Optional, Sequence

from .base import Source
from ...core.exceptions import ConfigurationError


class EnvSource(Source):
    """
    Environment variables filtered by prefix.

    ``APP_SERVER_HOST=x`` with prefix ``APP`` becomes ``server.host = "x"``.
    """

    def __init__(self, prefix: str, environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = environ

    @property
    def name(self) -> str:
        return f"env:{self.prefix}"

    def load(self) -> Dict[str, Any]:
        environ = os.environ if self._environ is None else self._environ
        marker = f"{self.prefix}_"
        out = {}

        for key, value in environ.items():
            if not key.startswith(marker) or len(key) == len(marker):
                continue
            config_key = key[len(marker):].lower().replace('_', '.')
            out[config_key] = value

        return out


def _destinations(parser: argparse.ArgumentParser) -> List[str]:
    dests = [action.dest for action in parser._actions if action.dest is not argparse.SUPPRESS]
    return dests + [dest for dest in parser._defaults if dest not in dests]


def register_flags(parser: argparse.ArgumentParser, *keys: str,
                   help_template: str = "config value for {key}") -> argparse.ArgumentParser:
    """
    Define one string option per configuration key.

    Options default to ``argparse.SUPPRESS`` so that unset flags never
    reach the namespace.
    """
    for key in keys:
        parser.add_argument(f"--{key}", dest=key, default=argparse.SUPPRESS,
                            help=help_template.format(key=key))
    return parser


class FlagSource(Source):
    """
    Command-line options explicitly set by the user.

    Either a parsed namespace or a parser (plus optional argv) may be
    given; a parser is re-run on every load and its defaults are never
    applied, so only options present in argv are returned. A namespace is
    taken as-is.
    """

    def __init__(self, parser: Optional[argparse.ArgumentParser] = None,
                 argv: Optional[Sequence[str]] = None,
                 namespace: Optional[argparse.Namespace] = None):
        if parser is None and namespace is None:
            raise ConfigurationError("FlagSource needs a parser or a namespace")
        self.parser = parser
        self.argv = list(argv) if argv is not None else None
        self.namespace = namespace

    @property
    def name(self) -> str:
        return "flags"

    def load(self) -> Dict[str, Any]:
        namespace = self.namespace
        if namespace is None:
            # pre-set dests keep argparse from filling in defaults; unset stays None
            unset = dict.fromkeys(_destinations(self.parser))
            namespace, _ = self.parser.parse_known_args(self.argv, argparse.Namespace(**unset))

        return {
            key: value if isinstance(value, (list, bool, int, float)) else str(value)
            for key, value in vars(namespace).items()
            if value is not argparse.SUPPRESS and value is not None
        }
