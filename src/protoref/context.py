"""protoref context for passing state between commands."""

import logging
import sys
from typing import Optional

import click


class ProtorefContext:
    def __init__(self):
        self.default_encoding: Optional[str] = None


pass_context = click.make_pass_decorator(ProtorefContext, ensure=True)


def configure_logging(verbose: bool) -> None:
    """Send protoref log records (advisories included) to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
