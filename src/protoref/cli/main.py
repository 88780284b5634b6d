"""protoref CLI main entry point with global options."""

import click

from .. import __version__
from ..context import ProtorefContext, configure_logging


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log inference decisions")
@click.option(
    "--default-encoding",
    help="Encoding for stdin and extensionless messages "
    "(overrides $PROTOREF_DEFAULT_MESSAGE_ENCODING)",
)
@click.version_option(__version__, prog_name="protoref")
@click.pass_context
def cli(ctx, verbose, default_encoding):
    """protoref - resolve reference strings into typed references."""
    ctx.ensure_object(ProtorefContext)

    # Validated lazily by the commands that build message parsers
    ctx.obj.default_encoding = default_encoding
    configure_logging(verbose)


# Register commands at module level so tests can import cli with commands attached
from .commands.formats import formats
from .commands.resolve import resolve

cli.add_command(resolve)
cli.add_command(formats)


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
