"""Resolve command - print the typed reference for a string."""

import json
import sys

import click

from ...addressing import (
    ConfigError,
    RefError,
    new_message_ref_parser,
    new_module_ref_parser,
    new_ref_parser,
    new_source_or_module_ref_parser,
    new_source_ref_parser,
)
from ...context import pass_context

REF_KINDS = ["generic", "message", "source", "module", "source-or-module"]


def _resolve(value, as_kind, default_encoding):
    if as_kind == "message":
        return new_message_ref_parser(default_encoding).get_message_ref(value)
    if as_kind == "source":
        return new_source_ref_parser().get_source_ref(value)
    if as_kind == "module":
        return new_module_ref_parser().get_module_ref(value)
    if as_kind == "source-or-module":
        return new_source_or_module_ref_parser().get_source_or_module_ref(value)
    return new_ref_parser().get_ref(value)


@click.command()
@click.argument("value")
@click.option(
    "--as",
    "as_kind",
    type=click.Choice(REF_KINDS),
    default="generic",
    help="Which kind of reference the caller expects (default: generic)",
)
@pass_context
def resolve(ctx, value, as_kind):
    """Resolve VALUE and print the reference as JSON.

    Syntax: path[#key=value[,key=value...]]

    Examples:
        protoref resolve weather.json.gz
        protoref resolve "https://github.com/acme/apis.git#tag=v1.0.0,subdir=proto"
        protoref resolve buf.build/acme/weather --as module
        protoref --default-encoding json resolve - --as message
    """
    try:
        ref = _resolve(value, as_kind, ctx.default_encoding)
    except ConfigError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)
    except RefError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(ref.model_dump(mode="json"), indent=2))
