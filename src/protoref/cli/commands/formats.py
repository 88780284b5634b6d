"""Formats command - list known formats."""

import json

import click

from ...addressing.deprecation import DEPRECATED_COMPRESSION_FORMATS
from ...addressing.formats import FORMAT_DESCRIPTORS


def _describe(descriptor):
    return {
        "name": descriptor.name,
        "kind": descriptor.kind.value,
        "compressions": sorted(c.value for c in descriptor.allowed_compressions),
        "options": sorted(descriptor.option_keys | descriptor.custom_option_keys),
        "deprecated": descriptor.name in DEPRECATED_COMPRESSION_FORMATS,
    }


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def formats(as_json):
    """List known formats with their compressions and options."""
    rows = [_describe(d) for d in FORMAT_DESCRIPTORS]
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    for row in rows:
        line = f"{row['name']:<10} {row['kind']:<11} {','.join(row['compressions'])}"
        if row["options"]:
            line += f"  [{','.join(row['options'])}]"
        if row["deprecated"]:
            line += "  (deprecated)"
        click.echo(line)
