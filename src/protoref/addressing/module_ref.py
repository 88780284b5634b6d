"""Module coordinate parsing.

Syntax:
    remote/owner/repository[:reference]

Examples:
    buf.build/acme/weather
    buf.build/acme/weather:v1.2.0
"""

import re

from .errors import RefSyntaxError
from .types import ModuleReference

_COMPONENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_REMOTE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9.-]*(:[0-9]+)?$")


def parse_module_reference(value: str) -> ModuleReference:
    """Parse a module coordinate.

    Args:
        value: Raw coordinate string

    Returns:
        Parsed ModuleReference

    Raises:
        RefSyntaxError: If value is not a module coordinate
    """
    if not value:
        raise RefSyntaxError("module reference cannot be empty")

    parts = value.split("/")
    if len(parts) != 3:
        raise RefSyntaxError(
            f"module reference must be remote/owner/repository[:reference]: {value!r}"
        )
    remote, owner, repository = parts

    reference = None
    if ":" in repository:
        repository, reference = repository.split(":", 1)
        if not reference:
            raise RefSyntaxError(f"module reference has empty reference: {value!r}")
        if ":" in reference or "/" in reference:
            raise RefSyntaxError(f"invalid module reference: {value!r}")

    if not _REMOTE.match(remote):
        raise RefSyntaxError(f"invalid module remote {remote!r} in {value!r}")
    for label, component in (("owner", owner), ("repository", repository)):
        if not _COMPONENT.match(component):
            raise RefSyntaxError(f"invalid module {label} {component!r} in {value!r}")

    return ModuleReference(
        remote=remote,
        owner=owner,
        repository=repository,
        reference=reference,
    )


def is_module_reference(value: str) -> bool:
    try:
        parse_module_reference(value)
    except RefSyntaxError:
        return False
    return True
