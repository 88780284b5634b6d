"""Reference string splitting.

This module implements parsing for the reference syntax:
    path[#key=value[,key=value...]]

Where:
    - path: File, directory, archive, git repository or module coordinate
    - #options: Optional comma-separated options; boolean keys may omit "=value"
"""

from typing import Dict

from .errors import RefSyntaxError
from .types import CompressionType, RawRef

OPTION_DELIMITER = "#"

FORMAT_KEY = "format"
COMPRESSION_KEY = "compression"
BRANCH_KEY = "branch"
TAG_KEY = "tag"
REF_KEY = "ref"
DEPTH_KEY = "depth"
RECURSE_SUBMODULES_KEY = "recurse_submodules"
STRIP_COMPONENTS_KEY = "strip_components"
SUBDIR_KEY = "subdir"
INCLUDE_PACKAGE_FILES_KEY = "include_package_files"
USE_PROTO_NAMES_KEY = "use_proto_names"
USE_ENUM_NUMBERS_KEY = "use_enum_numbers"

BOOLEAN_KEYS = frozenset(
    {
        RECURSE_SUBMODULES_KEY,
        INCLUDE_PACKAGE_FILES_KEY,
        USE_PROTO_NAMES_KEY,
        USE_ENUM_NUMBERS_KEY,
    }
)

KNOWN_KEYS = frozenset(
    {
        FORMAT_KEY,
        COMPRESSION_KEY,
        BRANCH_KEY,
        TAG_KEY,
        REF_KEY,
        DEPTH_KEY,
        STRIP_COMPONENTS_KEY,
        SUBDIR_KEY,
    }
    | BOOLEAN_KEYS
)


def split_raw_ref(value: str) -> RawRef:
    """Split path[#options] into a RawRef.

    Args:
        value: Raw reference string from user

    Returns:
        RawRef with format and compression set only if given explicitly

    Raises:
        RefSyntaxError: If the string or its options are malformed

    Examples:
        >>> split_raw_ref("foo.bin")
        RawRef(path="foo.bin")

        >>> split_raw_ref("-#format=json,use_proto_names")
        RawRef(path="-", format="json", options={"use_proto_names": "true"})

        >>> split_raw_ref("x.tar.gz#compression=none,strip_components=1")
        RawRef(path="x.tar.gz", compression=NONE, options={"strip_components": "1"})
    """
    if not value or not value.strip():
        raise RefSyntaxError("reference cannot be empty")
    value = value.strip()

    parts = value.split(OPTION_DELIMITER)
    if len(parts) > 2:
        raise RefSyntaxError(
            f"{value!r} has multiple {OPTION_DELIMITER}s which is invalid"
        )
    path = parts[0]
    if not path:
        raise RefSyntaxError(f"{value!r} has an empty path")

    options: Dict[str, str] = {}
    if len(parts) == 2:
        if not parts[1]:
            raise RefSyntaxError(
                f"{value!r} has an empty options string after {OPTION_DELIMITER}"
            )
        options = _parse_options(parts[1])

    raw_ref = RawRef(path=path)
    format_name = options.pop(FORMAT_KEY, None)
    if format_name is not None:
        raw_ref.format = format_name
    compression = options.pop(COMPRESSION_KEY, None)
    if compression is not None:
        raw_ref.compression = parse_compression(compression)
    raw_ref.options = options
    return raw_ref


def _parse_options(options_string: str) -> Dict[str, str]:
    """Parse key=value,key=value into a dict, validating keys."""
    result: Dict[str, str] = {}
    for pair in options_string.split(","):
        if not pair:
            raise RefSyntaxError(f"empty option in {options_string!r}")
        if "=" in pair:
            key, value = pair.split("=", 1)
        else:
            key, value = pair, None

        if not key:
            raise RefSyntaxError(f"option {pair!r} has an empty key")
        if key not in KNOWN_KEYS:
            raise RefSyntaxError(f"unknown option key: {key!r}")
        if key in result:
            raise RefSyntaxError(f"duplicate option key: {key!r}")

        if value is None:
            if key not in BOOLEAN_KEYS:
                raise RefSyntaxError(f"option {key!r} requires a value")
            value = "true"
        elif not value:
            raise RefSyntaxError(f"option {key!r} has an empty value")

        if key in BOOLEAN_KEYS:
            parse_bool(key, value)
        result[key] = value
    return result


def parse_compression(value: str) -> CompressionType:
    try:
        return CompressionType(value)
    except ValueError:
        allowed = ", ".join(c.value for c in CompressionType)
        raise RefSyntaxError(
            f"unknown compression: {value!r} (expected one of: {allowed})"
        ) from None


def parse_bool(key: str, value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise RefSyntaxError(f"option {key!r} must be true or false, got {value!r}")
