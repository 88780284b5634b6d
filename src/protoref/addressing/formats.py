"""Format registry.

The registry is a declarative table assembled once at import time. Nothing
mutates it afterwards, so it is shared freely between resolutions.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from .errors import RefPolicyError, RefSyntaxError
from .parser import (
    BRANCH_KEY,
    DEPTH_KEY,
    INCLUDE_PACKAGE_FILES_KEY,
    RECURSE_SUBMODULES_KEY,
    REF_KEY,
    STRIP_COMPONENTS_KEY,
    SUBDIR_KEY,
    TAG_KEY,
    USE_ENUM_NUMBERS_KEY,
    USE_PROTO_NAMES_KEY,
)
from .types import ArchiveType, CompressionType, FormatKind, RawRef

FORMAT_BIN = "bin"
FORMAT_BINPB = "binpb"
FORMAT_JSON = "json"
FORMAT_TXTPB = "txtpb"
FORMAT_YAML = "yaml"
FORMAT_BINGZ = "bingz"
FORMAT_JSONGZ = "jsongz"
FORMAT_TAR = "tar"
FORMAT_TARGZ = "targz"
FORMAT_ZIP = "zip"
FORMAT_GIT = "git"
FORMAT_DIR = "dir"
FORMAT_MOD = "mod"
FORMAT_PROTOFILE = "protofile"

_ALL_COMPRESSIONS = frozenset(CompressionType)
_GZIP_ONLY = frozenset({CompressionType.NONE, CompressionType.GZIP})
_NO_COMPRESSION = frozenset({CompressionType.NONE})
_MESSAGE_CUSTOM_KEYS = frozenset({USE_PROTO_NAMES_KEY, USE_ENUM_NUMBERS_KEY})
_ARCHIVE_KEYS = frozenset({SUBDIR_KEY, STRIP_COMPONENTS_KEY})
_GIT_KEYS = frozenset(
    {BRANCH_KEY, TAG_KEY, REF_KEY, DEPTH_KEY, RECURSE_SUBMODULES_KEY, SUBDIR_KEY}
)


@dataclass(frozen=True)
class FormatDescriptor:
    """What a format is and which options it accepts."""

    name: str
    kind: FormatKind
    allowed_compressions: FrozenSet[CompressionType] = _NO_COMPRESSION
    option_keys: FrozenSet[str] = frozenset()
    custom_option_keys: FrozenSet[str] = frozenset()
    default_compression: Optional[CompressionType] = None
    archive_type: Optional[ArchiveType] = None

    def accepts_option(self, key: str) -> bool:
        return key in self.option_keys or key in self.custom_option_keys


def _single(
    name: str,
    custom_option_keys: FrozenSet[str] = frozenset(),
    default_compression: Optional[CompressionType] = None,
) -> FormatDescriptor:
    return FormatDescriptor(
        name=name,
        kind=FormatKind.SINGLE,
        allowed_compressions=_GZIP_ONLY if default_compression else _ALL_COMPRESSIONS,
        custom_option_keys=custom_option_keys,
        default_compression=default_compression,
    )


def _archive(
    name: str,
    archive_type: ArchiveType,
    allowed_compressions: FrozenSet[CompressionType],
    default_compression: Optional[CompressionType] = None,
) -> FormatDescriptor:
    return FormatDescriptor(
        name=name,
        kind=FormatKind.ARCHIVE,
        allowed_compressions=allowed_compressions,
        option_keys=_ARCHIVE_KEYS,
        default_compression=default_compression,
        archive_type=archive_type,
    )


FORMAT_DESCRIPTORS: Tuple[FormatDescriptor, ...] = (
    _single(FORMAT_BIN),
    _single(FORMAT_BINPB),
    _single(FORMAT_JSON, _MESSAGE_CUSTOM_KEYS),
    _single(FORMAT_TXTPB),
    _single(FORMAT_YAML, _MESSAGE_CUSTOM_KEYS),
    _single(FORMAT_BINGZ, default_compression=CompressionType.GZIP),
    _single(FORMAT_JSONGZ, _MESSAGE_CUSTOM_KEYS, CompressionType.GZIP),
    _archive(FORMAT_TAR, ArchiveType.TAR, _ALL_COMPRESSIONS),
    _archive(FORMAT_TARGZ, ArchiveType.TAR, _GZIP_ONLY, CompressionType.GZIP),
    _archive(FORMAT_ZIP, ArchiveType.ZIP, _NO_COMPRESSION),
    FormatDescriptor(name=FORMAT_GIT, kind=FormatKind.GIT, option_keys=_GIT_KEYS),
    FormatDescriptor(name=FORMAT_DIR, kind=FormatKind.DIR),
    FormatDescriptor(name=FORMAT_MOD, kind=FormatKind.MODULE),
    FormatDescriptor(
        name=FORMAT_PROTOFILE,
        kind=FormatKind.PROTO_FILE,
        option_keys=frozenset({INCLUDE_PACKAGE_FILES_KEY}),
    ),
)

REGISTRY: Mapping[str, FormatDescriptor] = MappingProxyType(
    {d.name: d for d in FORMAT_DESCRIPTORS}
)

ALL_FORMATS: Tuple[str, ...] = tuple(REGISTRY)
MESSAGE_FORMATS: Tuple[str, ...] = tuple(
    d.name for d in FORMAT_DESCRIPTORS if d.kind is FormatKind.SINGLE
)
SOURCE_FORMATS: Tuple[str, ...] = (
    FORMAT_TAR,
    FORMAT_TARGZ,
    FORMAT_ZIP,
    FORMAT_GIT,
    FORMAT_DIR,
)
MODULE_FORMATS: Tuple[str, ...] = (FORMAT_MOD,)
SOURCE_OR_MODULE_FORMATS: Tuple[str, ...] = SOURCE_FORMATS + (
    FORMAT_MOD,
    FORMAT_PROTOFILE,
)


def get_descriptor(format_name: str) -> FormatDescriptor:
    """Look up a format by name.

    Raises:
        RefSyntaxError: If the format is unknown
    """
    descriptor = REGISTRY.get(format_name)
    if descriptor is None:
        raise RefSyntaxError(
            f"unknown format: {format_name!r} (known formats: {', '.join(ALL_FORMATS)})"
        )
    return descriptor


def validate_raw_ref(raw_ref: RawRef, allowed_formats: Tuple[str, ...]) -> FormatDescriptor:
    """Check a RawRef with a resolved format against the allowed set.

    Fills in the compression from the descriptor default when unset.

    Returns:
        The descriptor for the resolved format

    Raises:
        RefSyntaxError: If the format is unknown
        RefPolicyError: If format, compression or an option is not allowed
    """
    descriptor = get_descriptor(raw_ref.format)

    if descriptor.name not in allowed_formats:
        raise RefPolicyError(
            f"format {descriptor.name!r} ({descriptor.kind.value}) is not allowed here "
            f"(allowed formats: {', '.join(allowed_formats)})",
            format=descriptor.name,
            kind=descriptor.kind.value,
            allowed=allowed_formats,
        )

    if raw_ref.compression is None:
        raw_ref.compression = descriptor.default_compression or CompressionType.NONE
    if raw_ref.compression not in descriptor.allowed_compressions:
        raise RefPolicyError(
            f"compression {raw_ref.compression.value!r} is not allowed "
            f"for format {descriptor.name!r}",
            format=descriptor.name,
            kind=descriptor.kind.value,
            allowed=allowed_formats,
        )

    for key in raw_ref.options:
        if not descriptor.accepts_option(key):
            raise RefPolicyError(
                f"option {key!r} is not allowed for format {descriptor.name!r}",
                format=descriptor.name,
                kind=descriptor.kind.value,
                allowed=allowed_formats,
            )

    return descriptor
