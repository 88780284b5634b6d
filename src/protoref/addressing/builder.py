"""Build typed references from validated raw references."""

import posixpath
from typing import Dict, Optional, Tuple

from .errors import RefInternalError, RefPolicyError, RefSyntaxError
from .formats import (
    FORMAT_BIN,
    FORMAT_BINGZ,
    FORMAT_BINPB,
    FORMAT_JSON,
    FORMAT_JSONGZ,
    FORMAT_TXTPB,
    FORMAT_YAML,
    MESSAGE_FORMATS,
    MODULE_FORMATS,
    SOURCE_FORMATS,
    SOURCE_OR_MODULE_FORMATS,
    FormatDescriptor,
)
from .inference import is_stream_token
from .module_ref import parse_module_reference
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
    parse_bool,
)
from .types import (
    FormatKind,
    GitName,
    GitRefType,
    MessageEncoding,
    MessageRef,
    ModuleRef,
    ParsedArchiveRef,
    ParsedDirRef,
    ParsedGitRef,
    ParsedModuleRef,
    ParsedProtoFileRef,
    ParsedRef,
    ParsedSingleRef,
    ProtoFileRef,
    RawRef,
    Ref,
    SourceOrModuleRef,
    SourceRef,
)

DEFAULT_GIT_DEPTH = 1
DEFAULT_GIT_DEPTH_WITH_REF = 50

FORMAT_TO_MESSAGE_ENCODING: Dict[str, MessageEncoding] = {
    FORMAT_BIN: MessageEncoding.BINPB,
    FORMAT_BINPB: MessageEncoding.BINPB,
    FORMAT_BINGZ: MessageEncoding.BINPB,
    FORMAT_JSON: MessageEncoding.JSON,
    FORMAT_JSONGZ: MessageEncoding.JSON,
    FORMAT_TXTPB: MessageEncoding.TXTPB,
    FORMAT_YAML: MessageEncoding.YAML,
}

MESSAGE_ENCODING_TO_FORMAT: Dict[MessageEncoding, str] = {
    MessageEncoding.BINPB: FORMAT_BINPB,
    MessageEncoding.JSON: FORMAT_JSON,
    MessageEncoding.TXTPB: FORMAT_TXTPB,
    MessageEncoding.YAML: FORMAT_YAML,
}


def build_parsed_ref(raw_ref: RawRef, descriptor: FormatDescriptor) -> ParsedRef:
    """Construct the ParsedRef variant for a validated RawRef.

    Args:
        raw_ref: RawRef whose format, compression and option keys have
            already been validated against descriptor
        descriptor: Descriptor of raw_ref.format

    Raises:
        RefSyntaxError: If an option value or the path is invalid
        RefInternalError: If descriptor.kind has no builder
    """
    kind = descriptor.kind
    options = raw_ref.options

    if kind is FormatKind.SINGLE:
        return ParsedSingleRef(
            format=descriptor.name,
            path=raw_ref.path,
            compression=raw_ref.compression,
            custom_options={
                k: v for k, v in options.items() if k in descriptor.custom_option_keys
            },
        )
    elif kind is FormatKind.ARCHIVE:
        if descriptor.archive_type is None:
            raise RefInternalError(f"archive format {descriptor.name!r} has no archive type")
        return ParsedArchiveRef(
            format=descriptor.name,
            path=raw_ref.path,
            archive_type=descriptor.archive_type,
            compression=raw_ref.compression,
            subdir=_subdir(options.get(SUBDIR_KEY)),
            strip_components=_non_negative_int(
                STRIP_COMPONENTS_KEY, options.get(STRIP_COMPONENTS_KEY, "0")
            ),
        )
    elif kind is FormatKind.DIR:
        _reject_stream_token(raw_ref.path, descriptor)
        return ParsedDirRef(format=descriptor.name, path=posixpath.normpath(raw_ref.path))
    elif kind is FormatKind.GIT:
        _reject_stream_token(raw_ref.path, descriptor)
        return _build_git(raw_ref, descriptor)
    elif kind is FormatKind.MODULE:
        return ParsedModuleRef(
            format=descriptor.name, module=parse_module_reference(raw_ref.path)
        )
    elif kind is FormatKind.PROTO_FILE:
        _reject_stream_token(raw_ref.path, descriptor)
        return ParsedProtoFileRef(
            format=descriptor.name,
            path=raw_ref.path,
            include_package_files=parse_bool(
                INCLUDE_PACKAGE_FILES_KEY,
                options.get(INCLUDE_PACKAGE_FILES_KEY, "false"),
            ),
        )
    raise RefInternalError(f"no builder for format kind {kind!r}")


def _build_git(raw_ref: RawRef, descriptor: FormatDescriptor) -> ParsedGitRef:
    options = raw_ref.options
    branch = options.get(BRANCH_KEY)
    tag = options.get(TAG_KEY)
    ref = options.get(REF_KEY)

    if branch and tag:
        raise RefSyntaxError(f"cannot specify both {BRANCH_KEY} and {TAG_KEY}")
    if tag and ref:
        raise RefSyntaxError(f"cannot specify both {TAG_KEY} and {REF_KEY}")

    git_ref: Optional[GitName] = None
    if ref:
        git_ref = GitName(type=GitRefType.REF, name=ref, branch=branch)
    elif branch:
        git_ref = GitName(type=GitRefType.BRANCH, name=branch)
    elif tag:
        git_ref = GitName(type=GitRefType.TAG, name=tag)

    default_depth = DEFAULT_GIT_DEPTH_WITH_REF if ref else DEFAULT_GIT_DEPTH
    depth = default_depth
    if DEPTH_KEY in options:
        depth = _non_negative_int(DEPTH_KEY, options[DEPTH_KEY])
        if depth == 0:
            raise RefSyntaxError(f"{DEPTH_KEY} must be > 0")

    return ParsedGitRef(
        format=descriptor.name,
        path=raw_ref.path,
        git_ref=git_ref,
        depth=depth,
        recurse_submodules=parse_bool(
            RECURSE_SUBMODULES_KEY, options.get(RECURSE_SUBMODULES_KEY, "false")
        ),
        subdir=_subdir(options.get(SUBDIR_KEY)),
    )


def _reject_stream_token(path: str, descriptor: FormatDescriptor) -> None:
    if is_stream_token(path):
        raise RefSyntaxError(
            f"{path!r} cannot be used with format {descriptor.name!r}"
        )


def _non_negative_int(key: str, value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise RefSyntaxError(f"{key} must be an integer, got {value!r}") from None
    if number < 0:
        raise RefSyntaxError(f"{key} must be >= 0, got {number}")
    return number


def _subdir(value: Optional[str]) -> str:
    """Normalize a subdir option to a clean relative path."""
    if not value:
        return ""
    normalized = posixpath.normpath(value.replace("\\", "/"))
    if normalized == ".":
        return ""
    if posixpath.isabs(normalized):
        raise RefSyntaxError(f"{SUBDIR_KEY} must be relative: {value!r}")
    if normalized == ".." or normalized.startswith("../"):
        raise RefSyntaxError(f"{SUBDIR_KEY} cannot leave the root: {value!r}")
    return normalized


def parse_message_encoding(format_name: str) -> MessageEncoding:
    encoding = FORMAT_TO_MESSAGE_ENCODING.get(format_name)
    if encoding is None:
        raise RefInternalError(f"invalid format for message: {format_name!r}")
    return encoding


def to_message_ref(parsed: ParsedSingleRef) -> MessageRef:
    custom = parsed.custom_options
    return MessageRef(
        parsed=parsed,
        encoding=parse_message_encoding(parsed.format),
        use_proto_names=parse_bool(
            USE_PROTO_NAMES_KEY, custom.get(USE_PROTO_NAMES_KEY, "false")
        ),
        use_enum_numbers=parse_bool(
            USE_ENUM_NUMBERS_KEY, custom.get(USE_ENUM_NUMBERS_KEY, "false")
        ),
    )


def to_ref(parsed: ParsedRef) -> Ref:
    """Map any ParsedRef to its output reference."""
    if isinstance(parsed, ParsedSingleRef):
        return to_message_ref(parsed)
    return to_source_or_module_ref(parsed)


def to_source_or_module_ref(
    parsed: ParsedRef, allowed: Tuple[str, ...] = SOURCE_OR_MODULE_FORMATS
) -> SourceOrModuleRef:
    if isinstance(parsed, (ParsedArchiveRef, ParsedDirRef, ParsedGitRef)):
        return SourceRef(parsed=parsed)
    if isinstance(parsed, ParsedModuleRef):
        return ModuleRef(parsed=parsed)
    if isinstance(parsed, ParsedProtoFileRef):
        return ProtoFileRef(parsed=parsed)
    if isinstance(parsed, ParsedSingleRef):
        raise _kind_error(parsed, "source or module", allowed)
    raise RefInternalError(f"unknown ParsedRef type: {type(parsed).__name__}")


def to_source_ref(
    parsed: ParsedRef, allowed: Tuple[str, ...] = SOURCE_FORMATS
) -> SourceRef:
    if isinstance(parsed, (ParsedArchiveRef, ParsedDirRef, ParsedGitRef)):
        return SourceRef(parsed=parsed)
    raise _kind_error(parsed, "source", allowed)


def to_module_ref(
    parsed: ParsedRef, allowed: Tuple[str, ...] = MODULE_FORMATS
) -> ModuleRef:
    if isinstance(parsed, ParsedModuleRef):
        return ModuleRef(parsed=parsed)
    raise _kind_error(parsed, "module", allowed)


def to_message_ref_checked(
    parsed: ParsedRef, allowed: Tuple[str, ...] = MESSAGE_FORMATS
) -> MessageRef:
    if isinstance(parsed, ParsedSingleRef):
        return to_message_ref(parsed)
    raise _kind_error(parsed, "message", allowed)


def _kind_error(
    parsed: ParsedRef, expected: str, allowed: Tuple[str, ...]
) -> RefPolicyError:
    kind = getattr(parsed, "kind", None)
    kind_name = kind.value if isinstance(kind, FormatKind) else str(kind)
    return RefPolicyError(
        f"{kind_name} reference (format {parsed.format!r}) "
        f"cannot be used as a {expected} reference "
        f"(allowed formats: {', '.join(allowed)})",
        format=parsed.format,
        kind=kind_name,
        allowed=allowed,
    )
