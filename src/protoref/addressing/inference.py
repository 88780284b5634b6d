"""Format and compression inference from paths.

Inference runs only when no explicit format was given. The outermost
extension picks the format, except that an outer .gz or .zst picks the
compression and the extension underneath picks the format.
"""

import enum
import logging
import os
import stat
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import RefInferenceError
from .formats import (
    FORMAT_BINPB,
    FORMAT_DIR,
    FORMAT_GIT,
    FORMAT_JSON,
    FORMAT_MOD,
    FORMAT_PROTOFILE,
    FORMAT_TAR,
    FORMAT_TXTPB,
    FORMAT_YAML,
    FORMAT_ZIP,
)
from .module_ref import is_module_reference
from .types import CompressionType, RawRef

logger = logging.getLogger(__name__)

STREAM_TOKENS = frozenset({"-", os.devnull, "/dev/stdin", "/dev/stdout"})

_Inferred = Tuple[str, Optional[CompressionType]]

EXTENSION_FORMATS: Dict[str, _Inferred] = {
    ".bin": (FORMAT_BINPB, None),
    ".binpb": (FORMAT_BINPB, None),
    ".json": (FORMAT_JSON, None),
    ".txtpb": (FORMAT_TXTPB, None),
    ".yaml": (FORMAT_YAML, None),
    ".tar": (FORMAT_TAR, None),
    ".zip": (FORMAT_ZIP, None),
    ".tgz": (FORMAT_TAR, CompressionType.GZIP),
    ".git": (FORMAT_GIT, None),
}

COMPRESSION_EXTENSIONS: Dict[str, CompressionType] = {
    ".gz": CompressionType.GZIP,
    ".zst": CompressionType.ZSTD,
}

PROTO_FILE_EXTENSION = ".proto"


class Fallback(enum.Enum):
    """What to do with a path whose extension is not recognized."""

    MODULE_OR_DIR = "module_or_dir"
    DIR = "dir"
    STREAM_DEFAULT = "stream_default"


@dataclass(frozen=True)
class InferenceContext:
    """Per-entry-point inference rules.

    Attributes:
        allowed_formats: Formats the extension table may produce
        stream_default: Format for stream tokens, or None to treat them as paths
        accept_proto_file: Whether .proto maps to a single proto file
        fallback: Rule for unrecognized extensions
        always_module: Skip inspection and always infer a module
    """

    allowed_formats: Tuple[str, ...]
    stream_default: Optional[str] = None
    accept_proto_file: bool = False
    fallback: Fallback = Fallback.DIR
    always_module: bool = False


def is_stream_token(path: str) -> bool:
    return path in STREAM_TOKENS


def infer_format(raw_ref: RawRef, context: InferenceContext) -> None:
    """Fill in raw_ref.format (and compression) from its path.

    An explicit compression on the RawRef wins over an inferred one.

    Raises:
        RefInferenceError: If the path cannot be classified
    """
    format_name, compression = _infer(raw_ref.path, context)
    logger.debug(
        "inferred format %s (compression %s) for %r",
        format_name,
        compression.value if compression else "unset",
        raw_ref.path,
    )
    raw_ref.format = format_name
    if raw_ref.compression is None:
        raw_ref.compression = compression


def _infer(path: str, context: InferenceContext) -> _Inferred:
    if context.always_module:
        return FORMAT_MOD, None

    if context.stream_default is not None and is_stream_token(path):
        return context.stream_default, None

    ext = _ext(path)
    compression = COMPRESSION_EXTENSIONS.get(ext)
    if compression is not None:
        inner = _ext(path[: -len(ext)])
        inferred = _lookup(inner, context, allow_bundled_compression=False)
        if inferred is None:
            raise RefInferenceError(
                f"path {path!r} had {ext} extension with unknown format"
            )
        return inferred[0], compression

    inferred = _lookup(ext, context, allow_bundled_compression=True)
    if inferred is not None:
        return inferred

    if ext == PROTO_FILE_EXTENSION and context.accept_proto_file:
        _check_not_dir(path)
        return FORMAT_PROTOFILE, None

    if context.fallback is Fallback.MODULE_OR_DIR:
        return assume_module_or_dir(path), None
    if context.fallback is Fallback.STREAM_DEFAULT and context.stream_default:
        return context.stream_default, None
    return FORMAT_DIR, None


def _lookup(
    ext: str, context: InferenceContext, allow_bundled_compression: bool
) -> Optional[_Inferred]:
    inferred = EXTENSION_FORMATS.get(ext)
    if inferred is None:
        return None
    format_name, compression = inferred
    if format_name not in context.allowed_formats:
        return None
    if compression is not None and not allow_bundled_compression:
        return None
    return inferred


def _ext(path: str) -> str:
    """Return the final extension including the dot, or ''.

    A leading dot counts: the extension of ".tar" is ".tar".
    """
    base = os.path.basename(path)
    index = base.rfind(".")
    if index < 0:
        return ""
    return base[index:]


def _check_not_dir(path: str) -> None:
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return
    except (OSError, ValueError) as e:
        raise RefInferenceError(
            f"path provided is not a valid proto file: {path!r}, {e}"
        ) from e
    if stat.S_ISDIR(st.st_mode):
        raise RefInferenceError(
            f"path provided is not a valid proto file: "
            f"a directory named {path} already exists"
        )


def assume_module_or_dir(path: str) -> str:
    """Decide between a module coordinate and a directory.

    A path that cannot be a module coordinate is a directory. One that can is
    a directory only if a directory exists there right now, otherwise a
    module. The answer depends on the filesystem at call time; pass
    #format=dir or #format=mod for a deterministic result.

    Raises:
        RefInferenceError: If path is empty
    """
    if not path:
        raise RefInferenceError("cannot classify an empty path")
    if not is_module_reference(path):
        return FORMAT_DIR
    if os.path.isdir(path):
        logger.debug("%r parses as a module but is a directory on disk", path)
        return FORMAT_DIR
    return FORMAT_MOD
