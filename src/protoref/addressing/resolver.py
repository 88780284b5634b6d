"""Reference resolution - turn raw strings into typed references."""

import logging
import os
from typing import Optional, Tuple, Union

from .builder import (
    MESSAGE_ENCODING_TO_FORMAT,
    build_parsed_ref,
    to_message_ref_checked,
    to_module_ref,
    to_ref,
    to_source_or_module_ref,
    to_source_ref,
)
from .deprecation import check_deprecated
from .errors import ConfigError
from .formats import (
    ALL_FORMATS,
    FORMAT_BINPB,
    MESSAGE_FORMATS,
    MODULE_FORMATS,
    SOURCE_FORMATS,
    SOURCE_OR_MODULE_FORMATS,
    validate_raw_ref,
)
from .inference import Fallback, InferenceContext, infer_format
from .parser import split_raw_ref
from .types import (
    MessageEncoding,
    MessageRef,
    ModuleRef,
    ParsedRef,
    RawRef,
    Ref,
    SourceOrModuleRef,
    SourceRef,
)

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_ENCODING_ENV = "PROTOREF_DEFAULT_MESSAGE_ENCODING"


def resolve_message_encoding(
    value: Union[MessageEncoding, str, None] = None,
) -> MessageEncoding:
    """Resolve the default message encoding.

    Resolution order:
    1. Explicit value (argument or --default-encoding flag)
    2. $PROTOREF_DEFAULT_MESSAGE_ENCODING
    3. binpb

    Raises:
        ConfigError: If the value is not a known encoding
    """
    if value is None or value == "":
        value = os.environ.get(DEFAULT_MESSAGE_ENCODING_ENV) or MessageEncoding.BINPB
    if isinstance(value, MessageEncoding):
        return value
    try:
        return MessageEncoding(value)
    except ValueError:
        allowed = ", ".join(e.value for e in MessageEncoding)
        raise ConfigError(
            f"unknown message encoding: {value!r} (expected one of: {allowed})"
        ) from None


class RefParser:
    """Resolve reference strings for one family of use-cases.

    A parser holds its inference rules and the formats it knows about.
    Each entry point narrows that further to the formats it can return.

    Example usage:
        parser = new_ref_parser()
        ref = parser.get_ref("weather.json.gz")
        ref.encoding                  # MessageEncoding.JSON
        ref.parsed.compression        # CompressionType.GZIP

        parser.get_source_ref("https://github.com/acme/apis.git#branch=main")
    """

    def __init__(self, context: InferenceContext, known_formats: Tuple[str, ...]):
        """Initialize parser.

        Args:
            context: Inference rules used when no format is given
            known_formats: Formats this parser accepts at all
        """
        self.context = context
        self.known_formats = known_formats

    def get_ref(self, value: str) -> Ref:
        """Resolve any kind of reference."""
        return to_ref(self.get_parsed_ref(value, ALL_FORMATS))

    def get_source_or_module_ref(self, value: str) -> SourceOrModuleRef:
        """Resolve a source, module or proto file reference."""
        return to_source_or_module_ref(
            self.get_parsed_ref(value, SOURCE_OR_MODULE_FORMATS)
        )

    def get_message_ref(self, value: str) -> MessageRef:
        """Resolve a single encoded message reference."""
        return to_message_ref_checked(self.get_parsed_ref(value, MESSAGE_FORMATS))

    def get_source_ref(self, value: str) -> SourceRef:
        """Resolve an archive, directory or git reference."""
        return to_source_ref(self.get_parsed_ref(value, SOURCE_FORMATS))

    def get_module_ref(self, value: str) -> ModuleRef:
        """Resolve a module reference."""
        return to_module_ref(self.get_parsed_ref(value, MODULE_FORMATS))

    def get_raw_ref(self, value: str, allowed_formats: Tuple[str, ...]) -> RawRef:
        """Split, infer and validate without building a ParsedRef.

        Returns:
            RawRef with format and compression always set
        """
        raw_ref, _ = self._process(value, allowed_formats)
        return raw_ref

    def get_parsed_ref(self, value: str, allowed_formats: Tuple[str, ...]) -> ParsedRef:
        """Resolve value to a ParsedRef whose format is in allowed_formats.

        Raises:
            RefError: If value is malformed, cannot be classified, or is not allowed
        """
        raw_ref, descriptor = self._process(value, allowed_formats)
        parsed = build_parsed_ref(raw_ref, descriptor)
        check_deprecated(parsed.format)
        return parsed

    def _process(self, value: str, allowed_formats: Tuple[str, ...]):
        allowed = tuple(f for f in allowed_formats if f in self.known_formats)
        raw_ref = split_raw_ref(value)
        if raw_ref.format is None:
            infer_format(raw_ref, self.context)
        descriptor = validate_raw_ref(raw_ref, allowed)
        logger.debug("resolved %r to %s", value, raw_ref)
        return raw_ref, descriptor


def new_ref_parser() -> RefParser:
    """Parser for every kind of reference."""
    return RefParser(
        InferenceContext(
            allowed_formats=ALL_FORMATS,
            stream_default=FORMAT_BINPB,
            accept_proto_file=True,
            fallback=Fallback.MODULE_OR_DIR,
        ),
        ALL_FORMATS,
    )


def new_message_ref_parser(
    default_message_encoding: Union[MessageEncoding, str, None] = None,
) -> RefParser:
    """Parser for single encoded messages.

    Args:
        default_message_encoding: Encoding for stream tokens and paths without
            a recognized extension (see resolve_message_encoding)
    """
    encoding = resolve_message_encoding(default_message_encoding)
    return RefParser(
        InferenceContext(
            allowed_formats=MESSAGE_FORMATS,
            stream_default=MESSAGE_ENCODING_TO_FORMAT[encoding],
            fallback=Fallback.STREAM_DEFAULT,
        ),
        MESSAGE_FORMATS,
    )


def new_source_ref_parser() -> RefParser:
    """Parser for archives, directories and git repositories."""
    return RefParser(
        InferenceContext(allowed_formats=SOURCE_FORMATS, fallback=Fallback.DIR),
        SOURCE_FORMATS,
    )


def new_module_ref_parser() -> RefParser:
    """Parser for module coordinates."""
    return RefParser(
        InferenceContext(allowed_formats=MODULE_FORMATS, always_module=True),
        MODULE_FORMATS,
    )


def new_source_or_module_ref_parser() -> RefParser:
    """Parser for sources, modules and single proto files."""
    return RefParser(
        InferenceContext(
            allowed_formats=SOURCE_OR_MODULE_FORMATS,
            accept_proto_file=True,
            fallback=Fallback.MODULE_OR_DIR,
        ),
        SOURCE_OR_MODULE_FORMATS,
    )
