"""Advisories for legacy format names."""

import logging
from types import MappingProxyType
from typing import Mapping, Optional

from .formats import (
    FORMAT_BINGZ,
    FORMAT_BINPB,
    FORMAT_JSON,
    FORMAT_JSONGZ,
    FORMAT_TAR,
    FORMAT_TARGZ,
)

logger = logging.getLogger(__name__)

# Legacy combined format → format to use with compression=gzip.
DEPRECATED_COMPRESSION_FORMATS: Mapping[str, str] = MappingProxyType(
    {
        FORMAT_BINGZ: FORMAT_BINPB,
        FORMAT_JSONGZ: FORMAT_JSON,
        FORMAT_TARGZ: FORMAT_TAR,
    }
)


def deprecation_message(format_name: str) -> Optional[str]:
    """Return the advisory for a deprecated format, or None."""
    replacement = DEPRECATED_COMPRESSION_FORMATS.get(format_name)
    if replacement is None:
        return None
    return (
        f'Format "{format_name}" is deprecated. '
        f'Use "format={replacement},compression=gzip" instead. '
        "This will continue to work forever, but updating is recommended."
    )


def check_deprecated(format_name: str) -> Optional[str]:
    """Log one warning if format_name is deprecated. Returns the message."""
    message = deprecation_message(format_name)
    if message is not None:
        logger.warning(message)
    return message
