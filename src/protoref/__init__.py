"""protoref: resolve reference strings into typed schema/message references."""

from .addressing import (
    RefError,
    new_message_ref_parser,
    new_module_ref_parser,
    new_ref_parser,
    new_source_or_module_ref_parser,
    new_source_ref_parser,
)

__all__ = [
    "__version__",
    "RefError",
    "new_message_ref_parser",
    "new_module_ref_parser",
    "new_ref_parser",
    "new_source_or_module_ref_parser",
    "new_source_ref_parser",
]

__version__ = "0.1.0"
