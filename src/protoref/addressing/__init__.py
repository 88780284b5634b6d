"""Reference addressing for protoref.

This module resolves a single user-supplied string into a typed reference:
- Messages: data.binpb, data.json.gz, - (stdin)
- Archives: protos.tar.gz, protos.zip#subdir=proto
- Directories: ./proto
- Git repositories: https://github.com/acme/apis.git#tag=v1.0.0
- Modules: buf.build/acme/weather:v1
- Proto files: weather/v1/weather.proto

Syntax:
    path[#key=value[,key=value...]]

Examples:
    data.bin                        # Binary message, format inferred
    data#format=json                # Force JSON
    -#format=yaml,use_proto_names   # Stdin as YAML with a custom option
    protos.tgz#strip_components=1   # Gzipped tarball, drop top directory
"""

from .errors import (
    ConfigError,
    RefError,
    RefInferenceError,
    RefInternalError,
    RefPolicyError,
    RefSyntaxError,
)
from .formats import REGISTRY, FormatDescriptor
from .inference import assume_module_or_dir
from .module_ref import parse_module_reference
from .parser import split_raw_ref
from .resolver import (
    RefParser,
    new_message_ref_parser,
    new_module_ref_parser,
    new_ref_parser,
    new_source_or_module_ref_parser,
    new_source_ref_parser,
    resolve_message_encoding,
)
from .types import (
    ArchiveType,
    CompressionType,
    FormatKind,
    MessageEncoding,
    MessageRef,
    ModuleRef,
    ModuleReference,
    ParsedArchiveRef,
    ParsedDirRef,
    ParsedGitRef,
    ParsedModuleRef,
    ParsedProtoFileRef,
    ParsedSingleRef,
    ProtoFileRef,
    RawRef,
    SourceRef,
)

__all__ = [
    "ArchiveType",
    "CompressionType",
    "ConfigError",
    "FormatDescriptor",
    "FormatKind",
    "MessageEncoding",
    "MessageRef",
    "ModuleRef",
    "ModuleReference",
    "ParsedArchiveRef",
    "ParsedDirRef",
    "ParsedGitRef",
    "ParsedModuleRef",
    "ParsedProtoFileRef",
    "ParsedSingleRef",
    "ProtoFileRef",
    "REGISTRY",
    "RawRef",
    "RefError",
    "RefInferenceError",
    "RefInternalError",
    "RefParser",
    "RefPolicyError",
    "RefSyntaxError",
    "SourceRef",
    "assume_module_or_dir",
    "new_message_ref_parser",
    "new_module_ref_parser",
    "new_ref_parser",
    "new_source_or_module_ref_parser",
    "new_source_ref_parser",
    "parse_module_reference",
    "resolve_message_encoding",
    "split_raw_ref",
]
