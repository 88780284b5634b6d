"""Reference types for the addressing system."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FormatKind(str, Enum):
    """Kind of thing a format refers to."""

    SINGLE = "single"
    ARCHIVE = "archive"
    GIT = "git"
    DIR = "dir"
    MODULE = "module"
    PROTO_FILE = "proto_file"


class CompressionType(str, Enum):
    NONE = "none"
    GZIP = "gzip"
    ZSTD = "zstd"


class ArchiveType(str, Enum):
    TAR = "tar"
    ZIP = "zip"


class MessageEncoding(str, Enum):
    """Serialization of a single encoded message."""

    BINPB = "binpb"
    JSON = "json"
    TXTPB = "txtpb"
    YAML = "yaml"


class GitRefType(str, Enum):
    BRANCH = "branch"
    TAG = "tag"
    REF = "ref"


@dataclass
class RawRef:
    """Split reference before classification.

    The RawRef represents user input following the syntax:
        path[#key=value[,key=value...]]

    Examples:
        "foo.json" → RawRef(path="foo.json")
        "foo#format=json" → RawRef(path="foo", format="json")
        "a.tar.gz#subdir=proto" → RawRef(path="a.tar.gz", options={"subdir": "proto"})
    """

    path: str
    """Path, URL or module coordinate with options removed."""

    format: Optional[str] = None
    """Format name. Unset until given explicitly or inferred."""

    compression: Optional[CompressionType] = None
    """Compression. Unset until given explicitly, inferred or defaulted."""

    options: Dict[str, str] = field(default_factory=dict)
    """All options other than format and compression."""

    def __str__(self) -> str:
        """Render back into reference syntax."""
        parts = []
        if self.format:
            parts.append(f"format={self.format}")
        if self.compression is not None:
            parts.append(f"compression={self.compression.value}")
        parts.extend(f"{k}={v}" for k, v in self.options.items())
        if not parts:
            return self.path
        return f"{self.path}#{','.join(parts)}"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ModuleReference(_Frozen):
    """Remote module coordinate: remote/owner/repository[:reference]."""

    remote: str
    owner: str
    repository: str
    reference: Optional[str] = None

    def __str__(self) -> str:
        base = f"{self.remote}/{self.owner}/{self.repository}"
        if self.reference:
            return f"{base}:{self.reference}"
        return base


class GitName(_Frozen):
    """Branch, tag or ref to check out from a git repository."""

    type: GitRefType
    name: str
    branch: Optional[str] = None
    """Branch to clone when type is ref, so the ref can be found in it."""


class ParsedSingleRef(_Frozen):
    kind: Literal[FormatKind.SINGLE] = FormatKind.SINGLE
    format: str
    path: str
    compression: CompressionType = CompressionType.NONE
    custom_options: Dict[str, str] = Field(default_factory=dict)


class ParsedArchiveRef(_Frozen):
    kind: Literal[FormatKind.ARCHIVE] = FormatKind.ARCHIVE
    format: str
    path: str
    archive_type: ArchiveType
    compression: CompressionType = CompressionType.NONE
    subdir: str = ""
    strip_components: int = 0


class ParsedDirRef(_Frozen):
    kind: Literal[FormatKind.DIR] = FormatKind.DIR
    format: str
    path: str


class ParsedGitRef(_Frozen):
    kind: Literal[FormatKind.GIT] = FormatKind.GIT
    format: str
    path: str
    git_ref: Optional[GitName] = None
    depth: int = 1
    recurse_submodules: bool = False
    subdir: str = ""


class ParsedModuleRef(_Frozen):
    kind: Literal[FormatKind.MODULE] = FormatKind.MODULE
    format: str
    module: ModuleReference


class ParsedProtoFileRef(_Frozen):
    kind: Literal[FormatKind.PROTO_FILE] = FormatKind.PROTO_FILE
    format: str
    path: str
    include_package_files: bool = False


ParsedRef = Annotated[
    Union[
        ParsedSingleRef,
        ParsedArchiveRef,
        ParsedDirRef,
        ParsedGitRef,
        ParsedModuleRef,
        ParsedProtoFileRef,
    ],
    Field(discriminator="kind"),
]

ParsedBucketRef = Annotated[
    Union[ParsedArchiveRef, ParsedDirRef, ParsedGitRef],
    Field(discriminator="kind"),
]


class MessageRef(_Frozen):
    """Reference to a single encoded message."""

    ref_type: Literal["message"] = "message"
    parsed: ParsedSingleRef
    encoding: MessageEncoding
    use_proto_names: bool = False
    use_enum_numbers: bool = False

    @property
    def path(self) -> str:
        return self.parsed.path


class SourceRef(_Frozen):
    """Reference to a source tree: archive, directory or git repository."""

    ref_type: Literal["source"] = "source"
    parsed: ParsedBucketRef


class ModuleRef(_Frozen):
    """Reference to a remote module."""

    ref_type: Literal["module"] = "module"
    parsed: ParsedModuleRef

    @property
    def module(self) -> ModuleReference:
        return self.parsed.module


class ProtoFileRef(_Frozen):
    """Reference to a single .proto file."""

    ref_type: Literal["proto_file"] = "proto_file"
    parsed: ParsedProtoFileRef

    @property
    def path(self) -> str:
        return self.parsed.path


Ref = Union[MessageRef, SourceRef, ModuleRef, ProtoFileRef]
SourceOrModuleRef = Union[SourceRef, ModuleRef, ProtoFileRef]
