"""Tests for reference resolution entry points."""

import logging

import pytest

from protoref.addressing import (
    ArchiveType,
    CompressionType,
    ConfigError,
    MessageEncoding,
    MessageRef,
    ModuleRef,
    ParsedArchiveRef,
    ParsedDirRef,
    ParsedGitRef,
    ProtoFileRef,
    RefInferenceError,
    RefInternalError,
    RefPolicyError,
    RefSyntaxError,
    SourceRef,
    new_message_ref_parser,
    new_module_ref_parser,
    new_ref_parser,
    new_source_or_module_ref_parser,
    new_source_ref_parser,
)
from protoref.addressing.builder import (
    parse_message_encoding,
    to_module_ref,
    to_ref,
    to_source_ref,
)
from protoref.addressing.formats import ALL_FORMATS, MODULE_FORMATS, SOURCE_FORMATS
from protoref.addressing.resolver import DEFAULT_MESSAGE_ENCODING_ENV
from protoref.addressing.types import ParsedSingleRef

DEPRECATION_LOGGER = "protoref.addressing.deprecation"


def _advisories(caplog):
    return [
        r
        for r in caplog.records
        if r.name == DEPRECATION_LOGGER and r.levelno == logging.WARNING
    ]


@pytest.fixture
def parser():
    return new_ref_parser()


class TestGetRef:
    """Generic entry point dispatches on kind."""

    def test_message(self, parser):
        ref = parser.get_ref("weather.json.gz")
        assert isinstance(ref, MessageRef)
        assert ref.encoding is MessageEncoding.JSON
        assert ref.parsed.compression is CompressionType.GZIP
        assert ref.path == "weather.json.gz"

    def test_stdin_defaults_to_binary(self, parser):
        ref = parser.get_ref("-")
        assert isinstance(ref, MessageRef)
        assert ref.parsed.format == "binpb"
        assert ref.encoding is MessageEncoding.BINPB

    def test_archive(self, parser):
        ref = parser.get_ref("protos.tgz#strip_components=1,subdir=./proto/")
        assert isinstance(ref, SourceRef)
        assert isinstance(ref.parsed, ParsedArchiveRef)
        assert ref.parsed.archive_type is ArchiveType.TAR
        assert ref.parsed.compression is CompressionType.GZIP
        assert ref.parsed.strip_components == 1
        assert ref.parsed.subdir == "proto"

    def test_zip(self, parser):
        ref = parser.get_ref("protos.zip")
        assert ref.parsed.archive_type is ArchiveType.ZIP
        assert ref.parsed.compression is CompressionType.NONE

    def test_git(self, parser):
        ref = parser.get_ref("https://github.com/acme/apis.git#tag=v1.0.0,subdir=proto")
        assert isinstance(ref, SourceRef)
        assert isinstance(ref.parsed, ParsedGitRef)
        assert ref.parsed.git_ref.type.value == "tag"
        assert ref.parsed.git_ref.name == "v1.0.0"
        assert ref.parsed.depth == 1
        assert ref.parsed.subdir == "proto"

    def test_module(self, parser, in_tmp):
        ref = parser.get_ref("buf.build/acme/weather:v1")
        assert isinstance(ref, ModuleRef)
        assert ref.module.owner == "acme"
        assert ref.module.reference == "v1"

    def test_module_coordinate_that_is_a_directory(self, parser, in_tmp):
        (in_tmp / "buf.build" / "acme" / "weather").mkdir(parents=True)
        ref = parser.get_ref("buf.build/acme/weather")
        assert isinstance(ref, SourceRef)
        assert isinstance(ref.parsed, ParsedDirRef)
        assert ref.parsed.path == "buf.build/acme/weather"

    def test_explicit_format_overrides_filesystem(self, parser, in_tmp):
        (in_tmp / "buf.build" / "acme" / "weather").mkdir(parents=True)
        ref = parser.get_ref("buf.build/acme/weather#format=mod")
        assert isinstance(ref, ModuleRef)

    def test_dir(self, parser):
        ref = parser.get_ref("./proto/")
        assert isinstance(ref.parsed, ParsedDirRef)
        assert ref.parsed.path == "proto"

    def test_proto_file(self, parser, in_tmp):
        ref = parser.get_ref("weather/v1/weather.proto#include_package_files")
        assert isinstance(ref, ProtoFileRef)
        assert ref.path == "weather/v1/weather.proto"
        assert ref.parsed.include_package_files is True

    def test_proto_directory_collision(self, parser, in_tmp):
        (in_tmp / "weather.proto").mkdir()
        with pytest.raises(RefInferenceError, match="already exists"):
            parser.get_ref("weather.proto")

    def test_proto_path_with_nul_byte(self, parser, in_tmp):
        with pytest.raises(RefInferenceError):
            parser.get_ref("bad\x00name.proto")

    def test_dot_file(self, parser):
        ref = parser.get_ref("out/.json")
        assert isinstance(ref, MessageRef)
        assert ref.encoding is MessageEncoding.JSON

    def test_custom_options(self, parser):
        ref = parser.get_ref("data.yaml#use_proto_names,use_enum_numbers=true")
        assert ref.use_proto_names is True
        assert ref.use_enum_numbers is True

    def test_custom_option_not_allowed(self, parser):
        with pytest.raises(RefPolicyError, match="'use_proto_names' is not allowed"):
            parser.get_ref("data.binpb#use_proto_names")

    def test_unknown_format(self, parser):
        with pytest.raises(RefSyntaxError, match="unknown format: 'xml'"):
            parser.get_ref("data#format=xml")

    def test_zip_rejects_compression(self, parser):
        with pytest.raises(RefPolicyError, match="compression 'gzip' is not allowed"):
            parser.get_ref("protos.zip.gz")

    def test_dir_rejects_stdin(self, parser):
        with pytest.raises(RefSyntaxError):
            parser.get_ref("-#format=dir")


class TestGitOptions:
    def test_ref_defaults_depth_50(self, parser):
        ref = parser.get_ref("repo.git#ref=abc123,branch=main")
        assert ref.parsed.git_ref.type.value == "ref"
        assert ref.parsed.git_ref.name == "abc123"
        assert ref.parsed.git_ref.branch == "main"
        assert ref.parsed.depth == 50

    def test_explicit_depth_and_submodules(self, parser):
        ref = parser.get_ref("repo.git#branch=main,depth=5,recurse_submodules")
        assert ref.parsed.git_ref.type.value == "branch"
        assert ref.parsed.depth == 5
        assert ref.parsed.recurse_submodules is True

    @pytest.mark.parametrize(
        "options",
        ["branch=a,tag=b", "tag=a,ref=b", "depth=0", "depth=-1", "depth=ten", "subdir=../x"],
    )
    def test_invalid(self, parser, options):
        with pytest.raises(RefSyntaxError):
            parser.get_ref(f"repo.git#{options}")

    def test_archive_option_not_allowed(self, parser):
        with pytest.raises(RefPolicyError):
            parser.get_ref("repo.git#strip_components=1")


class TestEntryPointPolicy:
    """Each entry point rejects kinds outside its allowed set."""

    @pytest.mark.parametrize(
        "value,kind",
        [("a.json", "single"), ("buf.build/a/b#format=mod", "module"), ("a.proto", "proto_file")],
    )
    def test_source_rejects(self, parser, value, kind):
        with pytest.raises(RefPolicyError) as exc:
            parser.get_source_ref(value)
        assert exc.value.kind == kind
        assert kind in str(exc.value)
        assert "dir" in exc.value.allowed

    @pytest.mark.parametrize(
        "value,kind",
        [("a.tar", "archive"), ("a.json", "single"), ("proto#format=dir", "dir"),
         ("a.git", "git"), ("a.proto", "proto_file")],
    )
    def test_module_rejects(self, parser, value, kind):
        with pytest.raises(RefPolicyError) as exc:
            parser.get_module_ref(value)
        assert exc.value.kind == kind

    @pytest.mark.parametrize(
        "value,kind",
        [("a.tar", "archive"), ("proto#format=dir", "dir"), ("a.git", "git"),
         ("buf.build/a/b#format=mod", "module"), ("a.proto", "proto_file")],
    )
    def test_message_rejects(self, parser, value, kind):
        with pytest.raises(RefPolicyError) as exc:
            parser.get_message_ref(value)
        assert exc.value.kind == kind

    def test_source_or_module_rejects_messages(self, parser):
        with pytest.raises(RefPolicyError) as exc:
            parser.get_source_or_module_ref("a.binpb")
        assert exc.value.kind == "single"
        assert exc.value.format == "binpb"

    def test_source_or_module_accepts(self, parser, in_tmp):
        assert isinstance(parser.get_source_or_module_ref("a.tar"), SourceRef)
        assert isinstance(parser.get_source_or_module_ref("buf.build/a/b"), ModuleRef)
        assert isinstance(parser.get_source_or_module_ref("a.proto"), ProtoFileRef)


class TestSpecializedParsers:
    def test_source_parser_defaults_to_dir(self, in_tmp):
        ref = new_source_ref_parser().get_source_ref("buf.build/acme/weather")
        assert isinstance(ref.parsed, ParsedDirRef)

    def test_source_parser_compressed_tar(self):
        ref = new_source_ref_parser().get_source_ref("a.tar.zst")
        assert ref.parsed.compression is CompressionType.ZSTD

    def test_source_parser_rejects_message_under_compression(self):
        with pytest.raises(RefInferenceError):
            new_source_ref_parser().get_source_ref("a.json.gz")

    def test_module_parser(self):
        ref = new_module_ref_parser().get_module_ref("buf.build/acme/weather")
        assert ref.module.repository == "weather"

    def test_module_parser_rejects_non_coordinates(self):
        with pytest.raises(RefSyntaxError):
            new_module_ref_parser().get_module_ref("weather.json")

    def test_module_parser_knows_only_modules(self):
        with pytest.raises(RefPolicyError):
            new_module_ref_parser().get_module_ref("a#format=tar")

    def test_source_or_module_parser(self, in_tmp):
        parser = new_source_or_module_ref_parser()
        assert isinstance(parser.get_source_or_module_ref("a.proto"), ProtoFileRef)
        assert isinstance(parser.get_source_or_module_ref("buf.build/a/b"), ModuleRef)
        assert isinstance(parser.get_source_or_module_ref("a.json").parsed, ParsedDirRef)

    def test_message_parser_default_encoding(self):
        parser = new_message_ref_parser(MessageEncoding.JSON)
        assert parser.get_message_ref("-").encoding is MessageEncoding.JSON
        assert parser.get_message_ref("/dev/stdin").encoding is MessageEncoding.JSON
        assert parser.get_message_ref("payload").encoding is MessageEncoding.JSON
        assert parser.get_message_ref("payload.txtpb").encoding is MessageEncoding.TXTPB

    def test_message_parser_default_is_binary(self):
        ref = new_message_ref_parser().get_message_ref("-")
        assert ref.encoding is MessageEncoding.BINPB

    def test_message_parser_env_default(self, monkeypatch):
        monkeypatch.setenv(DEFAULT_MESSAGE_ENCODING_ENV, "yaml")
        ref = new_message_ref_parser().get_message_ref("-")
        assert ref.encoding is MessageEncoding.YAML

    def test_message_parser_bad_encoding(self):
        with pytest.raises(ConfigError, match="unknown message encoding"):
            new_message_ref_parser("xml")

    def test_message_parser_ignores_archive_extensions(self):
        ref = new_message_ref_parser().get_message_ref("dump.tar")
        assert ref.parsed.format == "binpb"


class TestDeprecation:
    @pytest.mark.parametrize(
        "value,replacement",
        [
            ("data#format=bingz", "format=binpb,compression=gzip"),
            ("data#format=jsongz", "format=json,compression=gzip"),
            ("a.tgz#format=targz", "format=tar,compression=gzip"),
        ],
    )
    def test_legacy_format_warns_once(self, parser, caplog, value, replacement):
        caplog.set_level(logging.WARNING, logger=DEPRECATION_LOGGER)
        ref = parser.get_ref(value)
        assert ref.parsed.compression is CompressionType.GZIP
        advisories = _advisories(caplog)
        assert len(advisories) == 1
        assert replacement in advisories[0].getMessage()

    def test_legacy_format_keeps_encoding(self, parser, caplog):
        caplog.set_level(logging.WARNING, logger=DEPRECATION_LOGGER)
        ref = parser.get_message_ref("data#format=jsongz,use_proto_names")
        assert ref.encoding is MessageEncoding.JSON
        assert ref.use_proto_names is True

    def test_modern_format_is_silent(self, parser, caplog):
        caplog.set_level(logging.WARNING, logger=DEPRECATION_LOGGER)
        parser.get_ref("data.json.gz")
        parser.get_ref("data#format=binpb,compression=gzip")
        assert _advisories(caplog) == []

    def test_failed_resolution_is_silent(self, parser, caplog):
        caplog.set_level(logging.WARNING, logger=DEPRECATION_LOGGER)
        with pytest.raises(RefPolicyError):
            parser.get_source_ref("data#format=bingz")
        assert _advisories(caplog) == []


class TestExplicitMatchesInferred:
    """Explicit format/compression produce the same RawRef as inference."""

    @pytest.mark.parametrize(
        "path,options",
        [
            ("f.bin", "format=binpb"),
            ("f.binpb", "format=binpb"),
            ("f.json", "format=json"),
            ("f.txtpb", "format=txtpb"),
            ("f.yaml", "format=yaml"),
            ("f.tar", "format=tar"),
            ("f.zip", "format=zip"),
            ("f.git", "format=git"),
            ("f.tgz", "format=tar,compression=gzip"),
            ("f.json.gz", "format=json,compression=gzip"),
            ("f.yaml.zst", "format=yaml,compression=zstd"),
            ("f.tar.gz", "format=tar,compression=gzip"),
            ("-", "format=binpb"),
        ],
    )
    def test_equivalent(self, parser, path, options):
        inferred = parser.get_raw_ref(path, ALL_FORMATS)
        explicit = parser.get_raw_ref(f"{path}#{options}", ALL_FORMATS)
        assert inferred == explicit
        assert parser.get_raw_ref(str(inferred), ALL_FORMATS) == inferred


class TestInternalErrors:
    def test_unknown_parsed_type(self):
        with pytest.raises(RefInternalError):
            to_ref(object())

    def test_format_without_encoding(self):
        with pytest.raises(RefInternalError):
            parse_message_encoding("tar")

    def test_internal_error_is_not_a_user_error(self):
        assert not issubclass(RefInternalError, ValueError)


class TestKindMismatch:
    """Mapping a ParsedRef to the wrong output kind reports the allowed set."""

    def test_source_default_allowed(self):
        with pytest.raises(RefPolicyError, match="allowed formats: tar") as exc:
            to_source_ref(ParsedSingleRef(format="json", path="a.json"))
        assert exc.value.kind == "single"
        assert exc.value.format == "json"
        assert exc.value.allowed == SOURCE_FORMATS

    def test_module_default_allowed(self):
        with pytest.raises(RefPolicyError) as exc:
            to_module_ref(ParsedSingleRef(format="yaml", path="a.yaml"))
        assert exc.value.allowed == MODULE_FORMATS
        assert "allowed formats: mod" in str(exc.value)

    def test_caller_allowed(self):
        with pytest.raises(RefPolicyError) as exc:
            to_source_ref(ParsedSingleRef(format="json", path="a.json"), ("dir",))
        assert exc.value.allowed == ("dir",)
