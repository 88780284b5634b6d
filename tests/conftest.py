"""Pytest configuration and shared fixtures."""

import pytest
from click.testing import CliRunner

from protoref.addressing.resolver import DEFAULT_MESSAGE_ENCODING_ENV
from protoref.cli import cli


@pytest.fixture(autouse=True)
def clear_default_encoding_env(monkeypatch):
    """Keep a developer's $PROTOREF_DEFAULT_MESSAGE_ENCODING out of tests."""
    monkeypatch.delenv(DEFAULT_MESSAGE_ENCODING_ENV, raising=False)


@pytest.fixture
def cli_runner():
    """Provide Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(cli_runner):
    """Helper to invoke the CLI with args.

    Usage:
        result = invoke(["resolve", "data.json"])
        result = invoke(["resolve", "-", "--as", "message"])
    """

    def _invoke(args):
        return cli_runner.invoke(cli, args)

    return _invoke


@pytest.fixture
def in_tmp(tmp_path, monkeypatch):
    """Run the test with tmp_path as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
