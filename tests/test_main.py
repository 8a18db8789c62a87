"""Tests for the command line entry point."""

import pytest

from crate_features import main
from crate_features.errors import ResolverError
from crate_features.manifest import metadata
from crate_features.prune import runner


def test_parser_prune_flags():
    args = main.build_parser().parse_args(
        ["prune", "--dry-run", "--skip-tests", "-t", "--clean", "package", "-d"]
    )
    assert args.command == "prune"
    assert args.dry_run is True
    assert args.skip_tests is True
    assert args.no_tmp is True
    assert args.clean == "package"
    assert args.only_dependency is True


def test_parser_defaults_defer_to_settings():
    args = main.build_parser().parse_args(["prune"])
    assert args.skip_tests is None
    assert args.clean is None
    assert args.only_dependency is None
    assert args.no_tmp is False


def test_parser_picker_dependency():
    args = main.build_parser().parse_args(["-d", "serde", "--log-level", "debug"])
    assert args.command is None
    assert args.dependency == "serde"
    assert args.log_level == "DEBUG"


def test_errors_exit_with_status_one(monkeypatch):
    def broken(path):
        raise ResolverError("cargo metadata failed")

    monkeypatch.setattr(metadata, "load_document", broken)

    with pytest.raises(SystemExit) as exc:
        main.run(["prune"])
    assert exc.value.code == 1


def test_prune_command_forwards_options(monkeypatch):
    document = object()
    calls = []
    monkeypatch.setattr(metadata, "load_document", lambda path: document)
    monkeypatch.setattr(runner, "prune", lambda doc, **kwargs: calls.append((doc, kwargs)))

    main.run(["prune", "--no-tmp", "--clean", "dependency"])

    [(doc, kwargs)] = calls
    assert doc is document
    assert kwargs["sandbox"] is False
    assert kwargs["clean"] == "dependency"
    assert kwargs["dry_run"] is False
    assert kwargs["skip_tests"] is None
