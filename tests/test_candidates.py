"""Tests for prune candidate selection and keep tables."""

import pytest

from crate_features.errors import ConfigError
from crate_features.project.document import Document
from crate_features.project.package import Package
from crate_features.prune.candidates import (
    PACKAGE_KEEP_PATHS,
    WORKSPACE_KEEP_PATHS,
    get_enabled_features,
    get_features_to_test,
    load_keep_table,
)

from .conftest import make_dependency, write_manifest

TOKIO = {"rt": [], "macros": [], "full": ["rt", "macros"], "net": []}
SERDE = {"default": ["std"], "std": ["alloc"], "alloc": [], "derive": []}


def _project(tmp_path, manifest_text: str) -> Document:
    manifest = write_manifest(tmp_path / "Cargo.toml", manifest_text)
    dependencies = [
        make_dependency("tokio", TOKIO, enabled=("full", "net"), uses_default=False),
        make_dependency("serde", SERDE, enabled=("derive",)),
    ]
    return Document([Package("app", manifest, dependencies)], root_path=tmp_path)


def test_enabled_features_lists_toggleable_features(tmp_path):
    document = _project(tmp_path, '[package]\nname = "app"\n')
    assert get_enabled_features(document) == {
        "app": {
            "serde": ["alloc", "derive", "std"],
            "tokio": ["full", "macros", "net", "rt"],
        }
    }


def test_workspace_locked_features_are_not_candidates(workspace_project):
    candidates = get_enabled_features(workspace_project)
    assert "app" not in candidates
    assert candidates["Workspace"] == {"serde": ["derive", "serde_derive", "std"]}


def test_package_keep_protects_implied_features(tmp_path):
    document = _project(
        tmp_path,
        '[package]\nname = "app"\n\n[cargo-features-manager.keep]\ntokio = ["full"]\n',
    )
    candidates = get_features_to_test(document)
    assert candidates["app"]["tokio"] == ["net"]
    assert candidates["app"]["serde"] == ["alloc", "derive", "std"]


def test_keeping_default_protects_the_default_set(tmp_path):
    document = _project(
        tmp_path,
        '[package]\nname = "app"\n\n[package.metadata.cargo-features-manager.keep]\nserde = ["default"]\n',
    )
    candidates = get_features_to_test(document)
    assert candidates["app"]["serde"] == ["derive"]


def test_workspace_keep_applies_to_every_package(tmp_path):
    document = _project(
        tmp_path,
        '[package]\nname = "app"\n\n'
        '[workspace.metadata.cargo-features-manager.keep]\ntokio = ["net"]\n\n'
        '[workspace.cargo-features-manager.keep]\nserde = ["derive"]\n',
    )
    candidates = get_features_to_test(document)
    assert candidates["app"]["tokio"] == ["full", "macros", "rt"]
    assert candidates["app"]["serde"] == ["alloc", "std"]


def test_only_dependency_keeps_features_that_pull_in_crates(tmp_path):
    manifest = write_manifest(tmp_path / "Cargo.toml", '[package]\nname = "app"\n')
    table = {"json": ["dep:serde_json"], "local": [], "tls": ["rustls/tls"]}
    dependency = make_dependency("reqwest", table, enabled=("json", "local", "tls"))
    document = Document([Package("app", manifest, [dependency])], root_path=tmp_path)

    assert get_features_to_test(document)["app"]["reqwest"] == ["json", "local", "tls"]
    assert get_features_to_test(document, only_dependency_features=True)["app"]["reqwest"] == [
        "json",
        "tls",
    ]


def test_keep_table_with_wrong_shape_is_rejected(tmp_path):
    manifest = write_manifest(
        tmp_path / "Cargo.toml", '[cargo-features-manager.keep]\nserde = "std"\n'
    )
    with pytest.raises(ConfigError, match="serde"):
        load_keep_table(manifest, PACKAGE_KEEP_PATHS)


def test_missing_manifest_keeps_nothing(tmp_path):
    assert load_keep_table(tmp_path / "nope" / "Cargo.toml", WORKSPACE_KEEP_PATHS) == {}
