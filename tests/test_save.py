"""Tests for writing feature selections back into Cargo.toml."""

import pytest

from crate_features.errors import PersistenceFailure
from crate_features.manifest.paths import read_manifest
from crate_features.manifest.save import ManifestWriter
from crate_features.project.dependency import Dependency
from crate_features.project.document import Document
from crate_features.project.package import Package

from .conftest import make_dependency, write_manifest

SERDE = {"default": ["std"], "std": [], "derive": [], "rc": []}


def _save(tmp_path, manifest_text: str, dependency: Dependency):
    manifest = write_manifest(tmp_path / "Cargo.toml", manifest_text)
    document = Document([Package("app", manifest, [dependency])], root_path=tmp_path)
    writer = ManifestWriter()
    writer(document, "app", dependency.key)
    assert writer.writes == 1
    return manifest


def test_defaults_only_collapse_to_version_string(tmp_path):
    dependency = make_dependency("serde", SERDE)
    manifest = _save(
        tmp_path,
        '[dependencies]\nserde = { version = "1.0", features = ["derive"] }\n',
        dependency,
    )
    assert read_manifest(manifest)["dependencies"]["serde"] == "1.0"


def test_features_without_defaults(tmp_path):
    dependency = make_dependency("serde", SERDE, enabled=("derive",), uses_default=False)
    manifest = _save(tmp_path, '[dependencies]\nserde = "1.0"\n', dependency)

    assert read_manifest(manifest)["dependencies"]["serde"] == {
        "version": "1.0",
        "features": ["derive"],
        "default-features": False,
    }


def test_default_features_flag_removed_when_defaults_are_back(tmp_path):
    dependency = make_dependency("serde", SERDE, enabled=("derive",))
    manifest = _save(
        tmp_path,
        '[dependencies]\nserde = { version = "1.0", default-features = false, optional = true }\n',
        dependency,
    )
    assert read_manifest(manifest)["dependencies"]["serde"] == {
        "version": "1.0",
        "optional": True,
        "features": ["derive"],
    }


def test_git_dependency_keeps_source_and_skips_version(tmp_path):
    dependency = make_dependency("serde", SERDE, enabled=("rc",))
    manifest = _save(
        tmp_path,
        '[dependencies]\nserde = { git = "https://github.com/serde-rs/serde" }\n',
        dependency,
    )
    assert read_manifest(manifest)["dependencies"]["serde"] == {
        "git": "https://github.com/serde-rs/serde",
        "features": ["rc"],
    }


def test_comments_and_other_entries_survive(tmp_path):
    dependency = make_dependency("serde", SERDE, enabled=("derive",))
    manifest = _save(
        tmp_path,
        '[package]\nname = "app" # the app\n\n[dependencies]\n'
        '# serialization\nserde = "1.0"\nlog = "0.4"\n',
        dependency,
    )
    text = manifest.read_text()
    assert "# the app" in text
    assert "# serialization" in text
    assert 'log = "0.4"' in text
    assert read_manifest(manifest)["dependencies"]["serde"]["features"] == ["derive"]


def test_target_and_renamed_dependency(tmp_path):
    dependency = Dependency.from_resolved(
        "serde_json",
        {"default": ["std"], "std": [], "raw_value": []},
        version="1",
        rename="json",
        target="cfg(unix)",
        enabled_features=("raw_value",),
    )
    manifest = _save(
        tmp_path,
        "[target.'cfg(unix)'.dependencies]\n"
        'json = { package = "serde_json", version = "1" }\n',
        dependency,
    )
    entry = read_manifest(manifest)["target"]["cfg(unix)"]["dependencies"]["json"]
    assert entry == {"package": "serde_json", "version": "1", "features": ["raw_value"]}


def test_inheriting_member_lists_only_local_features(workspace_project):
    member = workspace_project.get_package("app")
    member.get_dependency("serde").enable_feature("rc")

    ManifestWriter().save_dependency(workspace_project, "app", "serde")

    entry = read_manifest(member.manifest_path)["dependencies"]["serde"]
    assert entry == {"workspace": True, "features": ["rc"]}


def test_workspace_edit_propagates_to_members(workspace_project):
    workspace = workspace_project.get_workspace_package()
    workspace.get_dependency("serde").disable_feature("serde_derive")

    ManifestWriter().save_dependency(workspace_project, workspace.name, "serde")

    assert read_manifest(workspace.manifest_path)["workspace"]["dependencies"]["serde"] == "1.0"
    member = workspace_project.get_package("app").get_dependency("serde")
    assert member.features.enabled_features() == ["std"]


def test_missing_table_or_entry_fails(tmp_path):
    dependency = make_dependency("serde", SERDE)
    with pytest.raises(PersistenceFailure, match="dependencies"):
        _save(tmp_path, '[package]\nname = "app"\n', dependency)
    with pytest.raises(PersistenceFailure, match="serde"):
        _save(tmp_path, '[dependencies]\nlog = "0.4"\n', dependency)


def test_unreadable_manifest_fails(tmp_path):
    dependency = make_dependency("serde", SERDE)
    document = Document([Package("app", tmp_path / "missing" / "Cargo.toml", [dependency])], root_path=tmp_path)
    with pytest.raises(PersistenceFailure):
        ManifestWriter().save_dependency(document, "app", "serde")
