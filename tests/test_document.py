"""Tests for the document and workspace feature inheritance."""

from pathlib import Path

import pytest

from crate_features.errors import NotFound, PersistenceFailure, WorkspaceLinkMissing
from crate_features.project.dependency import DependencyKind
from crate_features.project.document import WORKSPACE_PACKAGE_NAME, Document
from crate_features.project.feature import EnabledState
from crate_features.project.package import Package

from .conftest import make_dependency


def _member_dep(document: Document):
    return document.get_package("app").get_dependency("serde")


def _workspace_dep(document: Document):
    return document.get_workspace_package().get_dependency("serde")


def test_workspace_features_are_mirrored(workspace_project):
    """Inheriting members carry exactly the workspace selection, locked."""
    member = _member_dep(workspace_project)
    workspace = _workspace_dep(workspace_project)

    assert member.features.enabled_features() == workspace.features.enabled_features()
    assert member.features.enabled_features() == ["derive", "serde_derive", "std"]
    for name in member.features.enabled_features():
        assert member.get_feature(name).enabled_state is EnabledState.WORKSPACE
    assert member.features.toggleable_enabled_features() == []


def test_update_clears_stale_inheritance(workspace_project):
    _workspace_dep(workspace_project).disable_feature("serde_derive")
    workspace_project.update_workspace_deps()

    member = _member_dep(workspace_project)
    assert member.features.enabled_features() == ["std"]
    assert member.get_feature("derive").enabled_state is EnabledState.OFF


def test_member_only_features_survive_update(workspace_project):
    member = _member_dep(workspace_project)
    member.enable_feature("rc")
    workspace_project.update_workspace_deps()

    assert member.get_feature("rc").enabled_state is EnabledState.ON


def test_missing_workspace_entry_raises(tmp_path):
    table = {"a": []}
    member = Package("app", tmp_path / "app" / "Cargo.toml", [make_dependency("serde", table, workspace=True)])
    workspace = Package(WORKSPACE_PACKAGE_NAME, tmp_path / "Cargo.toml", [])

    with pytest.raises(WorkspaceLinkMissing, match="serde"):
        Document([member], workspace=workspace, root_path=tmp_path)


def test_workspace_entry_matched_by_rename(tmp_path):
    table = {"a": [], "default": ["a"]}
    workspace_dep = make_dependency("serde_json", table, rename="json")
    member_dep = make_dependency("json", table, workspace=True)
    document = Document(
        [Package("app", tmp_path / "app" / "Cargo.toml", [member_dep])],
        workspace=Package(WORKSPACE_PACKAGE_NAME, tmp_path / "Cargo.toml", [workspace_dep]),
        root_path=tmp_path,
    )
    assert member_dep.get_feature("a").enabled_state is EnabledState.WORKSPACE
    assert document.is_workspace()


def test_package_lookup(workspace_project):
    assert workspace_project.is_workspace_package(WORKSPACE_PACKAGE_NAME)
    assert not workspace_project.is_workspace_package("app")
    assert [p.name for p in workspace_project.member_packages()] == ["app"]

    with pytest.raises(NotFound):
        workspace_project.get_package("missing")
    with pytest.raises(NotFound):
        workspace_project.get_package("app").get_dependency("tokio")


def test_single_package_is_not_a_workspace(tmp_path):
    document = Document([Package("solo", tmp_path / "Cargo.toml", [])], root_path=tmp_path)
    assert not document.is_workspace()
    assert document.get_workspace_package() is None


def test_relocate_maps_manifest_paths(workspace_project, tmp_path):
    new_root = tmp_path / "copy"
    moved = workspace_project.relocate(new_root)

    assert moved.root_path == new_root
    assert Path(moved.get_package("app").manifest_path) == new_root / "app" / "Cargo.toml"
    assert Path(moved.get_workspace_package().manifest_path) == new_root / "Cargo.toml"

    # the original is untouched and independent
    assert Path(workspace_project.get_package("app").manifest_path) == tmp_path / "app" / "Cargo.toml"
    _workspace_dep(moved).disable_feature("derive")
    assert _workspace_dep(workspace_project).features.is_enabled("derive")


def test_relocate_rejects_paths_outside_root(tmp_path):
    outside = tmp_path.parent / "elsewhere" / "Cargo.toml"
    document = Document([Package("solo", outside, [])], root_path=tmp_path / "root")

    with pytest.raises(PersistenceFailure):
        document.relocate(tmp_path / "copy")


TOKIO = {"rt": [], "macros": [], "rt-multi-thread": ["rt"]}


def _tokio_project(tmp_path):
    workspace_dep = make_dependency("tokio", TOKIO, enabled=("macros", "rt"), kind=DependencyKind.WORKSPACE)
    member_dep = make_dependency("tokio", TOKIO, workspace=True)
    document = Document(
        [Package("app", tmp_path / "app" / "Cargo.toml", [member_dep])],
        workspace=Package(WORKSPACE_PACKAGE_NAME, tmp_path / "Cargo.toml", [workspace_dep]),
        root_path=tmp_path,
    )
    member_dep.enable_feature("rt-multi-thread")
    return document, workspace_dep, member_dep


def test_refresh_keeps_local_features_on_inherited_ones(tmp_path):
    document, _, member = _tokio_project(tmp_path)

    document.update_workspace_deps()

    assert member.features.enabled_features() == ["macros", "rt", "rt-multi-thread"]
    assert member.get_feature("rt").enabled_state is EnabledState.WORKSPACE
    assert member.get_features_to_enable() == ["rt-multi-thread"]


def test_dropped_workspace_feature_cascades_into_member(tmp_path):
    document, workspace_dep, member = _tokio_project(tmp_path)

    workspace_dep.disable_feature("rt")
    document.update_workspace_deps()

    assert member.features.enabled_features() == ["macros"]


def test_inheriting_dependencies(tmp_path):
    document, workspace_dep, member = _tokio_project(tmp_path)

    assert document.inheriting_dependencies(workspace_dep) == [member]
    assert document.inheriting_dependencies(make_dependency("tokio", TOKIO)) == []


def test_workspace_entry_matched_by_manifest_key_first(tmp_path):
    table = {"std": [], "small_rng": []}
    old_rand = make_dependency("rand", table, enabled=("small_rng",), rename="rand07", kind=DependencyKind.WORKSPACE)
    rand = make_dependency("rand", table, enabled=("std",), kind=DependencyKind.WORKSPACE)
    member_rand = make_dependency("rand", table, workspace=True)
    member_old_rand = make_dependency("rand", table, rename="rand07", workspace=True)
    document = Document(
        [Package("app", tmp_path / "app" / "Cargo.toml", [member_rand, member_old_rand])],
        workspace=Package(WORKSPACE_PACKAGE_NAME, tmp_path / "Cargo.toml", [old_rand, rand]),
        root_path=tmp_path,
    )

    assert member_rand.features.enabled_features() == ["std"]
    assert member_old_rand.features.enabled_features() == ["small_rng"]
    assert document.inheriting_dependencies(rand) == [member_rand]
