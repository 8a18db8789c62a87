"""Shared fixtures and builders for crate-features tests."""

from pathlib import Path

import pytest

from crate_features.project.dependency import Dependency, DependencyKind
from crate_features.project.document import WORKSPACE_PACKAGE_NAME, Document
from crate_features.project.package import Package
from crate_features.utils import config


def make_dependency(
    name: str,
    table: dict[str, list[str]],
    *,
    enabled: tuple[str, ...] = (),
    uses_default: bool = True,
    workspace: bool = False,
    kind: DependencyKind = DependencyKind.NORMAL,
    rename: str | None = None,
    version: str = "1.0",
) -> Dependency:
    return Dependency.from_resolved(
        name,
        table,
        version=version,
        kind=kind,
        rename=rename,
        workspace=workspace,
        uses_default_features=uses_default,
        enabled_features=enabled,
    )


def write_manifest(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def default_settings(monkeypatch, tmp_path):
    """Keep tests away from any settings file in the working directory."""
    monkeypatch.setattr(config, "CONFIG_SEARCH_PATHS", (tmp_path / "absent.yaml",))
    config.use_config_file(None)
    yield
    config.use_config_file(None)


@pytest.fixture
def scenario_dependency() -> Dependency:
    """``{a: [], b: [a], default: [a]}`` with defaults on and ``b`` requested."""
    return make_dependency(
        "d",
        {"a": [], "b": ["a"], "default": ["a"]},
        enabled=("b",),
    )


@pytest.fixture
def workspace_project(tmp_path) -> Document:
    """A root manifest declaring ``serde`` for the workspace and one member inheriting it."""
    root_manifest = write_manifest(
        tmp_path / "Cargo.toml",
        '[workspace]\nmembers = ["app"]\n\n'
        '[workspace.dependencies]\nserde = { version = "1.0", features = ["derive"] }\n',
    )
    member_manifest = write_manifest(
        tmp_path / "app" / "Cargo.toml",
        '[package]\nname = "app"\nversion = "0.1.0"\n\n'
        "[dependencies]\nserde = { workspace = true }\n",
    )

    table = {"default": ["std"], "std": [], "derive": ["serde_derive"], "serde_derive": [], "rc": []}
    workspace_dep = make_dependency(
        "serde", table, enabled=("derive",), kind=DependencyKind.WORKSPACE
    )
    member_dep = make_dependency("serde", table, workspace=True)

    return Document(
        [Package("app", member_manifest, [member_dep])],
        workspace=Package(WORKSPACE_PACKAGE_NAME, root_manifest, [workspace_dep]),
        root_path=tmp_path,
    )
