"""The whole project: member packages plus the optional workspace package."""

import copy
from pathlib import Path

from ..errors import NotFound, PersistenceFailure, WorkspaceLinkMissing
from ..utils.logging import get_logger
from .dependency import Dependency
from .feature import EnabledState
from .package import Package

logger = get_logger(__name__)

WORKSPACE_PACKAGE_NAME = "Workspace"


class Document:
    """Owns every package and keeps workspace-inherited features in sync."""

    def __init__(
        self,
        packages: list[Package],
        workspace: Package | None = None,
        root_path: Path | str = ".",
    ) -> None:
        self.packages: list[Package] = list(packages)
        self.workspace_index: int | None = None
        self.root_path = Path(root_path)

        if workspace is not None:
            self.packages.append(workspace)
            self.workspace_index = len(self.packages) - 1

        self.update_workspace_deps()

    # ── Lookup ─────────────────────────────────────────────────────────────

    def get_package(self, name: str) -> Package:
        for package in self.packages:
            if package.name == name:
                return package
        raise NotFound("package", name)

    def get_package_by_index(self, index: int) -> Package:
        try:
            return self.packages[index]
        except IndexError:
            raise NotFound("package", f"#{index}") from None

    def get_workspace_package(self) -> Package | None:
        if self.workspace_index is None:
            return None
        return self.packages[self.workspace_index]

    def is_workspace_package(self, name: str) -> bool:
        workspace = self.get_workspace_package()
        return workspace is not None and workspace.name == name

    def member_packages(self) -> list[Package]:
        return [
            package
            for index, package in enumerate(self.packages)
            if index != self.workspace_index
        ]

    def is_workspace(self) -> bool:
        return len(self.packages) > 1

    # ── Workspace inheritance ──────────────────────────────────────────────

    def update_workspace_deps(self) -> None:
        """Mirror workspace-level feature selections into inheriting members.

        Only inherited features the workspace no longer enables are
        disabled, so member-local features built on a still-enabled
        workspace feature keep their state.
        """
        workspace = self.get_workspace_package()
        if workspace is None:
            return

        for package in self.member_packages():
            for dependency in package.dependencies:
                if not dependency.workspace:
                    continue

                workspace_dep = self._workspace_link(workspace, package, dependency)
                enabled = workspace_dep.features.enabled_features()

                stale = [
                    name
                    for name, data in dependency.features.items()
                    if data.enabled_state is EnabledState.WORKSPACE and name not in enabled
                ]
                for name in stale:
                    dependency.disable_feature(name)

                for name in enabled:
                    dependency.enable_feature(name)
                    dependency.set_feature_to_workspace(name)

                logger.debug(
                    "workspace features propagated",
                    package=package.name,
                    dependency=dependency.key,
                    features=enabled,
                )

    def inheriting_dependencies(self, workspace_dep: Dependency) -> list[Dependency]:
        """Member dependencies whose features follow ``workspace_dep``."""
        workspace = self.get_workspace_package()
        if workspace is None:
            return []

        return [
            dependency
            for package in self.member_packages()
            for dependency in package.dependencies
            if dependency.workspace
            and self._workspace_link(workspace, package, dependency) is workspace_dep
        ]

    @staticmethod
    def _workspace_link(workspace: Package, package: Package, dependency: Dependency) -> Dependency:
        workspace_dep = workspace.find_by_name(dependency.manifest_key)
        if workspace_dep is None:
            raise WorkspaceLinkMissing(package.name, dependency.key)
        return workspace_dep

    # ── Relocation ─────────────────────────────────────────────────────────

    def relocate(self, new_root: Path | str) -> "Document":
        """Deep copy whose manifest paths point below ``new_root`` instead."""
        new_root = Path(new_root)
        old_root = self.root_path.resolve()

        clone = copy.deepcopy(self)
        clone.root_path = new_root
        for package in clone.packages:
            manifest = Path(package.manifest_path).resolve()
            try:
                relative = manifest.relative_to(old_root)
            except ValueError:
                raise PersistenceFailure(
                    f"manifest {manifest} lies outside project root {old_root}"
                ) from None
            package.manifest_path = new_root / relative
        return clone
