"""Interactive feature picker.

Walks package -> dependency -> features with questionary prompts and writes
every confirmed selection straight back to the manifest.
"""

from __future__ import annotations

import questionary
from rich.console import Console

from crate_features.cli.styles import (
    ERROR,
    FEATURES_THEME,
    ICON_ARROW,
    ICON_CHECK,
    ICON_CRATE,
    ICON_CROSS,
    ICON_WORKSPACE,
    MUTED,
    PRIMARY,
    SUCCESS,
)
from crate_features.errors import CrateFeaturesError, NotFound
from crate_features.manifest.save import ManifestWriter
from crate_features.project.dependency import Dependency
from crate_features.project.document import Document
from crate_features.project.feature import EnabledState
from crate_features.project.graph import DEFAULT_FEATURE
from crate_features.project.package import Package
from crate_features.utils.logging import get_logger

logger = get_logger(__name__)

DONE = "__done__"


def apply_selection(dependency: Dependency, selected: list[str]) -> list[str]:
    """Make the toggleable features of ``dependency`` match ``selected``.

    Unchecked features are disabled before checked ones are enabled, so a
    checked feature brings back anything it needs. Returns the names whose
    state was toggled.
    """
    wanted = set(selected)
    toggled = []

    for name, data in sorted(dependency.features.items()):
        if data.is_toggleable and data.is_enabled and name not in wanted:
            dependency.toggle_feature(name)
            toggled.append(name)

    for name in sorted(wanted):
        data = dependency.get_feature(name)
        if data is None:
            raise NotFound("feature", name, dependency.key)
        if data.is_toggleable and not data.is_enabled:
            dependency.toggle_feature(name)
            toggled.append(name)

    return toggled


def feature_choices(dependency: Dependency) -> list[questionary.Choice]:
    """One checkbox entry per feature, workspace-controlled ones locked."""
    choices = []
    for name, data in sorted(dependency.features.items()):
        if name == DEFAULT_FEATURE:
            continue

        title = name
        if data.is_default:
            title += " (default)"

        required_by = dependency.get_currently_dependent_features(name)
        if required_by:
            title += f"  <- {', '.join(sorted(required_by))}"

        disabled = None
        if data.enabled_state is EnabledState.WORKSPACE:
            disabled = "set by workspace"

        choices.append(
            questionary.Choice(
                title=title,
                value=name,
                checked=data.is_enabled,
                disabled=disabled,
            )
        )
    return choices


def dependency_title(dependency: Dependency) -> str:
    title = dependency.key
    if dependency.rename:
        title += f" ({dependency.rename})"
    if dependency.comment:
        title += f" ({dependency.comment})"
    if not dependency.has_features():
        title += " [no features]"
    return title


class FeaturePicker:
    """Prompt loop over a Document."""

    def __init__(
        self,
        document: Document,
        persist=None,
        console: Console | None = None,
    ) -> None:
        self.document = document
        self.persist = persist or ManifestWriter()
        self.console = console or Console(theme=FEATURES_THEME)

    def run(self, dependency: str | None = None) -> None:
        """Start the session, optionally jumping straight to ``dependency``."""
        try:
            if dependency is not None:
                package, dep = self.find_dependency(dependency)
                self.edit_dependency(package, dep)

            while True:
                package = self.select_package()
                if package is None:
                    return
                self.browse_package(package)
                if len(self.document.packages) == 1:
                    return
        except (KeyboardInterrupt, EOFError):
            self.console.print()

    def find_dependency(self, name: str) -> tuple[Package, Dependency]:
        for package in self.document.packages:
            for dep in package.dependencies:
                if dep.key == name or dep.matches(name):
                    return package, dep
        raise NotFound("dependency", name)

    def select_package(self) -> Package | None:
        packages = self.document.packages
        if len(packages) == 1:
            return packages[0]

        choices = []
        for index, package in enumerate(packages):
            icon = ICON_WORKSPACE if index == self.document.workspace_index else ICON_CRATE
            choices.append(
                questionary.Choice(
                    title=f"{icon} {package.name}",
                    value=index,
                    disabled="no dependencies" if not package.dependencies else None,
                )
            )
        choices.append(questionary.Choice(title="Done", value=DONE))

        answer = questionary.select("Which package?", choices=choices).ask()
        if answer is None or answer == DONE:
            return None
        return self.document.get_package_by_index(answer)

    def browse_package(self, package: Package) -> None:
        while True:
            choices = [
                questionary.Choice(
                    title=dependency_title(dep),
                    value=dep.key,
                    disabled="no features" if not dep.has_features() else None,
                )
                for dep in package.dependencies
            ]
            choices.append(questionary.Choice(title="Done", value=DONE))

            answer = questionary.select(
                f"{package.name}: which dependency?", choices=choices
            ).ask()
            if answer is None or answer == DONE:
                return

            self.edit_dependency(package, package.get_dependency(answer))

    def edit_dependency(self, package: Package, dependency: Dependency) -> None:
        self.console.print(
            f"  [{PRIMARY}]{ICON_ARROW}[/{PRIMARY}] {package.name} / {dependency.key} "
            f"[{MUTED}]{dependency.version}[/{MUTED}]"
        )

        selected = questionary.checkbox(
            "Features to enable:",
            choices=feature_choices(dependency),
        ).ask()
        if selected is None:
            return

        snapshot = dependency.snapshot()
        try:
            toggled = apply_selection(dependency, selected)
            if toggled:
                self.persist(self.document, package.name, dependency.key)
        except CrateFeaturesError as e:
            dependency.restore(snapshot)
            if self.document.is_workspace_package(package.name):
                self.document.update_workspace_deps()
            logger.warning("could not update features", dependency=dependency.key, error=str(e))
            self.console.print(f"  [{ERROR}]{ICON_CROSS}[/{ERROR}] {e}")
            return

        if toggled:
            self.console.print(
                f"  [{SUCCESS}]{ICON_CHECK}[/{SUCCESS}] saved "
                f"[{MUTED}]{', '.join(dependency.get_features_to_enable()) or 'defaults'}[/{MUTED}]"
            )
