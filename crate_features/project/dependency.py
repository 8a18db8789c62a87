"""A single dependency declaration and the feature selection it carries."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from .feature import FeatureRecord, SubFeatureKind
from .graph import DEFAULT_FEATURE, FeatureGraph, Snapshot


class DependencyKind(str, Enum):
    """Which dependency table a declaration lives in."""

    NORMAL = "normal"
    DEVELOPMENT = "dev"
    BUILD = "build"
    WORKSPACE = "workspace"
    UNKNOWN = "unknown"

    @classmethod
    def from_metadata(cls, kind: str | None) -> "DependencyKind":
        """Map the ``kind`` field of ``cargo metadata`` output."""
        return {
            None: cls.NORMAL,
            "normal": cls.NORMAL,
            "dev": cls.DEVELOPMENT,
            "build": cls.BUILD,
        }.get(kind, cls.UNKNOWN)

    @property
    def table(self) -> str:
        return {
            DependencyKind.DEVELOPMENT: "dev-dependencies",
            DependencyKind.BUILD: "build-dependencies",
            DependencyKind.WORKSPACE: "workspace.dependencies",
        }.get(self, "dependencies")


@dataclass
class Dependency:
    """One entry of a package's dependency tables.

    ``rename`` is the key the manifest uses when it differs from the crate
    name (``foo = { package = "bar" }``). ``workspace`` marks a declaration
    that inherits version and features from ``[workspace.dependencies]``.
    """

    name: str
    version: str = "*"
    kind: DependencyKind = DependencyKind.NORMAL
    rename: str | None = None
    target: str | None = None
    workspace: bool = False
    comment: str | None = None
    features: FeatureGraph = field(default_factory=FeatureGraph)

    def __post_init__(self) -> None:
        if not self.features.owner:
            self.features.owner = self.key

    @classmethod
    def from_resolved(
        cls,
        name: str,
        feature_table: Mapping[str, Iterable[str]],
        *,
        version: str = "*",
        kind: DependencyKind = DependencyKind.NORMAL,
        rename: str | None = None,
        target: str | None = None,
        workspace: bool = False,
        uses_default_features: bool = True,
        enabled_features: Iterable[str] = (),
    ) -> "Dependency":
        """Build a dependency from resolver data and apply its active selection."""
        dependency = cls(
            name=name,
            version=version.removeprefix("^"),
            kind=kind,
            rename=rename,
            target=target,
            workspace=workspace,
        )
        dependency.features = FeatureGraph.from_table(feature_table, owner=dependency.key)

        for feature in enabled_features:
            if SubFeatureKind.from_name(feature) is SubFeatureKind.NORMAL:
                dependency.enable_feature(feature)

        if uses_default_features:
            for feature in feature_table.get(DEFAULT_FEATURE, ()):
                if SubFeatureKind.from_name(feature) is SubFeatureKind.NORMAL:
                    dependency.enable_feature(feature)

        return dependency

    # ── Naming ─────────────────────────────────────────────────────────────

    @property
    def manifest_key(self) -> str:
        """Key of this entry inside its dependency table."""
        return self.rename or self.name

    @property
    def key(self) -> str:
        """Identifier unique within a package: ``[dev:|build:][target.]name``."""
        key = f"{self.target}.{self.name}" if self.target else self.name
        if self.kind is DependencyKind.DEVELOPMENT:
            key = f"dev:{key}"
        elif self.kind is DependencyKind.BUILD:
            key = f"build:{key}"
        return key

    @property
    def table_path(self) -> list[str]:
        """Key path of the dependency table holding this entry."""
        path = self.kind.table.split(".")
        if self.target:
            return ["target", self.target, *path]
        return path

    def matches(self, name: str) -> bool:
        return name in (self.name, self.rename)

    # ── Features ───────────────────────────────────────────────────────────

    def has_features(self) -> bool:
        return len(self.features) > 0

    def get_feature(self, name: str) -> FeatureRecord | None:
        return self.features.get(name)

    def enable_feature(self, name: str) -> None:
        self.features.enable_feature(name)

    def disable_feature(self, name: str) -> None:
        self.features.disable_feature(name)

    def toggle_feature(self, name: str) -> None:
        self.features.toggle_feature(name)

    def set_feature_to_workspace(self, name: str) -> None:
        self.features.set_feature_to_workspace(name)

    def get_dependent_features(self, name: str) -> list[str]:
        return self.features.get_dependent_features(name)

    def get_currently_dependent_features(self, name: str) -> list[str]:
        return self.features.get_currently_dependent_features(name)

    def snapshot(self) -> Snapshot:
        return self.features.snapshot()

    def restore(self, snapshot: Snapshot) -> None:
        self.features.restore(snapshot)

    def can_use_default(self) -> bool:
        if self.workspace:
            return False

        return all(
            data.is_enabled for _, data in self.features.items() if data.is_default
        )

    def get_features_to_enable(self) -> list[str]:
        """Smallest explicit feature list that reproduces the current selection.

        A feature is left out when another enabled feature implies it. Inside
        a cycle of features that imply each other, the first name in sorted
        order stands for the whole cycle.
        """
        can_use_default = self.can_use_default()

        enabled = self.features.enabled_features()
        candidates = [
            name
            for name in enabled
            if self.features.record(name).is_toggleable
            and name != DEFAULT_FEATURE
            and not (can_use_default and self.features.record(name).is_default)
        ]
        implies = {name: set(self.features.get_transitive_sub_features(name)) for name in enabled}

        selected: list[str] = []
        for name in candidates:
            implied = any(
                other != name
                and name in implies[other]
                and (other not in implies[name] or other not in candidates or other in selected)
                for other in enabled
            )
            if not implied:
                selected.append(name)
        return selected
