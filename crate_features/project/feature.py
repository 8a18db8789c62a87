"""Feature records: sub-feature edges, default membership and enabled state."""

from dataclasses import dataclass, field
from enum import Enum


class SubFeatureKind(str, Enum):
    """How a sub-feature entry of a feature table is interpreted.

    See https://doc.rust-lang.org/cargo/reference/features.html
    """

    NORMAL = "normal"
    OPTIONAL_DEPENDENCY = "optional_dependency"  # dep:gif
    DEPENDENCY_FEATURE = "dependency_feature"  # jpeg-decoder/rayon

    @classmethod
    def from_name(cls, name: str) -> "SubFeatureKind":
        if name.startswith("dep:"):
            return cls.OPTIONAL_DEPENDENCY
        if "/" in name:
            return cls.DEPENDENCY_FEATURE
        return cls.NORMAL


class EnabledState(str, Enum):
    """Normal(True), Normal(False) or forced on by workspace inheritance."""

    ON = "on"
    OFF = "off"
    WORKSPACE = "workspace"


@dataclass(frozen=True)
class SubFeature:
    """One entry of a feature's implied list."""

    name: str
    kind: SubFeatureKind

    @classmethod
    def parse(cls, raw: str) -> "SubFeature":
        return cls(name=raw, kind=SubFeatureKind.from_name(raw))

    def __str__(self) -> str:
        if self.kind is SubFeatureKind.OPTIONAL_DEPENDENCY:
            return f"dep:{self.name.removeprefix('dep:')}"
        return self.name


@dataclass
class FeatureRecord:
    """State of a single feature within one dependency."""

    sub_features: list[SubFeature] = field(default_factory=list)
    is_default: bool = False
    enabled_state: EnabledState = EnabledState.OFF

    @property
    def is_enabled(self) -> bool:
        return self.enabled_state is not EnabledState.OFF

    @property
    def is_toggleable(self) -> bool:
        return self.enabled_state is not EnabledState.WORKSPACE

    def has_dependency_features(self) -> bool:
        """True if enabling this feature pulls in another crate or crate feature."""
        return any(
            sub.kind is not SubFeatureKind.NORMAL for sub in self.sub_features
        )

    def lists(self, name: str) -> bool:
        return any(sub.name == name for sub in self.sub_features)
