"""Feature graph of a single dependency and its enable/disable cascade.

All records live in one mapping keyed by feature name. Reverse edges
("which features require X") are found by scanning that mapping, so no
record ever holds a reference to another.
"""

from collections.abc import Iterable, Iterator, Mapping

from ..errors import NotFound
from ..utils.logging import get_logger
from .feature import EnabledState, FeatureRecord, SubFeature, SubFeatureKind

logger = get_logger(__name__)

DEFAULT_FEATURE = "default"

Snapshot = dict[str, EnabledState]


class FeatureGraph:
    """Feature records of one dependency plus the cascade rules."""

    def __init__(
        self,
        records: Mapping[str, FeatureRecord] | None = None,
        owner: str = "",
    ) -> None:
        self._records: dict[str, FeatureRecord] = dict(records or {})
        self.owner = owner

    @classmethod
    def from_table(
        cls, table: Mapping[str, Iterable[str]], owner: str = ""
    ) -> "FeatureGraph":
        """Build an all-disabled graph from a raw ``{feature: [sub, ...]}`` table."""
        defaults = set(table.get(DEFAULT_FEATURE, ()))
        records = {
            name: FeatureRecord(
                sub_features=[SubFeature.parse(sub) for sub in subs],
                is_default=name in defaults,
            )
            for name, subs in table.items()
        }
        return cls(records, owner=owner)

    # ── Lookup ─────────────────────────────────────────────────────────────

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def items(self):
        return self._records.items()

    def get(self, name: str) -> FeatureRecord | None:
        return self._records.get(name)

    def record(self, name: str) -> FeatureRecord:
        try:
            return self._records[name]
        except KeyError:
            raise NotFound("feature", name, self.owner or None) from None

    def is_enabled(self, name: str) -> bool:
        return self.record(name).is_enabled

    def enabled_features(self) -> list[str]:
        return sorted(name for name, data in self._records.items() if data.is_enabled)

    def toggleable_enabled_features(self) -> list[str]:
        return sorted(
            name
            for name, data in self._records.items()
            if data.is_enabled and data.is_toggleable
        )

    def default_features(self) -> list[str]:
        return sorted(name for name, data in self._records.items() if data.is_default)

    # ── Cascade ────────────────────────────────────────────────────────────

    def enable_feature(self, name: str) -> None:
        data = self.record(name)

        # already on: also stops feature cycles
        if data.is_enabled:
            return

        data.enabled_state = EnabledState.ON

        for sub in data.sub_features:
            if sub.kind is SubFeatureKind.NORMAL:
                self.enable_feature(sub.name)

    def disable_feature(self, name: str) -> None:
        data = self.record(name)

        if not data.is_enabled:
            return

        # also detaches a workspace-controlled feature
        data.enabled_state = EnabledState.OFF

        for dependent in self.get_dependent_features(name):
            self.disable_feature(dependent)

    def toggle_feature(self, name: str) -> None:
        """Flip a user-controlled feature; workspace-controlled ones are left alone."""
        data = self.record(name)

        if data.enabled_state is EnabledState.WORKSPACE:
            logger.debug("toggle ignored for workspace feature", feature=name, dependency=self.owner)
            return

        if data.is_enabled:
            self.disable_feature(name)
        else:
            self.enable_feature(name)

    def set_feature_to_workspace(self, name: str) -> None:
        self.record(name).enabled_state = EnabledState.WORKSPACE

    # ── Reverse edges ──────────────────────────────────────────────────────

    def get_dependent_features(self, name: str) -> list[str]:
        """All features which list ``name`` as a sub-feature."""
        return [
            other
            for other, data in self._records.items()
            if other != name and data.lists(name)
        ]

    def get_currently_dependent_features(self, name: str) -> list[str]:
        """Enabled features which list ``name`` as a sub-feature."""
        return [
            other
            for other in self.get_dependent_features(name)
            if self._records[other].is_enabled
        ]

    def get_transitive_dependents(self, name: str) -> list[str]:
        """``name`` plus every feature that requires it, directly or not."""
        seen: list[str] = []
        stack = [name]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.append(current)
            stack.extend(self.get_dependent_features(current))
        return seen

    def get_transitive_sub_features(self, name: str) -> list[str]:
        """``name`` plus every sub-feature name it implies, of any kind."""
        seen: list[str] = []
        stack = [name]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.append(current)
            data = self._records.get(current)
            if data is not None:
                stack.extend(sub.name for sub in reversed(data.sub_features))
        return seen

    # ── Rollback ───────────────────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        return {name: data.enabled_state for name, data in self._records.items()}

    def restore(self, snapshot: Snapshot) -> None:
        for name, state in snapshot.items():
            self.record(name).enabled_state = state
