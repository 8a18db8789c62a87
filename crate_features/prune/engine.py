"""Prune search: disable each candidate, ask the oracle, roll back, commit the survivors."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from ..project.dependency import Dependency
from ..project.document import Document
from ..utils.config import CleanLevel
from ..utils.logging import get_logger
from .candidates import FeaturesMap
from .display import PruneReporter
from .oracle import Oracle

logger = get_logger(__name__)

# (document, package name, dependency key) -> None
Persist = Callable[[Document, str, str], None]


@dataclass
class DependencyReport:
    """Outcome of the search for one dependency."""

    package: str
    dependency: str
    candidates: list[str]
    prunable: list[str] = field(default_factory=list)
    known: list[str] = field(default_factory=list)
    oracle_runs: int = 0


@dataclass
class PruneReport:
    """Outcome of a whole prune run."""

    dependencies: list[DependencyReport] = field(default_factory=list)
    has_known_features: bool = False

    @property
    def prunable_map(self) -> FeaturesMap:
        data: FeaturesMap = {}
        for dep in self.dependencies:
            if dep.prunable:
                data.setdefault(dep.package, {})[dep.dependency] = list(dep.prunable)
        return data

    @property
    def prunable_count(self) -> int:
        return sum(len(dep.prunable) for dep in self.dependencies)

    @property
    def oracle_runs(self) -> int:
        return sum(dep.oracle_runs for dep in self.dependencies)


class PruneEngine:
    """Finds the enabled features a project builds and tests without.

    Every trial goes through ``persist`` so the oracle sees the trial state
    on disk, and every trial is rolled back and persisted again before the
    next one starts.

    Args:
        document: The project whose dependencies are searched.
        oracle: Build/test/clean signal.
        persist: Writes one dependency back to its manifest.
        known_features: crate name -> features that are prunable without testing.
        skip_tests: Only build, never run the test suite.
        clean: When to clear the build cache.
        reporter: Progress hooks.
    """

    def __init__(
        self,
        document: Document,
        oracle: Oracle,
        persist: Persist,
        *,
        known_features: Mapping[str, list[str]] | None = None,
        skip_tests: bool = False,
        clean: CleanLevel = CleanLevel.NEVER,
        reporter: PruneReporter | None = None,
    ) -> None:
        self.document = document
        self.oracle = oracle
        self.persist = persist
        self.known_features = dict(known_features or {})
        self.skip_tests = skip_tests
        self.clean = CleanLevel(clean)
        self.reporter = reporter or PruneReporter()

    def run(self, candidates: FeaturesMap) -> PruneReport:
        report = PruneReport()

        total = sum(len(features) for deps in candidates.values() for features in deps.values())
        self.reporter.start(total, self.document.is_workspace())
        logger.info("prune started", features=total, packages=len(candidates))

        for package_name in sorted(candidates):
            dependencies = candidates[package_name]
            if not dependencies:
                continue

            self.reporter.next_package(
                package_name, sum(len(features) for features in dependencies.values())
            )

            for dependency_key in sorted(dependencies):
                features = dependencies[dependency_key]
                if not features:
                    continue

                dep_report = self._prune_dependency(package_name, dependency_key, features)
                report.dependencies.append(dep_report)
                if dep_report.known:
                    report.has_known_features = True

                self.reporter.finish_dependency(dep_report)

                if self.clean is CleanLevel.DEPENDENCY:
                    self.oracle.clean()

            if self.clean is CleanLevel.PACKAGE:
                self.oracle.clean()

        if report.has_known_features:
            self.reporter.known_features_notice()

        logger.info(
            "prune finished",
            prunable=report.prunable_count,
            oracle_runs=report.oracle_runs,
        )
        return report

    def _prune_dependency(
        self, package_name: str, dependency_key: str, features: list[str]
    ) -> DependencyReport:
        dependency = self.document.get_package(package_name).get_dependency(dependency_key)
        dep_report = DependencyReport(package_name, dependency_key, list(features))

        initially_enabled = set(dependency.features.enabled_features())

        seeds = self._known_closure(dependency)
        prunable = list(seeds)

        self.reporter.next_dependency(dependency_key, len(features))

        for index, feature in enumerate(features):
            self.reporter.next_feature(index, feature)

            if feature in prunable:
                logger.debug("feature already prunable", dependency=dependency_key, feature=feature)
                self.reporter.finish_feature()
                continue

            passed = self._trial(package_name, dependency, feature)
            dep_report.oracle_runs += 1
            logger.debug(
                "trial finished",
                package=package_name,
                dependency=dependency_key,
                feature=feature,
                passed=passed,
            )

            if passed:
                for name in dependency.features.get_transitive_dependents(feature):
                    if name not in prunable:
                        prunable.append(name)

            self.reporter.finish_feature()

        dep_report.known = [name for name in features if name in seeds]
        dep_report.prunable = sorted(
            name for name in prunable if name not in seeds and name in initially_enabled
        )
        return dep_report

    def _trial(self, package_name: str, dependency: Dependency, feature: str) -> bool:
        """Disable ``feature`` on disk, run the oracle, then put everything back."""
        snapshot = dependency.snapshot()
        members = [
            (member, member.snapshot())
            for member in _inheriting(self.document, package_name, dependency)
        ]
        try:
            dependency.disable_feature(feature)
            self.persist(self.document, package_name, dependency.key)
            return self.oracle.check(self.skip_tests)
        finally:
            try:
                dependency.restore(snapshot)
                self.persist(self.document, package_name, dependency.key)
            finally:
                # propagation cascades into member-local features
                for member, member_snapshot in members:
                    member.restore(member_snapshot)

    def _known_closure(self, dependency: Dependency) -> list[str]:
        seeds: list[str] = []
        for name in self.known_features.get(dependency.name, []):
            for sub in dependency.features.get_transitive_sub_features(name):
                if sub not in seeds:
                    seeds.append(sub)
        return seeds


def commit(report: PruneReport, document: Document, persist: Persist) -> list[str]:
    """Disable every prunable feature in ``document`` and persist each edited dependency.

    Features an inheriting member enables itself are kept when a workspace
    feature they build on is pruned, because the member manifests were never
    written during the search.

    Returns the keys of the dependencies that were written.
    """
    written = []
    for dep_report in report.dependencies:
        if not dep_report.prunable:
            continue

        dependency = document.get_package(dep_report.package).get_dependency(dep_report.dependency)
        members = [
            (member, member.features.toggleable_enabled_features())
            for member in _inheriting(document, dep_report.package, dependency)
        ]

        for feature in dep_report.prunable:
            dependency.disable_feature(feature)

        persist(document, dep_report.package, dep_report.dependency)

        for member, local in members:
            for name in local:
                member.enable_feature(name)

        written.append(f"{dep_report.package}/{dep_report.dependency}")
        logger.info(
            "features disabled",
            package=dep_report.package,
            dependency=dep_report.dependency,
            features=dep_report.prunable,
        )
    return written


def _inheriting(document: Document, package_name: str, dependency: Dependency) -> list[Dependency]:
    if not document.is_workspace_package(package_name):
        return []
    return document.inheriting_dependencies(dependency)
