"""Wires candidates, sandbox, oracle and engine together for ``crate-features prune``."""

from ..manifest.save import ManifestWriter
from ..project.document import Document
from ..utils.config import CleanLevel, get_settings
from ..utils.logging import get_logger
from .candidates import get_features_to_test
from .display import PruneReporter
from .engine import Persist, PruneEngine, PruneReport, commit
from .known_features import known_features
from .oracle import CargoOracle, Oracle
from .sandbox import ProjectSandbox

logger = get_logger(__name__)


def prune(
    document: Document,
    *,
    dry_run: bool = False,
    skip_tests: bool | None = None,
    clean: CleanLevel | str | None = None,
    sandbox: bool | None = None,
    only_dependency: bool | None = None,
    reporter: PruneReporter | None = None,
    persist: Persist | None = None,
    oracle: Oracle | None = None,
) -> PruneReport:
    """Run a full prune over ``document`` and commit the result unless ``dry_run``.

    Options left as ``None`` fall back to the ``prune`` settings section.
    With the sandbox on, trials run against a temporary copy of the project
    and only the final result is written to the real manifests.
    """
    settings = get_settings().prune
    skip_tests = settings.skip_tests if skip_tests is None else skip_tests
    clean = CleanLevel(settings.clean if clean is None else clean)
    sandbox = settings.sandbox if sandbox is None else sandbox
    only_dependency = settings.only_dependency if only_dependency is None else only_dependency
    persist = persist or ManifestWriter()

    candidates = get_features_to_test(document, only_dependency_features=only_dependency)

    if sandbox:
        with ProjectSandbox(document.root_path, exclude=settings.sandbox_exclude) as scratch:
            trial_document = document.relocate(scratch.path)
            report = _search(
                trial_document,
                candidates,
                oracle or CargoOracle(scratch.path),
                persist,
                skip_tests=skip_tests,
                clean=clean,
                reporter=reporter,
            )
    else:
        report = _search(
            document,
            candidates,
            oracle or CargoOracle(document.root_path),
            persist,
            skip_tests=skip_tests,
            clean=clean,
            reporter=reporter,
        )

    if dry_run:
        logger.info("dry run, manifests left unchanged", prunable=report.prunable_count)
    else:
        commit(report, document, persist)

    if reporter is not None:
        reporter.finish(report)
    return report


def _search(document, candidates, oracle, persist, *, skip_tests, clean, reporter) -> PruneReport:
    engine = PruneEngine(
        document,
        oracle,
        persist,
        known_features=known_features(),
        skip_tests=skip_tests,
        clean=clean,
        reporter=reporter,
    )
    return engine.run(candidates)
