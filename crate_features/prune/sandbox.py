"""Scratch copy of the project so trial builds never touch the real manifests."""

import shutil
import tempfile
from pathlib import Path

from ..errors import PersistenceFailure
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ProjectSandbox:
    """Copies ``source`` into a temporary directory for the lifetime of a ``with`` block.

    Usage:
        with ProjectSandbox(root, exclude=["target"]) as sandbox:
            oracle = CargoOracle(sandbox.path)
    """

    def __init__(self, source: str | Path, exclude: list[str] | None = None) -> None:
        self.source = Path(source).resolve()
        self.exclude = list(exclude or [])
        self._tmp: tempfile.TemporaryDirectory | None = None
        self.path: Path | None = None

    def __enter__(self) -> "ProjectSandbox":
        self._tmp = tempfile.TemporaryDirectory(prefix="crate-features-")
        self.path = Path(self._tmp.name) / self.source.name
        logger.info("copying project into sandbox", source=str(self.source), sandbox=str(self.path))
        try:
            shutil.copytree(
                self.source,
                self.path,
                symlinks=True,
                ignore=self._ignore,
            )
        except (OSError, shutil.Error) as e:
            self._tmp.cleanup()
            raise PersistenceFailure(f"could not copy {self.source} into a sandbox: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._tmp is not None:
            self._tmp.cleanup()
            self._tmp = None

    def _ignore(self, directory: str, names: list[str]) -> list[str]:
        # only top-level entries are excluded
        if Path(directory).resolve() != self.source:
            return []
        return [name for name in names if name in self.exclude]
