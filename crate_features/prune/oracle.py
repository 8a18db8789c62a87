"""Build/test/clean oracle used as the pass/fail signal while pruning."""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import OracleLaunchFailure
from ..utils.config import get_settings
from ..utils.logging import get_logger

logger = get_logger(__name__)


class Oracle(ABC):
    """Runs the project's build and tests against whatever is on disk."""

    @abstractmethod
    def build(self) -> bool:
        """Build every target; ``False`` means the build failed."""
        pass

    @abstractmethod
    def test(self) -> bool:
        """Run the test suite; ``False`` means a test failed."""
        pass

    @abstractmethod
    def clean(self) -> None:
        """Remove build artifacts. Raises OracleLaunchFailure on failure."""
        pass

    def check(self, skip_tests: bool = False) -> bool:
        if not self.build():
            return False

        if not skip_tests and not self.test():
            return False

        return True


class CargoOracle(Oracle):
    """Oracle that shells out to cargo in the project directory."""

    def __init__(
        self,
        project_dir: str | Path,
        binary: str | None = None,
        build_args: list[str] | None = None,
        test_args: list[str] | None = None,
        clean_args: list[str] | None = None,
    ) -> None:
        cargo = get_settings().cargo
        self.project_dir = Path(project_dir)
        self.binary = binary or cargo.binary
        self.build_args = build_args or cargo.build_args
        self.test_args = test_args or cargo.test_args
        self.clean_args = clean_args or cargo.clean_args
        self.invocations = 0

    def build(self) -> bool:
        return self._run(self.build_args) == 0

    def test(self) -> bool:
        return self._run(self.test_args) == 0

    def clean(self) -> None:
        code = self._run(self.clean_args)
        if code != 0:
            raise OracleLaunchFailure(f"Could not clean: {self.binary} exited with {code}")

    def _run(self, args: list[str]) -> int:
        """Run cargo with output discarded and return its exit code."""
        command = [self.binary, *args]
        self.invocations += 1
        try:
            result = subprocess.run(
                command,
                cwd=str(self.project_dir),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise OracleLaunchFailure(f"could not run {' '.join(command)}: {e}") from e

        if result.returncode < 0:
            raise OracleLaunchFailure(
                f"{' '.join(command)} was terminated by signal {-result.returncode}"
            )

        logger.debug("cargo finished", command=command, returncode=result.returncode)
        return result.returncode
