"""A workspace member (or the synthetic workspace package) and its dependencies."""

from dataclasses import dataclass, field
from pathlib import Path

from ..errors import NotFound
from .dependency import Dependency


@dataclass
class Package:
    """Named collection of dependencies plus the manifest they are declared in."""

    name: str
    manifest_path: Path
    dependencies: list[Dependency] = field(default_factory=list)

    def get_dependency(self, key: str) -> Dependency:
        for dependency in self.dependencies:
            if dependency.key == key:
                return dependency
        raise NotFound("dependency", key, self.name)

    def find_by_name(self, name: str) -> Dependency | None:
        """Dependency declared under the manifest key ``name``.

        Falls back to the first dependency whose crate name or rename is
        ``name``, so ``rand = { workspace = true }`` links to ``rand`` even
        when ``rand07 = { package = "rand" }`` is declared first.
        """
        for dependency in self.dependencies:
            if dependency.manifest_key == name:
                return dependency
        for dependency in self.dependencies:
            if dependency.matches(name):
                return dependency
        return None
