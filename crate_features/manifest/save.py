"""Writing a dependency's feature selection back into its Cargo.toml.

``tomlkit`` keeps comments, ordering and formatting of the rest of the file
intact, so only the touched dependency entry changes.
"""

from collections.abc import MutableMapping
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..errors import PersistenceFailure
from ..project.dependency import Dependency
from ..project.document import Document
from ..utils.logging import get_logger
from .paths import lookup

logger = get_logger(__name__)

# Keys the writer manages itself; anything else makes the entry a table.
MANAGED_KEYS = ("features", "default-features", "version")


class ManifestWriter:
    """Persistence callback used by the picker and the prune engine."""

    def __init__(self) -> None:
        self.writes = 0

    def __call__(self, document: Document, package_name: str, dependency_key: str) -> None:
        self.save_dependency(document, package_name, dependency_key)

    def save_dependency(
        self, document: Document, package_name: str, dependency_key: str
    ) -> None:
        package = document.get_package(package_name)
        dependency = package.get_dependency(dependency_key)

        manifest_path = Path(package.manifest_path)
        try:
            doc = tomlkit.parse(manifest_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PersistenceFailure(f"could not read {manifest_path}: {e}") from e
        except TOMLKitError as e:
            raise PersistenceFailure(f"could not parse {manifest_path}: {e}") from e

        deps = lookup(doc, dependency.table_path)
        if not isinstance(deps, MutableMapping):
            raise PersistenceFailure(
                f"could not find [{'.'.join(dependency.table_path)}] in {manifest_path}"
            )

        apply_selection(deps, dependency)

        # Members inheriting from an edited workspace entry follow it in memory
        if document.is_workspace_package(package_name):
            document.update_workspace_deps()

        try:
            manifest_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
        except OSError as e:
            raise PersistenceFailure(f"could not write {manifest_path}: {e}") from e

        self.writes += 1
        logger.debug(
            "manifest saved",
            package=package_name,
            dependency=dependency_key,
            features=dependency.get_features_to_enable(),
        )


def apply_selection(deps: MutableMapping, dependency: Dependency) -> None:
    """Rewrite the entry of ``dependency`` inside its dependency table."""
    key = dependency.manifest_key
    if key not in deps:
        raise PersistenceFailure(f"dependency '{key}' not found in its table")

    features = dependency.get_features_to_enable()
    can_use_default = dependency.can_use_default()

    entry = deps[key]
    created = not isinstance(entry, MutableMapping)
    if created:
        entry = tomlkit.inline_table()
        if dependency.version:
            entry["version"] = dependency.version

    has_custom_attributes = any(name not in MANAGED_KEYS for name in entry)

    # a bare version string is enough
    if can_use_default and not features and not has_custom_attributes:
        deps[key] = dependency.version or "*"
        return

    if dependency.version and "git" not in entry and "path" not in entry and not dependency.workspace:
        entry["version"] = dependency.version

    if features:
        array = tomlkit.array()
        array.extend(features)
        entry["features"] = array
    elif "features" in entry:
        del entry["features"]

    if can_use_default or dependency.workspace:
        if "default-features" in entry:
            del entry["default-features"]
    else:
        entry["default-features"] = False

    if created:
        deps[key] = entry
