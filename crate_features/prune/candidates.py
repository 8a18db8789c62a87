"""Which enabled features a prune run is going to test.

Users protect features with keep tables in their manifests::

    # root Cargo.toml, applies to every package
    [workspace.cargo-features-manager.keep]
    tokio = ["rt-multi-thread"]

    # any package manifest, applies to that package
    [cargo-features-manager.keep]
    serde = ["default"]

The same tables are also read from ``[workspace.metadata.cargo-features-manager.keep]``
and ``[package.metadata.cargo-features-manager.keep]``.
"""

from collections.abc import Mapping
from pathlib import Path

from ..errors import ConfigError, PersistenceFailure
from ..manifest.paths import lookup, read_manifest
from ..project.dependency import Dependency
from ..project.document import Document
from ..utils.logging import get_logger

logger = get_logger(__name__)

# package name -> dependency key -> feature names
FeaturesMap = dict[str, dict[str, list[str]]]
KeepTable = dict[str, list[str]]

WORKSPACE_KEEP_PATHS = (
    ["workspace", "cargo-features-manager", "keep"],
    ["workspace", "metadata", "cargo-features-manager", "keep"],
)
PACKAGE_KEEP_PATHS = (
    ["cargo-features-manager", "keep"],
    ["package", "metadata", "cargo-features-manager", "keep"],
)


def get_features_to_test(document: Document, only_dependency_features: bool = False) -> FeaturesMap:
    """Enabled, user-controlled features minus everything the user keeps."""
    base_keep = load_keep_table(Path(document.root_path) / "Cargo.toml", WORKSPACE_KEEP_PATHS)

    enabled_features = get_enabled_features(document)

    if only_dependency_features:
        remove_non_dependency_features(document, enabled_features)

    remove_kept_features(document, base_keep, enabled_features)

    return enabled_features


def get_enabled_features(document: Document) -> FeaturesMap:
    data: FeaturesMap = {}

    for package in document.packages:
        package_data = {}

        for dependency in package.dependencies:
            enabled = dependency.features.toggleable_enabled_features()
            if enabled:
                package_data[dependency.key] = enabled

        if package_data:
            data[package.name] = package_data

    return data


def load_keep_table(manifest_path: Path, item_paths) -> KeepTable:
    """Merge the keep tables found at ``item_paths``; a missing manifest keeps nothing."""
    try:
        manifest = read_manifest(manifest_path)
    except PersistenceFailure:
        return {}

    table: KeepTable = {}
    for item_path in item_paths:
        item = lookup(manifest, item_path)
        if item is None:
            continue
        if not isinstance(item, Mapping):
            raise ConfigError(f"could not parse {'.'.join(item_path)} in {manifest_path}")

        for crate, features in item.items():
            if not isinstance(features, list):
                raise ConfigError(
                    f"Invalid format to keep features for {crate} in {manifest_path}"
                )
            table.setdefault(crate, []).extend(f for f in features if isinstance(f, str))

    return table


def remove_non_dependency_features(document: Document, enabled_features: FeaturesMap) -> None:
    """Drop candidates that only gate code inside the crate itself."""
    for package_name, dependencies in enabled_features.items():
        package = document.get_package(package_name)

        for dependency_key, features in dependencies.items():
            dependency = package.get_dependency(dependency_key)
            features[:] = [
                name
                for name in features
                if (record := dependency.get_feature(name)) is not None
                and record.has_dependency_features()
            ]


def remove_kept_features(
    document: Document, base_keep: KeepTable, enabled_features: FeaturesMap
) -> None:
    for package_name, dependencies in enabled_features.items():
        package = document.get_package(package_name)
        package_keep = load_keep_table(Path(package.manifest_path), PACKAGE_KEEP_PATHS)

        for dependency_key, features in dependencies.items():
            dependency = package.get_dependency(dependency_key)

            for kept in [*package_keep.get(dependency.name, []), *base_keep.get(dependency.name, [])]:
                remove_feature(kept, features, dependency)

            logger.debug(
                "prune candidates",
                package=package_name,
                dependency=dependency_key,
                features=features,
            )


def remove_feature(feature: str, features: list[str], dependency: Dependency) -> None:
    """Remove ``feature`` and everything it implies from ``features``."""
    protected = set(dependency.features.get_transitive_sub_features(feature))
    features[:] = [name for name in features if name not in protected]
