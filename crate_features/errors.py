"""Exception hierarchy for crate-features."""


class CrateFeaturesError(Exception):
    """Base exception for all crate-features failures."""
    pass


class NotFound(CrateFeaturesError, LookupError):
    """Raised when a feature, dependency or package name does not exist."""

    def __init__(self, kind: str, name: str, owner: str | None = None):
        message = f"could not find {kind} '{name}'"
        if owner:
            message += f" in {owner}"
        super().__init__(message)
        self.kind = kind
        self.name = name
        self.owner = owner


class WorkspaceLinkMissing(CrateFeaturesError):
    """Raised when a workspace-inherited dependency has no workspace entry."""

    def __init__(self, package: str, dependency: str):
        super().__init__(
            f"'{dependency}' in package '{package}' uses workspace = true "
            "but no matching entry exists in [workspace.dependencies]"
        )
        self.package = package
        self.dependency = dependency


class OracleLaunchFailure(CrateFeaturesError):
    """Raised when the build/test/clean command could not be run at all."""
    pass


class PersistenceFailure(CrateFeaturesError):
    """Raised when a manifest could not be read, located or written."""
    pass


class ResolverError(CrateFeaturesError):
    """Raised when cargo metadata cannot be obtained or matched to manifests."""
    pass


class ConfigError(CrateFeaturesError):
    """Raised when the settings file is invalid."""
    pass
