"""Building a :class:`Document` from ``cargo metadata`` and the manifests.

``cargo metadata --all-features`` supplies every member's dependency
declarations and every resolved crate's feature table. The manifests are read
only for what metadata does not report: the ``workspace = true`` flag and the
``[workspace.dependencies]`` table.
"""

import json
import re
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..errors import NotFound, ResolverError
from ..project.dependency import Dependency, DependencyKind
from ..project.document import WORKSPACE_PACKAGE_NAME, Document
from ..project.package import Package
from ..utils.config import get_settings
from ..utils.logging import get_logger
from .paths import lookup, read_manifest

logger = get_logger(__name__)

_COMPARATOR = re.compile(r"^\s*(\^|~|=|>=|<=|>|<)?\s*v?(\d+)(?:\.(\d+|\*|x))?(?:\.(\d+|\*|x))?")


def run_cargo_metadata(project_dir: str | Path) -> dict[str, Any]:
    """Run ``cargo metadata`` in ``project_dir`` and return the parsed JSON."""
    settings = get_settings()
    command = [settings.cargo.binary, *settings.cargo.metadata_args]
    logger.info("running cargo metadata", cwd=str(project_dir))
    try:
        result = subprocess.run(
            command,
            cwd=str(project_dir),
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise ResolverError(f"could not run {' '.join(command)}: {e}") from e

    if result.returncode != 0:
        raise ResolverError(
            f"{' '.join(command)} failed with exit code {result.returncode}: "
            f"{result.stderr.strip()}"
        )

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ResolverError(f"cargo metadata produced invalid JSON: {e}") from e


def load_document(project_dir: str | Path = ".") -> Document:
    """Resolve the project in ``project_dir`` into a :class:`Document`."""
    return document_from_metadata(run_cargo_metadata(project_dir))


def document_from_metadata(metadata: Mapping[str, Any]) -> Document:
    packages_by_id = {package["id"]: package for package in metadata.get("packages", [])}
    crates = list(packages_by_id.values())

    members = []
    for member_id in metadata.get("workspace_members", []):
        if member_id not in packages_by_id:
            raise ResolverError(f"workspace member {member_id} missing from metadata")
        members.append(parse_package(packages_by_id[member_id], crates))

    if len(members) == 1 and not members[0].dependencies:
        raise ResolverError("no dependencies were found")

    root = Path(metadata.get("workspace_root", "."))
    workspace = parse_workspace(root / "Cargo.toml", crates)

    return Document(members, workspace=workspace, root_path=root)


def parse_package(package: Mapping[str, Any], crates: list[Mapping[str, Any]]) -> Package:
    manifest_path = Path(package["manifest_path"])
    manifest = read_manifest(manifest_path)

    dependencies = [
        parse_dependency(raw, crates, manifest) for raw in package.get("dependencies", [])
    ]
    return Package(
        name=package["name"],
        manifest_path=manifest_path,
        dependencies=dependencies,
    )


def parse_dependency(
    raw: Mapping[str, Any],
    crates: list[Mapping[str, Any]],
    manifest: Mapping[str, Any],
) -> Dependency:
    """Turn one ``dependencies[]`` entry of a member into a Dependency."""
    name = raw["name"]
    rename = raw.get("rename")
    kind = DependencyKind.from_metadata(raw.get("kind"))
    target = raw.get("target")
    req = raw.get("req", "*")

    declared = Dependency(name=name, kind=kind, rename=rename, target=target)
    entry = lookup(manifest, [*declared.table_path, declared.manifest_key])
    if entry is None:
        raise ResolverError(
            f"could not find {declared.manifest_key} in "
            f"[{'.'.join(declared.table_path)}]"
        )
    workspace = isinstance(entry, Mapping) and entry.get("workspace") is True

    crate = find_crate(name, req, crates)
    if crate is None:
        raise ResolverError(f"could not find a resolved version for {name} {req}")

    try:
        return Dependency.from_resolved(
            name,
            crate.get("features", {}),
            version=req,
            kind=kind,
            rename=rename,
            target=target,
            workspace=workspace,
            uses_default_features=raw.get("uses_default_features", True),
            enabled_features=raw.get("features", []),
        )
    except NotFound as e:
        raise ResolverError(f"{name}: {e}") from e


def parse_workspace(manifest_path: Path, crates: list[Mapping[str, Any]]) -> Package | None:
    """The synthetic package for ``[workspace.dependencies]``, if declared."""
    if not manifest_path.exists():
        return None

    table = lookup(read_manifest(manifest_path), ["workspace", "dependencies"])
    if table is None:
        return None
    if not isinstance(table, Mapping):
        raise ResolverError("failed to parse workspace.dependencies - not a table")

    dependencies = [
        parse_workspace_dependency(key, data, crates) for key, data in table.items()
    ]
    return Package(
        name=WORKSPACE_PACKAGE_NAME,
        manifest_path=manifest_path,
        dependencies=dependencies,
    )


def parse_workspace_dependency(
    key: str, data: Any, crates: list[Mapping[str, Any]]
) -> Dependency:
    version = "*"
    features: list[str] = []
    uses_default_features = True
    name = key
    rename = None

    if isinstance(data, Mapping):
        version = data.get("version", "*")
        features = list(data.get("features", []))
        uses_default_features = data.get("default-features", True)
        if "package" in data:
            name = data["package"]
            rename = key
    elif isinstance(data, str):
        version = data
    else:
        raise ResolverError(f"could not parse workspace dependency {key}")

    crate = find_crate(name, version, crates)
    if crate is None:
        # declared but not used by any member
        dependency = Dependency(
            name=name,
            version=version,
            kind=DependencyKind.WORKSPACE,
            rename=rename,
            comment="unused",
        )
        return dependency

    try:
        return Dependency.from_resolved(
            name,
            crate.get("features", {}),
            version=version,
            kind=DependencyKind.WORKSPACE,
            rename=rename,
            uses_default_features=uses_default_features,
            enabled_features=features,
        )
    except NotFound as e:
        raise ResolverError(f"workspace dependency {key}: {e}") from e


def find_crate(
    name: str, req: str, crates: list[Mapping[str, Any]]
) -> Mapping[str, Any] | None:
    """Pick the resolved crate named ``name`` that satisfies ``req``."""
    candidates = [crate for crate in crates if crate["name"] == name]
    if len(candidates) <= 1:
        return candidates[0] if candidates else None

    for crate in candidates:
        if version_matches(crate["version"], req):
            return crate
    return None


def version_matches(version: str, req: str) -> bool:
    """Approximate Cargo requirement matching on the first comparator.

    Only used to tell apart several resolved versions of the same crate, so
    caret, tilde, exact and wildcard forms are enough in practice.
    """
    req = req.split(",")[0].strip()
    if req in ("", "*"):
        return True

    match = _COMPARATOR.match(req)
    if match is None:
        return False
    op, *parts = match.groups()

    wanted = [int(part) for part in parts if part is not None and part.isdigit()]
    actual = [int(part) for part in re.findall(r"\d+", version.split("-")[0])[:3]]

    if op in (">=", ">", "<=", "<"):
        padded = wanted + [0] * (3 - len(wanted))
        return {
            ">=": actual >= padded,
            ">": actual > padded,
            "<=": actual <= padded,
            "<": actual < padded,
        }[op]

    if op == "=":
        return actual[: len(wanted)] == wanted

    if op == "~":
        significant = wanted[:2] if len(wanted) > 1 else wanted[:1]
        return actual[: len(significant)] == significant and actual >= wanted + [0] * (3 - len(wanted))

    # caret (also the bare form): the leftmost non-zero component must match
    significant = []
    for part in wanted:
        significant.append(part)
        if part != 0:
            break
    padded = wanted + [0] * (3 - len(wanted))
    return actual[: len(significant)] == significant and actual >= padded
