"""Walking dotted key paths through parsed Cargo manifests.

Works on plain dicts from ``tomllib`` as well as ``tomlkit`` documents, since
both behave as mappings.
"""

import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..errors import PersistenceFailure


def _normalize_platform(key: str) -> str:
    return key.strip().strip("'\"").replace(" ", "")


def lookup(document: Mapping[str, Any], path: list[str]) -> Any | None:
    """Return the item at ``path`` or ``None`` when any segment is missing.

    The segment after ``target`` is a platform (``cfg(unix)`` or a triple) and
    is compared ignoring whitespace and quoting.
    """
    item: Any = document
    previous = None
    for key in path:
        if not isinstance(item, Mapping):
            return None
        if previous == "target":
            wanted = _normalize_platform(key)
            item = next(
                (value for name, value in item.items() if _normalize_platform(name) == wanted),
                None,
            )
        else:
            item = item.get(key)
        if item is None:
            return None
        previous = key
    return item


def read_manifest(manifest_path: str | Path) -> dict[str, Any]:
    """Parse a manifest read-only."""
    path = Path(manifest_path)
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as e:
        raise PersistenceFailure(f"could not find Cargo.toml at {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise PersistenceFailure(f"could not parse {path}: {e}") from e
