"""Bundled table of features the build/test oracle cannot judge."""

from functools import lru_cache
from importlib import resources

import yaml

from ..errors import ConfigError

KnownFeatures = dict[str, list[str]]


def parse_known_features(text: str) -> KnownFeatures:
    """Parse a ``crate: [feature, ...]`` YAML mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ConfigError("could not parse known features: expected a mapping")

    table: KnownFeatures = {}
    for crate, features in data.items():
        if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
            raise ConfigError(f"could not parse known features for {crate}")
        table[str(crate)] = list(features)
    return table


@lru_cache
def known_features() -> KnownFeatures:
    """Features that do not affect compilation but remove functionality."""
    text = (
        resources.files("crate_features")
        .joinpath("data/known_features.yaml")
        .read_text(encoding="utf-8")
    )
    return parse_known_features(text)
