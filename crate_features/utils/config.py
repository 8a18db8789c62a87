"""Configuration management for crate-features using pydantic-settings."""

import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigError

# Ensure .env is loaded so ${VAR} expansion and os.environ lookups work
load_dotenv(dotenv_path=Path(".") / ".env", override=False)

CONFIG_SEARCH_PATHS = (
    Path(".crate-features.yaml"),
    Path("config/crate-features.yaml"),
    Path.home() / ".config/crate-features/settings.yaml",
)


class CleanLevel(str, Enum):
    """When ``cargo clean`` runs during a prune."""

    NEVER = "never"
    PACKAGE = "package"
    DEPENDENCY = "dependency"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "text"  # "text" or "json"
    file: str | None = None
    max_size_mb: int = 10
    backup_count: int = 3


class CargoConfig(BaseModel):
    """How the build/test oracle invokes cargo."""

    binary: str = "cargo"
    build_args: list[str] = Field(default_factory=lambda: ["build", "--all-targets"])
    test_args: list[str] = Field(default_factory=lambda: ["test", "--workspace"])
    clean_args: list[str] = Field(default_factory=lambda: ["clean"])
    metadata_args: list[str] = Field(
        default_factory=lambda: ["metadata", "--format-version", "1", "--all-features"]
    )


class PruneConfig(BaseModel):
    """Defaults for ``crate-features prune``; CLI flags override them."""

    clean: CleanLevel = CleanLevel.NEVER
    skip_tests: bool = False
    sandbox: bool = True
    only_dependency: bool = False
    # Never copied into the sandbox
    sandbox_exclude: list[str] = Field(default_factory=lambda: ["target", ".git"])


class Settings(BaseSettings):
    """Main settings class that loads from YAML and environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CRATE_FEATURES_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cargo: CargoConfig = Field(default_factory=CargoConfig)
    prune: PruneConfig = Field(default_factory=PruneConfig)

    @classmethod
    def from_yaml(cls, config_path: str | Path | None = None) -> "Settings":
        """Load settings from YAML file with environment variable overrides."""
        if config_path is None:
            for path in CONFIG_SEARCH_PATHS:
                if path.exists():
                    config_path = path
                    break
        elif not Path(config_path).exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        config_data: dict[str, Any] = {}
        if config_path:
            try:
                with open(config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Top level of {config_path} must be a mapping")

        config_data = cls._expand_env_vars(config_data)

        try:
            instance = cls(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config: {e}") from e
        instance.validate_values()
        return instance

    def validate_values(self) -> None:
        """Validate critical config. Raises ConfigError on failure."""
        errors: list[str] = []
        if not self.cargo.binary.strip():
            errors.append("cargo.binary must be a non-empty string")
        if self.logging.format not in ("text", "json"):
            errors.append("logging.format must be 'text' or 'json'")
        if errors:
            raise ConfigError("Config validation failed: " + "; ".join(errors))

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in config values."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            # Expand ${VAR} patterns
            if data.startswith("${") and data.endswith("}"):
                env_var = data[2:-1]
                return os.environ.get(env_var, "")
            return data
        return data


_config_path: Path | None = None


def use_config_file(path: str | Path | None) -> None:
    """Point :func:`get_settings` at an explicit file (``--config``)."""
    global _config_path
    _config_path = Path(path) if path else None
    get_settings.cache_clear()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_yaml(_config_path)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
