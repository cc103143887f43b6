"""Layered configuration loading.

Layers, lowest to highest precedence, are deep-merged as plain dicts and
validated once against ``CodeLineageConfig``:

    defaults < ~/.config/codelineage/config.yaml
             < <root>/.codelineage/config.yaml
             < CODELINEAGE__SECTION__KEY environment variables
             < keyword overrides
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict, SettingsError

from codelineage.config.models import (
    CodeLineageConfig,
    DiffConfig,
    LoggingConfig,
    ParsingConfig,
    ReferencesConfig,
    WorkersConfig,
)
from codelineage.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/codelineage/config.yaml").expanduser()
REPO_CONFIG_DIR = ".codelineage"
ENV_PREFIX = "CODELINEAGE__"


class _EnvLayer(BaseSettings):
    """Declares the sections the environment source may populate."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    workers: WorkersConfig = Field(default_factory=WorkersConfig)
    references: ReferencesConfig = Field(default_factory=ReferencesConfig)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored at ``path``; a missing or empty file is ``{}``."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """New dict with ``override`` laid over ``base``; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _env_layer() -> dict[str, Any]:
    # Values stay strings here; validation coerces them with the rest
    try:
        return dict(EnvSettingsSource(_EnvLayer)())
    except SettingsError as e:
        raise ConfigError.parse_error("environment", str(e)) from e


def _first_error(e: ValidationError) -> ConfigError:
    detail = e.errors()[0]
    location = ".".join(str(part) for part in detail["loc"])
    return ConfigError.invalid_value(location, detail.get("input"), detail["msg"])


def load_config(repo_root: Path | None = None, **overrides: Any) -> CodeLineageConfig:
    """Resolve the configuration for ``repo_root`` (default: the working directory).

    Raises:
        ConfigError: A YAML file is malformed or a merged value fails validation.
    """
    root = repo_root or Path.cwd()
    layers = [
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(root / REPO_CONFIG_DIR / "config.yaml"),
        _env_layer(),
        overrides,
    ]
    merged: dict[str, Any] = {}
    for layer in layers:
        merged = _deep_merge(merged, layer)
    try:
        return CodeLineageConfig.model_validate(merged)
    except ValidationError as e:
        raise _first_error(e) from e
