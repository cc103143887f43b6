"""Config module exports."""

from codelineage.config.loader import load_config
from codelineage.config.models import (
    CodeLineageConfig,
    DiffConfig,
    LoggingConfig,
    ParsingConfig,
    ReferencesConfig,
    WorkersConfig,
)

__all__ = [
    "load_config",
    "CodeLineageConfig",
    "DiffConfig",
    "LoggingConfig",
    "ParsingConfig",
    "ReferencesConfig",
    "WorkersConfig",
]
