"""Configuration sections and their defaults.

Every field can be set from YAML or from an environment variable named
CODELINEAGE__<SECTION>__<FIELD>; see ``codelineage.config.loader`` for
the precedence of the layers.

Examples:
    CODELINEAGE__LOGGING__LEVEL=DEBUG
    CODELINEAGE__WORKERS__MAX_WORKERS=4
    CODELINEAGE__PARSING__MAX_ERROR_RATIO=0.3
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
STREAM_DESTINATIONS = ("stderr", "stdout")


class LogOutputConfig(BaseModel):
    """Where one stream of log events goes and how it is rendered.

    ``destination`` is ``stderr``, ``stdout`` or an absolute file path
    (``~`` is expanded). ``level`` falls back to ``LoggingConfig.level``.
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"
    level: LogLevel | None = None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in STREAM_DESTINATIONS:
            return v
        expanded = Path(v).expanduser()
        if not expanded.is_absolute():
            raise ValueError(f"log file destination must be absolute, got {v!r}")
        return str(expanded)


class LoggingConfig(BaseModel):
    """Root level plus the list of outputs.

    Env vars:
        CODELINEAGE__LOGGING__LEVEL: Root level, also the default of every output
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. The CLI writes JSON to stdout, logs go to stderr.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ParsingConfig(BaseModel):
    """Parser adapter configuration.

    Env vars:
        CODELINEAGE__PARSING__MAX_ERROR_RATIO: Reject a grammar variant above this ratio
        CODELINEAGE__PARSING__MAX_FILE_SIZE_KB: Skip larger files during reference search
    """

    max_error_ratio: float = Field(
        default=0.5,
        description="Fraction of ERROR/missing nodes above which a grammar variant "
        "counts as failed and the next variant (or the regex fallback) is tried.",
    )
    max_file_size_kb: int = Field(
        default=2048,
        description="Files larger than this are skipped by the project-wide reference search.",
    )

    @field_validator("max_error_ratio")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not (0.0 < v <= 1.0):
            raise ValueError(f"max_error_ratio must be in (0, 1], got {v}")
        return v


class DiffConfig(BaseModel):
    """Line diff configuration.

    Env vars:
        CODELINEAGE__DIFF__LOOKAHEAD: Greedy diff search window
    """

    lookahead: int = Field(
        default=5,
        description="Lines searched ahead by the greedy two-way comparison.",
    )

    @field_validator("lookahead")
    @classmethod
    def validate_lookahead(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"lookahead must be >= 1, got {v}")
        return v


class WorkersConfig(BaseModel):
    """Parallelism configuration.

    Env vars:
        CODELINEAGE__WORKERS__MAX_WORKERS: Process pool size (1 = sequential)
    """

    max_workers: int = Field(
        default=1,
        description="Worker processes for per-file extraction and per-symbol chains. "
        "1 runs everything in-process.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class ReferencesConfig(BaseModel):
    """Project-wide reference search configuration."""

    include_extensions: list[str] = Field(
        default_factory=list,
        description="File extensions searched for references. Empty means every "
        "extension of the defining file's language.",
    )
    exclude_dirs: list[str] = Field(
        default_factory=list,
        description="Directory names skipped in addition to the built-in prunable set.",
    )


class CodeLineageConfig(BaseModel):
    """Root configuration for codelineage."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    workers: WorkersConfig = Field(default_factory=WorkersConfig)
    references: ReferencesConfig = Field(default_factory=ReferencesConfig)
