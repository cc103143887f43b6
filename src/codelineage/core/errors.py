"""codelineage error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parsing / extraction
- 4xxx: History

Only the unit of work that raised (one file, one snapshot, one chain) fails;
callers in ``codelineage.ops`` catch these, log them, and keep going.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Parsing / extraction (3xxx)
    UNSUPPORTED_LANGUAGE = 3001
    PARSE_ERROR = 3002
    INVALID_QUERY = 3003
    EXTRACTION_FAILED = 3004

    # History (4xxx)
    MISSING_SNAPSHOT = 4001


@dataclass(frozen=True, slots=True)
class CodeLineageError(Exception):
    """Base error with structured context for JSON output."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CodeLineageError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class UnsupportedLanguageError(CodeLineageError):
    """No extractor or grammar exists for the requested language."""

    @classmethod
    def for_language(cls, language: str) -> "UnsupportedLanguageError":
        return cls(
            code=ErrorCode.UNSUPPORTED_LANGUAGE,
            message=f"Unsupported language: {language}",
            details={"language": language},
        )

    @classmethod
    def for_path(cls, path: str) -> "UnsupportedLanguageError":
        return cls(
            code=ErrorCode.UNSUPPORTED_LANGUAGE,
            message=f"Cannot detect a supported language for {path}",
            details={"path": path},
        )


class ParseError(CodeLineageError):
    """A grammar variant could not produce a usable tree."""

    @classmethod
    def variant_failed(cls, language: str, variant: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_ERROR,
            message=f"Parse of {language} with grammar '{variant}' failed: {reason}",
            details={"language": language, "variant": variant, "reason": reason},
        )


class InvalidQueryError(CodeLineageError):
    """Extraction query wire payload is malformed."""

    @classmethod
    def unknown_element(cls, element: str) -> "InvalidQueryError":
        return cls(
            code=ErrorCode.INVALID_QUERY,
            message=f"Unknown element type: {element}",
            details={"element": element},
        )

    @classmethod
    def bad_payload(cls, reason: str) -> "InvalidQueryError":
        return cls(
            code=ErrorCode.INVALID_QUERY,
            message=f"Invalid extraction query: {reason}",
            details={"reason": reason},
        )


class ExtractionError(CodeLineageError):
    """Extraction of one file failed; the file's contribution is omitted."""

    @classmethod
    def for_file(cls, path: str, reason: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.EXTRACTION_FAILED,
            message=f"Extraction failed for {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class MissingSnapshotError(CodeLineageError):
    """Git could not produce content for a commit/path pair."""

    @classmethod
    def at(cls, commit_id: str, path: str) -> "MissingSnapshotError":
        return cls(
            code=ErrorCode.MISSING_SNAPSHOT,
            message=f"No content for {path} at {commit_id[:7]}",
            details={"commit": commit_id, "path": path},
        )

