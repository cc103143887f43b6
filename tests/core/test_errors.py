"""Tests for error types and codes."""

import pytest

from codelineage.core.errors import (
    CodeLineageError,
    ConfigError,
    ErrorCode,
    InvalidQueryError,
    MissingSnapshotError,
    ParseError,
    UnsupportedLanguageError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.UNSUPPORTED_LANGUAGE, 3000),
            (ErrorCode.PARSE_ERROR, 3000),
            (ErrorCode.INVALID_QUERY, 3000),
            (ErrorCode.EXTRACTION_FAILED, 3000),
            (ErrorCode.MISSING_SNAPSHOT, 4000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        # Given
        error_code = code

        # When
        value = error_code.value

        # Then
        assert expected_range <= value < expected_range + 1000


class TestCodeLineageError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = CodeLineageError(
            code=ErrorCode.PARSE_ERROR,
            message="Test message",
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 3002,
            "error": "PARSE_ERROR",
            "message": "Test message",
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        # Given
        error = CodeLineageError(code=ErrorCode.MISSING_SNAPSHOT, message="Something broke")

        # When
        result = str(error)

        # Then
        assert result == "[4001] MISSING_SNAPSHOT: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Structured errors are ordinary exceptions."""
        with pytest.raises(CodeLineageError) as exc_info:
            raise UnsupportedLanguageError.for_language("cobol")

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_LANGUAGE


class TestFactories:
    """Factory method tests."""

    def test_config_parse_error_includes_path(self) -> None:
        error = ConfigError.parse_error("/a/config.yaml", "bad indent")

        assert error.code == ErrorCode.CONFIG_PARSE_ERROR
        assert "/a/config.yaml" in error.message
        assert error.details == {"path": "/a/config.yaml", "reason": "bad indent"}

    def test_parse_error_names_variant(self) -> None:
        error = ParseError.variant_failed("javascript", "tsx", "error ratio 0.80")

        assert error.details["variant"] == "tsx"

    def test_unsupported_language_for_path(self) -> None:
        error = UnsupportedLanguageError.for_path("notes.txt")

        assert error.details == {"path": "notes.txt"}
        assert error.error_name == "UNSUPPORTED_LANGUAGE"

    def test_invalid_query_unknown_element(self) -> None:
        error = InvalidQueryError.unknown_element("widget")

        assert error.code == ErrorCode.INVALID_QUERY
        assert "widget" in error.message

    def test_missing_snapshot_shortens_commit(self) -> None:
        commit = "0123456789abcdef0123456789abcdef01234567"

        error = MissingSnapshotError.at(commit, "src/app.js")

        assert "0123456" in error.message
        assert commit not in error.message
        assert error.details["commit"] == commit
