"""Tests for the error taxonomy."""

from solvyn.contracts import ErrorCode, ErrorInfo, InputTooLongError, SolvynError, UnsupportedInputError
from solvyn.contracts.errors import DEFAULT_INVALID_MESSAGE, DEFAULT_INVALID_SUGGESTION


class TestErrorInfo:
    def test_to_dict_omits_missing_suggestion(self) -> None:
        assert ErrorInfo("CUSTOM", "custom failure").to_dict() == {"code": "CUSTOM", "message": "custom failure"}

    def test_from_generic_exception_preserves_message(self) -> None:
        info = ErrorInfo.from_exception(RuntimeError("connection reset"))

        assert info.code == ErrorCode.INVALID_EXPRESSION
        assert info.message == "connection reset"
        assert info.suggestion == DEFAULT_INVALID_SUGGESTION

    def test_from_exception_without_message_uses_default(self) -> None:
        info = ErrorInfo.from_exception(ValueError())

        assert info.message == DEFAULT_INVALID_MESSAGE

    def test_from_solvyn_error_keeps_info(self) -> None:
        error = SolvynError("PLUGIN_LIMIT", "too many digits", "use fewer digits")

        assert ErrorInfo.from_exception(error) is error.info


class TestStructuredErrors:
    def test_input_too_long(self) -> None:
        error = InputTooLongError(500)

        assert error.code == ErrorCode.INPUT_TOO_LONG
        assert error.max_length == 500
        assert "500" in str(error)
        assert error.info.suggestion == "Shorten your expression."

    def test_unsupported_default_message(self) -> None:
        error = UnsupportedInputError()

        assert error.code == ErrorCode.UNSUPPORTED_INPUT
        assert error.info.message == "Unsupported query for offline mode."

    def test_unsupported_custom_reason(self) -> None:
        assert str(UnsupportedInputError("no provider")) == "no provider"
