"""Tests for the exception hierarchy."""

import pytest

from fintrack_core.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    FintrackError,
    InvalidParameterError,
)


class TestFintrackError:
    """Test suite for the base exception."""

    def test_message_and_defaults(self):
        error = FintrackError("Something failed")

        assert str(error) == "Something failed"
        assert error.details == {}
        assert error.recoverable is False

    def test_repr(self):
        error = FintrackError("Oops", details={"a": 1})

        assert repr(error) == "FintrackError(message='Oops', details={'a': 1}, recoverable=False)"

    @pytest.mark.parametrize(
        "error_class", [InvalidParameterError, ExternalServiceError, ConfigurationError]
    )
    def test_subclasses_are_catchable_as_base(self, error_class):
        with pytest.raises(FintrackError):
            raise error_class("failure")


class TestSpecificErrors:
    """Test suite for the concrete exception types."""

    def test_invalid_parameter_is_recoverable(self):
        error = InvalidParameterError("bad", field="sensitivity", value="max")

        assert error.recoverable
        assert error.details == {"field": "sensitivity", "value": "max"}
        assert error.allowed is None

    def test_external_service_details(self):
        error = ExternalServiceError(
            "timed out", service="anthropic", operation="complete", api_error="timeout"
        )

        assert error.details == {
            "service": "anthropic",
            "operation": "complete",
            "api_error": "timeout",
        }

    def test_configuration_error_not_recoverable(self):
        error = ConfigurationError("bad ttl", config_key="cache_ttl", actual=0)

        assert not error.recoverable
        assert error.details == {"config_key": "cache_ttl", "actual": 0}
