"""Tests for retry options validation with Pydantic."""

import pytest
from pydantic import ValidationError

from retryify.domain.config import RetryOptions
from retryify.domain.errors import ConfigurationError, OptionsTypeError
from retryify.domain.predicates import always_retry


class TestRetryOptionsValidation:
    """Tests for RetryOptions validation."""

    def test_valid_retry_options(self):
        """Test valid retry options"""
        options = RetryOptions(retries=5, initial_delay=100, timeout=1000, factor=1.5)
        assert options.retries == 5
        assert options.initial_delay == 100
        assert options.timeout == 1000
        assert options.factor == 1.5

    def test_defaults(self):
        """Test default values"""
        options = RetryOptions()
        assert options.retries == 3
        assert options.initial_delay == 0
        assert options.timeout == 300
        assert options.factor == 2
        assert options.should_retry is always_retry
        assert options.log("ignored") is None

    def test_zero_retries_allowed(self):
        """Test retries may be zero"""
        assert RetryOptions(retries=0).retries == 0

    def test_negative_retries(self):
        """Test retries must be non-negative"""
        with pytest.raises(ValidationError, match="retries"):
            RetryOptions(retries=-1)

    def test_negative_initial_delay(self):
        """Test initial_delay must be non-negative"""
        with pytest.raises(ValidationError, match="initial_delay"):
            RetryOptions(initial_delay=-5)

    def test_timeout_zero(self):
        """Test timeout must be positive"""
        with pytest.raises(ValidationError, match="timeout"):
            RetryOptions(timeout=0)

    def test_factor_zero(self):
        """Test factor must be positive"""
        with pytest.raises(ValidationError, match="factor"):
            RetryOptions(factor=0)

    def test_boolean_retries_rejected(self):
        """Test booleans are not accepted as numbers"""
        with pytest.raises(ValidationError, match="retries"):
            RetryOptions(retries=True)

    def test_should_retry_must_be_callable(self):
        """Test should_retry must be callable"""
        with pytest.raises(ValidationError, match="should_retry"):
            RetryOptions(should_retry="yes")

    def test_unknown_field(self):
        """Test unknown fields are rejected"""
        with pytest.raises(ValidationError, match="jitter"):
            RetryOptions(jitter=0.1)

    def test_frozen(self):
        """Test options cannot be modified after creation"""
        options = RetryOptions()
        with pytest.raises(ValidationError):
            options.retries = 10

    def test_errors_become_predicate(self):
        """Test errors are turned into a should_retry predicate"""
        options = RetryOptions(errors=[ValueError])
        assert options.should_retry(ValueError("x")) is True
        assert options.should_retry(KeyError("x")) is False


class TestRetryOptionsMerge:
    """Tests for layering options."""

    def test_build_formats_errors(self):
        """Test build wraps validation errors"""
        with pytest.raises(ConfigurationError) as exc_info:
            RetryOptions.build({"retries": -1, "timeout": 0})
        message = str(exc_info.value)
        assert message.startswith("Retry options validation failed:")
        assert "  - retries:" in message
        assert "  - timeout:" in message

    def test_build_rejects_callable(self):
        with pytest.raises(OptionsTypeError):
            RetryOptions.build(lambda: None)

    def test_merged_keeps_unspecified_fields(self):
        base = RetryOptions(retries=5, timeout=50)
        merged = base.merged({"factor": 3})
        assert (merged.retries, merged.timeout, merged.factor) == (5, 50, 3)
        assert base.factor == 2

    def test_merged_ignores_none(self):
        base = RetryOptions(retries=5)
        assert base.merged({"retries": None}) is base

    def test_merged_with_options_uses_only_set_fields(self):
        base = RetryOptions(retries=5, timeout=50)
        merged = base.merged(RetryOptions(factor=4))
        assert (merged.retries, merged.timeout, merged.factor) == (5, 50, 4)

    def test_keyword_overrides_win(self):
        merged = RetryOptions().merged({"retries": 1}, retries=2)
        assert merged.retries == 2

    def test_serializable(self):
        options = RetryOptions(retries=1, errors=["builtins.ConnectionError"])
        assert options.serializable() == {
            "retries": 1,
            "initial_delay": 0.0,
            "timeout": 300.0,
            "factor": 2.0,
            "errors": ["builtins.ConnectionError"],
        }

    def test_serializable_without_error_classes(self):
        assert "errors" not in RetryOptions().serializable()
