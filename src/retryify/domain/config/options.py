"""Retry options model."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from retryify.domain.errors import ConfigurationError, OptionsTypeError
from retryify.domain.predicates import always_retry, retry_on_errors

SERIALIZABLE_FIELDS = ("retries", "initial_delay", "timeout", "factor")


def _ignore_message(message: str) -> None:
    pass


def _normalize_layer(layer: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop unset (None) fields and turn ``errors`` into ``should_retry``."""
    result = {key: value for key, value in layer.items() if value is not None}
    if "errors" in result:
        if "should_retry" in result:
            raise ConfigurationError("errors and should_retry cannot both be set")
        result["should_retry"] = retry_on_errors(result.pop("errors"))
    return result


def format_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        field = ".".join(str(x) for x in item["loc"]) or "options"
        lines.append(f"  - {field}: {item['msg']}")
    return "Retry options validation failed:\n" + "\n".join(lines)


class RetryOptions(BaseModel):
    """Options controlling how a wrapped function is retried.

    Durations are in milliseconds. The wait before retry ``n`` (1-indexed) is
    ``timeout * factor ** (n - 1)``.

    Attributes:
        retries: Additional attempts allowed after the first one
        initial_delay: Pause before the very first attempt
        timeout: Wait before the first retry
        factor: Growth rate of the wait between consecutive retries
        should_retry: Predicate deciding whether a failure is retried
        log: Called with a message each time a retry is scheduled
    """

    retries: int = Field(3, ge=0)
    initial_delay: float = Field(0.0, ge=0.0)
    timeout: float = Field(300.0, gt=0.0)
    factor: float = Field(2.0, gt=0.0)
    should_retry: Callable[[BaseException], bool] = always_retry
    log: Callable[[str], None] = _ignore_message

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_errors(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return _normalize_layer(data)
        return data

    @field_validator("retries", "initial_delay", "timeout", "factor", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value

    @classmethod
    def build(cls, options: Union[None, Mapping[str, Any], "RetryOptions"] = None, **overrides: Any) -> "RetryOptions":
        """Create options from a mapping, an existing instance, or keywords.

        Raises:
            OptionsTypeError: If a callable is passed instead of options
            ConfigurationError: If any value is invalid
        """
        return cls().merged(options, **overrides)

    def merged(self, overrides: Union[None, Mapping[str, Any], "RetryOptions"] = None, **kwargs: Any) -> "RetryOptions":
        """Return new options with ``overrides`` shadowing these ones.

        Fields that are absent or None in ``overrides`` keep their current
        value. For a ``RetryOptions`` override only explicitly set fields count.

        Raises:
            OptionsTypeError: If a callable is passed instead of options
            ConfigurationError: If any value is invalid
        """
        layer = _normalize_layer({**_as_layer(overrides), **kwargs})
        if not layer:
            return self

        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(layer)
        try:
            return type(self)(**values)
        except ValidationError as e:
            raise ConfigurationError(format_validation_error(e)) from e

    def serializable(self) -> Dict[str, Any]:
        """Options that can be written to a config file."""
        data: Dict[str, Any] = {name: getattr(self, name) for name in SERIALIZABLE_FIELDS}
        error_classes = getattr(self.should_retry, "error_classes", None)
        if error_classes:
            data["errors"] = [f"{cls.__module__}.{cls.__qualname__}" for cls in error_classes]
        return data


def _as_layer(overrides: Union[None, Mapping[str, Any], RetryOptions]) -> Dict[str, Any]:
    if overrides is None:
        return {}
    if isinstance(overrides, RetryOptions):
        return {name: getattr(overrides, name) for name in overrides.model_fields_set}
    if callable(overrides):
        raise OptionsTypeError()
    if isinstance(overrides, Mapping):
        return dict(overrides)
    raise ConfigurationError(f"options must be a mapping or RetryOptions, got {type(overrides).__name__}")

