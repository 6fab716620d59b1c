"""Retry options with Pydantic validation."""

from retryify.domain.config.options import RetryOptions, format_validation_error

__all__ = [
    "RetryOptions",
    "format_validation_error",
]
