"""Wrap functions so they retry with exponential backoff when they fail."""

from retryify.application.wrapper import Retryer, RetryingFunction, retryify
from retryify.domain.config import RetryOptions
from retryify.domain.errors import CommandFailedError, ConfigurationError, OptionsTypeError
from retryify.domain.models.invocation import BoundInvocation
from retryify.domain.predicates import always_retry, retry_on_errors
from retryify.infrastructure.executor import execute

__all__ = [
    "retryify",
    "Retryer",
    "RetryingFunction",
    "RetryOptions",
    "BoundInvocation",
    "ConfigurationError",
    "OptionsTypeError",
    "CommandFailedError",
    "always_retry",
    "retry_on_errors",
    "execute",
]
