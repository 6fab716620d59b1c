"""Retry predicates.

A retry predicate takes the exception raised by an attempt and returns True
when another attempt should be made. The executor only ever sees predicates;
``retry_on_errors`` builds one from a set of exception classes.
"""

from __future__ import annotations

import importlib
from typing import Callable, Iterable, Tuple, Type, Union

from retryify.domain.errors import ConfigurationError

RetryPredicate = Callable[[BaseException], bool]
ErrorSpec = Union[Type[BaseException], str]


def always_retry(exception: BaseException) -> bool:
    """Retry on any ordinary exception."""
    return isinstance(exception, Exception)


def resolve_error_class(spec: ErrorSpec) -> Type[BaseException]:
    """Resolve an exception class or a dotted path naming one.

    Args:
        spec: Exception class, or a string such as ``"builtins.ConnectionError"``
            or ``"requests.exceptions.Timeout"``

    Returns:
        The exception class

    Raises:
        ConfigurationError: If the path cannot be imported or does not name
            an exception class
    """
    if isinstance(spec, str):
        module_name, _, attr = spec.rpartition(".")
        if not module_name:
            module_name = "builtins"
        try:
            module = importlib.import_module(module_name)
            resolved = getattr(module, attr)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError(f"Cannot resolve error class {spec!r}: {e}") from e
    else:
        resolved = spec

    if not (isinstance(resolved, type) and issubclass(resolved, BaseException)):
        raise ConfigurationError(f"{spec!r} is not an exception class")
    return resolved


def _as_error_specs(errors: Union[ErrorSpec, Iterable[ErrorSpec]]) -> Tuple[ErrorSpec, ...]:
    if isinstance(errors, (str, type)):
        return (errors,)
    try:
        return tuple(errors)
    except TypeError as e:
        raise ConfigurationError(f"errors must be an exception class or a list of them, got {errors!r}") from e


def retry_on_errors(errors: Union[ErrorSpec, Iterable[ErrorSpec]]) -> RetryPredicate:
    """Build a predicate that matches instances of the given error classes.

    Args:
        errors: A single exception class or dotted path, or a sequence of them

    Returns:
        Predicate returning True for instances of any listed class

    Raises:
        ConfigurationError: If ``errors`` is empty or contains something that
            is not an exception class
    """
    specs = _as_error_specs(errors)
    if not specs:
        raise ConfigurationError("errors must name at least one exception class")
    classes = tuple(resolve_error_class(spec) for spec in specs)

    def _matches(exception: BaseException) -> bool:
        return isinstance(exception, classes)

    _matches.error_classes = classes  # type: ignore[attr-defined]
    _matches.__name__ = "retry_on_" + "_or_".join(cls.__name__ for cls in classes)
    return _matches
