"""Wrapper factory: turns plain or async callables into retrying ones.

Example:
    >>> retry = retryify(retries=5, timeout=1000, errors=[ConnectionError])
    >>> @retry
    ... async def fetch(url):
    ...     ...
    >>> @retry(retries=10)
    ... def post(url, data):
    ...     ...
    >>> result = await fetch("http://example.test")
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Callable, Coroutine, Mapping, Optional, Union

from retryify.domain.config.options import RetryOptions
from retryify.domain.errors import OptionsTypeError
from retryify.domain.models.invocation import UNBOUND, BoundInvocation, display_name
from retryify.infrastructure.executor import Sleep, execute

logger = logging.getLogger(__name__)

OptionsLike = Union[None, Mapping[str, Any], RetryOptions]


def _is_wrappable(obj: Any) -> bool:
    return callable(obj) or isinstance(obj, (staticmethod, classmethod))


class RetryingFunction:
    """Callable returned in place of a wrapped function.

    Calling it returns a coroutine for the eventual result, whether or not
    the wrapped function is itself asynchronous. When stored as a class
    attribute it binds the instance it is accessed through, like a method.
    Wrapping a ``staticmethod`` never binds; wrapping a ``classmethod``
    binds the class.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        options: RetryOptions,
        sleep: Sleep = asyncio.sleep,
        receiver: Any = UNBOUND,
        binding: str = "instance",
    ):
        if isinstance(fn, staticmethod):
            fn, binding = fn.__func__, "static"
        elif isinstance(fn, classmethod):
            fn, binding = fn.__func__, "class"
        if not callable(fn):
            raise TypeError(f"expected a callable to wrap, got {type(fn).__name__}")
        functools.update_wrapper(self, fn)
        self.options = options
        self._sleep = sleep
        self._receiver = receiver
        self._binding = binding

    def __call__(self, *args: Any, **kwargs: Any) -> Coroutine[Any, Any, Any]:
        invocation = BoundInvocation(self.__wrapped__, args, kwargs, self._receiver)
        return execute(self.options, invocation, sleep=self._sleep)

    def __get__(self, instance: Any, owner: Optional[type] = None) -> "RetryingFunction":
        if self._binding == "static":
            return self
        if self._binding == "class":
            receiver = owner if owner is not None else type(instance)
        elif instance is None:
            return self
        else:
            receiver = instance
        return RetryingFunction(self.__wrapped__, self.options, self._sleep, receiver=receiver, binding=self._binding)

    def __repr__(self) -> str:
        return f"<RetryingFunction {display_name(self.__wrapped__)} retries={self.options.retries}>"


class Retryer:
    """Holds default retry options and wraps functions with them.

    Instances are immutable; ``merged`` returns a new one.
    """

    def __init__(self, options: Optional[RetryOptions] = None, sleep: Sleep = asyncio.sleep):
        self._options = options if options is not None else RetryOptions()
        self._sleep = sleep

    @property
    def options(self) -> RetryOptions:
        return self._options

    def __call__(self, options_or_fn: Any = None, fn: Optional[Callable[..., Any]] = None, **overrides: Any) -> Any:
        """Wrap a function, optionally with per-function overrides.

        Accepted forms:
            retryer(fn)
            retryer(overrides, fn)
            retryer(overrides) or retryer(**overrides), used as a decorator

        Raises:
            OptionsTypeError: If two callables are passed
            ConfigurationError: If the merged options are invalid
        """
        if fn is None and _is_wrappable(options_or_fn):
            return self.wrap(options_or_fn, **overrides)
        if fn is None:
            options = self._options.merged(options_or_fn, **overrides)
            return functools.partial(self._wrap_with, options)
        return self.wrap(fn, options_or_fn, **overrides)

    def wrap(self, fn: Callable[..., Any], overrides: OptionsLike = None, **kwargs: Any) -> RetryingFunction:
        """Wrap ``fn`` using these options shadowed by ``overrides``."""
        return self._wrap_with(self._options.merged(overrides, **kwargs), fn)

    def merged(self, overrides: OptionsLike = None, **kwargs: Any) -> "Retryer":
        """Return a retryer whose defaults are shadowed by ``overrides``."""
        return Retryer(self._options.merged(overrides, **kwargs), sleep=self._sleep)

    def _wrap_with(self, options: RetryOptions, fn: Callable[..., Any]) -> RetryingFunction:
        logger.debug(
            f"Wrapping {display_name(fn)}: retries={options.retries}, "
            f"timeout={options.timeout}ms, factor={options.factor}"
        )
        return RetryingFunction(fn, options, sleep=self._sleep)


def retryify(options: OptionsLike = None, sleep: Sleep = asyncio.sleep, **overrides: Any) -> Retryer:
    """Create a retryer with the given default options.

    Args:
        options: Mapping or RetryOptions with defaults for every wrapped function
        sleep: Coroutine function used for waits, in seconds
        **overrides: Option values, taking precedence over ``options``

    Returns:
        Retryer that wraps functions with these defaults

    Raises:
        OptionsTypeError: If a function is passed instead of options. This
            guards against using ``retryify`` itself as the decorator.
        ConfigurationError: If any option value is invalid
    """
    if callable(options):
        raise OptionsTypeError()
    return Retryer(RetryOptions.build(options, **overrides), sleep=sleep)
