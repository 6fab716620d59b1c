"""Bound invocation model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Tuple

ANONYMOUS_NAME = "<Anonymous>"


class _Unbound:
    """Marker for an invocation with no receiver."""

    def __repr__(self) -> str:
        return "UNBOUND"


UNBOUND: Any = _Unbound()


def display_name(fn: Callable[..., Any]) -> str:
    """Name used for ``fn`` in retry messages."""
    name = getattr(fn, "__name__", None)
    if not isinstance(name, str) or not name or name == "<lambda>":
        return ANONYMOUS_NAME
    return name


@dataclass(frozen=True)
class BoundInvocation:
    """A callable paired with the receiver and arguments of one call.

    The same instance is replayed on every attempt, so the wrapped callable
    sees identical ``self`` and arguments each time.

    Attributes:
        fn: Underlying callable
        args: Positional arguments of the call
        kwargs: Keyword arguments of the call
        receiver: Instance the callable was accessed through, or ``UNBOUND``
    """

    fn: Callable[..., Any]
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    receiver: Any = UNBOUND

    @property
    def name(self) -> str:
        return display_name(self.fn)

    @property
    def is_bound(self) -> bool:
        return self.receiver is not UNBOUND

    def invoke(self) -> Any:
        """Call the underlying function once.

        Returns:
            Whatever ``fn`` returns; may be an awaitable
        """
        if self.is_bound:
            return self.fn(self.receiver, *self.args, **self.kwargs)
        return self.fn(*self.args, **self.kwargs)
