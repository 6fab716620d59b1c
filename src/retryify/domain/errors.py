"""Error types raised by retryify itself.

Failures raised by a wrapped function are never translated into these: they
reach the caller unchanged.
"""

from typing import List


class ConfigurationError(Exception):
    """Retry options validation error."""

    pass


class OptionsTypeError(ConfigurationError, TypeError):
    """A callable was passed where an options object was expected."""

    def __init__(self, message: str = "options object expected but was passed a function"):
        super().__init__(message)


class CommandFailedError(Exception):
    """An external command exited with a nonzero status."""

    def __init__(self, command: List[str], returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"Command {' '.join(command)!r} exited with status {returncode}")
