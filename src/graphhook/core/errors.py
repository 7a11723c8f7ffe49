"""
Exceptions raised by the graphhook engine.

Every engine failure is a HookError. The concrete classes also derive from the
closest builtin exception so callers that only know the builtin still catch them.
"""

from typing import Any, Optional, Sequence


class HookError(Exception):
    """Base class for all engine errors."""


class InvalidTargetError(HookError, TypeError):
    """A non-callable value was passed where a function is required."""

    def __init__(self, target: Any):
        self.target = target
        super().__init__(f"Hook target must be a function, got {type(target).__name__}")


class LocationNotFoundError(HookError, LookupError):
    """The position of a function in the root graph is unknown."""

    def __init__(self, message: str, target: Any = None):
        self.target = target
        super().__init__(message)


class ImmutablePropertyError(HookError, TypeError):
    """Writing the key would violate a non-configurable, non-writable descriptor."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Cannot override non-configurable property: {key!s}")


class ScopeConflictError(HookError, ValueError):
    """Bindings requested for one combined clone disagree on their context node."""


class LocationStaleError(HookError, LookupError):
    """A previously resolved path no longer dereferences in the live graph."""

    def __init__(self, message: str, path: Optional[Sequence[Any]] = None):
        self.path = tuple(path) if path is not None else None
        super().__init__(message)
