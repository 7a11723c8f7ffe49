"""
Descriptor Writer

Installs a value into a node while keeping the flags of the slot it replaces.
"""

from typing import Any

from .errors import ImmutablePropertyError
from .object_model import assign_key, define_key, own_descriptor


def write_value(target: Any, key: Any, value: Any, reference: Any = None) -> None:
    """Write ``value`` at ``target[key]`` using ``reference``'s descriptor for flags.

    Raises ImmutablePropertyError, leaving ``target`` untouched, when the
    reference slot is non-configurable and non-writable.
    """
    if reference is None:
        reference = target

    descriptor = own_descriptor(reference, key)
    if descriptor is None:
        assign_key(target, key, value)
        return

    if descriptor.is_immutable:
        raise ImmutablePropertyError(key)

    define_key(target, key, descriptor.with_value(value))
