"""
Core functionality package for graphhook.

This package contains the object model, graph search, binding registry, call
dispatch and copy-on-write cloning that make up the interception engine.
"""

from .cloner import HierarchyCloner, shallow_clone, substitute_one
from .dispatcher import CallDispatcher, Invocation, forward_call
from .engine import HookEngine, get_global_engine, reset_global_engine, set_global_root
from .errors import (
    HookError,
    ImmutablePropertyError,
    InvalidTargetError,
    LocationNotFoundError,
    LocationStaleError,
    ScopeConflictError,
)
from .locator import GraphLocator, TargetInfo, locate_target
from .object_model import GraphObject, PropertyDescriptor, PropertyKind, obj
from .registry import Binding, BindingRegistry
from .writer import write_value
