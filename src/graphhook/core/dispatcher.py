"""
Call Dispatcher for graphhook

Builds the wrapper that stands in for an original function. Graph functions
take their receiver as the first positional argument; the wrapper keeps that
convention and fills in the binding's fallback receiver when the caller
passes none.
"""

import functools
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .registry import Binding, BindingRegistry

logger = logging.getLogger("graphhook.core.dispatcher")

# handler(invocation, args, context) -> result
HookHandler = Callable[["Invocation", Tuple[Any, ...], Any], Any]


def resolve_context(context: Any, fallback: Any) -> Any:
    """``None`` means no receiver was supplied."""
    return fallback if context is None else context


class Invocation:
    """Per-call handle on the original function.

    Each wrapper call gets its own Invocation, so nested hooked calls made from
    inside a handler never see each other's arguments or receiver.
    """

    __slots__ = ("original", "args", "kwargs", "context")

    def __init__(self, original: Callable, args: Tuple[Any, ...], kwargs: Dict[str, Any], context: Any):
        self.original = original
        self.args = args
        self.kwargs = kwargs
        self.context = context

    def call(
        self,
        args: Optional[Sequence[Any]] = None,
        this: Any = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Invoke the original, overriding arguments and/or receiver."""
        return self._invoke(this, args, kwargs)

    def apply(
        self,
        this: Any = None,
        args: Optional[Sequence[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Same as ``call`` with the receiver first."""
        return self._invoke(this, args, kwargs)

    def run(self) -> Any:
        """Invoke the original exactly as the wrapper was called."""
        return self.original(self.context, *self.args, **self.kwargs)

    def _invoke(self, this: Any, args: Optional[Sequence[Any]], kwargs: Optional[Dict[str, Any]]) -> Any:
        context = resolve_context(this, self.context)
        call_args = self.args if args is None else tuple(args)
        call_kwargs = self.kwargs if kwargs is None else kwargs
        return self.original(context, *call_args, **call_kwargs)

    def __repr__(self):
        return f"Invocation({getattr(self.original, '__name__', self.original)!s}, args={self.args!r})"


def forward_call(invocation: Invocation, args: Tuple[Any, ...], context: Any) -> Any:
    """Default handler: call the original unchanged."""
    return invocation.apply(context, args)


class CallDispatcher:
    """Creates one identity-stable wrapper per binding."""

    def __init__(self, name_format: str = "Hooked({name})"):
        self.name_format = name_format

    def wrapper_for(self, binding: Binding, registry: BindingRegistry) -> Callable:
        if binding.wrapper is None:
            registry.attach_wrapper(binding, self.build_wrapper(binding, registry))
        return binding.wrapper

    def build_wrapper(self, binding: Binding, registry: BindingRegistry) -> Callable:
        """Wrapper for ``binding``; bare calls on an unlocated binding retry the search."""
        original = binding.original

        def wrapper(*args, **kwargs):
            this, call_args = (args[0], args[1:]) if args else (None, ())
            if this is None and binding.target_info is None:
                registry.ensure_located(binding)
            context = resolve_context(this, binding.fallback_context)
            binding.call_count += 1
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Dispatching %s (call %d)", binding.name, binding.call_count)

            invocation = Invocation(original, call_args, kwargs, context)
            handler = binding.handler or forward_call
            return handler(invocation, call_args, context)

        functools.update_wrapper(wrapper, original, updated=())
        name = getattr(original, "__name__", None) or "anonymous"
        wrapper.__name__ = wrapper.__qualname__ = self.name_format.format(name=name)
        return wrapper
