"""
Binding Registry for graphhook

One Binding per intercepted function. Bindings can be looked up by the
original function or by the wrapper issued for it, and are kept for the
lifetime of the registry in registration order.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import InvalidTargetError
from .locator import GraphLocator, TargetInfo

logger = logging.getLogger("graphhook.core.registry")


def function_name(fn: Any) -> str:
    """Qualified name used in logs and summaries."""
    module = getattr(fn, "__module__", None)
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)
    return f"{module}.{name}" if module else name


@dataclass(eq=False)
class Binding:
    """Interception state for one original function."""

    original: Callable
    handler: Optional[Callable] = None
    target_info: Optional[TargetInfo] = None
    fallback_context: Any = None
    wrapper: Optional[Callable] = None
    call_count: int = 0
    location_attempts: int = 0

    @property
    def name(self) -> str:
        return function_name(self.original)

    @property
    def located(self) -> bool:
        return self.target_info is not None

    def describe(self) -> Dict[str, Any]:
        """JSON-friendly summary of the binding."""
        info = self.target_info
        return {
            "function": self.name,
            "located": info is not None,
            "path": list(info.path) if info else None,
            "dotted_path": info.dotted_path if info else None,
            "inherited": info is not None and info.owner is not info.context,
            "wrapper": getattr(self.wrapper, "__name__", None),
            "custom_handler": self.handler is not None,
            "call_count": self.call_count,
            "location_attempts": self.location_attempts,
        }

    def __repr__(self):
        where = self.target_info.dotted_path if self.target_info else "unlocated"
        return f"Binding({self.name} @ {where})"


class BindingRegistry:
    """Identity-keyed tables of bindings."""

    def __init__(
        self,
        locator: GraphLocator,
        root_provider: Callable[[], Any],
        retry_failed_location: bool = True,
    ):
        self._locator = locator
        self._root_provider = root_provider
        self.retry_failed_location = retry_failed_location
        self._by_original: Dict[int, Binding] = {}
        self._by_wrapper: Dict[int, Binding] = {}
        self._bindings: List[Binding] = []
        self._lock = threading.RLock()

    def register(self, original: Callable, handler: Optional[Callable] = None) -> Binding:
        """Create or fetch the binding for ``original`` and install ``handler``."""
        with self._lock:
            binding = self.resolve_or_create(original)
            binding.handler = handler
            return binding

    def resolve_or_create(self, fn: Callable) -> Binding:
        """Binding for an original function or for a wrapper issued earlier."""
        if not callable(fn):
            raise InvalidTargetError(fn)

        with self._lock:
            binding = self.get(fn)
            if binding is None:
                binding = Binding(original=fn)
                self._by_original[id(fn)] = binding
                self._bindings.append(binding)
                self._locate(binding)
                logger.debug("Created %r", binding)
            return binding

    def get(self, fn: Any) -> Optional[Binding]:
        binding = self._by_original.get(id(fn))
        if binding is None:
            binding = self._by_wrapper.get(id(fn))
        return binding

    def attach_wrapper(self, binding: Binding, wrapper: Callable) -> None:
        with self._lock:
            if binding.wrapper is not None:
                raise ValueError(f"{binding!r} already has a wrapper")
            binding.wrapper = wrapper
            self._by_wrapper[id(wrapper)] = binding

    def ensure_located(self, binding: Binding) -> Optional[TargetInfo]:
        """Location of ``binding``, retrying a failed search when allowed."""
        if binding.target_info is None and self.retry_failed_location:
            self._locate(binding)
        return binding.target_info

    def bindings_for_scope(self, scope: Any) -> List[Binding]:
        """Located bindings relevant to ``scope``.

        The root selects every located binding. Any other node selects the
        bindings that were found on it; only when there are none does it
        select the bindings whose inherited function it declares.
        """
        with self._lock:
            located = [b for b in self._bindings if self.ensure_located(b) is not None]

        root = self._root_provider()
        if root is not None and scope is root:
            return located
        found_on = [b for b in located if b.target_info.context is scope]
        if found_on:
            return found_on
        return [b for b in located if b.target_info.owner is scope]

    def _locate(self, binding: Binding) -> None:
        binding.location_attempts += 1
        info = self._locator.locate(binding.original, self._root_provider())
        binding.target_info = info
        binding.fallback_context = info.context if info is not None else None
        if info is None:
            logger.warning("Unable to locate %s within the root graph", binding.name)
        else:
            logger.debug("%s located at %s", binding.name, info.dotted_path)

    def __iter__(self) -> Iterator[Binding]:
        with self._lock:
            return iter(list(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, fn: Any) -> bool:
        return self.get(fn) is not None
