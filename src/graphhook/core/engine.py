"""
Hook Engine for graphhook

Facade over the locator, registry, dispatcher and cloners. A HookEngine is
bound to one root graph, given either directly or as a zero-argument provider
that is read lazily on every search.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

from ..config import Config, HookConfig
from .cloner import HierarchyCloner, resolve_parent, shallow_clone, substitute_one
from .dispatcher import CallDispatcher, HookHandler
from .errors import LocationNotFoundError, LocationStaleError, ScopeConflictError
from .locator import GraphLocator, TargetInfo
from .object_model import format_path, is_node, read_key
from .registry import Binding, BindingRegistry
from .writer import write_value

logger = logging.getLogger("graphhook.core.engine")


class HookEngine:
    """Intercepts functions reachable from a root graph."""

    def __init__(
        self,
        root: Any = None,
        root_provider: Optional[Callable[[], Any]] = None,
        config: Optional[HookConfig] = None,
    ):
        self.config = config or Config.get_instance()
        self._root = root
        self._root_provider = root_provider
        self.locator = GraphLocator()
        self.registry = BindingRegistry(
            self.locator,
            self._read_root,
            retry_failed_location=self.config.retry_failed_location,
        )
        self.dispatcher = CallDispatcher(self.config.wrapper_name_format)

    # Root handling

    @property
    def root(self) -> Any:
        return self._read_root()

    def _read_root(self) -> Any:
        if self._root_provider is not None:
            return self._root_provider()
        return self._root

    def set_root(self, root: Any = None, root_provider: Optional[Callable[[], Any]] = None) -> None:
        self._root = root
        self._root_provider = root_provider

    # Bindings and wrappers

    def create_hook(self, target: Callable, handler: Optional[HookHandler] = None) -> Callable:
        """Install ``handler`` for ``target`` and return its wrapper."""
        binding = self.registry.register(target, handler)
        return self.dispatcher.wrapper_for(binding, self.registry)

    def get_hook(self, target: Callable) -> Callable:
        """Wrapper for ``target`` (an original or a wrapper), keeping its handler."""
        binding = self.registry.resolve_or_create(target)
        return self.dispatcher.wrapper_for(binding, self.registry)

    def get_binding(self, target: Callable) -> Binding:
        return self.registry.resolve_or_create(target)

    def intercept(self, target: Callable) -> Callable[[HookHandler], HookHandler]:
        """Decorator form of ``create_hook``.

        Example:
            @engine.intercept(root["process"]["spawn"])
            def audit(invocation, args, context):
                return invocation.run()
        """

        def decorator(handler: HookHandler) -> HookHandler:
            self.create_hook(target, handler)
            return handler

        return decorator

    def locate(self, target: Callable) -> Optional[TargetInfo]:
        return self.registry.ensure_located(self.get_binding(target))

    def bindings(self) -> List[Binding]:
        return list(self.registry)

    # Destructive application

    def override(self, target: Callable) -> Callable:
        """Replace the function at its owner with the wrapper, in place."""
        binding = self.get_binding(target)
        info = self._require_location(binding)
        wrapper = self.dispatcher.wrapper_for(binding, self.registry)
        self._verify_terminal(binding, info.context, info.key, info.path)

        write_value(info.owner, info.key, wrapper, info.owner)
        logger.debug("Overrode %s at %s", binding.name, info.dotted_path)
        return wrapper

    def restore(self, target: Callable) -> Callable:
        """Put the original function back at its owner."""
        binding = self.get_binding(target)
        info = self._require_location(binding)
        self._verify_terminal(binding, info.context, info.key, info.path)

        write_value(info.owner, info.key, binding.original, info.owner)
        logger.debug("Restored %s at %s", binding.name, info.dotted_path)
        return binding.original

    # Non-destructive application

    def clone_obj(self, target: Callable) -> Any:
        """Clone of the node the function was found on, holding the wrapper."""
        binding = self.get_binding(target)
        info = self._require_location(binding)
        wrapper = self.dispatcher.wrapper_for(binding, self.registry)
        self._verify_terminal(binding, info.context, info.key, info.path)
        return substitute_one(info.context, info.key, wrapper)

    def get_obj(self, scope: Any) -> Any:
        """Clone ``scope`` with every binding that applies to it substituted.

        The root yields a full hierarchy clone. Any other node selects the
        bindings found on it, or failing that the bindings whose inherited
        function it declares; all selected bindings must share one context.
        """
        root = self.root
        if root is not None and scope is root:
            return self.clone_root()

        matched = self.registry.bindings_for_scope(scope)
        if not matched:
            raise LocationNotFoundError(f"No hooked function is located on {scope!r}", scope)

        contexts = {id(b.target_info.context) for b in matched}
        if len(contexts) > 1:
            names = ", ".join(b.name for b in matched)
            raise ScopeConflictError(f"Bindings for {names} were found on different nodes")

        for binding in matched:
            info = binding.target_info
            self._verify_terminal(binding, info.context, info.key, info.path)

        if len(matched) == 1:
            binding = matched[0]
            wrapper = self.dispatcher.wrapper_for(binding, self.registry)
            return substitute_one(scope, binding.target_info.key, wrapper)

        clone = shallow_clone(scope)
        for binding in matched:
            wrapper = self.dispatcher.wrapper_for(binding, self.registry)
            write_value(clone, binding.target_info.key, wrapper, scope)
        return clone

    def clone_root(self, targets: Optional[Iterable[Callable]] = None) -> Any:
        """New root with wrappers at every located binding (or just ``targets``).

        Fails as a whole with LocationStaleError when a binding has no location
        or its path no longer resolves in the live graph.
        """
        root = self.root
        if not is_node(root):
            raise LocationNotFoundError("No root graph is available")

        if targets is None:
            bindings = self.registry.bindings_for_scope(root)
        else:
            bindings = [self.get_binding(target) for target in targets]

        if not bindings:
            return shallow_clone(root)

        substitutions = []
        for binding in bindings:
            info = self.registry.ensure_located(binding)
            if info is None:
                raise LocationStaleError(f"{binding.name} has no known location in the root graph")
            parent = resolve_parent(root, info.path)
            self._verify_terminal(binding, parent, info.key, info.path)
            substitutions.append((info.path, self.dispatcher.wrapper_for(binding, self.registry)))

        return HierarchyCloner(root).build(substitutions)

    # Helpers

    def _require_location(self, binding: Binding) -> TargetInfo:
        info = self.registry.ensure_located(binding)
        if info is None:
            raise LocationNotFoundError(
                f"Unable to locate {binding.name} within the root graph", binding.original
            )
        return info

    def _verify_terminal(self, binding: Binding, parent: Any, key: Any, path) -> None:
        """The location must still hold the original or its wrapper."""
        if not self.config.strict_locations:
            return
        try:
            current = read_key(parent, key)
        except Exception as e:
            raise LocationStaleError(f"{format_path(path)} no longer resolves", path) from e
        if current is not binding.original and current is not binding.wrapper:
            raise LocationStaleError(
                f"{format_path(path)} no longer holds {binding.name}", path
            )


# Global engine instance
_global_engine = HookEngine()


def get_global_engine() -> HookEngine:
    """Get the global hook engine."""
    return _global_engine


def set_global_root(root: Any = None, root_provider: Optional[Callable[[], Any]] = None) -> None:
    """Point the global engine at a root graph."""
    _global_engine.set_root(root, root_provider)


def reset_global_engine(root: Any = None, root_provider: Optional[Callable[[], Any]] = None) -> HookEngine:
    """Replace the global engine with a fresh one (drops all bindings)."""
    global _global_engine
    _global_engine = HookEngine(root=root, root_provider=root_provider)
    return _global_engine


# Convenience functions bound to the global engine
def create_hook(target: Callable, handler: Optional[HookHandler] = None) -> Callable:
    return _global_engine.create_hook(target, handler)


def get_hook(target: Callable) -> Callable:
    return _global_engine.get_hook(target)


def intercept(target: Callable) -> Callable[[HookHandler], HookHandler]:
    return _global_engine.intercept(target)


def override(target: Callable) -> Callable:
    return _global_engine.override(target)


def restore(target: Callable) -> Callable:
    return _global_engine.restore(target)


def get_obj(scope: Any) -> Any:
    return _global_engine.get_obj(scope)


def clone_root(targets: Optional[Iterable[Callable]] = None) -> Any:
    return _global_engine.clone_root(targets)
