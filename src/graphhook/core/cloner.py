"""
Structural and Hierarchy Cloners

Copy-on-write helpers. ``shallow_clone`` copies exactly one container level;
``HierarchyCloner`` rebuilds only the nodes on the paths leading to hooked
locations and shares everything else with the source graph.
"""

import copy
import logging
import types
from typing import Any, Dict, List, Sequence, Tuple

from .errors import LocationStaleError, ScopeConflictError
from .object_model import GraphObject, format_path, is_node, read_key
from .writer import write_value

logger = logging.getLogger("graphhook.core.cloner")


def clone_function(fn: types.FunctionType) -> types.FunctionType:
    """New function object sharing code, globals and closure with ``fn``."""
    clone = types.FunctionType(
        fn.__code__, fn.__globals__, fn.__name__, fn.__defaults__, fn.__closure__
    )
    clone.__kwdefaults__ = copy.copy(fn.__kwdefaults__)
    clone.__qualname__ = fn.__qualname__
    clone.__doc__ = fn.__doc__
    clone.__module__ = fn.__module__
    clone.__dict__.update(fn.__dict__)
    return clone


def shallow_clone(value: Any) -> Any:
    """One-level copy of a node; nested values stay shared. Non-nodes are returned as is."""
    if isinstance(value, GraphObject):
        return value.clone()
    if isinstance(value, (list, dict)):
        return copy.copy(value)
    if isinstance(value, types.FunctionType):
        return clone_function(value)
    return value


def substitute_one(source: Any, key: Any, replacement: Any) -> Any:
    """Clone ``source`` and write ``replacement`` at ``key`` with ``source``'s flags."""
    clone = shallow_clone(source)
    write_value(clone, key, replacement, source)
    return clone


def resolve_parent(root: Any, path: Sequence[Any]) -> Any:
    """Follow every path segment but the last, returning the node holding the terminal key.

    Raises LocationStaleError when a segment is missing or is not a node.
    """
    node = root
    for depth, key in enumerate(path[:-1]):
        try:
            child = read_key(node, key)
        except Exception as e:
            raise LocationStaleError(
                f"Path {format_path(path[: depth + 1])} no longer resolves", path
            ) from e
        if not is_node(child):
            raise LocationStaleError(
                f"Path {format_path(path[: depth + 1])} no longer leads to a node", path
            )
        node = child
    return node


class HierarchyCloner:
    """Builds one new root with several path substitutions applied.

    Each source node is cloned at most once, so bindings whose paths overlap
    share the cloned intermediate nodes.
    """

    def __init__(self, root: Any):
        self.root = root
        # id(source) -> (source, clone); the source reference pins the id
        self._clones: Dict[int, Tuple[Any, Any]] = {}

    def clone_of(self, node: Any) -> Any:
        entry = self._clones.get(id(node))
        if entry is None:
            entry = (node, shallow_clone(node))
            self._clones[id(node)] = entry
        return entry[1]

    def build(self, substitutions: Sequence[Tuple[Sequence[Any], Any]]) -> Any:
        """Apply ``(path, replacement)`` pairs onto a fresh clone of the root.

        Raises ScopeConflictError when one path runs through another's
        terminal key, since the nested substitution would be written into a
        node the other replaces.
        """
        self.check_overlaps([path for path, _ in substitutions])
        for path, _ in substitutions:
            resolve_parent(self.root, path)

        new_root = self.clone_of(self.root)
        for path, replacement in substitutions:
            source, clone = self.root, new_root
            for key in path[:-1]:
                child = read_key(source, key)
                child_clone = self.clone_of(child)
                write_value(clone, key, child_clone, source)
                source, clone = child, child_clone
            write_value(clone, path[-1], replacement, source)

        logger.debug(
            "Cloned root with %d substitutions, %d nodes copied",
            len(substitutions),
            len(self.cloned_nodes),
        )
        return new_root

    @staticmethod
    def check_overlaps(paths: Sequence[Sequence[Any]]) -> None:
        """Every path must end outside every other path."""
        ordered = sorted((tuple(path) for path in paths), key=len)
        for index, shorter in enumerate(ordered):
            for longer in ordered[index + 1 :]:
                if longer[: len(shorter)] == shorter:
                    raise ScopeConflictError(
                        f"{format_path(shorter)} is replaced while {format_path(longer)} "
                        "is substituted inside it"
                    )

    @property
    def cloned_nodes(self) -> List[Any]:
        return [clone for _, clone in self._clones.values()]
