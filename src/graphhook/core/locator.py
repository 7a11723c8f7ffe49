"""
Graph Locator

Finds where a function currently lives in the root graph. The search is a
breadth-first walk keyed on object identity, so it terminates on cyclic graphs
and always reports the shallowest location first.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Optional, Tuple

from .object_model import delegation_chain, format_path, has_own, is_node, own_keys, read_key

logger = logging.getLogger("graphhook.core.locator")


@dataclass(frozen=True, eq=False)
class TargetInfo:
    """Where a function was found.

    ``context`` is the node the function was read from; ``owner`` is the node
    in its delegation chain that declares the key.
    """

    owner: Any
    context: Any
    key: Any
    path: Tuple[Any, ...]

    @property
    def dotted_path(self) -> str:
        return format_path(self.path)


class GraphLocator:
    """Breadth-first identity search over graph nodes."""

    def locate(self, target: Any, root: Any) -> Optional[TargetInfo]:
        """Return the first location of ``target`` reachable from ``root``."""
        if not is_node(root):
            return None

        # id -> node; holding the node keeps its id from being reused mid-search
        visited: Dict[int, Any] = {}
        queue: Deque[Tuple[Any, Tuple[Any, ...]]] = deque([(root, ())])

        while queue:
            node, path = queue.popleft()
            if id(node) in visited:
                continue
            visited[id(node)] = node

            for key in self.collect_keys(node):
                try:
                    value = read_key(node, key)
                except Exception:
                    continue

                if value is target:
                    info = TargetInfo(
                        owner=self.find_owner(node, key),
                        context=node,
                        key=key,
                        path=path + (key,),
                    )
                    logger.debug(
                        "Located %r at %s after visiting %d nodes",
                        target,
                        info.dotted_path,
                        len(visited),
                    )
                    return info

                if is_node(value) and id(value) not in visited:
                    queue.append((value, path + (key,)))

        logger.debug("%r not found after visiting %d nodes", target, len(visited))
        return None

    @staticmethod
    def collect_keys(node: Any) -> List[Any]:
        """Own keys first, then inherited ones, each key once."""
        keys: List[Any] = []
        seen = set()
        for link in delegation_chain(node):
            for key in own_keys(link):
                if key not in seen:
                    seen.add(key)
                    keys.append(key)
        return keys

    @staticmethod
    def find_owner(node: Any, key: Any) -> Any:
        """Nearest node in the chain that declares ``key`` itself."""
        for link in delegation_chain(node):
            if has_own(link, key):
                return link
        return node


def locate_target(target: Any, root: Any) -> Optional[TargetInfo]:
    """Convenience wrapper around ``GraphLocator().locate``."""
    return GraphLocator().locate(target, root)
