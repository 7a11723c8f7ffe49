"""
Object Model for graphhook

Graph nodes carry an explicit property table instead of relying on Python
attribute magic. Each property is a tagged descriptor (plain value or accessor
pair) with enumerable/configurable/writable flags, and each GraphObject has an
ordered list of delegates that are consulted for keys it does not own.

Plain dicts, lists and Python functions are also accepted as graph nodes so
that existing data can be hooked without converting it first.
"""

import types
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence


class PropertyKind(Enum):
    """Kinds of property descriptors."""

    VALUE = "value"
    ACCESSOR = "accessor"


@dataclass(frozen=True)
class PropertyDescriptor:
    """A single property slot of a graph node."""

    kind: PropertyKind = PropertyKind.VALUE
    value: Any = None
    getter: Optional[Callable[[Any], Any]] = None
    setter: Optional[Callable[[Any, Any], None]] = None
    enumerable: bool = True
    configurable: bool = True
    writable: bool = True

    @classmethod
    def data(
        cls,
        value: Any,
        enumerable: bool = True,
        configurable: bool = True,
        writable: bool = True,
    ) -> "PropertyDescriptor":
        """Build a plain value descriptor."""
        return cls(
            PropertyKind.VALUE,
            value=value,
            enumerable=enumerable,
            configurable=configurable,
            writable=writable,
        )

    @classmethod
    def accessor(
        cls,
        getter: Optional[Callable[[Any], Any]] = None,
        setter: Optional[Callable[[Any, Any], None]] = None,
        enumerable: bool = True,
        configurable: bool = True,
    ) -> "PropertyDescriptor":
        """Build a getter/setter descriptor. Accessors are never writable."""
        return cls(
            PropertyKind.ACCESSOR,
            getter=getter,
            setter=setter,
            enumerable=enumerable,
            configurable=configurable,
            writable=False,
        )

    @property
    def is_accessor(self) -> bool:
        return self.kind is PropertyKind.ACCESSOR

    @property
    def is_immutable(self) -> bool:
        """True when neither redefinition nor assignment may change the slot."""
        return not self.configurable and not self.writable

    def with_value(self, value: Any) -> "PropertyDescriptor":
        """Return a value descriptor holding ``value`` with the same flags."""
        return PropertyDescriptor.data(
            value,
            enumerable=self.enumerable,
            configurable=self.configurable,
            writable=True if self.is_accessor else self.writable,
        )

    def resolve(self, receiver: Any) -> Any:
        """Read the slot, running the getter against ``receiver``."""
        if self.is_accessor:
            return self.getter(receiver) if self.getter is not None else None
        return self.value


class GraphObject:
    """A node with an explicit property table and delegation chain."""

    def __init__(
        self,
        values: Optional[Dict[Any, Any]] = None,
        delegates: Sequence["GraphObject"] = (),
    ):
        self._properties: Dict[Any, PropertyDescriptor] = {}
        self._delegates: List[GraphObject] = []
        self.set_delegates(delegates)
        for key, value in (values or {}).items():
            self._properties[key] = PropertyDescriptor.data(value)

    # Delegation

    @property
    def delegates(self) -> tuple:
        return tuple(self._delegates)

    def set_delegates(self, delegates: Sequence["GraphObject"]) -> None:
        for delegate in delegates:
            if not isinstance(delegate, GraphObject):
                raise TypeError(f"Delegates must be GraphObjects, got {type(delegate).__name__}")
        self._delegates = list(delegates)

    def chain(self) -> List["GraphObject"]:
        """Linearize the delegation graph: self first, then delegates depth-first."""
        result: List[GraphObject] = []
        seen = set()
        pending = [self]
        while pending:
            node = pending.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            result.append(node)
            pending.extend(reversed(node._delegates))
        return result

    def _find(self, key: Any):
        for node in self.chain():
            descriptor = node._properties.get(key)
            if descriptor is not None:
                return node, descriptor
        return None

    # Own properties

    def own_keys(self) -> List[Any]:
        return list(self._properties)

    def keys(self) -> List[Any]:
        """Own enumerable keys in definition order."""
        return [key for key, descriptor in self._properties.items() if descriptor.enumerable]

    def has_own(self, key: Any) -> bool:
        return key in self._properties

    def get_own_descriptor(self, key: Any) -> Optional[PropertyDescriptor]:
        return self._properties.get(key)

    def define_property(self, key: Any, descriptor: PropertyDescriptor) -> None:
        """Install ``descriptor`` at ``key``.

        A non-configurable slot may only have its value replaced, and only
        while it is a writable value slot.
        """
        current = self._properties.get(key)
        if current is not None and not current.configurable:
            allowed = (
                not current.is_accessor
                and not descriptor.is_accessor
                and current.writable
                and not descriptor.configurable
                and descriptor.enumerable == current.enumerable
            )
            if not allowed:
                raise TypeError(f"Cannot redefine property: {key!s}")
        self._properties[key] = descriptor

    def define(
        self,
        key: Any,
        value: Any,
        *,
        enumerable: bool = True,
        configurable: bool = True,
        writable: bool = True,
    ) -> None:
        self.define_property(
            key,
            PropertyDescriptor.data(
                value, enumerable=enumerable, configurable=configurable, writable=writable
            ),
        )

    def define_accessor(
        self,
        key: Any,
        getter: Optional[Callable[[Any], Any]] = None,
        setter: Optional[Callable[[Any, Any], None]] = None,
        *,
        enumerable: bool = True,
        configurable: bool = True,
    ) -> None:
        self.define_property(
            key,
            PropertyDescriptor.accessor(
                getter, setter, enumerable=enumerable, configurable=configurable
            ),
        )

    # Reads and writes through the chain

    def lookup(self, key: Any, receiver: Any = None) -> Any:
        """Read ``key`` through the chain; getters see ``receiver`` (default self)."""
        found = self._find(key)
        if found is None:
            raise KeyError(key)
        return found[1].resolve(self if receiver is None else receiver)

    def get(self, key: Any, default: Any = None) -> Any:
        found = self._find(key)
        if found is None:
            return default
        return found[1].resolve(self)

    def invoke(self, key: Any, *args, **kwargs) -> Any:
        """Call the function stored at ``key`` with this node as receiver."""
        return self.lookup(key)(self, *args, **kwargs)

    def __getitem__(self, key: Any) -> Any:
        return self.lookup(key)

    def __setitem__(self, key: Any, value: Any) -> None:
        found = self._find(key)
        if found is not None:
            owner, descriptor = found
            if descriptor.is_accessor:
                if descriptor.setter is None:
                    raise TypeError(f"Cannot set property {key!s} which has only a getter")
                descriptor.setter(self, value)
                return
            if not descriptor.writable:
                raise TypeError(f"Cannot assign to read only property {key!s}")
            if owner is self:
                self._properties[key] = replace(descriptor, value=value)
                return
        self._properties[key] = PropertyDescriptor.data(value)

    def __delitem__(self, key: Any) -> None:
        descriptor = self._properties.get(key)
        if descriptor is None:
            raise KeyError(key)
        if not descriptor.configurable:
            raise TypeError(f"Cannot delete property {key!s}")
        del self._properties[key]

    def __contains__(self, key: Any) -> bool:
        return self._find(key) is not None

    def __iter__(self) -> Iterator[Any]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __bool__(self) -> bool:
        return True

    def clone(self) -> "GraphObject":
        """Shallow copy: same delegates, same descriptors, new identity."""
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._properties = dict(self._properties)
        clone._delegates = list(self._delegates)
        return clone

    def __repr__(self) -> str:
        keys = ", ".join(repr(key) for key in self.own_keys()[:8])
        if len(self._properties) > 8:
            keys += ", ..."
        return f"{type(self).__name__}({{{keys}}})"


def obj(*delegates: GraphObject, **values: Any) -> GraphObject:
    """Shorthand constructor: ``obj(proto, name="x", greet=greet)``."""
    return GraphObject(values, delegates=delegates)


# Node protocol shared by the locator, writer and cloners.

def _is_public_attribute(name: Any) -> bool:
    return isinstance(name, str) and not (name.startswith("__") and name.endswith("__"))


def is_node(value: Any) -> bool:
    """Whether ``value`` can hold keys that lead further into the graph."""
    return isinstance(value, (GraphObject, dict, list, types.FunctionType))


def delegation_chain(node: Any) -> List[Any]:
    if isinstance(node, GraphObject):
        return node.chain()
    return [node]


def own_keys(node: Any) -> List[Any]:
    if isinstance(node, GraphObject):
        return node.own_keys()
    if isinstance(node, dict):
        return list(node.keys())
    if isinstance(node, list):
        return list(range(len(node)))
    if isinstance(node, types.FunctionType):
        return [name for name in vars(node) if _is_public_attribute(name)]
    return []


def has_own(node: Any, key: Any) -> bool:
    if isinstance(node, GraphObject):
        return node.has_own(key)
    if isinstance(node, dict):
        try:
            return key in node
        except TypeError:
            return False
    if isinstance(node, list):
        return isinstance(key, int) and not isinstance(key, bool) and 0 <= key < len(node)
    if isinstance(node, types.FunctionType):
        return _is_public_attribute(key) and key in vars(node)
    return False


def read_key(node: Any, key: Any) -> Any:
    """Read ``key`` from ``node`` the way a property access would."""
    if isinstance(node, GraphObject):
        return node.lookup(key)
    if isinstance(node, dict):
        return node[key]
    if isinstance(node, list):
        if not has_own(node, key):
            raise IndexError(key)
        return node[key]
    if isinstance(node, types.FunctionType):
        if not has_own(node, key):
            raise AttributeError(key)
        return vars(node)[key]
    raise TypeError(f"{type(node).__name__} is not a graph node")


def own_descriptor(node: Any, key: Any) -> Optional[PropertyDescriptor]:
    if isinstance(node, GraphObject):
        return node.get_own_descriptor(key)
    if has_own(node, key):
        return PropertyDescriptor.data(read_key(node, key))
    return None


def assign_key(node: Any, key: Any, value: Any) -> None:
    """Plain assignment with default attributes."""
    if isinstance(node, (GraphObject, dict)):
        node[key] = value
    elif isinstance(node, list):
        if key == len(node):
            node.append(value)
        else:
            node[key] = value
    elif isinstance(node, types.FunctionType):
        setattr(node, key, value)
    else:
        raise TypeError(f"{type(node).__name__} is not a graph node")


def define_key(node: Any, key: Any, descriptor: PropertyDescriptor) -> None:
    if isinstance(node, GraphObject):
        node.define_property(key, descriptor)
        return
    if descriptor.is_accessor:
        raise TypeError(f"Accessor properties require a GraphObject, got {type(node).__name__}")
    assign_key(node, key, descriptor.value)


def format_path(path: Sequence[Any]) -> str:
    """Render a key path as ``a.b[0].c``."""
    parts = []
    for key in path:
        if isinstance(key, int) and not isinstance(key, bool):
            parts.append(f"[{key}]")
        elif isinstance(key, str) and key.isidentifier():
            parts.append(f".{key}" if parts else key)
        else:
            parts.append(f"[{key!r}]")
    return "".join(parts)
