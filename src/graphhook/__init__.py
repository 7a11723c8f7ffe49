"""
graphhook - function interception over shared object graphs

Locate any function reachable from a root graph, route its calls through a
handler, and apply the interception either in place or on a copy-on-write
clone of the graph.
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

# Core public API
# Configuration
from .config import HookConfig, load_config, save_config
from .core.engine import (
    HookEngine,
    clone_root,
    create_hook,
    get_global_engine,
    get_hook,
    get_obj,
    intercept,
    override,
    reset_global_engine,
    restore,
    set_global_root,
)
from .core.errors import (
    HookError,
    ImmutablePropertyError,
    InvalidTargetError,
    LocationNotFoundError,
    LocationStaleError,
    ScopeConflictError,
)
from .core.object_model import GraphObject, PropertyDescriptor, PropertyKind, obj
from .core.strategies import (
    BlockStrategy,
    ConditionalStrategy,
    HookPriority,
    HookStrategy,
    LogStrategy,
    MockStrategy,
    RecordStrategy,
    RedirectStrategy,
    StrategyHandler,
)

# Main decorator (convenience import)
hook = intercept

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Engine
    "HookEngine",
    "create_hook",
    "get_hook",
    "intercept",
    "hook",
    "override",
    "restore",
    "get_obj",
    "clone_root",
    "get_global_engine",
    "set_global_root",
    "reset_global_engine",
    # Object model
    "GraphObject",
    "PropertyDescriptor",
    "PropertyKind",
    "obj",
    # Errors
    "HookError",
    "InvalidTargetError",
    "LocationNotFoundError",
    "ImmutablePropertyError",
    "ScopeConflictError",
    "LocationStaleError",
    # Strategies
    "HookStrategy",
    "HookPriority",
    "StrategyHandler",
    "BlockStrategy",
    "MockStrategy",
    "RedirectStrategy",
    "RecordStrategy",
    "ConditionalStrategy",
    "LogStrategy",
    # Configuration
    "HookConfig",
    "load_config",
    "save_config",
]
