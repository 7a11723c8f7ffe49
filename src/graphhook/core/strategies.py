"""
Handler Strategies for graphhook

Ready-made interception behaviors. A StrategyHandler is an ordinary hook
handler that tries its strategies in priority order; the first strategy that
applies owns the call, otherwise the original runs unchanged.

Unlike handlers written by hand, strategies only see the Invocation, which
already carries the arguments and the effective receiver.
"""

import logging
import threading
import time
from collections import defaultdict
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type

from ..config import Config
from .dispatcher import Invocation
from .registry import function_name


class HookPriority(Enum):
    """Priority levels for handler strategies."""

    HIGHEST = 1
    HIGH = 2
    NORMAL = 3
    LOW = 4
    LOWEST = 5


class HookStrategy:
    """Base class for handler strategies."""

    def __init__(self, priority: HookPriority = HookPriority.NORMAL):
        self.priority = priority
        self.name = self.__class__.__name__

    def applies(self, invocation: Invocation) -> bool:
        """Determine if this strategy should take the call."""
        return True

    def handle(self, invocation: Invocation) -> Any:
        """Produce the call's result."""
        raise NotImplementedError

    def __repr__(self):
        return f"{self.name}(priority={self.priority.name})"


class BlockStrategy(HookStrategy):
    """Block the call with a fixed return value or an error."""

    def __init__(
        self,
        return_value: Any = None,
        raise_error: Optional[Type[Exception]] = None,
        message: str = "Call blocked by BlockStrategy",
        priority: HookPriority = HookPriority.HIGHEST,
    ):
        super().__init__(priority)
        self.return_value = return_value
        self.raise_error = raise_error
        self.message = message

    def handle(self, invocation: Invocation) -> Any:
        if self.raise_error:
            raise self.raise_error(self.message)
        return self.return_value


class MockStrategy(HookStrategy):
    """Return mock data in selected environments."""

    def __init__(
        self,
        mock_data: Any = None,
        environments: Optional[Iterable[str]] = None,
        priority: HookPriority = HookPriority.HIGH,
    ):
        super().__init__(priority)
        self.mock_data = mock_data
        self.environments = list(environments or ["development", "testing"])

    def applies(self, invocation: Invocation) -> bool:
        """Only mock in the configured environments."""
        return Config.get_environment() in self.environments

    def handle(self, invocation: Invocation) -> Any:
        if callable(self.mock_data) and not isinstance(self.mock_data, type):
            # Mock data is a graph function
            return self.mock_data(invocation.context, *invocation.args, **invocation.kwargs)
        if isinstance(self.mock_data, dict):
            # Mock data is environment-specific
            return self.mock_data.get(Config.get_environment())
        return self.mock_data


class RedirectStrategy(HookStrategy):
    """Send the call to another graph function."""

    def __init__(
        self,
        target: Callable,
        transform_args: Optional[Callable[[Tuple, Dict], Tuple[Tuple, Dict]]] = None,
        transform_result: Optional[Callable[[Any], Any]] = None,
        priority: HookPriority = HookPriority.NORMAL,
    ):
        super().__init__(priority)
        self.target = target
        self.transform_args = transform_args
        self.transform_result = transform_result

    def handle(self, invocation: Invocation) -> Any:
        args, kwargs = invocation.args, invocation.kwargs
        if self.transform_args:
            args, kwargs = self.transform_args(args, kwargs)

        result = self.target(invocation.context, *args, **kwargs)

        if self.transform_result:
            result = self.transform_result(result)
        return result


class RecordStrategy(HookStrategy):
    """Run the original and record timing, arguments and results."""

    def __init__(
        self,
        track_arguments: bool = True,
        track_results: bool = True,
        callback: Optional[Callable[[Invocation, Any, Dict[str, Any]], None]] = None,
        priority: HookPriority = HookPriority.LOW,
    ):
        super().__init__(priority)
        self.track_arguments = track_arguments
        self.track_results = track_results
        self.callback = callback
        self.records: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self._lock = threading.RLock()

    def handle(self, invocation: Invocation) -> Any:
        func_name = function_name(invocation.original)
        start_time = time.time()
        entry: Dict[str, Any] = {"timestamp": datetime.now()}
        if self.track_arguments:
            entry["args"] = invocation.args
            entry["kwargs"] = dict(invocation.kwargs)

        try:
            result = invocation.run()
        except Exception as e:
            entry.update(
                execution_time=time.time() - start_time,
                success=False,
                error=str(e),
                error_type=type(e).__name__,
            )
            with self._lock:
                self.records[func_name].append(entry)
            raise

        entry.update(execution_time=time.time() - start_time, success=True)
        if self.track_results:
            entry["result"] = result
        with self._lock:
            self.records[func_name].append(entry)

        if self.callback:
            self.callback(invocation, result, entry)
        return result

    def get_records(self, func_name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """Get recorded calls, optionally for one function."""
        with self._lock:
            if func_name:
                return {func_name: list(self.records.get(func_name, []))}
            return {name: list(entries) for name, entries in self.records.items()}


class ConditionalStrategy(HookStrategy):
    """Pick a strategy per call based on a predicate over the invocation."""

    def __init__(
        self,
        condition: Callable[[Invocation], bool],
        true_strategy: HookStrategy,
        false_strategy: Optional[HookStrategy] = None,
        priority: HookPriority = HookPriority.NORMAL,
    ):
        super().__init__(priority)
        self.condition = condition
        self.true_strategy = true_strategy
        self.false_strategy = false_strategy

    def applies(self, invocation: Invocation) -> bool:
        if self.condition(invocation):
            return self.true_strategy.applies(invocation)
        if self.false_strategy:
            return self.false_strategy.applies(invocation)
        return False

    def handle(self, invocation: Invocation) -> Any:
        if self.condition(invocation):
            return self.true_strategy.handle(invocation)
        if self.false_strategy:
            return self.false_strategy.handle(invocation)
        # No false strategy, execute original
        return invocation.run()


class LogStrategy(HookStrategy):
    """Log each call and its outcome through stdlib logging."""

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
        max_value_length: int = 1000,
        priority: HookPriority = HookPriority.LOWEST,
    ):
        super().__init__(priority)
        self.logger = logger or logging.getLogger("graphhook.calls")
        self.level = level
        self.max_value_length = max_value_length

    def _truncate(self, value: str) -> str:
        if len(value) > self.max_value_length:
            return value[: self.max_value_length] + "... (truncated)"
        return value

    def handle(self, invocation: Invocation) -> Any:
        func_name = function_name(invocation.original)
        self.logger.log(
            self.level,
            "call %s args=%s kwargs=%s",
            func_name,
            self._truncate(repr(invocation.args)),
            self._truncate(repr(invocation.kwargs)),
        )

        start_time = time.time()
        try:
            result = invocation.run()
        except Exception as e:
            self.logger.log(
                max(self.level, logging.ERROR),
                "error %s after %.3fms: %s: %s",
                func_name,
                (time.time() - start_time) * 1000,
                type(e).__name__,
                e,
            )
            raise

        self.logger.log(
            self.level,
            "return %s after %.3fms: %s",
            func_name,
            (time.time() - start_time) * 1000,
            self._truncate(repr(result)),
        )
        return result


class StrategyHandler:
    """Hook handler that delegates to prioritized strategies."""

    def __init__(self, *strategies: HookStrategy):
        self.strategies = sorted(strategies, key=lambda s: s.priority.value)
        self._lock = threading.RLock()

    def __call__(self, invocation: Invocation, args: Tuple[Any, ...], context: Any) -> Any:
        for strategy in list(self.strategies):
            if strategy.applies(invocation):
                return strategy.handle(invocation)
        return invocation.run()

    def add_strategy(self, strategy: HookStrategy) -> None:
        """Add a new strategy."""
        with self._lock:
            self.strategies.append(strategy)
            self.strategies.sort(key=lambda s: s.priority.value)

    def remove_strategy(self, strategy_type: Type[HookStrategy]) -> None:
        """Remove strategies of a specific type."""
        with self._lock:
            self.strategies = [s for s in self.strategies if not isinstance(s, strategy_type)]

    def __repr__(self):
        return f"StrategyHandler({', '.join(repr(s) for s in self.strategies)})"


# Convenience builders for common handlers
def block(return_value=None, raise_error=None, message="Blocked", **kwargs) -> StrategyHandler:
    """Block handler."""
    return StrategyHandler(
        BlockStrategy(return_value=return_value, raise_error=raise_error, message=message, **kwargs)
    )


def mock(mock_data, environments=None, **kwargs) -> StrategyHandler:
    """Mock handler."""
    return StrategyHandler(MockStrategy(mock_data=mock_data, environments=environments, **kwargs))


def redirect(target, **kwargs) -> StrategyHandler:
    """Redirect handler."""
    return StrategyHandler(RedirectStrategy(target=target, **kwargs))


def record(**kwargs) -> StrategyHandler:
    """Recording handler."""
    return StrategyHandler(RecordStrategy(**kwargs))


def log_calls(logger=None, **kwargs) -> StrategyHandler:
    """Logging handler."""
    return StrategyHandler(LogStrategy(logger=logger, **kwargs))
