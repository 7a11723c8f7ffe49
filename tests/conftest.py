"""Test fixtures for graphhook tests."""

import pytest

from graphhook import HookConfig, HookEngine, obj
from graphhook.config import Config
from graphhook.demo import build_root


def greet(this):
    """Return the receiver's name."""
    return this["name"]


def add(this, x, y=10):
    """Add two numbers, ignoring the receiver."""
    return x + y


@pytest.fixture(autouse=True)
def reset_config(monkeypatch):
    """Every test starts from default configuration."""
    monkeypatch.delenv("GRAPHHOOK_ENV", raising=False)
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def sample_config():
    """Sample configuration for testing."""
    return HookConfig(debug=True, verbose=True, environment="testing")


@pytest.fixture
def sample_root():
    """The greet scenario: root.a.greet reads this.name."""
    return obj(a=obj(greet=greet, name="root"), math=obj(add=add))


@pytest.fixture
def engine(sample_root):
    """Engine bound to the sample root."""
    return HookEngine(root=sample_root)


@pytest.fixture
def demo_root():
    """Fresh demo graph with process, wm and runtime nodes."""
    return build_root()
