"""
Configuration Management for graphhook

Handles loading, saving, and managing configuration for the hook engine.
"""

import json
import logging
import os
import sys
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMATS = {
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "simple": "%(levelname)s: %(message)s",
}


@dataclass
class HookConfig:
    """Main configuration class for graphhook."""

    # Core settings
    debug: bool = False
    verbose: bool = False
    environment: str = "development"  # development, testing, production

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "detailed"

    # Engine settings
    wrapper_name_format: str = "Hooked({name})"
    retry_failed_location: bool = True
    strict_locations: bool = True

    # CLI settings
    root_spec: Optional[str] = None

    def __post_init__(self):
        """Normalize values loaded from files or kwargs."""
        self.log_level = str(self.log_level).upper()
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}")
        if "{name}" not in self.wrapper_name_format:
            raise ValueError("wrapper_name_format must contain '{name}'")


class Config:
    """Global configuration singleton."""

    _instance: Optional[HookConfig] = None
    _lock = threading.RLock()
    _config_file: Optional[Path] = None

    @classmethod
    def initialize(cls, config_path: Optional[Path] = None, **kwargs) -> HookConfig:
        """Initialize configuration from file or kwargs."""
        with cls._lock:
            if config_path:
                cls._config_file = config_path
                cls._instance = cls.load_config(config_path)
            else:
                cls._instance = HookConfig(**kwargs)
            return cls._instance

    @classmethod
    def get_instance(cls) -> HookConfig:
        """Get the configuration instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = HookConfig()
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the current instance; the next access builds defaults."""
        with cls._lock:
            cls._instance = None
            cls._config_file = None

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        instance = cls.get_instance()
        return getattr(instance, key, default)

    @classmethod
    def set(cls, key: str, value: Any) -> None:
        """Set a configuration value."""
        instance = cls.get_instance()
        if hasattr(instance, key):
            setattr(instance, key, value)

    @classmethod
    def get_environment(cls) -> str:
        """Get the current environment."""
        # Check environment variable first
        env = os.environ.get("GRAPHHOOK_ENV", None)
        if env:
            return env

        # Fall back to config
        return cls.get("environment", "development")

    @classmethod
    def load_config(cls, config_path: Path) -> HookConfig:
        """Load configuration from a JSON file; a missing file gives defaults."""
        config_path = Path(config_path)
        if not config_path.exists():
            return HookConfig()

        with open(config_path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {config_path} must contain a JSON object")
        return HookConfig(**data)

    @classmethod
    def save_config(cls, config_path: Optional[Path] = None) -> Path:
        """Save current configuration to file."""
        instance = cls.get_instance()
        path = Path(config_path or cls._config_file or "graphhook.json")

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(asdict(instance), f, indent=2, default=str)
        return path

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(cls.get_instance())

    @classmethod
    def update(cls, updates: Dict[str, Any]) -> None:
        """Update multiple configuration values."""
        instance = cls.get_instance()
        for key, value in updates.items():
            if hasattr(instance, key):
                setattr(instance, key, value)


def configure_logging(config: Optional[HookConfig] = None) -> logging.Logger:
    """Attach a stream handler to the ``graphhook`` logger."""
    config = config or Config.get_instance()
    logger = logging.getLogger("graphhook")
    logger.setLevel("DEBUG" if config.debug else config.log_level)

    # Remove existing handlers
    logger.handlers = []

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMATS[config.log_format]))
    logger.addHandler(handler)
    return logger


# Convenience functions
def load_config(config_path: Optional[Path] = None) -> HookConfig:
    """Load configuration from file or use defaults."""
    return Config.initialize(config_path)


def save_config(config: HookConfig, config_path: Path) -> Path:
    """Save configuration to file."""
    Config._instance = config
    return Config.save_config(config_path)


def get_config() -> HookConfig:
    """Get the current configuration."""
    return Config.get_instance()
