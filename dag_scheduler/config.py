"""Configuration management for the task scheduler."""

import os
import yaml
from typing import Optional, Dict, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator
from .exceptions import ConfigurationError


class SchedulerConfig(BaseModel):
    """Scheduler behaviour configuration."""

    name: str = Field(default="scheduler", description="Scheduler name used in logs and diagrams")
    allow_unresolved_dependencies: bool = Field(
        default=False,
        description="Start even if some dependency names were never registered",
    )
    detect_cycles: bool = Field(default=True, description="Reject cyclic graphs at start")
    include_placeholders: bool = Field(
        default=False,
        description="Report never-registered dependency names in the result mapping",
    )
    log_task_timing: bool = Field(default=False, description="Log elapsed time of every task")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate scheduler name is not empty."""
        if not v or not v.strip():
            raise ValueError("Scheduler name cannot be empty")
        return v.strip()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SchedulerConfig":
        """Create configuration from dictionary."""
        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def from_yaml_file(cls, file_path: Path) -> "SchedulerConfig":
        """Load configuration from YAML file."""
        if not file_path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        try:
            with open(file_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML configuration: {e}")

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration must be a mapping: {file_path}")

        # Extract scheduler section if it exists
        if 'scheduler' in config_data:
            config_data = config_data['scheduler'] or {}

        return cls.from_dict(config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    def to_yaml_file(self, file_path: Path) -> None:
        """Save configuration to YAML file."""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(file_path, 'w') as f:
                yaml.dump({'scheduler': self.to_dict()}, f, default_flow_style=False)

        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}")


class ConfigLoader:
    """Configuration loader with multiple sources."""

    DEFAULT_CONFIG_PATHS = [
        Path("config/scheduler.yaml"),
        Path("config/scheduler.yml"),
        Path(".scheduler.yaml"),
        Path(".scheduler.yml"),
    ]

    ENV_PREFIX = "DAG_SCHEDULER_"

    BOOL_SETTINGS = [
        "allow_unresolved_dependencies",
        "detect_cycles",
        "include_placeholders",
        "log_task_timing",
    ]

    @classmethod
    def load_config(cls, config_path: Optional[Path] = None) -> SchedulerConfig:
        """Load configuration from file or defaults."""
        if config_path:
            if not config_path.exists():
                raise ConfigurationError(f"Specified config file not found: {config_path}")
            return SchedulerConfig.from_yaml_file(config_path)

        # Try default paths
        for path in cls.DEFAULT_CONFIG_PATHS:
            if path.exists():
                return SchedulerConfig.from_yaml_file(path)

        # Return default configuration if no file found
        return SchedulerConfig()

    @classmethod
    def load_from_env(cls) -> SchedulerConfig:
        """Load configuration from environment variables."""
        config_dict: Dict[str, Any] = {}

        if os.getenv(f"{cls.ENV_PREFIX}NAME"):
            config_dict['name'] = os.getenv(f"{cls.ENV_PREFIX}NAME")

        for setting in cls.BOOL_SETTINGS:
            env_name = f"{cls.ENV_PREFIX}{setting.upper()}"
            value = os.getenv(env_name)
            if value is None:
                continue
            config_dict[setting] = cls._parse_bool(env_name, value)

        return SchedulerConfig.from_dict(config_dict)

    @staticmethod
    def _parse_bool(env_name: str, value: str) -> bool:
        normalized = value.strip().lower()
        if normalized in ("1", "true", "yes", "on"):
            return True
        if normalized in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(
            f"Invalid boolean value for {env_name}: {value!r}",
            config_key=env_name,
        )


def load_scheduler_config(config_path: Optional[Path] = None) -> SchedulerConfig:
    """Convenience function to load scheduler configuration."""
    return ConfigLoader.load_config(config_path)
