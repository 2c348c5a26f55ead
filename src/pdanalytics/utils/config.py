"""
Configuration loader for pdanalytics.

This module provides configuration management with:
- Multiple configuration sources (files, env vars, CLI overrides)
- Schema validation through pydantic
- Type coercion
- Configuration merging by priority
"""

import os
import json
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
import toml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from .logging import get_logger
from .errors import ConfigurationError


logger = get_logger("pdanalytics.config")

ENV_PREFIX = "PDANALYTICS_"
ENV_NESTING = "__"
OVERRIDE_PRIORITY = 100


class ConfigSource(BaseModel):
    """Configuration source definition."""
    path: Optional[Path] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    priority: int = 0
    source_type: str = "dict"

    model_config = ConfigDict(arbitrary_types_allowed=True)


class DatabaseConfig(BaseModel):
    """Local store configuration."""
    path: Path = Field(default_factory=lambda: Path.home() / ".pdanalytics" / "pdanalytics.db")
    timeout: float = 30.0
    journal_mode: str = "WAL"
    synchronous: str = "NORMAL"

    @field_validator('path')
    @classmethod
    def validate_path(cls, v):
        """Ensure path is absolute."""
        return Path(v).expanduser().absolute()


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "json"
    directory: Path = Field(default_factory=lambda: Path.home() / ".pdanalytics" / "logs")
    max_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 10
    enable_sentry: bool = False
    sentry_dsn: Optional[str] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class WebConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "127.0.0.1"
    port: int = Field(default=7778, ge=1, le=65535)


class SyncSourceConfig(BaseModel):
    """An upstream instance to replicate from.

    An empty ``url`` registers the database for offline comparison only.
    """
    url: str = ""
    database: Path
    label: Optional[str] = None

    @field_validator('url')
    @classmethod
    def strip_url(cls, v):
        return v.strip()

    @field_validator('database')
    @classmethod
    def validate_database(cls, v):
        return Path(v).expanduser().absolute()

    @property
    def name(self) -> str:
        return self.label or self.database.stem


class SyncConfig(BaseModel):
    """Data sync configuration."""
    enabled: bool = False
    period: int = Field(default=10, ge=1)  # minutes
    page_size: int = Field(default=1000, ge=1)
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)  # seconds
    request_timeout: float = Field(default=30.0, gt=0)  # seconds
    max_take: int = Field(default=1000, ge=1)
    sources: List[SyncSourceConfig] = Field(default_factory=list)


class PdAnalyticsConfig(BaseModel):
    """Main pdanalytics configuration."""
    app_name: str = "pdanalytics"
    debug: bool = False

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ConfigLoader:
    """Configuration loader with multiple source support."""

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._sources: List[ConfigSource] = []
        self._config: Optional[PdAnalyticsConfig] = None
        self.env_prefix = env_prefix

    def add_source(
        self,
        source: Union[str, Path, Dict[str, Any]],
        priority: int = 0,
        source_type: Optional[str] = None
    ) -> None:
        """
        Add configuration source.

        Args:
            source: Configuration source (file path or dict)
            priority: Source priority (higher wins)
            source_type: Source type (auto-detected if None)
        """
        if isinstance(source, (str, Path)):
            path = Path(source).expanduser()
            if not source_type:
                source_type = self._detect_source_type(path)

            self._sources.append(ConfigSource(
                path=path,
                priority=priority,
                source_type=source_type
            ))
        else:
            self._sources.append(ConfigSource(
                data=source,
                priority=priority,
                source_type="dict"
            ))

        self._sources.sort(key=lambda s: s.priority)

    def _detect_source_type(self, path: Path) -> str:
        """Detect configuration file type."""
        suffix = path.suffix.lower()
        if suffix == ".json":
            return "json"
        elif suffix in (".yaml", ".yml"):
            return "yaml"
        elif suffix == ".toml":
            return "toml"
        else:
            raise ConfigurationError(f"Unknown config file type: {suffix}")

    def load(self) -> PdAnalyticsConfig:
        """
        Load configuration from all sources.

        Sources are applied from lowest to highest priority. Environment
        variables override files but not overrides at OVERRIDE_PRIORITY.

        Returns:
            Merged configuration
        """
        merged_data: Dict[str, Any] = {}
        env_applied = False

        for source in self._sources:
            if source.priority >= OVERRIDE_PRIORITY and not env_applied:
                merged_data = self._deep_merge(merged_data, self._load_env_vars())
                env_applied = True
            try:
                data = self._load_source(source)
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise ConfigurationError(
                    f"Failed to load configuration from {source.path}: {e}"
                ) from e
            merged_data = self._deep_merge(merged_data, data)

        if not env_applied:
            merged_data = self._deep_merge(merged_data, self._load_env_vars())

        try:
            self._config = PdAnalyticsConfig(**merged_data)
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"{field}: {error['msg']}")
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}"
            ) from e

        logger.info("configuration_loaded", sources=len(self._sources))
        return self._config

    def _load_source(self, source: ConfigSource) -> Dict[str, Any]:
        """Load data from a configuration source."""
        if source.path is None:
            return source.data

        if not source.path.exists():
            logger.warning("config_file_not_found", path=str(source.path))
            return {}

        content = source.path.read_text()

        if source.source_type == "json":
            return json.loads(content)
        elif source.source_type == "yaml":
            return yaml.safe_load(content) or {}
        elif source.source_type == "toml":
            return toml.loads(content)
        else:
            raise ConfigurationError(f"Unknown source type: {source.source_type}")

    def _load_env_vars(self) -> Dict[str, Any]:
        """Load configuration from environment variables.

        ``PDANALYTICS_SYNC__PAGE_SIZE=500`` sets ``sync.page_size``.
        """
        result: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.env_prefix):
                continue
            parts = key[len(self.env_prefix):].lower().split(ENV_NESTING)
            current = result
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = self._convert_value(value)

        return result

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        return value

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get_config(self) -> PdAnalyticsConfig:
        """Get current configuration."""
        if self._config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._config


def load_config(
    config_paths: Optional[List[Union[str, Path]]] = None,
    extra_config: Optional[Dict[str, Any]] = None
) -> PdAnalyticsConfig:
    """
    Load configuration from standard locations.

    Args:
        config_paths: Additional configuration paths
        extra_config: Extra configuration to merge (CLI overrides)

    Returns:
        Loaded configuration
    """
    loader = ConfigLoader()

    default_paths = [
        Path("/etc/pdanalytics/config.yaml"),
        Path.home() / ".pdanalytics" / "config.yaml",
        Path.home() / ".pdanalytics" / "config.json",
        Path("./pdanalytics.yaml"),
        Path("./pdanalytics.toml"),
    ]

    for path in default_paths:
        if path.exists():
            loader.add_source(path, priority=10)

    if config_paths:
        for i, path in enumerate(config_paths):
            loader.add_source(path, priority=20 + i)

    if extra_config:
        loader.add_source(extra_config, priority=OVERRIDE_PRIORITY)

    return loader.load()


__all__ = [
    'PdAnalyticsConfig',
    'DatabaseConfig',
    'LoggingConfig',
    'WebConfig',
    'SyncConfig',
    'SyncSourceConfig',
    'ConfigLoader',
    'load_config',
]
