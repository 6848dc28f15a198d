"""
Configuration management for the crawler.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, fields


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_url: str = ""
    max_depth: int = 3
    timeout: float = 10.0
    max_errors: int = 100000
    max_results: int = 10000
    depth_step: int = 2
    politeness_delay: float = 2.0
    request_timeout: int = 30
    max_concurrent_requests: Optional[int] = None
    user_agent: str = "link-crawler/1.0"
    stats_interval: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: int = 8000
    metrics_enabled: bool = False


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Config':
        """Build a Config from parsed YAML, falling back to defaults for missing keys."""
        data = data or {}
        return cls(
            crawler=_section(CrawlerConfig, data.get('crawler')),
            logging=_section(LoggingConfig, data.get('logging')),
            monitoring=_section(MonitoringConfig, data.get('monitoring')),
        )


def _section(section_cls, values: Optional[Dict[str, Any]]):
    values = values or {}
    known = {f.name for f in fields(section_cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {section_cls.__name__} keys: {', '.join(sorted(unknown))}")
    return section_cls(**values)


def validate_config(config: Config):
    """Validate configuration values."""
    crawler = config.crawler

    if not crawler.seed_url:
        raise ValueError("A seed URL must be provided")

    if crawler.max_depth < 0:
        raise ValueError("max_depth must be non-negative")

    if crawler.timeout <= 0:
        raise ValueError("timeout must be positive")

    if crawler.max_errors < 1:
        raise ValueError("max_errors must be at least 1")

    if crawler.max_results < 1:
        raise ValueError("max_results must be at least 1")

    if crawler.depth_step < 1:
        raise ValueError("depth_step must be at least 1")

    if crawler.politeness_delay < 0:
        raise ValueError("politeness_delay must be non-negative")

    if crawler.max_concurrent_requests is not None and crawler.max_concurrent_requests < 1:
        raise ValueError("max_concurrent_requests must be at least 1")

    if not hasattr(logging, config.logging.level.upper()):
        raise ValueError(f"Unknown log level: {config.logging.level}")

    logging.getLogger(__name__).debug("Configuration validation passed")


def apply_overrides(config: Config, **overrides) -> Config:
    """Override crawler settings with values given on the command line. ``None`` means unset."""
    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(config.crawler, key):
            raise ValueError(f"Unknown crawler setting: {key}")
        setattr(config.crawler, key, value)
    return config


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[Config] = None

    def load_config(self, validate: bool = True) -> Config:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as file:
            config_data = yaml.safe_load(file)

        self._config = Config.from_dict(config_data)
        if validate:
            validate_config(self._config)
        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: str = "config.yaml", validate: bool = True) -> Config:
    """Load configuration from file."""
    return ConfigManager(config_path).load_config(validate=validate)
