"""
Utility modules for the crawler.
"""

from .config import Config, ConfigManager, load_config, apply_overrides, validate_config

__all__ = ['Config', 'ConfigManager', 'load_config', 'apply_overrides', 'validate_config']
