"""
Managers for configuration and the animation catalog
"""

from .config_manager import ConfigManager, DEFAULT_CONFIG_PATH
from .catalog_manager import CatalogManager

__all__ = ['ConfigManager', 'DEFAULT_CONFIG_PATH', 'CatalogManager']
