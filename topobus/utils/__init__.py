"""Utility modules"""

from .catalog_cache import CatalogCache
from .config_validator import ConfigValidator, ConfigValidationError, validate_config

__all__ = ['CatalogCache', 'ConfigValidator', 'ConfigValidationError', 'validate_config']
