"""Configuration validator"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

GROUP_ADDRESS_STYLES = ("ThreeLevel", "TwoLevel", "Free")

# Expected shape of config.json
CONFIG_SCHEMA = {
    "type": "object",
    "required": ["general"],
    "properties": {
        "general": {
            "type": "object",
            "properties": {
                "default_project_name": {"type": "string"},
                "preferred_language": {"type": ["string", "null"]},
                "group_address_style": {"type": "string", "enum": list(GROUP_ADDRESS_STYLES)},
                "scan_nested_archives": {"type": "boolean"}
            }
        },
        "graph": {
            "type": "object",
            "properties": {
                "unknown_bucket": {"type": "string"}
            }
        }
    }
}


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""
    pass


class ConfigValidator:
    """Validates configuration dictionaries"""

    def __init__(self, schema: Optional[Dict] = None):
        """Initialize validator with schema."""
        self.schema = schema or CONFIG_SCHEMA
        self.errors = []

    def validate(self, config: Dict) -> bool:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            True if valid

        Raises:
            ConfigValidationError: If validation fails with details
        """
        self.errors = []

        if not isinstance(config, dict):
            raise ConfigValidationError("Configuration must be a JSON object")

        for required_field in self.schema.get('required', []):
            if required_field not in config:
                self.errors.append(f"Missing required field: {required_field}")

        if 'general' in config:
            self._validate_general(config['general'])

        if 'graph' in config:
            self._validate_graph(config['graph'])

        if self.errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in self.errors)
            raise ConfigValidationError(error_msg)

        logger.debug("Configuration validation successful")
        return True

    def _validate_general(self, general: Dict):
        """Validate general section."""
        if not isinstance(general, dict):
            self.errors.append("'general' must be an object")
            return

        name = general.get('default_project_name')
        if name is not None and (not isinstance(name, str) or not name.strip()):
            self.errors.append("'general.default_project_name' must be a non-empty string")

        language = general.get('preferred_language')
        if language is not None and not isinstance(language, str):
            self.errors.append("'general.preferred_language' must be a string or null")

        style = general.get('group_address_style')
        if style is not None and style not in GROUP_ADDRESS_STYLES:
            self.errors.append(
                f"'general.group_address_style' must be one of {', '.join(GROUP_ADDRESS_STYLES)}, got '{style}'"
            )

        scan = general.get('scan_nested_archives')
        if scan is not None and not isinstance(scan, bool):
            self.errors.append("'general.scan_nested_archives' must be a boolean")

    def _validate_graph(self, graph: Dict):
        """Validate graph section."""
        if not isinstance(graph, dict):
            self.errors.append("'graph' must be an object")
            return

        bucket = graph.get('unknown_bucket')
        if bucket is not None and (not isinstance(bucket, str) or not bucket.strip()):
            self.errors.append("'graph.unknown_bucket' must be a non-empty string")


def validate_config(config: Dict) -> bool:
    """Validate a configuration dictionary with the default schema."""
    return ConfigValidator().validate(config)
