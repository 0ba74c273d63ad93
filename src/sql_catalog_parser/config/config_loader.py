"""
Configuration loader module for the SQL catalog parser.

This module provides functionality to load, validate, and access
configuration from YAML files with support for overrides and runtime updates.
"""

import os
import yaml
import logging
import codecs
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field
from datetime import datetime
import copy


class ConfigError(Exception):
    """Custom exception for configuration errors."""
    pass


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""
    pass


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


CONFIG_FILENAME = 'catalog.yaml'

DEFAULT_CONFIG: Dict[str, Any] = {
    'parsing': {
        'default_schema': 'public',
        'include_comments': True,
    },
    'files': {
        'base_dir': 'supabase',
        'schema_paths': ['migrations/*.sql', 'migrations/**/*.sql'],
        'max_file_size_mb': 50,
    },
    'reading': {
        'encoding_confidence_threshold': 0.7,
        'fallback_encoding': 'latin-1',
    },
    'processing': {
        'max_workers': 1,
        'show_progress': False,
    },
    'logging': {
        'level': 'INFO',
        'file': None,
    },
}

LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class ConfigLoader:
    """
    Loads and manages configuration from YAML files.

    This class provides:
    - Built-in defaults for every setting
    - Loading catalog.yaml from a configuration directory
    - Environment-specific overrides (environments/<env>/catalog.yaml)
    - Validation of configuration values
    - Runtime configuration updates
    """

    REQUIRED_SECTIONS = ['parsing', 'files', 'reading', 'processing', 'logging']

    def __init__(self, config_dir: Optional[Union[str, Path]] = None,
                 environment: Optional[str] = None):
        """
        Initialize configuration loader.

        Args:
            config_dir: Directory containing catalog.yaml. When None, only the
                built-in defaults are used.
            environment: Environment name for overrides (dev, test, prod)
        """
        self.config_dir = Path(config_dir) if config_dir is not None else None
        self.environment = environment or os.getenv('APP_ENV', 'default')
        self.logger = logging.getLogger(self.__class__.__name__)

        # Configuration storage
        self._base_config: Dict[str, Any] = {}
        self._override_config: Dict[str, Any] = {}
        self._merged_config: Dict[str, Any] = {}

        self.load_all_configs()

    def load_all_configs(self) -> None:
        """Load defaults, catalog.yaml and environment overrides."""
        try:
            if self.config_dir is not None:
                self._base_config = self._load_yaml_file(CONFIG_FILENAME)

                if self.environment and self.environment != 'default':
                    self._load_environment_overrides()

            self._merge_configurations()

            validation_result = self.validate_all()
            for warning in validation_result.warnings:
                self.logger.warning(warning)
            if not validation_result.is_valid:
                raise ConfigValidationError(
                    f"Configuration validation failed: {'; '.join(validation_result.errors)}"
                )

        except Exception as e:
            self.logger.error(f"Failed to load configurations: {str(e)}")
            raise

    def _load_yaml_file(self, filename: str) -> Dict[str, Any]:
        """Load a single YAML file."""
        file_path = self.config_dir / filename
        self.logger.debug(f"Trying to load config file at: {file_path.resolve()}")

        if not file_path.exists():
            raise ConfigError(f"Configuration file not found: {file_path.resolve()}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file {filename}: {str(e)}")
        except OSError as e:
            raise ConfigError(f"Failed to read file {filename}: {str(e)}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file {filename} must contain a mapping")

        self.logger.info(f"Loaded configuration from {file_path}")
        return config

    def _load_environment_overrides(self) -> None:
        """Load the environment-specific override of catalog.yaml."""
        override_file = self.config_dir / 'environments' / self.environment / CONFIG_FILENAME

        if not override_file.exists():
            self.logger.info(f"No environment overrides found for '{self.environment}'")
            return

        self._override_config = self._load_yaml_file(
            f'environments/{self.environment}/{CONFIG_FILENAME}'
        )
        self.logger.info(f"Loaded override configuration for '{self.environment}'")

    def _merge_configurations(self) -> None:
        """Merge defaults, base configuration and overrides."""
        merged = self._deep_merge(DEFAULT_CONFIG, self._base_config)
        self._merged_config = self._deep_merge(merged, self._override_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)

        return result

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path to configuration value
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            config.get('parsing.default_schema')
        """
        keys = key_path.split('.')
        value = self._merged_config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_schema_paths(self) -> List[str]:
        return list(self.get('files.schema_paths', []) or [])

    def get_base_dir(self) -> Path:
        """Base directory for schema paths, relative to the config directory."""
        base_dir = Path(self.get('files.base_dir', '.'))
        if not base_dir.is_absolute() and self.config_dir is not None:
            base_dir = self.config_dir / base_dir
        return base_dir

    def validate_all(self) -> ValidationResult:
        """Validate the merged configuration."""
        errors = []
        warnings = []

        for section in self.REQUIRED_SECTIONS:
            if not isinstance(self._merged_config.get(section), dict):
                errors.append(f"Missing or invalid configuration section: {section}")

        default_schema = self.get('parsing.default_schema')
        if not isinstance(default_schema, str) or not default_schema.strip():
            errors.append("parsing.default_schema must be a non-empty string")

        if not isinstance(self.get('parsing.include_comments'), bool):
            errors.append("parsing.include_comments must be true or false")

        schema_paths = self.get('files.schema_paths')
        if not isinstance(schema_paths, list):
            errors.append("files.schema_paths must be a list of paths or glob patterns")
        elif not schema_paths:
            warnings.append("No schema paths configured")

        max_size = self.get('files.max_file_size_mb', 0)
        if not isinstance(max_size, (int, float)) or max_size <= 0:
            warnings.append("No maximum file size limit set")

        threshold = self.get('reading.encoding_confidence_threshold')
        if not isinstance(threshold, (int, float)) or not 0 <= threshold <= 1:
            errors.append(f"Invalid encoding confidence threshold: {threshold}")

        fallback = self.get('reading.fallback_encoding')
        try:
            codecs.lookup(fallback)
        except (LookupError, TypeError):
            errors.append(f"Unknown fallback encoding: {fallback}")

        max_workers = self.get('processing.max_workers')
        if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
            errors.append(f"processing.max_workers must be a positive integer, got {max_workers}")

        level = self.get('logging.level')
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            errors.append(f"Invalid logging level: {level}")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    def update_config(self, key_path: str, value: Any) -> None:
        """
        Update configuration value at runtime.

        Args:
            key_path: Dot-separated path to configuration value
            value: New value to set
        """
        keys = key_path.split('.')
        config = self._merged_config

        # Navigate to the parent of the target key
        for key in keys[:-1]:
            if key not in config:
                config[key] = {}
            config = config[key]

        config[keys[-1]] = value

        self.logger.info(f"Updated configuration: {key_path} = {value}")

    def reload(self) -> None:
        """Reload all configuration files."""
        self._base_config = {}
        self._override_config = {}
        self._merged_config = {}

        self.load_all_configs()
        self.logger.info("Configuration reloaded")

    def export_config(self, output_path: Path,
                      include_defaults: bool = True) -> None:
        """
        Export current configuration to file.

        Args:
            output_path: Path to export configuration
            include_defaults: Whether to include default values
        """
        if include_defaults:
            config_to_export = self._merged_config
        else:
            config_to_export = self._deep_merge(self._base_config, self._override_config)

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_to_export, f, default_flow_style=False, sort_keys=True)

        self.logger.info(f"Exported configuration to {output_path}")

    def get_config_info(self) -> Dict[str, Any]:
        """Get information about loaded configuration."""
        return {
            'environment': self.environment,
            'config_dir': str(self.config_dir) if self.config_dir is not None else None,
            'has_overrides': bool(self._override_config),
            'last_reload': datetime.now().isoformat()
        }

    def __repr__(self) -> str:
        return (
            f"ConfigLoader(config_dir='{self.config_dir}', "
            f"environment='{self.environment}')"
        )
