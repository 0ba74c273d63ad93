from .config_loader import ConfigError, ConfigLoader, ConfigValidationError, ValidationResult
from .schema_paths import SchemaPathError, resolve_schema_files, schema_files_from_config

__all__ = [
    'ConfigError',
    'ConfigLoader',
    'ConfigValidationError',
    'ValidationResult',
    'SchemaPathError',
    'resolve_schema_files',
    'schema_files_from_config',
]
