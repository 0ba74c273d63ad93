from .logging_utils import LOG_FORMAT, setup_logging, setup_logging_from_config

__all__ = ['LOG_FORMAT', 'setup_logging', 'setup_logging_from_config']
