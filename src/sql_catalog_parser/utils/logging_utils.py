"""
Logging setup shared by applications embedding the catalog parser.
"""

import sys
import logging
from pathlib import Path
from typing import Optional, Union


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = 'INFO',
                  log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Configure root logging for console output and an optional log file.

    Existing root handlers are replaced so repeated calls do not duplicate
    output.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
    return logging.getLogger('SQLCatalogParser')


def setup_logging_from_config(config) -> logging.Logger:
    """Configure logging from the logging.* section of a ConfigLoader."""
    return setup_logging(
        level=config.get('logging.level', 'INFO'),
        log_file=config.get('logging.file')
    )
