"""
Resolution of configured schema paths to concrete SQL files.
"""

import glob
import logging
from pathlib import Path
from typing import Iterable, List, Union

from .config_loader import ConfigError, ConfigLoader


logger = logging.getLogger(__name__)

SQL_SUFFIX = '.sql'


class SchemaPathError(ConfigError):
    """Raised when the schema base directory does not exist."""
    pass


def resolve_schema_files(schema_paths: Iterable[str],
                         base_dir: Union[str, Path]) -> List[Path]:
    """
    Expand schema paths into an ordered list of unique .sql files.

    Entries containing '*' are glob patterns ('**' matches nested
    directories); matches of one pattern are sorted. Other entries name a
    single file. Paths are relative to base_dir. Missing files and files
    without a .sql suffix are skipped.
    """
    base_dir = Path(base_dir)
    if not base_dir.is_dir():
        raise SchemaPathError(f"Schema base directory not found: {base_dir.resolve()}")

    logger.info(f"Resolving schema files from base directory: {base_dir.resolve()}")

    resolved: List[Path] = []
    seen = set()

    for schema_path in schema_paths:
        pattern = base_dir / schema_path

        if '*' in schema_path:
            matches = sorted(glob.glob(str(pattern), recursive=True))
            logger.debug(f"Pattern {schema_path} matched {len(matches)} path(s)")
            candidates = [Path(match) for match in matches]
        elif pattern.is_file():
            candidates = [pattern]
        else:
            logger.warning(f"File not found: {schema_path}")
            continue

        for candidate in candidates:
            if not candidate.is_file():
                continue
            if candidate.suffix.lower() != SQL_SUFFIX:
                logger.debug(f"Skipped (not .sql): {candidate}")
                continue

            normalized = candidate.resolve()
            if normalized in seen:
                continue
            seen.add(normalized)
            resolved.append(normalized)

    logger.info(f"Total unique SQL files resolved: {len(resolved)}")
    return resolved


def schema_files_from_config(config: ConfigLoader) -> List[Path]:
    """Resolve the files named by files.schema_paths under files.base_dir."""
    return resolve_schema_files(config.get_schema_paths(), config.get_base_dir())
