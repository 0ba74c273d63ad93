"""
Catalog aggregation across SQL files.

Each file is read, split into statements and resolved on its own symbol
table. Per-file catalogs are appended to the running catalog in input order.
A file that cannot be read or parsed is reported and skipped; it never stops
the remaining files from being processed.
"""

import time
import logging
from pathlib import Path
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import chardet
from tqdm import tqdm

from .models import Catalog
from .parsers.statement_splitter import split_statements
from .resolver import ResolutionEngine


PathLike = Union[str, Path]
Reader = Callable[[PathLike], Union[str, bytes]]


@dataclass
class FileError:
    """A file that could not be read or parsed."""
    file_path: str
    message: str


@dataclass
class ParseResult:
    """Results from parsing a list of files."""
    catalog: Catalog
    errors: List[FileError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    files_processed: int = 0
    parse_time: float = 0.0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def describe_error(error: BaseException) -> str:
    """Displayable message for any exception, even one without a message."""
    message = str(error)
    return message if message else error.__class__.__name__


class SchemaParser:
    """
    Builds a Catalog from an ordered list of SQL files.

    Args:
        schema: Schema applied to unqualified object names
        include_comments: Apply COMMENT ON statements
        reader: Callable returning a file's text (or bytes). Defaults to
            reading from disk with encoding detection.
        max_workers: Parse files in that many processes when greater than 1
        show_progress: Display a tqdm progress bar over files
        max_file_size_mb: Files above this size are reported as errors
    """

    SUMMARY_LABELS = [
        ('enums', 'enum(s)'),
        ('functions', 'function(s)'),
        ('composite_types', 'composite type(s)'),
        ('views', 'view(s)'),
    ]

    def __init__(self, schema: str = "public", include_comments: bool = True,
                 reader: Optional[Reader] = None, max_workers: int = 1,
                 show_progress: bool = False, max_file_size_mb: Optional[float] = None,
                 encoding_confidence_threshold: float = 0.7,
                 fallback_encoding: str = 'latin-1'):
        self.schema = schema
        self.include_comments = include_comments
        self.reader = reader
        self.max_workers = max_workers
        self.show_progress = show_progress
        self.max_file_size_mb = max_file_size_mb
        self.encoding_confidence_threshold = encoding_confidence_threshold
        self.fallback_encoding = fallback_encoding
        self.logger = logging.getLogger(self.__class__.__name__)
        self._file_warnings: List[str] = []

    @classmethod
    def from_config(cls, config, reader: Optional[Reader] = None) -> 'SchemaParser':
        """Create a parser from a ConfigLoader."""
        return cls(
            schema=config.get('parsing.default_schema', 'public'),
            include_comments=config.get('parsing.include_comments', True),
            reader=reader,
            max_workers=config.get('processing.max_workers', 1),
            show_progress=config.get('processing.show_progress', False),
            max_file_size_mb=config.get('files.max_file_size_mb'),
            encoding_confidence_threshold=config.get('reading.encoding_confidence_threshold', 0.7),
            fallback_encoding=config.get('reading.fallback_encoding', 'latin-1'),
        )

    def _settings(self) -> Dict[str, Any]:
        return {
            'schema': self.schema,
            'include_comments': self.include_comments,
            'max_file_size_mb': self.max_file_size_mb,
            'encoding_confidence_threshold': self.encoding_confidence_threshold,
            'fallback_encoding': self.fallback_encoding,
        }

    def parse_text(self, content: str) -> Catalog:
        """Resolve the statements of one file's text into a catalog."""
        engine = ResolutionEngine(self.schema, self.include_comments)
        return engine.resolve(split_statements(content))

    def parse_file(self, file_path: PathLike) -> Catalog:
        """
        Read and resolve a single file.

        Raises whatever the reader raises; parse_files() isolates these
        per file.
        """
        return self.parse_text(self._read_file(file_path))

    def parse_files(self, file_paths: Sequence[PathLike]) -> ParseResult:
        """Parse files in order, isolating failures per file."""
        start_time = time.time()
        file_paths = list(file_paths)
        result = ParseResult(catalog=Catalog())

        if self.max_workers > 1 and self.reader is None and len(file_paths) > 1:
            outcomes = self._parse_parallel(file_paths)
        else:
            if self.max_workers > 1 and self.reader is not None:
                self.logger.info("Custom reader supplied, parsing files sequentially")
            outcomes = self._parse_sequential(file_paths)

        for file_path, catalog, message, warnings in outcomes:
            result.files_processed += 1
            result.warnings.extend(warnings)
            if message is not None:
                self.logger.error(f"Error parsing {file_path}: {message}")
                result.errors.append(FileError(file_path=str(file_path), message=message))
                continue
            result.catalog.extend(catalog)

        result.parse_time = time.time() - start_time
        self._log_summary(result.catalog)
        return result

    def _parse_sequential(self, file_paths: Sequence[PathLike]):
        iterator = tqdm(file_paths, desc="Parsing files") if self.show_progress else file_paths

        for file_path in iterator:
            if self.show_progress:
                iterator.set_postfix({'file': Path(file_path).name})
            self.logger.info(f"Processing: {Path(file_path).name}")
            self._file_warnings = []
            try:
                catalog = self.parse_file(file_path)
            except Exception as e:
                yield file_path, None, describe_error(e), self._file_warnings
            else:
                yield file_path, catalog, None, self._file_warnings

    def _parse_parallel(self, file_paths: Sequence[PathLike]):
        settings = self._settings()

        with ProcessPoolExecutor(max_workers=self.max_workers) as executor:
            futures = []
            for file_path in file_paths:
                self.logger.info(f"Processing: {Path(file_path).name}")
                futures.append(executor.submit(_parse_file_worker, file_path, settings))

            # Results are merged in submission order, not completion order
            iterator = tqdm(futures, desc="Parsing files") if self.show_progress else futures
            for file_path, future in zip(file_paths, iterator):
                try:
                    catalog, message, warnings = future.result()
                except Exception as e:
                    catalog, message, warnings = None, describe_error(e), []
                yield file_path, catalog, message, warnings

    def _read_file(self, file_path: PathLike) -> str:
        if self.reader is None:
            return self._read_file_with_encoding(Path(file_path))

        content = self.reader(file_path)
        if isinstance(content, bytes):
            return self._decode(content, file_path)
        return content

    def _read_file_with_encoding(self, file_path: Path) -> str:
        """Read file content with automatic encoding detection."""
        if self.max_file_size_mb:
            size_mb = file_path.stat().st_size / (1024 * 1024)
            if size_mb > self.max_file_size_mb:
                raise ValueError(
                    f"File is {size_mb:.1f} MB, larger than the {self.max_file_size_mb} MB limit"
                )

        with open(file_path, 'rb') as f:
            raw_data = f.read()
        return self._decode(raw_data, file_path)

    def _decode(self, raw_data: bytes, file_path: PathLike) -> str:
        # Try UTF-8 first (most common)
        try:
            return raw_data.decode('utf-8')
        except UnicodeDecodeError:
            pass

        detected = chardet.detect(raw_data)
        encoding = detected.get('encoding') or self.fallback_encoding
        confidence = detected.get('confidence') or 0

        if confidence < self.encoding_confidence_threshold:
            self._warn(
                f"Low confidence ({confidence:.2f}) in encoding detection "
                f"for {file_path}. Detected: {encoding}"
            )

        # Try detected encoding, fall back to the configured one
        try:
            return raw_data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            self._warn(
                f"Failed to decode {file_path} with {encoding}, using {self.fallback_encoding}"
            )
            return raw_data.decode(self.fallback_encoding, errors='replace')

    def _warn(self, message: str) -> None:
        """Log an encoding warning and keep it for the ParseResult."""
        self.logger.warning(message)
        self._file_warnings.append(message)

    def _log_summary(self, catalog: Catalog) -> None:
        counts = catalog.summary()
        self.logger.info(f"Parsed {counts['tables']} table(s)")
        for key, label in self.SUMMARY_LABELS:
            if counts[key] > 0:
                self.logger.info(f"Parsed {counts[key]} {label}")


def _parse_file_worker(file_path: PathLike,
                       settings: Dict[str, Any]) -> Tuple[Optional[Catalog], Optional[str], List[str]]:
    """Process pool entry point: parse one file with a fresh parser."""
    parser = SchemaParser(**settings)
    try:
        return parser.parse_file(file_path), None, parser._file_warnings
    except Exception as e:
        return None, describe_error(e), parser._file_warnings


def parse_sql_files(file_paths: Sequence[PathLike], schema: str = "public",
                    include_comments: bool = True,
                    reader: Optional[Reader] = None) -> Catalog:
    """
    Parse SQL files into a single catalog.

    Files are processed in the given order. Read or parse failures are
    logged and skipped.

    Example:
        catalog = parse_sql_files(['schema.sql'], schema='public')
    """
    parser = SchemaParser(schema=schema, include_comments=include_comments, reader=reader)
    return parser.parse_files(file_paths).catalog
