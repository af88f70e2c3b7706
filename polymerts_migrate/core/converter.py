"""
Conversion driver: files in, rewritten files out.

Each file is converted independently with its own change-record store; a
failure in one file is reported and never stops the others.
"""

from __future__ import annotations

import fnmatch
import glob
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .change_records import ChangeRecordStore, Notification, Severity
from .config import DEFAULT_GLOB_IGNORE, ConverterOptions
from .emitter import PrintError, emit
from .models import SourceFile
from .transformer import PolymerTsTransformer

SOURCE_SUFFIXES = (".ts", ".tsx")


class NoInputFilesError(ValueError):
    """Raised when a conversion is requested with no files to convert."""


@dataclass
class TransformResult:
    text: str
    notifications: List[Notification]
    records: ChangeRecordStore

    @property
    def changed(self) -> bool:
        return any(record.new_node is not None for record in self.records.records())


@dataclass
class FileResult:
    path: str
    output_path: Optional[str] = None
    written: bool = False
    changed: bool = False
    error: Optional[str] = None
    notifications: List[Notification] = field(default_factory=list)


@dataclass
class ConversionReport:
    written: List[str] = field(default_factory=list)
    not_written: List[str] = field(default_factory=list)
    notifications: List[Notification] = field(default_factory=list)
    results: List[FileResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.not_written

    def add(self, result: FileResult) -> None:
        self.results.append(result)
        self.notifications.extend(result.notifications)
        if result.written:
            self.written.append(result.output_path or result.path)
        else:
            self.not_written.append(result.path)


def transform_source(
    source: str,
    options: Optional[ConverterOptions] = None,
    file_path: str = "<memory>",
) -> TransformResult:
    """
    Run both passes over one source text.

    Raises:
        PrintError: if the rewritten text cannot be produced.
    """
    options = options or ConverterOptions()
    source_file = SourceFile(text=source, file_path=file_path)
    transformer = PolymerTsTransformer(source_file, options)
    store = transformer.analyze()
    text = emit(source_file, store)
    return TransformResult(text=text, notifications=list(store.notifications), records=store)


def output_path_for(path: str, options: ConverterOptions, cwd: Optional[str] = None) -> Path:
    """Where the rewritten ``path`` is written."""
    source = Path(path)
    if options.change_inline:
        return source
    base = Path(cwd or os.getcwd()).resolve()
    try:
        relative = source.resolve().relative_to(base)
    except ValueError:
        relative = Path(source.name)
    return Path(options.output_path) / relative


def convert_file(path: str, options: Optional[ConverterOptions] = None) -> FileResult:
    """Convert one file and write the result; errors are reported, not raised."""
    options = options or ConverterOptions()
    result = FileResult(path=path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            source = f.read()
        transformed = transform_source(source, options, file_path=path)
        result.notifications = transformed.notifications
        result.changed = transformed.changed

        target = output_path_for(path, options)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(transformed.text)
        result.output_path = str(target)
        result.written = True
        logging.info(f"Wrote {target}")
    except PrintError as e:
        result.error = str(e)
        result.notifications.append(Notification(Severity.ERROR, f"Could not print file: {e}", path))
        logging.error(f"Could not print {path}: {e}")
    except (OSError, UnicodeDecodeError) as e:
        result.error = str(e)
        result.notifications.append(Notification(Severity.ERROR, f"Could not read or write file: {e}", path))
        logging.error(f"Could not convert {path}: {e}")
    except Exception as e:
        result.error = str(e)
        result.notifications.append(Notification(Severity.ERROR, f"Unexpected failure: {e}", path))
        logging.exception(f"Unexpected failure converting {path}")
    return result


def convert_files(
    paths: Sequence[str],
    options: Optional[ConverterOptions] = None,
    progress: Optional[Callable[[Iterable[str]], Iterable[str]]] = None,
) -> ConversionReport:
    """
    Convert a batch of files.

    Args:
        paths: Files to convert.
        options: Conversion options.
        progress: Optional wrapper around the path iterator, e.g. ``tqdm``.

    Raises:
        NoInputFilesError: if ``paths`` is empty.
    """
    if not paths:
        raise NoInputFilesError("No input files were given")
    options = options or ConverterOptions()
    report = ConversionReport()
    iterator: Iterable[str] = progress(paths) if progress else paths
    for path in iterator:
        report.add(convert_file(path, options))
    return report


def is_ignored(path: str, ignore: Sequence[str], root: Optional[str] = None) -> bool:
    try:
        rel = Path(path).resolve().relative_to(Path(root or os.getcwd()).resolve()).as_posix()
    except ValueError:
        rel = Path(path).as_posix()
    for pattern in ignore:
        if fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(rel, "*/" + pattern):
            return True
    return False


def resolve_files(patterns: Sequence[str], ignore: Optional[Sequence[str]] = None,
                  root: Optional[str] = None) -> List[str]:
    """
    Expand files, directories and glob patterns into a sorted list of sources.

    Directories contribute every ``.ts``/``.tsx`` file below them. Paths
    matching an ``ignore`` pattern are dropped.
    """
    ignore = DEFAULT_GLOB_IGNORE if ignore is None else ignore
    found = set()
    for pattern in patterns:
        if os.path.isdir(pattern):
            for suffix in SOURCE_SUFFIXES:
                found.update(str(p) for p in Path(pattern).rglob(f"*{suffix}"))
            continue
        matches = glob.glob(pattern, recursive=True)
        if not matches and os.path.isfile(pattern):
            matches = [pattern]
        found.update(m for m in matches if os.path.isfile(m))

    files = []
    for path in sorted(found):
        if is_ignored(path, ignore, root):
            logging.debug(f"Ignoring {path}")
            continue
        files.append(path)
    return files
