"""
Conversion core: decorator classification, program-part models, the
analysis and emit passes, and the file driver.

Key entry points:
- ``transform_source`` for one source text
- ``convert_files`` for a batch of files on disk
"""

from .change_records import (
    ChangeRecordStore,
    Notification,
    Severity,
    TransformChangeRecord,
    TransformChangeType,
)
from .config import ConverterOptions, load_config
from .converter import (
    ConversionReport,
    FileResult,
    NoInputFilesError,
    TransformResult,
    convert_file,
    convert_files,
    resolve_files,
    transform_source,
)
from .emitter import PrintError, emit
from .models import SourceFile
from .transformer import PolymerTsTransformer

__all__ = [
    "ChangeRecordStore",
    "Notification",
    "Severity",
    "TransformChangeRecord",
    "TransformChangeType",
    "ConverterOptions",
    "load_config",
    "ConversionReport",
    "FileResult",
    "NoInputFilesError",
    "TransformResult",
    "convert_file",
    "convert_files",
    "resolve_files",
    "transform_source",
    "PrintError",
    "emit",
    "SourceFile",
    "PolymerTsTransformer",
]
