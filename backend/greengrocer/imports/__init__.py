from greengrocer.imports.parser import CSVParseError, parse_csv
from greengrocer.imports.pipeline import (
    ImportKind,
    ImportTooLargeError,
    preview_import,
    run_import,
)
from greengrocer.imports.templates import get_template

__all__ = [
    "CSVParseError",
    "ImportKind",
    "ImportTooLargeError",
    "get_template",
    "parse_csv",
    "preview_import",
    "run_import",
]
