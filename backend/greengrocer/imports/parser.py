"""CSV upload → ordered RawRow sequence."""
import csv
import io
import logging
from collections.abc import Sequence

from greengrocer.imports.rows import RawRow

logger = logging.getLogger(__name__)


class CSVParseError(ValueError):
    """The upload cannot be tokenized into rows; aborts the whole import."""


def _normalize_header(names: Sequence[str]) -> list[str]:
    header = [(name or "").strip().lower() for name in names]
    seen: set[str] = set()
    for position, name in enumerate(header, start=1):
        if not name:
            raise CSVParseError(f"Header column {position} is empty")
        if name in seen:
            raise CSVParseError(f"Duplicate column '{name}' in header")
        seen.add(name)
    return header


def _is_blank(cells: list[str]) -> bool:
    return not any(cell.strip() for cell in cells)


def parse_csv(
    content: bytes,
    has_header: bool = True,
    fieldnames: Sequence[str] | None = None,
) -> list[RawRow]:
    """Parse a comma-separated upload.

    Column names are trimmed and lower-cased. Blank lines are skipped and do
    not consume a row number. Bad quoting or a line whose field count differs
    from the header raises CSVParseError.

    Args:
        content: Raw file bytes, UTF-8 with or without BOM.
        has_header: Whether the first non-blank line names the columns.
        fieldnames: Column names to use when ``has_header`` is False.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CSVParseError("File is not valid UTF-8 text") from exc

    header: list[str] | None = None
    if not has_header:
        if not fieldnames:
            raise CSVParseError("Column names are required when the file has no header row")
        header = _normalize_header(fieldnames)

    rows: list[RawRow] = []
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        for cells in reader:
            if _is_blank(cells):
                continue
            if header is None:
                header = _normalize_header(cells)
                continue
            if len(cells) != len(header):
                raise CSVParseError(
                    f"Line {reader.line_num}: expected {len(header)} fields, found {len(cells)}"
                )
            rows.append(RawRow(row=len(rows) + 1, data=dict(zip(header, cells))))
    except csv.Error as exc:
        raise CSVParseError(f"Line {reader.line_num}: {exc}") from exc

    if header is None:
        raise CSVParseError("File is empty")

    logger.debug("Parsed %d CSV rows with columns %s", len(rows), header)
    return rows
