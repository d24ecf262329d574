"""Import orchestration: parse → validate → convert → create → one result."""
import enum
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from greengrocer.core.config import settings
from greengrocer.imports.batch import RecordCreator, create_batch
from greengrocer.imports.conversion import convert_row, to_product_record, to_user_record
from greengrocer.imports.parser import parse_csv
from greengrocer.imports.rows import (
    ImportRecord,
    Invalid,
    RawRow,
    ValidatedRow,
    ValidationOutcome,
)
from greengrocer.imports.validation import validate_product_row, validate_user_row
from greengrocer.schemas.imports import ImportPreview, ImportResult, ImportRowError, PreviewRow

logger = logging.getLogger(__name__)


class ImportKind(str, enum.Enum):
    users = "users"
    products = "products"


class ImportTooLargeError(ValueError):
    """The upload has more data rows than a single import accepts."""


@dataclass(frozen=True)
class ImportPipeline:
    kind: ImportKind
    validate: Callable[[RawRow], ValidationOutcome]
    convert: Callable[[ValidatedRow], ImportRecord]


PIPELINES: dict[ImportKind, ImportPipeline] = {
    ImportKind.users: ImportPipeline(ImportKind.users, validate_user_row, to_user_record),
    ImportKind.products: ImportPipeline(ImportKind.products, validate_product_row, to_product_record),
}


def _error(invalid: Invalid) -> ImportRowError:
    return ImportRowError(row=invalid.row, message=invalid.message, data=dict(invalid.data))


def prepare_records(
    rows: Sequence[RawRow],
    pipeline: ImportPipeline,
) -> tuple[list[ImportRecord], list[ImportRowError]]:
    """Validate and convert every row. Returns (records, errors); never raises."""
    records: list[ImportRecord] = []
    errors: list[ImportRowError] = []
    for raw in rows:
        outcome = pipeline.validate(raw)
        if isinstance(outcome, Invalid):
            errors.append(_error(outcome))
            continue
        converted = convert_row(outcome.row, pipeline.convert)
        if isinstance(converted, Invalid):
            errors.append(_error(converted))
        else:
            records.append(converted)
    return records, errors


async def run_import(
    content: bytes,
    kind: ImportKind,
    create_one: RecordCreator,
    has_header: bool = True,
    fieldnames: Sequence[str] | None = None,
    max_rows: int | None = None,
    max_in_flight: int | None = None,
) -> ImportResult:
    """Run a full import and return its summary.

    CSVParseError and ImportTooLargeError propagate before any row is touched.
    Every other failure is reported per row, numbered by the row's position
    in the parsed file.
    """
    pipeline = PIPELINES[ImportKind(kind)]
    rows = parse_csv(content, has_header=has_header, fieldnames=fieldnames)

    limit = max_rows if max_rows is not None else settings.IMPORT_MAX_ROWS
    if len(rows) > limit:
        raise ImportTooLargeError(f"File has {len(rows)} rows; at most {limit} can be imported at once")

    records, errors = prepare_records(rows, pipeline)
    batch = await create_batch(records, create_one, max_in_flight=max_in_flight)
    errors.extend(batch.errors)
    errors.sort(key=lambda e: e.row)

    result = ImportResult(total=len(rows), success=len(batch.created), errors=errors)
    logger.info(
        "Import of %s finished: %d rows, %d created, %d failed",
        pipeline.kind.value,
        result.total,
        result.success,
        result.failed,
    )
    return result


def preview_import(
    content: bytes,
    kind: ImportKind,
    limit: int | None = None,
    has_header: bool = True,
    fieldnames: Sequence[str] | None = None,
) -> ImportPreview:
    """Parse and validate only; nothing is created."""
    pipeline = PIPELINES[ImportKind(kind)]
    rows = parse_csv(content, has_header=has_header, fieldnames=fieldnames)
    limit = limit if limit is not None else settings.IMPORT_PREVIEW_ROWS

    preview: list[PreviewRow] = []
    for raw in rows[:limit]:
        outcome = pipeline.validate(raw)
        email_type = None
        if pipeline.kind is ImportKind.users:
            email_type = "real" if raw.has("email") else "dummy"
        preview.append(
            PreviewRow(
                row=raw.row,
                data=raw.data,
                error=outcome.message if isinstance(outcome, Invalid) else None,
                email_type=email_type,
            )
        )

    columns = list(rows[0].data) if rows else []
    return ImportPreview(columns=columns, total=len(rows), rows=preview)
