"""Record-by-record creation with per-record failure capture."""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from greengrocer.core.config import settings
from greengrocer.imports.rows import ImportRecord
from greengrocer.schemas.imports import ImportRowError

logger = logging.getLogger(__name__)

RecordCreator = Callable[[ImportRecord], Awaitable[Any]]

DATABASE_ERROR_MESSAGE = "Database error while creating record"


@dataclass
class BatchOutcome:
    created: list[Any] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)


async def _create_one(
    record: ImportRecord,
    create_one: RecordCreator,
) -> tuple[Any, ImportRowError | None]:
    try:
        return await create_one(record), None
    except SQLAlchemyError as exc:
        # Statement text and bound parameters stay out of the row message
        logger.error(
            "Import row %d not created: %s: %s",
            record.row,
            exc.__class__.__name__,
            getattr(exc, "orig", ""),
        )
        message = DATABASE_ERROR_MESSAGE
    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        logger.warning("Import row %d not created: %s", record.row, message)
    return None, ImportRowError(row=record.row, message=message, data=dict(record.data))


async def create_batch(
    records: Sequence[ImportRecord],
    create_one: RecordCreator,
    max_in_flight: int | None = None,
) -> BatchOutcome:
    """Create every record, never letting one failure stop the rest.

    With ``max_in_flight == 1`` (the configured default) record N+1 is only
    submitted once record N has resolved. Larger values bound concurrency with
    a semaphore; outcomes are still reported in input order.
    """
    limit = max_in_flight if max_in_flight is not None else settings.IMPORT_MAX_IN_FLIGHT_CREATES
    if limit < 1:
        raise ValueError("max_in_flight must be at least 1")

    if limit == 1:
        results = [await _create_one(record, create_one) for record in records]
    else:
        semaphore = asyncio.Semaphore(limit)

        async def guarded(record: ImportRecord):
            async with semaphore:
                return await _create_one(record, create_one)

        results = await asyncio.gather(*(guarded(record) for record in records))

    outcome = BatchOutcome()
    for created, error in results:
        if error is not None:
            outcome.errors.append(error)
        else:
            outcome.created.append(created)
    return outcome
