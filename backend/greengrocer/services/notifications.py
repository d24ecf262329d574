"""Admin notifications: console mock for MVP (MAIL_ENABLED=False).

Import routes call these after the pipeline has returned; the pipeline
itself never notifies. When MAIL_ENABLED is False the summary is written to
the log instead of being mailed.
"""
import logging

from greengrocer.core.config import settings
from greengrocer.schemas.imports import ImportResult

logger = logging.getLogger(__name__)


# ─── Import completed ───

def notify_import_completed(kind: str, result: ImportResult, actor_email: str | None = None) -> None:
    """Report an import summary: successes at INFO, failures at WARNING.

    Args:
        kind: 'users' or 'products'.
        result: The pipeline's ImportResult.
        actor_email: Admin who uploaded the file.
    """
    if result.success:
        logger.info("Imported %d %s (by %s)", result.success, kind, actor_email or "system")
    if result.errors:
        logger.warning(
            "%d %s rows failed to import; first failure: row %d: %s",
            result.failed,
            kind,
            result.errors[0].row,
            result.errors[0].message,
        )

    if not settings.MAIL_ENABLED:
        return

    # Real SMTP path (not implemented in MVP)
    logger.warning(
        "MAIL_ENABLED=True but SMTP transport is not configured. "
        "Import summary for %s not mailed.",
        settings.ADMIN_NOTIFY_EMAIL,
    )
    logger.info(
        "IMPORT SUMMARY (unsent): to=%s kind=%s total=%d success=%d failed=%d",
        actor_email or settings.ADMIN_NOTIFY_EMAIL,
        kind,
        result.total,
        result.success,
        result.failed,
    )
