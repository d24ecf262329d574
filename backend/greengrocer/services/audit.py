"""Append-only audit trail for admin actions and CSV imports."""
import json
import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.models.audit import AuditLog

logger = logging.getLogger(__name__)


async def log(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    actor_email: str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Add one audit_logs row and flush it; the caller owns the commit.

    ``action`` is a dotted verb such as 'user.created' or 'products.imported'.
    ``before``/``after`` are JSON-serialisable snapshots; ``actor_email`` is
    stored alongside ``actor_id`` so the trail survives user deletion.
    """
    entry = AuditLog(
        actor_id=uuid.UUID(str(actor_id)) if actor_id else None,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=uuid.UUID(str(entity_id)) if entity_id else None,
        before_state=json.dumps(before, default=str) if before is not None else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        notes=notes,
    )
    db.add(entry)
    await db.flush()
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry


def actor_fields(actor: Any | None) -> dict[str, Any]:
    """actor_id/actor_email kwargs for log(), read eagerly from a User."""
    if actor is None:
        return {"actor_id": None, "actor_email": None}
    return {"actor_id": actor.id, "actor_email": actor.email}
